"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation.
"""

from .user import UserFactory, OwnerFactory, TenantFactory, AdminUserFactory, InactiveUserFactory
from .rental_property import PropertyFactory
from .contract import ContractFactory

__all__ = [
    "UserFactory",
    "OwnerFactory",
    "TenantFactory",
    "AdminUserFactory",
    "InactiveUserFactory",
    "PropertyFactory",
    "ContractFactory",
]
