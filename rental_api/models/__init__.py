from rental_api.models.user import User, UserRole
from rental_api.models.property import Property, PropertyStatus
from rental_api.models.contract import Contract, ContractStatus, ContractParty
from rental_api.models.contract_document import ContractDocument, DocumentStatus
from rental_api.models.notification import Notification

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyStatus",
    "Contract",
    "ContractStatus",
    "ContractParty",
    "ContractDocument",
    "DocumentStatus",
    "Notification",
]
