# Security module
from rental_api.security.rbac import (
    Permission,
    has_permission,
    require_permission,
)

__all__ = [
    "Permission",
    "has_permission",
    "require_permission",
]
