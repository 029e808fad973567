"""
Role-Based Access Control (RBAC) Module

Maps user roles to the permissions the contract endpoints check. Whether a
caller is a party to a given contract is decided by the services; this
module only answers role-level questions.
"""

from enum import Enum
from typing import Optional, Set
import logging

from rental_api.api.deps import CurrentUser
from rental_api.exceptions import ForbiddenError
from rental_api.models.user import User, UserRole

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    """Fine-grained permissions."""
    CREATE_CONTRACTS = "create_contracts"
    SIGN_CONTRACTS = "sign_contracts"
    UPLOAD_DOCUMENTS = "upload_documents"
    REVIEW_DOCUMENTS = "review_documents"
    VIEW_ALL_CONTRACTS = "view_all_contracts"


# Role-to-permissions mapping
ROLE_PERMISSIONS: dict[UserRole, Set[Permission]] = {
    UserRole.OWNER: {
        Permission.CREATE_CONTRACTS,
        Permission.SIGN_CONTRACTS,
        Permission.UPLOAD_DOCUMENTS,
    },
    UserRole.TENANT: {
        Permission.SIGN_CONTRACTS,
        Permission.UPLOAD_DOCUMENTS,
    },
    UserRole.ADMIN: {
        Permission.REVIEW_DOCUMENTS,
        Permission.VIEW_ALL_CONTRACTS,
    },
}


def get_user_permissions(user: User) -> Set[Permission]:
    """Get all permissions for a user based on their role."""
    return ROLE_PERMISSIONS.get(user.role, set())


def has_permission(user: User, permission: Permission) -> bool:
    """Check if user has a specific permission."""
    return permission in get_user_permissions(user)


def require_permission(permission: Permission):
    """
    Dependency factory for requiring a specific permission.

    Usage:
        @router.post("/contracts")
        async def create_contract(
            current_user: CurrentUser,
            _: None = Depends(require_permission(Permission.CREATE_CONTRACTS))
        ):
            ...
    """
    def checker(current_user: CurrentUser) -> None:
        if not has_permission(current_user, permission):
            logger.warning(
                f"Permission denied: user {current_user.id} lacks {permission.value}",
                extra={"user_id": current_user.id, "permission": permission.value}
            )
            raise ForbiddenError(f"Permission denied: requires {permission.value}")
    return checker


def contract_read_scope(user: User) -> Optional[int]:
    """Caller id for party checks on reads; None lets admins read every contract."""
    if has_permission(user, Permission.VIEW_ALL_CONTRACTS):
        return None
    return user.id
