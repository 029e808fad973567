"""
FastAPI Dependencies

Provides dependency injection for database sessions and caller identity.

SECURITY NOTES:
- JWT payloads are never logged
- Tokens are issued by the identity service; this API only verifies them
"""

from typing import Annotated
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
import logging

from rental_api.database import get_db
from rental_api.config import settings
from rental_api.exceptions import ForbiddenError, UnauthorizedError
from rental_api.models.user import User

logger = logging.getLogger(__name__)


# HTTP Bearer for JWT
security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token (identity service and tests)."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
) -> User:
    """
    Resolve the caller from the bearer token.

    The token ``sub`` claim carries the user id.
    """
    if not credentials:
        raise UnauthorizedError("Could not validate credentials")

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        # SECURITY: Never log JWT payloads
        sub = payload.get("sub")
        if sub is None:
            raise UnauthorizedError("Could not validate credentials")
        user_id = int(sub)
    except JWTError:
        logger.warning("JWT validation failed")
        raise UnauthorizedError("Could not validate credentials")
    except ValueError:
        logger.warning("Invalid token subject")
        raise UnauthorizedError("Could not validate credentials")

    user = await db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("Could not validate credentials")
    if not user.is_active:
        raise ForbiddenError("User account is disabled")

    logger.debug("User authenticated", extra={"user_id": user.id})
    return user


# Type aliases for dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
