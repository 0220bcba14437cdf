"""
FastAPI dependency injection functions.
Provides get_db, get_current_user, require_roles and the route type aliases.
"""
from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from issuetracker.core.exceptions import ForbiddenException, InvalidTokenException, UnauthorizedException
from issuetracker.core.security import decode_access_token
from issuetracker.db.session import get_db
from issuetracker.models.user import User, UserRole
from issuetracker.repositories.user import UserRepository

# Re-export get_db so routes can import from one place
__all__ = [
    "get_db",
    "get_current_user",
    "require_roles",
    "DBSession",
    "CurrentUser",
    "AdminUser",
]

bearer_scheme = HTTPBearer(auto_error=False)


async def user_from_token(db: AsyncSession, token: str) -> User:
    """
    Resolve an access token to an active user.
    Shared by the HTTP bearer dependency and the WebSocket handshake.
    """
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise InvalidTokenException("Invalid or expired access token")

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise InvalidTokenException("Malformed token: missing subject")

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        raise InvalidTokenException("Malformed token: invalid subject format")

    user = await UserRepository(db).find_by_id(user_id)
    if user is None:
        raise UnauthorizedException("User not found")
    if not user.is_active:
        raise UnauthorizedException("User account is deactivated")
    return user


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> User:
    """
    Extract and validate the JWT access token from the Authorization header.
    Returns the authenticated User model.
    """
    if credentials is None:
        raise UnauthorizedException("Missing authentication token")
    return await user_from_token(db, credentials.credentials)


def require_roles(*roles: UserRole) -> Callable[..., Awaitable[User]]:
    """Dependency factory that admits only users holding one of ``roles``."""
    allowed = {role.value for role in roles}

    async def _require(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in allowed:
            raise ForbiddenException(
                f"This action requires one of the roles: {', '.join(sorted(allowed))}"
            )
        return current_user

    return _require


# Convenience type aliases for route signatures
DBSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]