"""
Authentication service.
Handles registration, password and Google login, token refresh, logout,
and the current user's profile and password changes.
Business logic lives here; routes only call these methods.
"""
from __future__ import annotations

import logging
import uuid

from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from issuetracker.core.exceptions import (
    BadRequestException,
    ConflictException,
    InvalidTokenException,
    UnauthorizedException,
)
from issuetracker.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    generate_unusable_password,
    hash_password,
    hash_token,
    verify_password,
)
from issuetracker.models.user import User
from issuetracker.repositories.user import UserRepository
from issuetracker.schemas.user import AuthResponse, PasswordChange, Token, UserCreate, UserRead, UserUpdate
from issuetracker.services.google_auth import GoogleUserInfo

logger = logging.getLogger(__name__)


class AuthService:

    async def _issue_tokens(self, users: UserRepository, user: User) -> Token:
        """Create an access + refresh pair and remember the refresh hash."""
        access_token = create_access_token(str(user.id), user.email, user.role)
        refresh_token = create_refresh_token(str(user.id))
        await users.set_refresh_token_hash(user, hash_token(refresh_token))
        return Token(access_token=access_token, refresh_token=refresh_token)

    async def _auth_response(self, users: UserRepository, user: User) -> AuthResponse:
        tokens = await self._issue_tokens(users, user)
        return AuthResponse(user=UserRead.model_validate(user), **tokens.model_dump())

    async def register_user(
        self, db: AsyncSession, *, user_in: UserCreate
    ) -> AuthResponse:
        """Create an account with the default role and sign it in."""
        users = UserRepository(db)
        if await users.find_by_email(user_in.email) is not None:
            raise ConflictException("A user with this email already exists")

        user = await users.create(
            {
                "email": user_in.email,
                "hashed_password": hash_password(user_in.password),
                "first_name": user_in.first_name,
                "last_name": user_in.last_name,
            }
        )
        logger.info("Registered user %s", user.id)
        return await self._auth_response(users, user)

    async def authenticate_user(
        self, db: AsyncSession, *, email: str, password: str
    ) -> AuthResponse:
        """
        Verify credentials and issue an access + refresh token pair.
        Stamps last_login and stores the refresh token hash for rotation.
        """
        users = UserRepository(db)
        user = await users.find_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            raise UnauthorizedException("Invalid email or password")
        if not user.is_active:
            raise UnauthorizedException("Account is deactivated")

        user = await users.touch_last_login(user)
        return await self._auth_response(users, user)

    async def authenticate_google_user(
        self, db: AsyncSession, *, info: GoogleUserInfo
    ) -> AuthResponse:
        """
        Sign in with a verified Google identity.
        Unknown emails get a new account; a missing avatar is filled from Google.
        """
        users = UserRepository(db)
        user = await users.find_by_email(info.email)

        if user is None:
            first_name = info.given_name or (info.name.split(" ")[0] if info.name else "")
            last_name = info.family_name or " ".join(info.name.split(" ")[1:])
            user = await users.create(
                {
                    "email": info.email,
                    "hashed_password": hash_password(generate_unusable_password()),
                    "first_name": (first_name or info.email.split("@")[0])[:50],
                    "last_name": last_name[:50],
                    "avatar": info.picture,
                }
            )
            logger.info("Created user %s from Google sign-in", user.id)
        elif not user.is_active:
            raise UnauthorizedException("Account is deactivated")
        elif info.picture and not user.avatar:
            user = await users.update(user.id, {"avatar": info.picture}) or user

        user = await users.touch_last_login(user)
        return await self._auth_response(users, user)

    async def refresh_access_token(
        self, db: AsyncSession, *, refresh_token: str
    ) -> Token:
        """
        Validate the refresh token, issue a new access token,
        and rotate the refresh token.
        """
        try:
            payload = decode_refresh_token(refresh_token)
            user_id = uuid.UUID(payload["sub"])
        except (JWTError, KeyError, ValueError):
            raise InvalidTokenException("Invalid or expired refresh token")

        users = UserRepository(db)
        user = await users.find_by_id(user_id)
        if user is None or not user.is_active:
            raise UnauthorizedException("User not found or inactive")

        if user.refresh_token_hash != hash_token(refresh_token):
            raise InvalidTokenException("Refresh token has been revoked")

        return await self._issue_tokens(users, user)

    async def logout(self, db: AsyncSession, *, user: User) -> None:
        """Invalidate the stored refresh token hash."""
        await UserRepository(db).set_refresh_token_hash(user, None)
        logger.info("User %s logged out", user.id)

    # ── Profile ───────────────────────────────────────────────────────────────

    async def update_profile(
        self, db: AsyncSession, *, user: User, user_in: UserUpdate
    ) -> User:
        # Names are required columns; only the avatar may be cleared.
        changes = {
            field: value
            for field, value in user_in.model_dump(exclude_unset=True).items()
            if value is not None or field == "avatar"
        }
        updated = await UserRepository(db).update(user.id, changes)
        return updated or user

    async def change_password(
        self, db: AsyncSession, *, user: User, body: PasswordChange
    ) -> None:
        if not verify_password(body.current_password, user.hashed_password):
            raise BadRequestException("Current password is incorrect")
        if body.current_password == body.new_password:
            raise BadRequestException("New password must differ from current password")

        await UserRepository(db).update(
            user.id,
            {"hashed_password": hash_password(body.new_password), "refresh_token_hash": None},
        )


auth_service = AuthService()
