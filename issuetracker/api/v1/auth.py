"""
Authentication routes.
POST /auth/register, /auth/login, /auth/google, /auth/refresh, /auth/logout
GET /auth/verify
"""
from __future__ import annotations

from fastapi import APIRouter, Request, status

from issuetracker.core.config import settings
from issuetracker.core.dependencies import CurrentUser, DBSession
from issuetracker.core.rate_limit import limiter
from issuetracker.schemas.user import (
    AuthResponse,
    GoogleLoginRequest,
    LoginRequest,
    RefreshTokenRequest,
    Token,
    TokenVerification,
    UserCreate,
    UserRead,
)
from issuetracker.services.auth_service import auth_service
from issuetracker.services.google_auth import verify_google_token

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(
    user_in: UserCreate,
    db: DBSession,
) -> AuthResponse:
    return await auth_service.register_user(db, user_in=user_in)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Authenticate and receive JWT token pair",
)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: DBSession,
) -> AuthResponse:
    return await auth_service.authenticate_user(
        db, email=credentials.email, password=credentials.password
    )


@router.post(
    "/google",
    response_model=AuthResponse,
    summary="Sign in with a Google ID token",
)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
async def google_login(
    request: Request,
    body: GoogleLoginRequest,
    db: DBSession,
) -> AuthResponse:
    info = await verify_google_token(body.id_token)
    return await auth_service.authenticate_google_user(db, info=info)


@router.post(
    "/refresh",
    response_model=Token,
    summary="Refresh access token using a valid refresh token",
)
async def refresh(
    body: RefreshTokenRequest,
    db: DBSession,
) -> Token:
    return await auth_service.refresh_access_token(
        db, refresh_token=body.refresh_token
    )


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Invalidate the current refresh token",
)
async def logout(
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await auth_service.logout(db, user=current_user)


@router.get(
    "/verify",
    response_model=TokenVerification,
    summary="Check that the access token is valid",
)
async def verify(current_user: CurrentUser) -> TokenVerification:
    return TokenVerification(user=UserRead.model_validate(current_user))
