"""
Credentials for the issue tracker.

Access tokens carry the user id as subject plus email and role claims; they
authenticate both REST calls and the WebSocket handshake. Refresh tokens are
signed with a separate key and only their SHA-256 digest is stored on the
user row, so one refresh token is valid per user at a time.

Passwords go through passlib's bcrypt context. Accounts created by Google
sign-in get a random password nobody knows.
"""
from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from issuetracker.core.config import settings

ACCESS = "access"
REFRESH = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_PASSWORD_RULES: tuple[tuple[Any, str], ...] = (
    (lambda p: len(p) >= 8, "Password must be at least 8 characters long"),
    (lambda p: any(c.isupper() for c in p), "Password must contain at least one uppercase letter"),
    (lambda p: any(c.isdigit() for c in p), "Password must contain at least one digit"),
)


# ── Passwords ─────────────────────────────────────────────────────────────────

def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def generate_unusable_password() -> str:
    """Random secret for accounts created through third-party sign-in."""
    return secrets.token_urlsafe(24)


def validate_password_strength(password: str) -> str:
    """Return ``password`` unchanged, or raise ValueError naming the first rule it breaks."""
    for check, message in _PASSWORD_RULES:
        if not check(password):
            raise ValueError(message)
    return password


# ── Tokens ────────────────────────────────────────────────────────────────────

def _sign(subject: str, kind: str, key: str, lifetime: timedelta, **claims: Any) -> str:
    issued_at = datetime.now(timezone.utc)
    claims.update(
        sub=subject,
        type=kind,
        iat=issued_at,
        exp=issued_at + lifetime,
        # Unique id so two tokens issued in the same second still differ.
        jti=secrets.token_hex(16),
    )
    return jwt.encode(claims, key, algorithm=settings.ALGORITHM)


def _verify(token: str, key: str, kind: str) -> dict[str, Any]:
    claims = jwt.decode(token, key, algorithms=[settings.ALGORITHM])
    if claims.get("type") != kind:
        raise JWTError(f"Expected a {kind} token")
    return claims


def create_access_token(user_id: str, email: str, role: str) -> str:
    return _sign(
        user_id,
        ACCESS,
        settings.SECRET_KEY,
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        email=email,
        role=role,
    )


def create_refresh_token(user_id: str) -> str:
    return _sign(
        user_id,
        REFRESH,
        settings.REFRESH_SECRET_KEY,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Claims of a valid access token. Raises JWTError otherwise."""
    return _verify(token, settings.SECRET_KEY, ACCESS)


def decode_refresh_token(token: str) -> dict[str, Any]:
    """Claims of a valid refresh token. Raises JWTError otherwise."""
    return _verify(token, settings.REFRESH_SECRET_KEY, REFRESH)


def hash_token(token: str) -> str:
    """SHA-256 digest stored in place of the refresh token itself."""
    return hashlib.sha256(token.encode()).hexdigest()
