"""
Google ID-token verification.
Verification performs blocking HTTP (certificate fetch), so it runs in the
threadpool.
"""
from __future__ import annotations

import logging

from fastapi.concurrency import run_in_threadpool
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from pydantic import BaseModel

from issuetracker.core.config import settings
from issuetracker.core.exceptions import UnauthorizedException

logger = logging.getLogger(__name__)


class GoogleUserInfo(BaseModel):
    sub: str
    email: str
    email_verified: bool
    name: str = ""
    given_name: str | None = None
    family_name: str | None = None
    picture: str | None = None


def _verify(token: str) -> dict:
    return id_token.verify_oauth2_token(
        token, google_requests.Request(), settings.GOOGLE_CLIENT_ID
    )


async def verify_google_token(token: str) -> GoogleUserInfo:
    """Verify a Google ID token and return the identity it carries."""
    if not settings.GOOGLE_CLIENT_ID:
        logger.warning("Google sign-in attempted but GOOGLE_CLIENT_ID is not configured")
        raise UnauthorizedException("Google sign-in is not configured")

    try:
        claims = await run_in_threadpool(_verify, token)
    except ValueError as exc:
        logger.info("Rejected Google ID token: %s", exc)
        raise UnauthorizedException("Invalid Google token") from exc

    info = GoogleUserInfo.model_validate(claims)
    if not info.email or not info.email_verified:
        raise UnauthorizedException("Google account email is not verified")
    return info
