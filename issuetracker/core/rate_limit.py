"""
Shared slowapi limiter. Installed on the app in main.py and used by the
login endpoints.
"""
from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from issuetracker.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
