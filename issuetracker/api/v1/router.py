"""
Aggregates all v1 API routers into a single APIRouter.
"""
from __future__ import annotations

from fastapi import APIRouter

from issuetracker.api.v1 import (
    attachments,
    auth,
    comments,
    issues,
    projects,
    users,
    websocket,
)

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(projects.router)
api_router.include_router(issues.router)
api_router.include_router(comments.router)
api_router.include_router(attachments.router)
api_router.include_router(websocket.router)
