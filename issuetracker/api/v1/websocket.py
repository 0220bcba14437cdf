"""
WebSocket endpoint.
Clients connect with a valid JWT access token as a query parameter, then
join project rooms to receive issue and comment events for those projects.
The socket holds no database session; the handshake and each join-project
open a short-lived one.
Heartbeat ping/pong every 30 seconds keeps connections alive.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from typing import Annotated, Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from issuetracker.core.dependencies import user_from_token
from issuetracker.core.exceptions import IssueTrackerException
from issuetracker.core.permissions import can_access_project
from issuetracker.db.session import get_session_factory
from issuetracker.models.user import User
from issuetracker.repositories.project import ProjectRepository
from issuetracker.services.websocket_service import ws_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])

HEARTBEAT_INTERVAL = 30  # seconds

SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


@router.websocket("/ws/{user_id}")
async def websocket_endpoint(
    websocket: WebSocket, user_id: str, session_factory: SessionFactory
) -> None:
    """
    WebSocket endpoint for real-time project events.

    Query parameters:
        token: A valid JWT access token.

    The client sends:
        - {"type": "join-project", "project_id": "..."}
        - {"type": "leave-project", "project_id": "..."}
        - {"type": "pong"} in reply to pings.

    The server sends:
        - {"type": "connected", "user_id": "..."} on successful connection.
        - {"type": "ping"} every 30 seconds as a heartbeat.
        - issue-created, issue-updated, issue-deleted and comment-added events
          for joined projects, and issue-assigned to the assignee.
    """
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4001, reason="Missing authentication token")
        return

    try:
        async with session_factory() as db:
            user = await user_from_token(db, token)
    except IssueTrackerException as exc:
        await websocket.close(code=4001, reason=exc.detail)
        return

    if str(user.id) != user_id:
        await websocket.close(code=4003, reason="Token user_id mismatch")
        return

    await ws_manager.connect(websocket, user_id)

    try:
        await websocket.send_json({"type": "connected", "user_id": user_id})
        heartbeat_task = asyncio.create_task(_heartbeat(websocket))

        try:
            while True:
                data = await websocket.receive_json()
                await _handle_message(websocket, session_factory, user, data)
        finally:
            heartbeat_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await heartbeat_task

    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected: user_id=%s", user_id)
    except Exception as exc:
        logger.error("WebSocket error for user_id=%s: %s", user_id, exc)
    finally:
        ws_manager.disconnect(websocket, user_id)


async def _handle_message(
    websocket: WebSocket,
    session_factory: async_sessionmaker[AsyncSession],
    user: User,
    data: Any,
) -> None:
    if not isinstance(data, dict):
        await websocket.send_json({"type": "error", "detail": "Messages must be JSON objects"})
        return

    kind = data.get("type")
    if kind == "pong":
        logger.debug("Received pong from user_id=%s", user.id)
        return

    if kind in ("join-project", "leave-project"):
        try:
            project_id = uuid.UUID(str(data.get("project_id")))
        except ValueError:
            await websocket.send_json({"type": "error", "detail": "Invalid project_id"})
            return

        if kind == "leave-project":
            ws_manager.leave_project(websocket, str(project_id))
            await websocket.send_json({"type": "left-project", "project_id": str(project_id)})
            return

        async with session_factory() as db:
            project = await ProjectRepository(db).find_by_id(project_id)
            allowed = (
                project is not None
                and project.is_active
                and can_access_project(project, user)
            )
        if not allowed:
            await websocket.send_json(
                {"type": "error", "detail": "Access denied to this project"}
            )
            return
        ws_manager.join_project(websocket, str(project_id))
        await websocket.send_json({"type": "joined-project", "project_id": str(project_id)})
        return

    await websocket.send_json({"type": "error", "detail": f"Unknown message type: {kind}"})


async def _heartbeat(websocket: WebSocket) -> None:
    """Send periodic ping frames to keep the connection alive."""
    while True:
        await asyncio.sleep(HEARTBEAT_INTERVAL)
        if not await ws_manager.send_ping(websocket):
            break
