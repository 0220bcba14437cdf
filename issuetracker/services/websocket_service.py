"""
WebSocket connection manager.
Tracks live connections per user and per project room, and fans out
JSON events to a single user or to everyone watching a project.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Active WebSocket connections keyed by user_id (string).
    A user may hold several connections; each connection may join any
    number of project rooms.
    """

    def __init__(self) -> None:
        self._connections: dict[str, list[WebSocket]] = {}
        # project_id → connections currently in that room
        self._rooms: dict[str, set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user_id: str) -> None:
        await websocket.accept()
        self._connections.setdefault(user_id, []).append(websocket)
        logger.info("WebSocket connected: user_id=%s", user_id)

    def disconnect(self, websocket: WebSocket, user_id: str) -> None:
        connections = self._connections.get(user_id)
        if connections is not None:
            if websocket in connections:
                connections.remove(websocket)
            if not connections:
                del self._connections[user_id]
        for project_id in list(self._rooms):
            self._leave(websocket, project_id)
        logger.info("WebSocket disconnected: user_id=%s", user_id)

    def is_connected(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    # ── Project rooms ─────────────────────────────────────────────────────────

    def join_project(self, websocket: WebSocket, project_id: str) -> None:
        self._rooms.setdefault(project_id, set()).add(websocket)
        logger.debug("Connection joined project room %s", project_id)

    def leave_project(self, websocket: WebSocket, project_id: str) -> None:
        self._leave(websocket, project_id)
        logger.debug("Connection left project room %s", project_id)

    def _leave(self, websocket: WebSocket, project_id: str) -> None:
        room = self._rooms.get(project_id)
        if room is None:
            return
        room.discard(websocket)
        if not room:
            del self._rooms[project_id]

    def room_size(self, project_id: str) -> int:
        return len(self._rooms.get(project_id, ()))

    # ── Delivery ──────────────────────────────────────────────────────────────

    async def send_personal_message(
        self, user_id: str, data: dict[str, Any]
    ) -> None:
        """Send a JSON message to all connections for a specific user."""
        connections = list(self._connections.get(user_id, []))
        if not connections:
            return
        message = json.dumps(data, default=str)
        for ws in connections:
            if not await self._send(ws, message):
                self.disconnect(ws, user_id)

    async def broadcast_to_project(
        self,
        project_id: str,
        data: dict[str, Any],
        exclude_user_id: str | None = None,
    ) -> None:
        """Send a JSON message to every connection in a project room."""
        room = self._rooms.get(project_id)
        if not room:
            return
        excluded = set(self._connections.get(exclude_user_id, [])) if exclude_user_id else set()
        message = json.dumps(data, default=str)
        dead: list[WebSocket] = []
        for ws in list(room):
            if ws in excluded:
                continue
            if not await self._send(ws, message):
                dead.append(ws)
        for ws in dead:
            self._drop(ws)

    async def send_ping(self, websocket: WebSocket) -> bool:
        """Send a heartbeat ping; False when the connection is gone."""
        return await self._send(websocket, json.dumps({"type": "ping"}))

    async def _send(self, websocket: WebSocket, message: str) -> bool:
        try:
            await websocket.send_text(message)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Dropping dead WebSocket connection: %s", exc)
            return False
        return True

    def _drop(self, websocket: WebSocket) -> None:
        for user_id, connections in list(self._connections.items()):
            if websocket in connections:
                self.disconnect(websocket, user_id)
                return
        for project_id in list(self._rooms):
            self._leave(websocket, project_id)

    @property
    def connected_user_count(self) -> int:
        return len(self._connections)


# Singleton instance shared across the application
ws_manager = ConnectionManager()
