"""
ConnectionManager and NotificationService tests with in-memory sockets.
"""
from __future__ import annotations

import json
import uuid
from typing import Any

import pytest

from issuetracker.services.notification_service import NotificationService
from issuetracker.services.websocket_service import ConnectionManager

pytestmark = pytest.mark.asyncio


class FakeWebSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.broken = broken
        self.sent: list[dict[str, Any]] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, message: str) -> None:
        if self.broken:
            raise RuntimeError("connection closed")
        self.sent.append(json.loads(message))


class TestConnectionManager:
    async def test_connect_and_disconnect(self) -> None:
        manager = ConnectionManager()
        ws = FakeWebSocket()
        await manager.connect(ws, "u1")
        manager.join_project(ws, "p1")

        assert ws.accepted
        assert manager.is_connected("u1")
        assert manager.connected_user_count == 1
        assert manager.room_size("p1") == 1

        manager.disconnect(ws, "u1")
        assert not manager.is_connected("u1")
        assert manager.room_size("p1") == 0

    async def test_personal_message_reaches_every_connection(self) -> None:
        manager = ConnectionManager()
        first, second = FakeWebSocket(), FakeWebSocket()
        await manager.connect(first, "u1")
        await manager.connect(second, "u1")

        await manager.send_personal_message("u1", {"type": "hello"})
        assert first.sent == [{"type": "hello"}]
        assert second.sent == [{"type": "hello"}]

    async def test_broadcast_excludes_actor(self) -> None:
        manager = ConnectionManager()
        actor, watcher, elsewhere = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
        await manager.connect(actor, "actor")
        await manager.connect(watcher, "watcher")
        await manager.connect(elsewhere, "elsewhere")
        manager.join_project(actor, "p1")
        manager.join_project(watcher, "p1")
        manager.join_project(elsewhere, "p2")

        await manager.broadcast_to_project("p1", {"type": "event"}, exclude_user_id="actor")
        assert actor.sent == []
        assert watcher.sent == [{"type": "event"}]
        assert elsewhere.sent == []

    async def test_broken_connection_is_dropped(self) -> None:
        manager = ConnectionManager()
        dead = FakeWebSocket(broken=True)
        await manager.connect(dead, "u1")
        manager.join_project(dead, "p1")

        await manager.broadcast_to_project("p1", {"type": "event"})
        assert not manager.is_connected("u1")
        assert manager.room_size("p1") == 0

    async def test_ping_reports_failure(self) -> None:
        manager = ConnectionManager()
        assert await manager.send_ping(FakeWebSocket())
        assert not await manager.send_ping(FakeWebSocket(broken=True))

    async def test_leave_project(self) -> None:
        manager = ConnectionManager()
        ws = FakeWebSocket()
        await manager.connect(ws, "u1")
        manager.join_project(ws, "p1")
        manager.leave_project(ws, "p1")

        await manager.broadcast_to_project("p1", {"type": "event"})
        assert ws.sent == []


class TestNotificationService:
    async def test_project_event_payload(self) -> None:
        manager = ConnectionManager()
        service = NotificationService(manager)
        project_id, issue_id, actor_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        ws = FakeWebSocket()
        await manager.connect(ws, "listener")
        manager.join_project(ws, str(project_id))

        await service.issue_deleted(project_id=project_id, issue_id=issue_id, actor_id=actor_id)
        assert ws.sent == [
            {
                "type": "issue-deleted",
                "project_id": str(project_id),
                "data": {"issue_id": str(issue_id)},
            }
        ]

    async def test_assignment_goes_only_to_assignee(self) -> None:
        manager = ConnectionManager()
        service = NotificationService(manager)
        assignee_id = uuid.uuid4()
        assignee, bystander = FakeWebSocket(), FakeWebSocket()
        await manager.connect(assignee, str(assignee_id))
        await manager.connect(bystander, "someone-else")

        await service.issue_assigned(
            assignee_id=assignee_id,
            issue_id=uuid.uuid4(),
            issue_key="CORE-3",
            issue_title="Fix login",
            assigner_name="Pat",
        )
        assert len(assignee.sent) == 1
        message = assignee.sent[0]
        assert message["type"] == "issue-assigned"
        assert message["data"]["key"] == "CORE-3"
        assert "Pat" in message["data"]["message"]
        assert bystander.sent == []
