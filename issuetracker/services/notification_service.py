"""
Real-time notification fan-out.
Project events go to the project's WebSocket room; assignment notices go
to the assignee directly. Nothing is persisted.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from issuetracker.services.websocket_service import ConnectionManager, ws_manager

logger = logging.getLogger(__name__)


class NotificationService:

    def __init__(self, manager: ConnectionManager) -> None:
        self.manager = manager

    async def _to_project(
        self,
        event: str,
        project_id: uuid.UUID,
        data: dict[str, Any],
        actor_id: uuid.UUID | None = None,
    ) -> None:
        payload = {"type": event, "project_id": str(project_id), "data": data}
        await self.manager.broadcast_to_project(
            str(project_id),
            payload,
            exclude_user_id=str(actor_id) if actor_id else None,
        )
        logger.debug("Emitted %s to project %s", event, project_id)

    async def issue_created(
        self, *, project_id: uuid.UUID, issue: dict[str, Any], actor_id: uuid.UUID
    ) -> None:
        await self._to_project("issue-created", project_id, {"issue": issue}, actor_id)

    async def issue_updated(
        self,
        *,
        project_id: uuid.UUID,
        issue_id: uuid.UUID,
        changes: dict[str, Any],
        actor_id: uuid.UUID,
    ) -> None:
        await self._to_project(
            "issue-updated",
            project_id,
            {"issue_id": str(issue_id), "changes": changes},
            actor_id,
        )

    async def issue_deleted(
        self, *, project_id: uuid.UUID, issue_id: uuid.UUID, actor_id: uuid.UUID
    ) -> None:
        await self._to_project(
            "issue-deleted", project_id, {"issue_id": str(issue_id)}, actor_id
        )

    async def comment_added(
        self,
        *,
        project_id: uuid.UUID,
        issue_id: uuid.UUID,
        comment: dict[str, Any],
        actor_id: uuid.UUID,
    ) -> None:
        await self._to_project(
            "comment-added",
            project_id,
            {"issue_id": str(issue_id), "comment": comment},
            actor_id,
        )

    async def issue_assigned(
        self,
        *,
        assignee_id: uuid.UUID,
        issue_id: uuid.UUID,
        issue_key: str,
        issue_title: str,
        assigner_name: str,
    ) -> None:
        if not self.manager.is_connected(str(assignee_id)):
            return
        await self.manager.send_personal_message(
            str(assignee_id),
            {
                "type": "issue-assigned",
                "data": {
                    "issue_id": str(issue_id),
                    "key": issue_key,
                    "message": f"{assigner_name} assigned you to {issue_key}: {issue_title!r}",
                },
            },
        )


notification_service = NotificationService(ws_manager)
