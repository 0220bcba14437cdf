"""
Attachment repository.
"""
from __future__ import annotations

import uuid

from sqlalchemy import select

from issuetracker.models.attachment import Attachment
from issuetracker.repositories.base import BaseRepository


class AttachmentRepository(BaseRepository[Attachment]):
    model = Attachment

    async def list_by_issue(self, issue_id: uuid.UUID) -> list[Attachment]:
        result = await self.db.execute(
            select(Attachment)
            .where(Attachment.issue_id == issue_id)
            .order_by(Attachment.uploaded_at.desc())
        )
        return list(result.scalars().all())
