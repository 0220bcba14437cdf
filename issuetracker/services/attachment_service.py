"""
Attachment storage service.
Uploaded files are written under UPLOAD_DIR; metadata rows reference them.
"""
from __future__ import annotations

import logging
import os
import uuid

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from issuetracker.core.config import settings
from issuetracker.core.exceptions import FileTooLargeException, ForbiddenException, NotFoundException
from issuetracker.core.permissions import is_admin
from issuetracker.models.attachment import Attachment
from issuetracker.models.user import User
from issuetracker.repositories.attachment import AttachmentRepository
from issuetracker.services.issue_service import issue_service

logger = logging.getLogger(__name__)


class AttachmentService:

    async def list_attachments(
        self, db: AsyncSession, *, issue_id: uuid.UUID, current_user: User
    ) -> list[Attachment]:
        issue = await issue_service.get_issue(db, issue_id=issue_id, current_user=current_user)
        return await AttachmentRepository(db).list_by_issue(issue.id)

    async def upload(
        self,
        db: AsyncSession,
        *,
        issue_id: uuid.UUID,
        file: UploadFile,
        current_user: User,
    ) -> Attachment:
        issue = await issue_service.get_issue(db, issue_id=issue_id, current_user=current_user)

        content = await file.read()
        if len(content) > settings.max_file_size_bytes:
            raise FileTooLargeException(settings.MAX_FILE_SIZE_MB)

        original_name = os.path.basename(file.filename or "") or "unnamed"
        stored_name = f"{uuid.uuid4().hex}_{original_name}"
        os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
        file_path = os.path.join(settings.UPLOAD_DIR, stored_name)
        with open(file_path, "wb") as f:
            f.write(content)

        attachment = await AttachmentRepository(db).create(
            {
                "filename": stored_name,
                "original_name": original_name,
                "mime_type": file.content_type or "application/octet-stream",
                "size": len(content),
                "url": f"/{settings.UPLOAD_DIR.strip('/')}/{stored_name}",
                "issue_id": issue.id,
                "uploaded_by": current_user.id,
            }
        )
        logger.info("Stored attachment %s for issue %s", attachment.id, issue.key)
        return attachment

    async def delete(
        self,
        db: AsyncSession,
        *,
        issue_id: uuid.UUID,
        attachment_id: uuid.UUID,
        current_user: User,
    ) -> None:
        issue = await issue_service.get_issue(db, issue_id=issue_id, current_user=current_user)
        attachments = AttachmentRepository(db)
        attachment = await attachments.find_by_id(attachment_id)
        if attachment is None or attachment.issue_id != issue.id:
            raise NotFoundException("Attachment", str(attachment_id))
        if attachment.uploaded_by != current_user.id and not is_admin(current_user):
            raise ForbiddenException("Only the uploader can delete this attachment")

        file_path = os.path.join(settings.UPLOAD_DIR, attachment.filename)
        if os.path.exists(file_path):
            os.remove(file_path)
        await attachments.delete(attachment.id)


attachment_service = AttachmentService()
