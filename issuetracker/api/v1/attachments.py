"""
Attachment routes nested under issues.
/api/v1/issues/{issue_id}/attachments
Supports multipart/form-data file upload.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, UploadFile, status

from issuetracker.core.dependencies import CurrentUser, DBSession
from issuetracker.schemas.attachment import AttachmentRead
from issuetracker.services.attachment_service import attachment_service

router = APIRouter(tags=["Attachments"])


@router.get(
    "/issues/{issue_id}/attachments",
    response_model=list[AttachmentRead],
    summary="List attachments for an issue",
)
async def list_attachments(
    issue_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> list[AttachmentRead]:
    attachments = await attachment_service.list_attachments(
        db, issue_id=issue_id, current_user=current_user
    )
    return [AttachmentRead.model_validate(a) for a in attachments]


@router.post(
    "/issues/{issue_id}/attachments",
    response_model=AttachmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file attachment to an issue",
)
async def upload_attachment(
    issue_id: uuid.UUID,
    file: UploadFile,
    current_user: CurrentUser,
    db: DBSession,
) -> AttachmentRead:
    attachment = await attachment_service.upload(
        db, issue_id=issue_id, file=file, current_user=current_user
    )
    return AttachmentRead.model_validate(attachment)


@router.delete(
    "/issues/{issue_id}/attachments/{attachment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an attachment",
)
async def delete_attachment(
    issue_id: uuid.UUID,
    attachment_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await attachment_service.delete(
        db, issue_id=issue_id, attachment_id=attachment_id, current_user=current_user
    )
