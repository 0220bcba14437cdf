"""
Comment Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from issuetracker.schemas.attachment import AttachmentRead
from issuetracker.schemas.user import UserReadPublic


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=10000)


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=10000)


class CommentRead(BaseModel):
    id: uuid.UUID
    content: str
    issue_id: uuid.UUID
    author_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    author: UserReadPublic | None = None
    attachments: list[AttachmentRead] = []

    model_config = {"from_attributes": True}


class CommentStats(BaseModel):
    total_comments: int
    total_attachments: int
    unique_authors: int
