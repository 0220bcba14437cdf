"""
Issue Pydantic schemas.
Includes create/update/read variants plus a filter schema for the list endpoint.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from issuetracker.schemas.attachment import AttachmentRead
from issuetracker.schemas.comment import CommentRead
from issuetracker.schemas.user import UserReadPublic

IssueType = Literal["bug", "task", "story", "epic", "subtask"]
IssuePriority = Literal["lowest", "low", "medium", "high", "highest"]
IssueStatus = Literal["todo", "in_progress", "in_review", "done", "blocked", "cancelled"]
IssueSortField = Literal[
    "created_at", "updated_at", "due_date", "priority", "status", "title", "key"
]

Label = Annotated[str, Field(min_length=1, max_length=50)]
Component = Annotated[str, Field(min_length=1, max_length=100)]


# ── Create ────────────────────────────────────────────────────────────────────

class IssueCreate(BaseModel):
    project_id: uuid.UUID
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10000)
    type: IssueType = "task"
    priority: IssuePriority = "medium"
    assignee_id: uuid.UUID | None = None
    labels: list[Label] = Field(default_factory=list)
    components: list[Component] = Field(default_factory=list)
    fix_version: str | None = Field(default=None, max_length=50)
    due_date: datetime | None = None
    estimated_hours: float | None = Field(default=None, ge=0)

    model_config = {"str_strip_whitespace": True}


# ── Update ────────────────────────────────────────────────────────────────────

class IssueUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10000)
    type: IssueType | None = None
    priority: IssuePriority | None = None
    status: IssueStatus | None = None
    assignee_id: uuid.UUID | None = None
    labels: list[Label] | None = None
    components: list[Component] | None = None
    fix_version: str | None = Field(default=None, max_length=50)
    due_date: datetime | None = None
    estimated_hours: float | None = Field(default=None, ge=0)

    model_config = {"str_strip_whitespace": True}


class TimeLog(BaseModel):
    hours: float = Field(gt=0, le=1000)
    description: str | None = Field(default=None, max_length=500)


# ── Read ──────────────────────────────────────────────────────────────────────

class IssueRead(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    key: str
    sequence: int
    title: str
    description: str | None
    type: str
    priority: str
    status: str
    assignee_id: uuid.UUID | None
    reporter_id: uuid.UUID
    labels: list[str]
    components: list[str]
    fix_version: str | None
    due_date: datetime | None
    estimated_hours: float | None
    logged_hours: float
    time_remaining: float | None
    progress_percentage: float
    created_at: datetime
    updated_at: datetime
    assignee: UserReadPublic | None = None
    reporter: UserReadPublic | None = None
    watchers: list[UserReadPublic] = []
    attachments: list[AttachmentRead] = []

    model_config = {"from_attributes": True}


class IssueDetail(IssueRead):
    comments: list[CommentRead] = []


# ── Filter ────────────────────────────────────────────────────────────────────

class IssueFilter(BaseModel):
    """Query parameters for filtering the issue list endpoint."""

    project_id: uuid.UUID | None = None
    assignee_id: uuid.UUID | None = None
    reporter_id: uuid.UUID | None = None
    status: list[IssueStatus] | None = None
    priority: list[IssuePriority] | None = None
    type: list[IssueType] | None = None
    labels: list[str] | None = None
    components: list[str] | None = None
    search: str | None = Field(default=None, max_length=200)
    created_after: datetime | None = None
    created_before: datetime | None = None
    updated_after: datetime | None = None
    updated_before: datetime | None = None
    sort_by: IssueSortField = "updated_at"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(default=1, ge=1)
    size: int = Field(default=20, ge=1, le=100)

