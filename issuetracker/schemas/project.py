"""
Project Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from issuetracker.schemas.issue import IssuePriority, IssueStatus, IssueType
from issuetracker.schemas.user import UserReadPublic


class ProjectSettings(BaseModel):
    default_assignee: uuid.UUID | None = None
    issue_types: list[IssueType] = Field(default_factory=lambda: ["task", "bug", "story"])
    priorities: list[IssuePriority] = Field(default_factory=lambda: ["low", "medium", "high"])
    statuses: list[IssueStatus] = Field(default_factory=lambda: ["todo", "in_progress", "done"])


# ── Create ────────────────────────────────────────────────────────────────────

class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    key: str | None = Field(default=None, pattern=r"^[A-Z]{2,10}$")

    model_config = {"str_strip_whitespace": True}


# ── Update ────────────────────────────────────────────────────────────────────

class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    settings: ProjectSettings | None = None

    model_config = {"str_strip_whitespace": True}


class ProjectMemberAdd(BaseModel):
    user_id: uuid.UUID


# ── Read ──────────────────────────────────────────────────────────────────────

class ProjectRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    key: str
    owner_id: uuid.UUID
    settings: ProjectSettings
    is_active: bool
    created_at: datetime
    updated_at: datetime
    owner: UserReadPublic | None = None
    members: list[UserReadPublic] = []

    model_config = {"from_attributes": True}


# ── Statistics ────────────────────────────────────────────────────────────────

class ProjectStats(BaseModel):
    total: int
    by_status: dict[str, int]
    by_priority: dict[str, int]
    by_type: dict[str, int]
    total_estimated_hours: float
    total_logged_hours: float
