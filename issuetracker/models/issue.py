"""
Issue and IssueWatcher ORM models.
Issues belong to one project and carry a key of the form <PROJECT_KEY>-<sequence>.
Labels and components are JSON lists so the schema works on any backend.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from issuetracker.db.base import Base, utcnow

ISSUE_TYPES = ("bug", "task", "story", "epic", "subtask")
ISSUE_PRIORITIES = ("lowest", "low", "medium", "high", "highest")
ISSUE_STATUSES = ("todo", "in_progress", "in_review", "done", "blocked", "cancelled")


class Issue(Base):
    __tablename__ = "issues"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    key: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(
        Enum(*ISSUE_TYPES, name="issue_type_enum"),
        nullable=False,
        default="task",
        server_default="task",
    )
    priority: Mapped[str] = mapped_column(
        Enum(*ISSUE_PRIORITIES, name="issue_priority_enum"),
        nullable=False,
        default="medium",
        server_default="medium",
    )
    status: Mapped[str] = mapped_column(
        Enum(*ISSUE_STATUSES, name="issue_status_enum"),
        nullable=False,
        default="todo",
        server_default="todo",
    )
    assignee_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reporter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    labels: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    components: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    fix_version: Mapped[str | None] = mapped_column(String(50), nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    estimated_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    logged_hours: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default="0"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    project: Mapped["Project"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Project",
        back_populates="issues",
    )
    assignee: Mapped["User | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "User",
        foreign_keys=[assignee_id],
        lazy="selectin",
    )
    reporter: Mapped["User"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "User",
        foreign_keys=[reporter_id],
        lazy="selectin",
    )
    watcher_links: Mapped[list["IssueWatcher"]] = relationship(
        "IssueWatcher",
        back_populates="issue",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    watchers: Mapped[list["User"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "User",
        secondary="issue_watchers",
        viewonly=True,
        lazy="selectin",
    )
    attachments: Mapped[list["Attachment"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Attachment",
        back_populates="issue",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Attachment.uploaded_at",
    )
    comments: Mapped[list["Comment"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Comment",
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by="Comment.created_at",
    )

    __table_args__ = (
        UniqueConstraint("project_id", "sequence", name="project_sequence"),
        Index("ix_issues_project_id", "project_id"),
        Index("ix_issues_assignee_id", "assignee_id"),
        Index("ix_issues_reporter_id", "reporter_id"),
        Index("ix_issues_status", "status"),
        Index("ix_issues_priority", "priority"),
        Index("ix_issues_project_status", "project_id", "status"),
    )

    @property
    def watcher_ids(self) -> set[uuid.UUID]:
        return {w.user_id for w in self.watcher_links}

    @property
    def time_remaining(self) -> float | None:
        if self.estimated_hours is None:
            return None
        return max(0.0, self.estimated_hours - (self.logged_hours or 0.0))

    @property
    def progress_percentage(self) -> float:
        if not self.estimated_hours:
            return 0.0
        return min(100.0, round((self.logged_hours or 0.0) / self.estimated_hours * 100, 2))

    def __repr__(self) -> str:
        return f"<Issue id={self.id} key={self.key} status={self.status}>"


class IssueWatcher(Base):
    __tablename__ = "issue_watchers"

    issue_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("issues.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    issue: Mapped["Issue"] = relationship("Issue", back_populates="watcher_links")

    __table_args__ = (Index("ix_issue_watchers_user_id", "user_id"),)

    def __repr__(self) -> str:
        return f"<IssueWatcher issue_id={self.issue_id} user_id={self.user_id}>"
