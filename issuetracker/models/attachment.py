"""
Attachment ORM model.
File metadata owned by either an issue or a comment.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from issuetracker.db.base import Base, utcnow


class Attachment(Base):
    __tablename__ = "attachments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    filename: Mapped[str] = mapped_column(String(500), nullable=False)
    original_name: Mapped[str] = mapped_column(String(500), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(200), nullable=False)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    url: Mapped[str] = mapped_column(String(2000), nullable=False)
    issue_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("issues.id", ondelete="CASCADE"),
        nullable=True,
    )
    comment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    )
    uploaded_by: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    issue: Mapped["Issue | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Issue",
        back_populates="attachments",
    )
    comment: Mapped["Comment | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Comment",
        back_populates="attachments",
    )

    __table_args__ = (
        CheckConstraint(
            "issue_id IS NOT NULL OR comment_id IS NOT NULL",
            name="has_owner",
        ),
        Index("ix_attachments_issue_id", "issue_id"),
        Index("ix_attachments_comment_id", "comment_id"),
        Index("ix_attachments_uploaded_by", "uploaded_by"),
    )

    def __repr__(self) -> str:
        return f"<Attachment id={self.id} filename={self.filename!r}>"
