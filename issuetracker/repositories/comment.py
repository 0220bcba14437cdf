"""
Comment repository.
"""
from __future__ import annotations

import uuid

from sqlalchemy import distinct, func, select

from issuetracker.models.attachment import Attachment
from issuetracker.models.comment import Comment
from issuetracker.models.issue import Issue
from issuetracker.repositories.base import BaseRepository


class CommentRepository(BaseRepository[Comment]):
    model = Comment

    async def find_by_issue(
        self,
        issue_id: uuid.UUID,
        *,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[Comment], int]:
        """Comments on one issue, oldest first."""
        total = (
            await self.db.execute(
                select(func.count())
                .select_from(Comment)
                .where(Comment.issue_id == issue_id)
            )
        ).scalar_one()
        result = await self.db.execute(
            select(Comment)
            .where(Comment.issue_id == issue_id)
            .order_by(Comment.created_at.asc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def find_by_author(
        self,
        author_id: uuid.UUID,
        *,
        project_ids: list[uuid.UUID] | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Comment], int]:
        """
        Comments written by one user, newest first.
        When project_ids is given only comments on issues in those projects count.
        """
        conditions = [Comment.author_id == author_id]
        if project_ids is not None:
            conditions.append(
                Comment.issue_id.in_(
                    select(Issue.id).where(Issue.project_id.in_(project_ids))
                )
            )

        total = (
            await self.db.execute(
                select(func.count()).select_from(Comment).where(*conditions)
            )
        ).scalar_one()
        result = await self.db.execute(
            select(Comment)
            .where(*conditions)
            .order_by(Comment.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def get_comment_stats(self, issue_id: uuid.UUID) -> dict[str, int]:
        total_comments, unique_authors = (
            await self.db.execute(
                select(func.count(Comment.id), func.count(distinct(Comment.author_id)))
                .where(Comment.issue_id == issue_id)
            )
        ).one()
        total_attachments = (
            await self.db.execute(
                select(func.count(Attachment.id))
                .join(Comment, Attachment.comment_id == Comment.id)
                .where(Comment.issue_id == issue_id)
            )
        ).scalar_one()
        return {
            "total_comments": total_comments,
            "total_attachments": total_attachments,
            "unique_authors": unique_authors,
        }
