"""
Comment business logic service.
Every operation resolves the parent issue and project first, then checks
membership; editing and deleting additionally require authorship or admin.
"""
from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from issuetracker.core.exceptions import NotFoundException
from issuetracker.core.permissions import assert_can_modify_comment, assert_project_access
from issuetracker.db.base import utcnow
from issuetracker.db.session import after_commit
from issuetracker.models.comment import Comment
from issuetracker.models.user import User
from issuetracker.repositories.comment import CommentRepository
from issuetracker.repositories.issue import IssueRepository
from issuetracker.repositories.project import ProjectRepository
from issuetracker.schemas.comment import CommentRead
from issuetracker.services.issue_service import issue_service
from issuetracker.services.notification_service import notification_service
from issuetracker.services.project_service import project_service

logger = logging.getLogger(__name__)


class CommentService:

    async def _get_accessible_comment(
        self, db: AsyncSession, *, comment_id: uuid.UUID, current_user: User
    ) -> Comment:
        comment = await CommentRepository(db).find_by_id(comment_id)
        if comment is None:
            raise NotFoundException("Comment", str(comment_id))
        issue = await IssueRepository(db).find_by_id(comment.issue_id)
        project = (
            await ProjectRepository(db).find_by_id(issue.project_id) if issue else None
        )
        if project is None or not project.is_active:
            raise NotFoundException("Comment", str(comment_id))
        assert_project_access(project, current_user)
        return comment

    async def list_comments(
        self,
        db: AsyncSession,
        *,
        issue_id: uuid.UUID,
        current_user: User,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[Comment], int]:
        issue = await issue_service.get_issue(db, issue_id=issue_id, current_user=current_user)
        return await CommentRepository(db).find_by_issue(issue.id, skip=skip, limit=limit)

    async def create_comment(
        self,
        db: AsyncSession,
        *,
        issue_id: uuid.UUID,
        content: str,
        current_user: User,
    ) -> Comment:
        issue = await issue_service.get_issue(db, issue_id=issue_id, current_user=current_user)
        comment = await CommentRepository(db).create(
            {"issue_id": issue.id, "author_id": current_user.id, "content": content}
        )

        after_commit(
            db,
            notification_service.comment_added,
            project_id=issue.project_id,
            issue_id=issue.id,
            comment=CommentRead.model_validate(comment).model_dump(mode="json"),
            actor_id=current_user.id,
        )
        return comment

    async def get_comment(
        self, db: AsyncSession, *, comment_id: uuid.UUID, current_user: User
    ) -> Comment:
        return await self._get_accessible_comment(
            db, comment_id=comment_id, current_user=current_user
        )

    async def update_comment(
        self,
        db: AsyncSession,
        *,
        comment_id: uuid.UUID,
        content: str,
        current_user: User,
    ) -> Comment:
        """Replace the content. Only the author or an admin may edit."""
        comment = await self._get_accessible_comment(
            db, comment_id=comment_id, current_user=current_user
        )
        assert_can_modify_comment(comment, current_user)

        updated = await CommentRepository(db).update(
            comment.id, {"content": content, "updated_at": utcnow()}
        )
        if updated is None:
            raise NotFoundException("Comment", str(comment_id))
        return updated

    async def delete_comment(
        self, db: AsyncSession, *, comment_id: uuid.UUID, current_user: User
    ) -> None:
        comment = await self._get_accessible_comment(
            db, comment_id=comment_id, current_user=current_user
        )
        assert_can_modify_comment(comment, current_user)
        await CommentRepository(db).delete(comment.id)
        logger.info("Comment %s deleted by %s", comment_id, current_user.id)

    async def get_stats(
        self, db: AsyncSession, *, issue_id: uuid.UUID, current_user: User
    ) -> dict[str, int]:
        issue = await issue_service.get_issue(db, issue_id=issue_id, current_user=current_user)
        return await CommentRepository(db).get_comment_stats(issue.id)

    async def list_by_author(
        self,
        db: AsyncSession,
        *,
        author_id: uuid.UUID,
        current_user: User,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Comment], int]:
        """Comments by one author, limited to projects the caller can see."""
        project_ids = await project_service.accessible_project_ids(
            db, current_user=current_user
        )
        return await CommentRepository(db).find_by_author(
            author_id, project_ids=project_ids, skip=skip, limit=limit
        )


comment_service = CommentService()
