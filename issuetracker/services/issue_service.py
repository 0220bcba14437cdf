"""
Issue business logic service.
Resolves issues through their parent project, enforces membership,
assigns keys, tracks time and watchers, and fires real-time events.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from issuetracker.core.exceptions import BadRequestException, NotFoundException
from issuetracker.core.permissions import assert_project_access, is_member
from issuetracker.db.session import after_commit
from issuetracker.models.issue import Issue
from issuetracker.models.project import Project
from issuetracker.models.user import User
from issuetracker.repositories.comment import CommentRepository
from issuetracker.repositories.issue import IssueRepository
from issuetracker.repositories.project import ProjectRepository
from issuetracker.schemas.issue import IssueCreate, IssueFilter, IssueRead, IssueUpdate
from issuetracker.services.key_generator import next_issue_key
from issuetracker.services.notification_service import notification_service
from issuetracker.services.project_service import project_service

logger = logging.getLogger(__name__)

# Columns that must always hold a value; an explicit null in an update is ignored.
_REQUIRED_FIELDS = frozenset({"title", "type", "priority", "status", "labels", "components"})


class IssueService:

    async def _resolve(
        self,
        db: AsyncSession,
        issue: Issue | None,
        issue_ref: Any,
        current_user: User,
    ) -> tuple[Issue, Project]:
        if issue is None:
            raise NotFoundException("Issue", str(issue_ref))
        project = await ProjectRepository(db).find_by_id(issue.project_id)
        if project is None or not project.is_active:
            raise NotFoundException("Issue", str(issue_ref))
        assert_project_access(project, current_user)
        return issue, project

    async def get_issue(
        self,
        db: AsyncSession,
        *,
        issue_id: uuid.UUID,
        current_user: User,
        with_comments: bool = False,
    ) -> Issue:
        issues = IssueRepository(db)
        if with_comments:
            issue = await issues.get_with_comments(issue_id)
        else:
            issue = await issues.find_by_id(issue_id)
        issue, _ = await self._resolve(db, issue, issue_id, current_user)
        return issue

    async def get_issue_by_key(
        self,
        db: AsyncSession,
        *,
        key: str,
        current_user: User,
    ) -> Issue:
        issues = IssueRepository(db)
        found = await issues.find_by_key(key)
        issue, _ = await self._resolve(db, found, key, current_user)
        loaded = await issues.get_with_comments(issue.id)
        return loaded or issue

    @staticmethod
    def _check_assignee(project: Project, assignee_id: uuid.UUID | None) -> None:
        if assignee_id is not None and not is_member(project, assignee_id):
            raise BadRequestException("Assignee must be a member of the project")

    async def create_issue(
        self,
        db: AsyncSession,
        *,
        issue_in: IssueCreate,
        current_user: User,
    ) -> Issue:
        """
        Create an issue in a project the user belongs to.
        The reporter is the current user and becomes the first watcher.
        """
        project = await project_service.get_project(
            db, project_id=issue_in.project_id, current_user=current_user
        )
        self._check_assignee(project, issue_in.assignee_id)

        issues = IssueRepository(db)
        key, sequence = await next_issue_key(issues, project.id, project.key)
        fields = issue_in.model_dump()
        fields.update(key=key, sequence=sequence, reporter_id=current_user.id)
        issue = await issues.create(fields)
        logger.info("Issue %s created by %s", issue.key, current_user.id)

        after_commit(
            db,
            notification_service.issue_created,
            project_id=project.id,
            issue=IssueRead.model_validate(issue).model_dump(mode="json"),
            actor_id=current_user.id,
        )
        if issue.assignee_id and issue.assignee_id != current_user.id:
            after_commit(
                db,
                notification_service.issue_assigned,
                assignee_id=issue.assignee_id,
                issue_id=issue.id,
                issue_key=issue.key,
                issue_title=issue.title,
                assigner_name=current_user.full_name,
            )
        return issue

    async def list_issues(
        self,
        db: AsyncSession,
        *,
        filters: IssueFilter,
        current_user: User,
    ) -> tuple[list[Issue], int]:
        """List issues in projects visible to the user with filters applied."""
        if filters.project_id is not None:
            await project_service.get_project(
                db, project_id=filters.project_id, current_user=current_user
            )
        project_ids = await project_service.accessible_project_ids(
            db, current_user=current_user
        )
        return await IssueRepository(db).list_with_filters(filters, project_ids=project_ids)

    async def update_issue(
        self,
        db: AsyncSession,
        *,
        issue_id: uuid.UUID,
        issue_in: IssueUpdate,
        current_user: User,
    ) -> Issue:
        issues = IssueRepository(db)
        issue, project = await self._resolve(
            db, await issues.find_by_id(issue_id), issue_id, current_user
        )

        changes = {
            field: value
            for field, value in issue_in.model_dump(exclude_unset=True).items()
            if value is not None or field not in _REQUIRED_FIELDS
        }
        if "assignee_id" in changes:
            self._check_assignee(project, changes["assignee_id"])

        old_assignee = issue.assignee_id
        updated = await issues.update(issue.id, changes)
        if updated is None:
            raise NotFoundException("Issue", str(issue_id))

        after_commit(
            db,
            notification_service.issue_updated,
            project_id=project.id,
            issue_id=updated.id,
            changes=issue_in.model_dump(exclude_unset=True, mode="json"),
            actor_id=current_user.id,
        )
        new_assignee = updated.assignee_id
        if (
            new_assignee is not None
            and new_assignee != old_assignee
            and new_assignee != current_user.id
        ):
            after_commit(
                db,
                notification_service.issue_assigned,
                assignee_id=new_assignee,
                issue_id=updated.id,
                issue_key=updated.key,
                issue_title=updated.title,
                assigner_name=current_user.full_name,
            )
        return updated

    async def delete_issue(
        self,
        db: AsyncSession,
        *,
        issue_id: uuid.UUID,
        current_user: User,
    ) -> None:
        """Hard-delete an issue together with its comments, attachments and watchers."""
        issues = IssueRepository(db)
        issue, project = await self._resolve(
            db, await issues.find_by_id(issue_id), issue_id, current_user
        )
        await issues.delete(issue.id)
        logger.info("Issue %s deleted by %s", issue.key, current_user.id)

        after_commit(
            db,
            notification_service.issue_deleted,
            project_id=project.id, issue_id=issue_id, actor_id=current_user.id
        )

    # ── Time tracking ─────────────────────────────────────────────────────────

    async def log_time(
        self,
        db: AsyncSession,
        *,
        issue_id: uuid.UUID,
        hours: float,
        description: str | None,
        current_user: User,
    ) -> Issue:
        """Add hours to the issue; a description is also recorded as a comment."""
        issues = IssueRepository(db)
        issue, project = await self._resolve(
            db, await issues.find_by_id(issue_id), issue_id, current_user
        )

        updated = await issues.log_time(issue.id, hours)
        if updated is None:
            raise NotFoundException("Issue", str(issue_id))

        if description:
            await CommentRepository(db).create(
                {
                    "issue_id": issue.id,
                    "author_id": current_user.id,
                    "content": f"Logged {hours:g} hours: {description}",
                }
            )

        after_commit(
            db,
            notification_service.issue_updated,
            project_id=project.id,
            issue_id=issue.id,
            changes={"logged_hours": updated.logged_hours},
            actor_id=current_user.id,
        )
        return updated

    # ── Watchers ──────────────────────────────────────────────────────────────

    async def add_watcher(
        self,
        db: AsyncSession,
        *,
        issue_id: uuid.UUID,
        current_user: User,
    ) -> Issue:
        issues = IssueRepository(db)
        issue, _ = await self._resolve(
            db, await issues.find_by_id(issue_id), issue_id, current_user
        )
        return await issues.add_watcher(issue, current_user.id)

    async def remove_watcher(
        self,
        db: AsyncSession,
        *,
        issue_id: uuid.UUID,
        current_user: User,
    ) -> Issue:
        issues = IssueRepository(db)
        issue, _ = await self._resolve(
            db, await issues.find_by_id(issue_id), issue_id, current_user
        )
        if issue.reporter_id == current_user.id:
            raise BadRequestException("The reporter always watches the issue")
        return await issues.remove_watcher(issue, current_user.id)


issue_service = IssueService()
