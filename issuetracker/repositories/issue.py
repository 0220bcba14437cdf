"""
Issue repository.
Extends BaseRepository with key lookups, filtered listing, watcher
management, atomic time logging and per-project statistics.
"""
from __future__ import annotations

import json
import uuid
from collections import Counter
from typing import Any

from sqlalchemy import String, cast, func, or_, select, update
from sqlalchemy.orm import selectinload

from issuetracker.models.issue import Issue, IssueWatcher
from issuetracker.repositories.base import BaseRepository
from issuetracker.schemas.issue import IssueFilter
from issuetracker.schemas.pagination import page_offset

_SORT_COLUMNS = {
    "created_at": Issue.created_at,
    "updated_at": Issue.updated_at,
    "due_date": Issue.due_date,
    "priority": Issue.priority,
    "status": Issue.status,
    "title": Issue.title,
    "key": Issue.key,
}


class IssueRepository(BaseRepository[Issue]):
    model = Issue

    async def create(self, fields: dict[str, Any]) -> Issue:
        """Create the issue with its reporter as the first watcher."""
        issue = Issue(**fields)
        issue.watcher_links.append(IssueWatcher(user_id=fields["reporter_id"]))
        return await self._persist(issue)

    async def find_by_key(self, key: str) -> Issue | None:
        result = await self.db.execute(
            select(Issue)
            .where(Issue.key == key.upper())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_project(self, project_id: uuid.UUID) -> list[Issue]:
        result = await self.db.execute(
            select(Issue)
            .where(Issue.project_id == project_id)
            .order_by(Issue.sequence)
        )
        return list(result.scalars().all())

    async def find_by_assignee(self, assignee_id: uuid.UUID) -> list[Issue]:
        result = await self.db.execute(
            select(Issue)
            .where(Issue.assignee_id == assignee_id)
            .order_by(Issue.updated_at.desc())
        )
        return list(result.scalars().all())

    async def find_by_reporter(self, reporter_id: uuid.UUID) -> list[Issue]:
        result = await self.db.execute(
            select(Issue)
            .where(Issue.reporter_id == reporter_id)
            .order_by(Issue.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_with_comments(self, issue_id: uuid.UUID) -> Issue | None:
        """Fetch an issue with its comments eagerly loaded, oldest first."""
        result = await self.db.execute(
            select(Issue)
            .options(selectinload(Issue.comments))
            .where(Issue.id == issue_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def max_sequence(self, project_id: uuid.UUID) -> int:
        """Highest issue sequence in the project, 0 when it has no issues."""
        result = await self.db.execute(
            select(func.max(Issue.sequence)).where(Issue.project_id == project_id)
        )
        return result.scalar_one() or 0

    async def list_with_filters(
        self,
        filters: IssueFilter,
        *,
        project_ids: list[uuid.UUID] | None = None,
    ) -> tuple[list[Issue], int]:
        """
        Return (issues, total) applying all filter criteria.
        If project_ids is provided, results are restricted to those projects.
        """
        conditions = []

        # Visibility
        if project_ids is not None:
            conditions.append(Issue.project_id.in_(project_ids))
        if filters.project_id is not None:
            conditions.append(Issue.project_id == filters.project_id)

        if filters.assignee_id is not None:
            conditions.append(Issue.assignee_id == filters.assignee_id)
        if filters.reporter_id is not None:
            conditions.append(Issue.reporter_id == filters.reporter_id)
        if filters.status:
            conditions.append(Issue.status.in_(filters.status))
        if filters.priority:
            conditions.append(Issue.priority.in_(filters.priority))
        if filters.type:
            conditions.append(Issue.type.in_(filters.type))

        # JSON list membership, matched on the serialized element
        if filters.labels:
            conditions.append(
                or_(
                    *(
                        cast(Issue.labels, String).contains(json.dumps(label), autoescape=True)
                        for label in filters.labels
                    )
                )
            )
        if filters.components:
            conditions.append(
                or_(
                    *(
                        cast(Issue.components, String).contains(
                            json.dumps(component), autoescape=True
                        )
                        for component in filters.components
                    )
                )
            )

        # Date ranges
        if filters.created_after is not None:
            conditions.append(Issue.created_at >= filters.created_after)
        if filters.created_before is not None:
            conditions.append(Issue.created_at <= filters.created_before)
        if filters.updated_after is not None:
            conditions.append(Issue.updated_at >= filters.updated_after)
        if filters.updated_before is not None:
            conditions.append(Issue.updated_at <= filters.updated_before)

        # Text search on title, description and key
        if filters.search:
            search_term = f"%{filters.search}%"
            conditions.append(
                or_(
                    Issue.title.ilike(search_term),
                    Issue.description.ilike(search_term),
                    Issue.key.ilike(search_term),
                )
            )

        count_query = select(func.count()).select_from(Issue).where(*conditions)
        total = (await self.db.execute(count_query)).scalar_one()

        sort_column = _SORT_COLUMNS[filters.sort_by]
        ordering = sort_column.asc() if filters.sort_order == "asc" else sort_column.desc()
        skip = page_offset(filters.page, filters.size)
        result = await self.db.execute(
            select(Issue)
            .where(*conditions)
            .order_by(ordering, Issue.sequence)
            .offset(skip)
            .limit(filters.size)
        )
        return list(result.scalars().all()), total

    # ── Watchers ──────────────────────────────────────────────────────────────

    async def add_watcher(self, issue: Issue, user_id: uuid.UUID) -> Issue:
        if user_id not in issue.watcher_ids:
            issue.watcher_links.append(IssueWatcher(user_id=user_id))
        return await self._persist(issue)

    async def remove_watcher(self, issue: Issue, user_id: uuid.UUID) -> Issue:
        issue.watcher_links = [w for w in issue.watcher_links if w.user_id != user_id]
        return await self._persist(issue)

    # ── Time tracking ─────────────────────────────────────────────────────────

    async def log_time(self, issue_id: uuid.UUID, hours: float) -> Issue | None:
        """Atomically add ``hours`` to logged_hours. None when the issue is gone."""
        result = await self.db.execute(
            update(Issue)
            .where(Issue.id == issue_id)
            .values(logged_hours=Issue.logged_hours + hours)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return await self.find_by_id(issue_id)

    # ── Statistics ────────────────────────────────────────────────────────────

    async def get_statistics(self, project_id: uuid.UUID) -> dict[str, Any]:
        """Counts by status, priority and type plus hour totals for one project."""
        result = await self.db.execute(
            select(
                Issue.status,
                Issue.priority,
                Issue.type,
                Issue.estimated_hours,
                Issue.logged_hours,
            ).where(Issue.project_id == project_id)
        )
        rows = result.all()
        return {
            "total": len(rows),
            "by_status": dict(Counter(row.status for row in rows)),
            "by_priority": dict(Counter(row.priority for row in rows)),
            "by_type": dict(Counter(row.type for row in rows)),
            "total_estimated_hours": float(sum(row.estimated_hours or 0 for row in rows)),
            "total_logged_hours": float(sum(row.logged_hours or 0 for row in rows)),
        }

