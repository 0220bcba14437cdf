"""
Project repository.
Membership lives in the project_members mapping table, so "projects of a
user" is an indexed join instead of a scan over every project.
"""
from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import func, or_, select

from issuetracker.models.project import Project, ProjectMember
from issuetracker.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    model = Project

    async def create(self, fields: dict[str, Any]) -> Project:
        """Create the project and record its owner as the first member."""
        project = Project(**fields)
        project.memberships.append(ProjectMember(user_id=fields["owner_id"]))
        return await self._persist(project)

    async def find_by_key(self, key: str) -> Project | None:
        result = await self.db.execute(
            select(Project)
            .where(Project.key == key.upper())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def key_exists(self, key: str) -> bool:
        return await self.exists(key=key)

    def _visible_to(self, user_id: uuid.UUID):
        member_subq = select(ProjectMember.project_id).where(
            ProjectMember.user_id == user_id
        )
        return or_(Project.owner_id == user_id, Project.id.in_(member_subq))

    async def find_by_user(self, user_id: uuid.UUID) -> list[Project]:
        """Active projects the user owns or belongs to, newest first."""
        result = await self.db.execute(
            select(Project)
            .where(self._visible_to(user_id), Project.is_active.is_(True))
            .order_by(Project.created_at.desc())
        )
        return list(result.scalars().all())

    async def find_by_owner(self, owner_id: uuid.UUID) -> list[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.owner_id == owner_id)
            .order_by(Project.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_projects(
        self,
        *,
        user_id: uuid.UUID | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Project], int]:
        """
        Return (projects, total) of active projects.
        When user_id is given, only projects that user owns or belongs to.
        """
        conditions = [Project.is_active.is_(True)]
        if user_id is not None:
            conditions.append(self._visible_to(user_id))
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    Project.name.ilike(pattern),
                    Project.description.ilike(pattern),
                    Project.key.ilike(pattern),
                )
            )

        count_query = select(func.count()).select_from(Project).where(*conditions)
        total = (await self.db.execute(count_query)).scalar_one()

        result = await self.db.execute(
            select(Project)
            .where(*conditions)
            .order_by(Project.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def add_member(self, project: Project, user_id: uuid.UUID) -> Project:
        if user_id not in project.member_ids:
            project.memberships.append(ProjectMember(user_id=user_id))
        return await self._persist(project)

    async def remove_member(self, project: Project, user_id: uuid.UUID) -> Project:
        project.memberships = [m for m in project.memberships if m.user_id != user_id]
        return await self._persist(project)

    async def soft_delete(self, project: Project) -> Project:
        project.is_active = False
        return await self._persist(project)
