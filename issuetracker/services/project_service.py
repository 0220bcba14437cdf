"""
Project business logic service.
Resolves projects, enforces membership and role rules, and manages members.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from issuetracker.core.exceptions import BadRequestException, ConflictException, NotFoundException
from issuetracker.core.permissions import assert_project_access, is_admin, is_owner, require_role
from issuetracker.models.project import Project
from issuetracker.models.user import User, UserRole
from issuetracker.repositories.issue import IssueRepository
from issuetracker.repositories.project import ProjectRepository
from issuetracker.repositories.user import UserRepository
from issuetracker.schemas.project import ProjectCreate, ProjectUpdate
from issuetracker.services.key_generator import generate_project_key

logger = logging.getLogger(__name__)

PROJECT_CREATORS = (UserRole.ADMIN, UserRole.PROJECT_MANAGER)


class ProjectService:

    async def create_project(
        self,
        db: AsyncSession,
        *,
        project_in: ProjectCreate,
        current_user: User,
    ) -> Project:
        """
        Create a project owned by the current user.
        Uses the supplied key when given, otherwise derives one from the name.
        """
        require_role(current_user, PROJECT_CREATORS, "create projects")

        projects = ProjectRepository(db)
        if project_in.key is not None:
            if await projects.key_exists(project_in.key):
                raise ConflictException(f"Project key '{project_in.key}' is already in use")
            key = project_in.key
        else:
            key = await generate_project_key(projects, project_in.name)

        project = await projects.create(
            {
                "name": project_in.name,
                "description": project_in.description,
                "key": key,
                "owner_id": current_user.id,
            }
        )
        logger.info("Project %s created by %s", project.key, current_user.id)
        return project

    async def get_project(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        current_user: User,
    ) -> Project:
        """Fetch an active project the user may access."""
        project = await ProjectRepository(db).find_by_id(project_id)
        if project is None or not project.is_active:
            raise NotFoundException("Project", str(project_id))
        assert_project_access(project, current_user)
        return project

    async def list_projects(
        self,
        db: AsyncSession,
        *,
        current_user: User,
        search: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Project], int]:
        """Admins see every active project; everyone else only their own."""
        user_id = None if is_admin(current_user) else current_user.id
        return await ProjectRepository(db).list_projects(
            user_id=user_id, search=search, skip=skip, limit=limit
        )

    async def accessible_project_ids(
        self, db: AsyncSession, *, current_user: User
    ) -> list[uuid.UUID] | None:
        """Ids of projects visible to the user; None means unrestricted."""
        if is_admin(current_user):
            return None
        projects = await ProjectRepository(db).find_by_user(current_user.id)
        return [p.id for p in projects]

    async def update_project(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        project_in: ProjectUpdate,
        current_user: User,
    ) -> Project:
        project = await self.get_project(db, project_id=project_id, current_user=current_user)

        changes: dict[str, Any] = project_in.model_dump(exclude_unset=True, mode="json")
        if changes.get("name", "") is None:
            raise BadRequestException("Project name cannot be empty")
        if "settings" in changes and changes["settings"] is None:
            del changes["settings"]

        updated = await ProjectRepository(db).update(project.id, changes)
        if updated is None:
            raise NotFoundException("Project", str(project_id))
        return updated

    async def delete_project(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        current_user: User,
    ) -> Project:
        """Soft-delete a project. Admin only."""
        projects = ProjectRepository(db)
        project = await projects.find_by_id(project_id)
        if project is None or not project.is_active:
            raise NotFoundException("Project", str(project_id))
        require_role(current_user, (UserRole.ADMIN,), "delete projects")

        deleted = await projects.soft_delete(project)
        logger.info("Project %s deactivated by %s", project.key, current_user.id)
        return deleted

    # ── Members ───────────────────────────────────────────────────────────────

    async def add_member(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        user_id: uuid.UUID,
        current_user: User,
    ) -> Project:
        project = await self.get_project(db, project_id=project_id, current_user=current_user)

        user = await UserRepository(db).find_by_id(user_id)
        if user is None or not user.is_active:
            raise NotFoundException("User", str(user_id))
        if user_id in project.member_ids:
            raise ConflictException("User is already a member of this project")

        return await ProjectRepository(db).add_member(project, user_id)

    async def remove_member(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        user_id: uuid.UUID,
        current_user: User,
    ) -> Project:
        project = await self.get_project(db, project_id=project_id, current_user=current_user)

        if is_owner(project, user_id):
            raise BadRequestException("The project owner cannot be removed")
        if user_id not in project.member_ids:
            raise NotFoundException("Project member", str(user_id))

        return await ProjectRepository(db).remove_member(project, user_id)

    async def get_statistics(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        current_user: User,
    ) -> dict[str, Any]:
        project = await self.get_project(db, project_id=project_id, current_user=current_user)
        return await IssueRepository(db).get_statistics(project.id)


project_service = ProjectService()
