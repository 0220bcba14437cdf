"""
Project routes.
CRUD on /projects, membership management and per-project issue statistics.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from issuetracker.core.dependencies import CurrentUser, DBSession
from issuetracker.schemas.pagination import PaginatedResponse, page_offset
from issuetracker.schemas.project import (
    ProjectCreate,
    ProjectMemberAdd,
    ProjectRead,
    ProjectStats,
    ProjectUpdate,
)
from issuetracker.services.project_service import project_service

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.get(
    "/",
    response_model=PaginatedResponse[ProjectRead],
    summary="List projects visible to the current user",
)
async def list_projects(
    current_user: CurrentUser,
    db: DBSession,
    search: str | None = Query(default=None, max_length=200),
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[ProjectRead]:
    projects, total = await project_service.list_projects(
        db,
        current_user=current_user,
        search=search,
        skip=page_offset(page, size),
        limit=size,
    )
    return PaginatedResponse.build(projects, total, page=page, size=size, schema=ProjectRead)


@router.post(
    "/",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project (admin or project manager)",
)
async def create_project(
    project_in: ProjectCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectRead:
    project = await project_service.create_project(
        db, project_in=project_in, current_user=current_user
    )
    return ProjectRead.model_validate(project)


@router.get("/{project_id}", response_model=ProjectRead, summary="Get a project")
async def get_project(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectRead:
    project = await project_service.get_project(
        db, project_id=project_id, current_user=current_user
    )
    return ProjectRead.model_validate(project)


@router.put("/{project_id}", response_model=ProjectRead, summary="Update a project")
async def update_project(
    project_id: uuid.UUID,
    project_in: ProjectUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectRead:
    project = await project_service.update_project(
        db, project_id=project_id, project_in=project_in, current_user=current_user
    )
    return ProjectRead.model_validate(project)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate a project (admin only)",
)
async def delete_project(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await project_service.delete_project(
        db, project_id=project_id, current_user=current_user
    )


@router.post(
    "/{project_id}/members",
    response_model=ProjectRead,
    summary="Add a member to a project",
)
async def add_member(
    project_id: uuid.UUID,
    body: ProjectMemberAdd,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectRead:
    project = await project_service.add_member(
        db, project_id=project_id, user_id=body.user_id, current_user=current_user
    )
    return ProjectRead.model_validate(project)


@router.delete(
    "/{project_id}/members/{user_id}",
    response_model=ProjectRead,
    summary="Remove a member from a project",
)
async def remove_member(
    project_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectRead:
    project = await project_service.remove_member(
        db, project_id=project_id, user_id=user_id, current_user=current_user
    )
    return ProjectRead.model_validate(project)


@router.get(
    "/{project_id}/stats",
    response_model=ProjectStats,
    summary="Issue statistics for a project",
)
async def project_stats(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> ProjectStats:
    stats = await project_service.get_statistics(
        db, project_id=project_id, current_user=current_user
    )
    return ProjectStats(**stats)
