"""
Issue routes.
CRUD + filtering + pagination, lookup by key, time logging and watchers.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status

from issuetracker.core.dependencies import CurrentUser, DBSession
from issuetracker.schemas.issue import (
    IssueCreate,
    IssueDetail,
    IssueFilter,
    IssuePriority,
    IssueRead,
    IssueSortField,
    IssueStatus,
    IssueType,
    IssueUpdate,
    TimeLog,
)
from issuetracker.schemas.pagination import PaginatedResponse
from issuetracker.services.issue_service import issue_service

router = APIRouter(prefix="/issues", tags=["Issues"])


def _issue_filter_params(
    project_id: uuid.UUID | None = Query(default=None),
    assignee_id: uuid.UUID | None = Query(default=None),
    reporter_id: uuid.UUID | None = Query(default=None),
    status: list[IssueStatus] | None = Query(default=None),
    priority: list[IssuePriority] | None = Query(default=None),
    type: list[IssueType] | None = Query(default=None),
    labels: list[str] | None = Query(default=None),
    components: list[str] | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    created_after: datetime | None = Query(default=None),
    created_before: datetime | None = Query(default=None),
    updated_after: datetime | None = Query(default=None),
    updated_before: datetime | None = Query(default=None),
    sort_by: IssueSortField = Query(default="updated_at"),
    sort_order: Literal["asc", "desc"] = Query(default="desc"),
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> IssueFilter:
    return IssueFilter(
        project_id=project_id,
        assignee_id=assignee_id,
        reporter_id=reporter_id,
        status=status,
        priority=priority,
        type=type,
        labels=labels,
        components=components,
        search=search,
        created_after=created_after,
        created_before=created_before,
        updated_after=updated_after,
        updated_before=updated_before,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        size=size,
    )


@router.get(
    "/",
    response_model=PaginatedResponse[IssueRead],
    summary="List issues with filters and pagination",
)
async def list_issues(
    current_user: CurrentUser,
    db: DBSession,
    filters: Annotated[IssueFilter, Depends(_issue_filter_params)],
) -> PaginatedResponse[IssueRead]:
    issues, total = await issue_service.list_issues(
        db, filters=filters, current_user=current_user
    )
    return PaginatedResponse.build(
        issues, total, page=filters.page, size=filters.size, schema=IssueRead
    )


@router.post(
    "/",
    response_model=IssueRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an issue",
)
async def create_issue(
    issue_in: IssueCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> IssueRead:
    issue = await issue_service.create_issue(db, issue_in=issue_in, current_user=current_user)
    return IssueRead.model_validate(issue)


@router.get("/key/{key}", response_model=IssueDetail, summary="Get an issue by its key")
async def get_issue_by_key(
    key: str,
    current_user: CurrentUser,
    db: DBSession,
) -> IssueDetail:
    issue = await issue_service.get_issue_by_key(db, key=key, current_user=current_user)
    return IssueDetail.model_validate(issue)


@router.get("/{issue_id}", response_model=IssueDetail, summary="Get an issue with comments")
async def get_issue(
    issue_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> IssueDetail:
    issue = await issue_service.get_issue(
        db, issue_id=issue_id, current_user=current_user, with_comments=True
    )
    return IssueDetail.model_validate(issue)


@router.put("/{issue_id}", response_model=IssueRead, summary="Update an issue")
async def update_issue(
    issue_id: uuid.UUID,
    issue_in: IssueUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> IssueRead:
    issue = await issue_service.update_issue(
        db, issue_id=issue_id, issue_in=issue_in, current_user=current_user
    )
    return IssueRead.model_validate(issue)


@router.delete(
    "/{issue_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an issue",
)
async def delete_issue(
    issue_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await issue_service.delete_issue(db, issue_id=issue_id, current_user=current_user)


@router.post("/{issue_id}/time", response_model=IssueRead, summary="Log work time")
async def log_time(
    issue_id: uuid.UUID,
    body: TimeLog,
    current_user: CurrentUser,
    db: DBSession,
) -> IssueRead:
    issue = await issue_service.log_time(
        db,
        issue_id=issue_id,
        hours=body.hours,
        description=body.description,
        current_user=current_user,
    )
    return IssueRead.model_validate(issue)


@router.post(
    "/{issue_id}/watchers",
    response_model=IssueRead,
    summary="Watch an issue",
)
async def add_watcher(
    issue_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> IssueRead:
    issue = await issue_service.add_watcher(db, issue_id=issue_id, current_user=current_user)
    return IssueRead.model_validate(issue)


@router.delete(
    "/{issue_id}/watchers",
    response_model=IssueRead,
    summary="Stop watching an issue",
)
async def remove_watcher(
    issue_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> IssueRead:
    issue = await issue_service.remove_watcher(
        db, issue_id=issue_id, current_user=current_user
    )
    return IssueRead.model_validate(issue)
