"""
Comment routes.
/issues/{issue_id}/comments for listing, creating and stats;
/comments/{comment_id} for single-comment operations.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from issuetracker.core.dependencies import CurrentUser, DBSession
from issuetracker.schemas.comment import CommentCreate, CommentRead, CommentStats, CommentUpdate
from issuetracker.schemas.pagination import PaginatedResponse, page_offset
from issuetracker.services.comment_service import comment_service

router = APIRouter(tags=["Comments"])


@router.get(
    "/issues/{issue_id}/comments",
    response_model=PaginatedResponse[CommentRead],
    summary="List comments on an issue",
)
async def list_comments(
    issue_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=50, ge=1, le=200),
) -> PaginatedResponse[CommentRead]:
    comments, total = await comment_service.list_comments(
        db,
        issue_id=issue_id,
        current_user=current_user,
        skip=page_offset(page, size),
        limit=size,
    )
    return PaginatedResponse.build(comments, total, page=page, size=size, schema=CommentRead)


@router.post(
    "/issues/{issue_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a comment to an issue",
)
async def create_comment(
    issue_id: uuid.UUID,
    comment_in: CommentCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> CommentRead:
    comment = await comment_service.create_comment(
        db, issue_id=issue_id, content=comment_in.content, current_user=current_user
    )
    return CommentRead.model_validate(comment)


@router.get(
    "/issues/{issue_id}/comments/stats",
    response_model=CommentStats,
    summary="Comment statistics for an issue",
)
async def comment_stats(
    issue_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> CommentStats:
    stats = await comment_service.get_stats(db, issue_id=issue_id, current_user=current_user)
    return CommentStats(**stats)


@router.get(
    "/comments/author/{author_id}",
    response_model=PaginatedResponse[CommentRead],
    summary="List comments written by a user",
)
async def list_comments_by_author(
    author_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[CommentRead]:
    comments, total = await comment_service.list_by_author(
        db,
        author_id=author_id,
        current_user=current_user,
        skip=page_offset(page, size),
        limit=size,
    )
    return PaginatedResponse.build(comments, total, page=page, size=size, schema=CommentRead)


@router.get("/comments/{comment_id}", response_model=CommentRead, summary="Get a comment")
async def get_comment(
    comment_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> CommentRead:
    comment = await comment_service.get_comment(
        db, comment_id=comment_id, current_user=current_user
    )
    return CommentRead.model_validate(comment)


@router.put("/comments/{comment_id}", response_model=CommentRead, summary="Edit a comment")
async def update_comment(
    comment_id: uuid.UUID,
    comment_in: CommentUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> CommentRead:
    comment = await comment_service.update_comment(
        db, comment_id=comment_id, content=comment_in.content, current_user=current_user
    )
    return CommentRead.model_validate(comment)


@router.delete(
    "/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a comment",
)
async def delete_comment(
    comment_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await comment_service.delete_comment(db, comment_id=comment_id, current_user=current_user)
