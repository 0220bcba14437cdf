"""
User profile routes.
GET/PUT /users/me, PUT /users/me/password, admin management on /users/
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from issuetracker.core.dependencies import AdminUser, CurrentUser, DBSession
from issuetracker.core.exceptions import NotFoundException
from issuetracker.repositories.user import UserRepository
from issuetracker.schemas.pagination import PaginatedResponse, page_offset
from issuetracker.schemas.user import PasswordChange, UserAdminUpdate, UserRead, UserUpdate
from issuetracker.services.auth_service import auth_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserRead, summary="Get current user profile")
async def get_me(current_user: CurrentUser) -> UserRead:
    return UserRead.model_validate(current_user)


@router.put("/me", response_model=UserRead, summary="Update current user profile")
async def update_me(
    user_in: UserUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> UserRead:
    updated = await auth_service.update_profile(db, user=current_user, user_in=user_in)
    return UserRead.model_validate(updated)


@router.put(
    "/me/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change current user password",
)
async def change_password(
    body: PasswordChange,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await auth_service.change_password(db, user=current_user, body=body)


@router.get(
    "/",
    response_model=PaginatedResponse[UserRead],
    summary="List all users (admin only)",
)
async def list_users(
    _admin: AdminUser,
    db: DBSession,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
    include_inactive: bool = Query(default=False),
) -> PaginatedResponse[UserRead]:
    users, total = await UserRepository(db).list_users(
        skip=page_offset(page, size), limit=size, include_inactive=include_inactive
    )
    return PaginatedResponse.build(users, total, page=page, size=size, schema=UserRead)


@router.get(
    "/{user_id}",
    response_model=UserRead,
    summary="Get user by ID (admin only)",
)
async def get_user(
    user_id: uuid.UUID,
    _admin: AdminUser,
    db: DBSession,
) -> UserRead:
    user = await UserRepository(db).find_by_id(user_id)
    if user is None:
        raise NotFoundException("User", str(user_id))
    return UserRead.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    summary="Update user role/status (admin only)",
)
async def admin_update_user(
    user_id: uuid.UUID,
    user_in: UserAdminUpdate,
    _admin: AdminUser,
    db: DBSession,
) -> UserRead:
    changes = {k: v for k, v in user_in.model_dump(exclude_unset=True).items() if v is not None}
    updated = await UserRepository(db).update(user_id, changes)
    if updated is None:
        raise NotFoundException("User", str(user_id))
    return UserRead.model_validate(updated)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate user (admin only)",
)
async def deactivate_user(
    user_id: uuid.UUID,
    _admin: AdminUser,
    db: DBSession,
) -> None:
    users = UserRepository(db)
    if await users.update(user_id, {"is_active": False, "refresh_token_hash": None}) is None:
        raise NotFoundException("User", str(user_id))
