"""
User repository.
Emails are stored lower-cased, so every email lookup normalises its input.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select

from issuetracker.db.base import utcnow
from issuetracker.models.user import User
from issuetracker.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def create(self, fields: dict[str, Any]) -> User:
        if "email" in fields:
            fields = {**fields, "email": fields["email"].strip().lower()}
        return await super().create(fields)

    async def find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def find_by_role(self, role: str) -> list[User]:
        result = await self.db.execute(
            select(User)
            .where(User.role == role, User.is_active.is_(True))
            .order_by(User.created_at)
        )
        return list(result.scalars().all())

    async def find_active_users(self) -> list[User]:
        result = await self.db.execute(
            select(User).where(User.is_active.is_(True)).order_by(User.created_at)
        )
        return list(result.scalars().all())

    async def list_users(
        self,
        *,
        skip: int = 0,
        limit: int = 100,
        include_inactive: bool = False,
    ) -> tuple[list[User], int]:
        query = select(User)
        count_query = select(func.count()).select_from(User)

        if not include_inactive:
            query = query.where(User.is_active.is_(True))
            count_query = count_query.where(User.is_active.is_(True))

        total = (await self.db.execute(count_query)).scalar_one()
        result = await self.db.execute(
            query.order_by(User.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    async def set_refresh_token_hash(self, user: User, token_hash: str | None) -> User:
        user.refresh_token_hash = token_hash
        return await self._persist(user)

    async def touch_last_login(self, user: User, when: datetime | None = None) -> User:
        user.last_login = when or utcnow()
        return await self._persist(user)
