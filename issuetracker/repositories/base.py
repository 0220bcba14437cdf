"""
Generic async repository base class.
Every entity repository is bound to one AsyncSession at construction and
extends BaseRepository with its own finders.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from issuetracker.core.exceptions import ConflictException
from issuetracker.db.base import Base

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Uniform data-access contract over SQLAlchemy async ORM models.

    Absence is reported as ``None``; the repository never raises not-found.
    Uniqueness is left to the storage constraints, which surface as
    ConflictException on flush.
    """

    model: ClassVar[type[Base]]

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def find_by_id(self, id: uuid.UUID) -> ModelType | None:
        """Fetch a single record by primary key."""
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == id)  # type: ignore[attr-defined]
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()  # type: ignore[return-value]

    async def find_all(self) -> list[ModelType]:
        result = await self.db.execute(select(self.model))
        return list(result.scalars().all())  # type: ignore[arg-type]

    async def find_many(self, *, skip: int = 0, limit: int = 100) -> list[ModelType]:
        """Fetch multiple records with offset pagination."""
        result = await self.db.execute(select(self.model).offset(skip).limit(limit))
        return list(result.scalars().all())  # type: ignore[arg-type]

    async def find_one(self, **filters: Any) -> ModelType | None:
        query = select(self.model)
        for attr, value in filters.items():
            query = query.where(getattr(self.model, attr) == value)
        result = await self.db.execute(query.limit(1))
        return result.scalars().first()  # type: ignore[return-value]

    async def count(self) -> int:
        """Return total count of records in the table."""
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()

    async def exists(self, **filters: Any) -> bool:
        """Return True if any record matches the given keyword filters."""
        query = select(func.count()).select_from(self.model)
        for attr, value in filters.items():
            query = query.where(getattr(self.model, attr) == value)
        result = await self.db.execute(query)
        return (result.scalar_one() or 0) > 0

    # ── Writes ────────────────────────────────────────────────────────────────

    async def create(self, fields: dict[str, Any]) -> ModelType:
        """Persist a new record and return it with generated values filled in."""
        obj = self.model(**fields)
        return await self._persist(obj)  # type: ignore[arg-type]

    async def update(
        self, id: uuid.UUID, fields: dict[str, Any]
    ) -> ModelType | None:
        """
        Shallow-merge ``fields`` into the record.
        Keys that are present are applied as given, including None.
        Returns None when no record has this id.
        """
        obj = await self.find_by_id(id)
        if obj is None:
            return None
        for field, value in fields.items():
            setattr(obj, field, value)
        return await self._persist(obj)

    async def delete(self, id: uuid.UUID) -> None:
        """Remove the record if present. Deleting a missing id is a no-op."""
        obj = await self.find_by_id(id)
        if obj is None:
            return
        await self.db.delete(obj)
        await self._flush()

    # ── Internals ─────────────────────────────────────────────────────────────

    async def _persist(self, obj: ModelType) -> ModelType:
        self.db.add(obj)
        await self._flush()
        return await self._reload(obj)

    async def _reload(self, obj: ModelType) -> ModelType:
        # Re-select so eager-loaded relationships reflect the flushed rows.
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == obj.id)  # type: ignore[attr-defined]
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()  # type: ignore[return-value]

    async def _flush(self) -> None:
        try:
            await self.db.flush()
        except IntegrityError as exc:
            logger.warning(
                "Integrity violation on %s: %s", self.model.__tablename__, exc.orig
            )
            raise ConflictException(
                f"{self.model.__name__} conflicts with an existing record"
            ) from exc
