"""
Page envelope for the list endpoints (projects, issues, comments, users).

Pages are 1-based. Routes turn ``page``/``size`` into a row offset with
page_offset and wrap the repository rows with PaginatedResponse.build.
"""
from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, computed_field

T = TypeVar("T")


def page_offset(page: int, size: int) -> int:
    return (page - 1) * size


class PaginatedResponse(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    size: int

    @computed_field  # type: ignore[misc]
    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0

    @classmethod
    def build(
        cls, rows: Iterable[Any], total: int, *, page: int, size: int, schema: type[BaseModel]
    ) -> PaginatedResponse[Any]:
        """Validate ORM ``rows`` through ``schema`` and wrap them with page metadata."""
        return cls(
            items=[schema.model_validate(row) for row in rows],
            total=total,
            page=page,
            size=size,
        )

    model_config = {"from_attributes": True}
