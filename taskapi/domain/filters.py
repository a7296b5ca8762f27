from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from .enums import TaskPriority, TaskStatus

T = TypeVar("T")
U = TypeVar("U")

SORTABLE_FIELDS = (
    "id",
    "title",
    "status",
    "priority",
    "due_date",
    "created_at",
    "updated_at",
)


@dataclass(frozen=True)
class TaskFilters:
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    search: str | None = None


@dataclass(frozen=True)
class SortOrder:
    field: str = "created_at"
    descending: bool = True

    def __post_init__(self) -> None:
        if self.field not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by {self.field!r}")


@dataclass(frozen=True)
class PageRequest:
    page: int = 0
    size: int = 20
    sort: tuple[SortOrder, ...] = (SortOrder(),)

    def __post_init__(self) -> None:
        if self.page < 0:
            raise ValueError("page must not be negative")
        if self.size < 1:
            raise ValueError("size must be at least 1")
        if not self.sort:
            raise ValueError("at least one sort order is required")

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass(frozen=True)
class Page(Generic[T]):
    """One slice of a query result plus the count of all matching rows."""

    items: list[T]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0

    def map(self, fn: Callable[[T], U]) -> Page[U]:
        return Page(
            items=[fn(item) for item in self.items],
            total=self.total,
            page=self.page,
            size=self.size,
        )
