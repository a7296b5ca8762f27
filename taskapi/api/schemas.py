"""Request and response shapes for the /api/tasks endpoints.

JSON field names are camelCase; snake_case names are accepted on input.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from taskapi.domain.entities import TaskEntity
from taskapi.domain.enums import TaskPriority, TaskStatus
from taskapi.domain.filters import Page

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 2000


def _check_title(value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ValueError("Title is required")
    if len(value) > TITLE_MAX_LENGTH:
        raise ValueError(f"Title must not exceed {TITLE_MAX_LENGTH} characters")
    return value


def _check_description(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value) > DESCRIPTION_MAX_LENGTH:
        raise ValueError(f"Description must not exceed {DESCRIPTION_MAX_LENGTH} characters")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateTaskRequest(CamelModel):
    title: Optional[str] = Field(default=None, validate_default=True)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: Optional[str]) -> str:
        return _check_title(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _check_description(value)


class UpdateTaskRequest(CamelModel):
    """Partial update; a field that is omitted or null leaves the stored value alone."""

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _check_title(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _check_description(value)

    def changes(self) -> dict[str, Any]:
        """Fields that were sent with a non-null value, keyed by attribute name."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }


class TaskResponse(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, task: TaskEntity) -> TaskResponse:
        return cls.model_validate(task)


class PageResponse(CamelModel):
    content: list[TaskResponse]
    total_elements: int
    total_pages: int
    page: int
    size: int

    @classmethod
    def from_page(cls, page: Page[TaskResponse]) -> PageResponse:
        return cls(
            content=page.items,
            total_elements=page.total,
            total_pages=page.total_pages,
            page=page.page,
            size=page.size,
        )


class ErrorResponse(CamelModel):
    status: int
    error: str
    message: str
    path: str
    timestamp: datetime
    field_errors: Optional[dict[str, str]] = None
