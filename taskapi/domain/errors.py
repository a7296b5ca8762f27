from __future__ import annotations

from typing import Any


class TaskApiError(Exception):
    """Base class for failures raised below the HTTP boundary."""


class TaskNotFoundError(TaskApiError):
    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Task not found with id: {task_id}")


class InvalidParameterError(TaskApiError):
    def __init__(self, name: str, value: Any) -> None:
        self.name = name
        self.value = value
        super().__init__(f"Invalid value '{value}' for parameter '{name}'")


class UnauthorizedError(TaskApiError):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)
