from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from taskapi.api.schemas import CreateTaskRequest, TaskResponse, UpdateTaskRequest
from taskapi.domain.enums import TaskPriority, TaskStatus
from taskapi.domain.errors import TaskNotFoundError
from taskapi.domain.filters import Page, PageRequest, TaskFilters
from taskapi.infra.repository import TaskRepository

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, repo: TaskRepository) -> None:
        self._repo = repo

    def create(self, request: CreateTaskRequest) -> TaskResponse:
        task = self._repo.create_task(self._normalize_data({
            "title": request.title,
            "description": request.description,
            "status": request.status or TaskStatus.TODO,
            "priority": request.priority or TaskPriority.MEDIUM,
            "due_date": request.due_date,
        }))
        logger.info("Created task %s", task.id)
        return TaskResponse.from_entity(task)

    def get_by_id(self, task_id: int) -> TaskResponse:
        task = self._repo.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return TaskResponse.from_entity(task)

    def get_all(
        self,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        search: str | None = None,
        page_request: PageRequest | None = None,
    ) -> Page[TaskResponse]:
        filters = TaskFilters(status=status, priority=priority, search=search)
        page = self._repo.find_tasks(filters, page_request or PageRequest())
        return page.map(TaskResponse.from_entity)

    def update(self, task_id: int, request: UpdateTaskRequest) -> TaskResponse:
        task = self._repo.update_task(task_id, self._normalize_data(request.changes()))
        if task is None:
            raise TaskNotFoundError(task_id)
        logger.info("Updated task %s", task_id)
        return TaskResponse.from_entity(task)

    def delete(self, task_id: int) -> None:
        if not self._repo.delete_task(task_id):
            raise TaskNotFoundError(task_id)
        logger.info("Deleted task %s", task_id)

    def _normalize_data(self, data: dict) -> dict:
        return {
            key: value.value if isinstance(value, Enum) else value
            for key, value in data.items()
        }
