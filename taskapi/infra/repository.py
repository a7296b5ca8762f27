from __future__ import annotations

from typing import Optional

from sqlalchemy import Select, delete, func, select
from sqlalchemy.orm import Session, sessionmaker

from taskapi.domain.entities import TaskEntity
from taskapi.domain.enums import TaskPriority, TaskStatus
from taskapi.domain.filters import Page, PageRequest, TaskFilters

from .models import TaskModel, utcnow


def _to_entity(model: TaskModel) -> TaskEntity:
    return TaskEntity(
        id=model.id,
        title=model.title,
        description=model.description,
        status=TaskStatus(model.status),
        priority=TaskPriority(model.priority),
        due_date=model.due_date,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _apply_filters(stmt: Select, filters: TaskFilters) -> Select:
    if filters.status is not None:
        stmt = stmt.where(TaskModel.status == filters.status.value)

    if filters.priority is not None:
        stmt = stmt.where(TaskModel.priority == filters.priority.value)

    if filters.search:
        stmt = stmt.where(TaskModel.title.icontains(filters.search, autoescape=True))

    return stmt


def _apply_order(stmt: Select, page_request: PageRequest) -> Select:
    clauses = []
    for sort in page_request.sort:
        column = getattr(TaskModel, sort.field)
        clauses.append(column.desc() if sort.descending else column.asc())
    # id breaks ties in the direction of the first key
    if page_request.sort[0].descending:
        clauses.append(TaskModel.id.desc())
    else:
        clauses.append(TaskModel.id.asc())
    return stmt.order_by(*clauses)


class TaskRepository:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def find_tasks(self, filters: TaskFilters, page_request: PageRequest) -> Page[TaskEntity]:
        with self._session_factory() as session:
            count_stmt = _apply_filters(select(func.count()).select_from(TaskModel), filters)
            total = session.scalar(count_stmt) or 0

            stmt = _apply_filters(select(TaskModel), filters)
            stmt = _apply_order(stmt, page_request)
            stmt = stmt.offset(page_request.offset).limit(page_request.size)
            items = [_to_entity(task) for task in session.scalars(stmt)]

        return Page(items=items, total=total, page=page_request.page, size=page_request.size)

    def find_by_status(self, status: TaskStatus, page_request: PageRequest) -> Page[TaskEntity]:
        return self.find_tasks(TaskFilters(status=status), page_request)

    def find_by_priority(self, priority: TaskPriority, page_request: PageRequest) -> Page[TaskEntity]:
        return self.find_tasks(TaskFilters(priority=priority), page_request)

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            return _to_entity(task) if task else None

    def exists(self, task_id: int) -> bool:
        with self._session_factory() as session:
            return self._exists(session, task_id)

    def create_task(self, data: dict) -> TaskEntity:
        now = utcnow()
        with self._session_factory.begin() as session:
            task = TaskModel(**data, created_at=now, updated_at=now)
            session.add(task)
            session.flush()
            return _to_entity(task)

    def update_task(self, task_id: int, data: dict) -> Optional[TaskEntity]:
        with self._session_factory.begin() as session:
            task = session.get(TaskModel, task_id, with_for_update=True)
            if not task:
                return None

            for key, value in data.items():
                setattr(task, key, value)
            task.updated_at = max(utcnow(), task.created_at)
            session.flush()
            return _to_entity(task)

    def delete_task(self, task_id: int) -> bool:
        with self._session_factory.begin() as session:
            if not self._exists(session, task_id, lock=True):
                return False
            result = session.execute(delete(TaskModel).where(TaskModel.id == task_id))
            return result.rowcount > 0

    @staticmethod
    def _exists(session: Session, task_id: int, lock: bool = False) -> bool:
        stmt = select(TaskModel.id).where(TaskModel.id == task_id)
        if lock:
            stmt = stmt.with_for_update()
        return session.scalar(stmt) is not None
