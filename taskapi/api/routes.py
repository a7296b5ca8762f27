"""Task routes.

POST   /api/tasks            create (auth)
GET    /api/tasks            list with status/priority/search filters, paginated
GET    /api/tasks/{task_id}  fetch one
PUT    /api/tasks/{task_id}  partial update (auth)
DELETE /api/tasks/{task_id}  delete (auth)
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, Security, status

from taskapi.config import Settings
from taskapi.domain.enums import TaskPriority, TaskStatus
from taskapi.domain.errors import InvalidParameterError
from taskapi.domain.filters import PageRequest, SortOrder
from taskapi.services.task_service import TaskService

from .deps import get_app_settings, get_task_service
from .schemas import CreateTaskRequest, ErrorResponse, PageResponse, TaskResponse, UpdateTaskRequest
from .security import AuthenticatedRoute, bearer_scheme

router = APIRouter(prefix="/api/tasks", tags=["tasks"], route_class=AuthenticatedRoute)

# Storage ids are signed 64-bit; page and size follow 32-bit int limits.
MAX_TASK_ID = 2**63 - 1
MAX_INT = 2**31 - 1

TaskId = Annotated[int, Path(ge=1, le=MAX_TASK_ID)]

_SORT_FIELDS = {
    "id": "id",
    "title": "title",
    "status": "status",
    "priority": "priority",
    "dueDate": "due_date",
    "due_date": "due_date",
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
}

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Task not found"}}
_BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Invalid request"}}
_UNAUTHORIZED = {401: {"model": ErrorResponse, "description": "Missing or invalid credentials"}}


def parse_sort(raw: str) -> SortOrder:
    """Parse ``field[,asc|desc]``; direction defaults to ascending."""
    name, _, direction = raw.partition(",")
    field = _SORT_FIELDS.get(name.strip())
    direction = direction.strip().lower() or "asc"
    if field is None or direction not in ("asc", "desc"):
        raise InvalidParameterError("sort", raw)
    return SortOrder(field=field, descending=direction == "desc")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=TaskResponse,
    dependencies=[Security(bearer_scheme)],
    summary="Create a new task",
    responses={**_BAD_REQUEST, **_UNAUTHORIZED},
)
def create_task(
    payload: CreateTaskRequest,
    response: Response,
    service: TaskService = Depends(get_task_service),
):
    task = service.create(payload)
    response.headers["Location"] = f"/api/tasks/{task.id}"
    return task


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get a task by ID",
    responses={**_BAD_REQUEST, **_NOT_FOUND},
)
def get_task(task_id: TaskId, service: TaskService = Depends(get_task_service)):
    return service.get_by_id(task_id)


@router.get(
    "",
    response_model=PageResponse,
    summary="List tasks with filtering and pagination",
    responses=_BAD_REQUEST,
)
def list_tasks(
    status: Optional[TaskStatus] = Query(default=None),
    priority: Optional[TaskPriority] = Query(default=None),
    search: str | None = Query(default=None, description="Case-insensitive title substring"),
    page: int = Query(default=0, ge=0, le=MAX_INT),
    size: int | None = Query(default=None, ge=1, le=MAX_INT),
    sort: list[str] = Query(
        default=["createdAt,desc"],
        description="field[,asc|desc]; repeat for further ordering keys",
    ),
    service: TaskService = Depends(get_task_service),
    settings: Settings = Depends(get_app_settings),
):
    page_size = min(size or settings.default_page_size, settings.max_page_size)
    page_request = PageRequest(page=page, size=page_size, sort=tuple(parse_sort(raw) for raw in sort))
    result = service.get_all(status, priority, search, page_request)
    return PageResponse.from_page(result)


@router.put(
    "/{task_id}",
    response_model=TaskResponse,
    dependencies=[Security(bearer_scheme)],
    summary="Update an existing task",
    responses={**_BAD_REQUEST, **_UNAUTHORIZED, **_NOT_FOUND},
)
def update_task(
    task_id: TaskId,
    payload: UpdateTaskRequest,
    service: TaskService = Depends(get_task_service),
):
    return service.update(task_id, payload)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Security(bearer_scheme)],
    summary="Delete a task",
    responses={**_UNAUTHORIZED, **_NOT_FOUND},
)
def delete_task(task_id: TaskId, service: TaskService = Depends(get_task_service)):
    service.delete(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
