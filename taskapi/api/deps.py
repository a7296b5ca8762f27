"""Dependency providers; shared objects live on app.state and are set up by create_app."""

from fastapi import Request

from taskapi.config import Settings
from taskapi.infra.repository import TaskRepository
from taskapi.services.task_service import TaskService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_task_service(request: Request) -> TaskService:
    return TaskService(TaskRepository(request.app.state.session_factory))
