from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from taskapi.config import Settings
from taskapi.domain.enums import TaskPriority, TaskStatus
from taskapi.infra.db import build_engine, build_session_factory, init_db
from taskapi.infra.repository import TaskRepository
from taskapi.main import create_app

API_TOKEN = "test-token"


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="sqlite://", log_dir=None, api_tokens=(API_TOKEN,))


@pytest.fixture
def session_factory(settings: Settings):
    engine = build_engine(settings.database_url)
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def repo(session_factory) -> TaskRepository:
    return TaskRepository(session_factory)


@pytest.fixture
def seeded(repo: TaskRepository):
    return [
        repo.create_task({
            "title": "Write unit tests",
            "status": TaskStatus.IN_PROGRESS.value,
            "priority": TaskPriority.HIGH.value,
        }),
        repo.create_task({
            "title": "Deploy application",
            "status": TaskStatus.TODO.value,
            "priority": TaskPriority.MEDIUM.value,
        }),
        repo.create_task({
            "title": "Write documentation",
            "status": TaskStatus.TODO.value,
            "priority": TaskPriority.LOW.value,
        }),
    ]


@pytest.fixture
def app(settings: Settings, session_factory):
    return create_app(settings=settings, session_factory=session_factory)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {API_TOKEN}"}
