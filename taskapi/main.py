from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from sqlalchemy.orm import sessionmaker

from taskapi.api import routes
from taskapi.api.errors import register_exception_handlers
from taskapi.config import Settings, get_settings
from taskapi.infra.db import build_engine, build_session_factory, init_db
from taskapi.infra.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    engine = None
    if app.state.session_factory is None:
        engine = build_engine(app.state.settings.database_url)
        init_db(engine)
        app.state.session_factory = build_session_factory(engine)
        logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))

    yield

    if engine is not None:
        engine.dispose()


def create_app(
    settings: Settings | None = None,
    session_factory: sessionmaker | None = None,
) -> FastAPI:
    """Build the application; pass a session factory to run against an existing database."""
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="Task API",
        version="0.1.0",
        description="CRUD API for tasks with filtering and pagination",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory

    register_exception_handlers(app)
    app.include_router(routes.router)
    return app


def main() -> None:
    settings = get_settings()
    uvicorn.run("taskapi.main:create_app", factory=True, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
