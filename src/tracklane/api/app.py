"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tracklane import __version__
from tracklane.api.dependencies import (
    close_board_store,
    close_registry,
    init_board_store,
    init_event_manager,
    init_registry,
)
from tracklane.api.models import APIResponse
from tracklane.api.routes import boards, events, issues, statuses, workflows
from tracklane.config import Settings
from tracklane.remote import RemoteBackend
from tracklane.store import (
    BoardNotFoundError,
    DraftExistsError,
    IssueExistsError,
    IssueNotFoundError,
    NotADraftError,
    StatusInUseError,
    StatusNotFoundError,
    StoreError,
    WorkflowNotFoundError,
)
from tracklane.workflow import WorkflowError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

_NOT_FOUND = {
    StatusNotFoundError: "Status not found",
    WorkflowNotFoundError: "Workflow not found",
    BoardNotFoundError: "Board not found",
    IssueNotFoundError: "Issue not found",
}

_CONFLICT = (StatusInUseError, DraftExistsError, NotADraftError, IssueExistsError)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    db_path = app.state.db_path if hasattr(app.state, "db_path") else "tracklane.db"
    settings: Settings = getattr(app.state, "settings", None) or Settings.from_env()
    store = init_board_store(db_path)
    event_manager = init_event_manager()
    remote = None
    if settings.remote_enabled:
        remote = RemoteBackend(settings.backend_url, settings.backend_key)
        logger.info("Writing through to hosted backend at %s", settings.backend_url)
    registry = init_registry(store, event_manager, remote)
    logger.info("Tracklane API started (db=%s)", db_path)

    yield
    # Shutdown
    await registry.close()
    close_registry()
    close_board_store()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[None](data=None, error=message).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map store and workflow errors onto HTTP responses."""

    @app.exception_handler(StoreError)
    async def store_error_handler(_request: Request, exc: StoreError) -> JSONResponse:
        for error_type, message in _NOT_FOUND.items():
            if isinstance(exc, error_type):
                return _error(status.HTTP_404_NOT_FOUND, message)
        if isinstance(exc, _CONFLICT):
            return _error(status.HTTP_409_CONFLICT, str(exc))
        logger.exception("Unhandled store error")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    @app.exception_handler(WorkflowError)
    async def workflow_error_handler(_request: Request, exc: WorkflowError) -> JSONResponse:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))


def create_app(db_path: str = "tracklane.db", settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``settings`` default to the ``TRACKLANE_*`` environment at startup; a
    configured backend URL and key make every write go through the hosted
    backend.
    """
    app = FastAPI(
        title="Tracklane API",
        description="REST API for Tracklane - workflows, boards and issue moves",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.db_path = db_path
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(statuses.router, prefix="/api/v1")
    app.include_router(workflows.router, prefix="/api/v1")
    app.include_router(boards.router, prefix="/api/v1")
    app.include_router(issues.router, prefix="/api/v1")
    app.include_router(events.router, prefix="/api/v1")

    return app
