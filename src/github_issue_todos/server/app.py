"""FastAPI app factory.

Endpoints are thin wrappers over the TodoManager held in `app.state.todos`.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from github_issue_todos import __version__
from github_issue_todos.config import TodoSettings
from github_issue_todos.github.client import GitHubApiError, GitHubAuthError
from github_issue_todos.logging import configure_logging
from github_issue_todos.server.router import router as todo_router
from github_issue_todos.server.state import ServerState
from github_issue_todos.todos.connection import ClientFactory, ConnectionStore, client_factory
from github_issue_todos.todos.manager import TodoManager

logger = logging.getLogger(__name__)


def _github_error_status(error: GitHubApiError) -> int:
    # Pass GitHub's client errors through; anything else is a bad gateway.
    if error.status_code is not None and 400 <= error.status_code < 500:
        return error.status_code
    return 502


def create_app(
    settings: TodoSettings | None = None,
    *,
    manager: TodoManager | None = None,
    github_factory: ClientFactory | None = None,
) -> FastAPI:
    settings = settings or TodoSettings()
    configure_logging(settings.log_level, json_output=settings.log_format == "json")

    state = ServerState(
        settings=settings,
        store=ConnectionStore(settings.connection_state_file),
        github_factory=github_factory or client_factory(settings),
        manager=manager,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        state.close()

    app = FastAPI(
        title="GitHub Issue Todos",
        version=__version__,
        description="REST API over todos stored as GitHub issues.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.state.todos = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GitHubAuthError)
    async def _auth_error(_request: Request, exc: GitHubAuthError) -> JSONResponse:
        return JSONResponse(
            status_code=_github_error_status(exc),
            content={"detail": f"Connection failed: {exc.message}"},
        )

    @app.exception_handler(GitHubApiError)
    async def _github_error(request: Request, exc: GitHubApiError) -> JSONResponse:
        logger.warning(
            "GitHub request failed",
            extra={"path": request.url.path, "status_code": exc.status_code},
        )
        return JSONResponse(status_code=_github_error_status(exc), content={"detail": exc.message})

    @app.exception_handler(ValueError)
    async def _value_error(_request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    app.include_router(todo_router, prefix="/api")
    return app
