"""Todo REST API used by the browser front-end.

All routes are mounted under `/api`. Handlers receive the single TodoManager
owned by the app through the `_manager` dependency; there is no module-level
client.
"""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from github_issue_todos import __version__
from github_issue_todos.github.client import GitHubApiError
from github_issue_todos.github.models import Label, RepositoryRef
from github_issue_todos.labels import Priority
from github_issue_todos.server.models import (
    CommentRequest,
    ConnectionResponse,
    ConnectRequest,
    CreateLabelRequest,
    CreateTodoRequest,
    RepositoryRequest,
    SetLabelsRequest,
    UpdateTodoRequest,
)
from github_issue_todos.server.state import ServerState
from github_issue_todos.todos.connection import (
    ConnectionNotConfigured,
    connect,
    switch_repository,
)
from github_issue_todos.todos.manager import TodoManager, filter_todos
from github_issue_todos.todos.models import Todo, TodoDetail, TodoStats
from github_issue_todos.todos.validation import require_comment, require_label_color, require_title

logger = logging.getLogger(__name__)

router = APIRouter()


def _state(request: Request) -> ServerState:
    state = getattr(request.app.state, "todos", None)
    if not isinstance(state, ServerState):
        # This should never happen for the real app, but keeps the API fail-fast.
        raise HTTPException(status_code=500, detail="Server state not configured")
    return state


def _manager(state: ServerState = Depends(_state)) -> TodoManager:
    if state.manager is None:
        raise HTTPException(status_code=409, detail="Not connected to a repository")
    return state.manager


@router.get("/health")
def health(state: ServerState = Depends(_state)) -> dict[str, object]:
    repo = state.manager.repository.full_name if state.manager is not None else None
    return {"status": "ok", "version": __version__, "connected": repo is not None, "repo": repo}


@router.post("/connect", response_model=ConnectionResponse)
def connect_repository(
    req: ConnectRequest, state: ServerState = Depends(_state)
) -> ConnectionResponse:
    try:
        connection = state.resolve_connection(token=req.token, owner=req.owner, name=req.name)
    except ConnectionNotConfigured as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    github = state.github_factory(connection)
    try:
        manager, info = connect(github)
    except GitHubApiError:
        github.close()
        raise

    state.replace_manager(manager)
    state.store.save(connection)
    return ConnectionResponse(
        connected=True, login=info.login, repository=manager.repository.full_name
    )


@router.post("/repository", response_model=ConnectionResponse)
def switch_repo(
    req: RepositoryRequest,
    state: ServerState = Depends(_state),
    manager: TodoManager = Depends(_manager),
) -> ConnectionResponse:
    repository = RepositoryRef.parse(f"{req.owner.strip()}/{req.name.strip()}")
    switch_repository(manager, repository)

    stored = state.store.load()
    if stored is not None:
        state.store.save(
            stored.model_copy(update={"owner": repository.owner, "name": repository.name})
        )
    return ConnectionResponse(connected=True, repository=repository.full_name)


@router.get("/todos", response_model=list[Todo])
def list_todos(
    manager: TodoManager = Depends(_manager),
    state: Literal["all", "open", "closed"] = Query(default="all"),
    label: list[str] | None = Query(default=None),
    priority: Priority | None = Query(default=None),
    q: str = Query(default=""),
    include_deleted: bool = Query(default=False),
) -> list[Todo]:
    todos = manager.search_todos(q) if q else manager.get_todos()
    todos = filter_todos(todos, state=state, labels=label or (), include_deleted=include_deleted)
    if priority is not None:
        todos = [t for t in todos if t.priority == priority]
    return todos


@router.post("/todos", response_model=Todo, status_code=201)
def create_todo(req: CreateTodoRequest, manager: TodoManager = Depends(_manager)) -> Todo:
    return manager.create_todo(
        require_title(req.title),
        req.description,
        req.priority,
        req.labels,
    )


@router.get("/todos/stats", response_model=TodoStats)
def todo_stats(manager: TodoManager = Depends(_manager)) -> TodoStats:
    return manager.get_todo_stats()


@router.get("/todos/{number}", response_model=TodoDetail)
def get_todo(number: int, manager: TodoManager = Depends(_manager)) -> TodoDetail:
    return manager.get_todo_detail(number)


@router.patch("/todos/{number}", response_model=Todo)
def update_todo(
    number: int, req: UpdateTodoRequest, manager: TodoManager = Depends(_manager)
) -> Todo:
    title = require_title(req.title) if req.title is not None else None
    return manager.update_todo(number, title=title, body=req.body, labels=req.labels)


@router.put("/todos/{number}/labels", response_model=Todo)
def set_todo_labels(
    number: int, req: SetLabelsRequest, manager: TodoManager = Depends(_manager)
) -> Todo:
    return manager.set_todo_labels(number, req.labels)


@router.post("/todos/{number}/complete", response_model=Todo)
def complete_todo(number: int, manager: TodoManager = Depends(_manager)) -> Todo:
    return manager.complete_todo(number)


@router.post("/todos/{number}/reopen", response_model=Todo)
def reopen_todo(number: int, manager: TodoManager = Depends(_manager)) -> Todo:
    return manager.reopen_todo(number)


@router.delete("/todos/{number}", response_model=Todo)
def delete_todo(number: int, manager: TodoManager = Depends(_manager)) -> Todo:
    return manager.delete_todo(number)


@router.post("/todos/{number}/comments", response_model=TodoDetail, status_code=201)
def add_comment(
    number: int, req: CommentRequest, manager: TodoManager = Depends(_manager)
) -> TodoDetail:
    return manager.add_comment_to_todo(number, require_comment(req.body))


@router.get("/labels", response_model=list[Label])
def list_labels(
    manager: TodoManager = Depends(_manager),
    include_internal: bool = Query(default=False, alias="all"),
    reload: bool = Query(default=False),
) -> list[Label]:
    if reload or not manager.label_cache.is_loaded:
        manager.load_labels()
    return manager.get_all_labels() if include_internal else manager.get_non_priority_labels()


@router.post("/labels", response_model=Label, status_code=201)
def create_label(req: CreateLabelRequest, manager: TodoManager = Depends(_manager)) -> Label:
    return manager.create_label(req.name.strip(), require_label_color(req.color), req.description)
