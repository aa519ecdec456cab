"""Connecting to a todo repository and remembering the last good connection.

The stored connection mirrors what a browser front-end keeps in local storage:
a token and a repository, written only after a successful connection test.
Environment settings take precedence over the stored values.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, ValidationError

from github_issue_todos.config import TodoSettings
from github_issue_todos.github.client import GitHubClient
from github_issue_todos.github.models import ConnectionInfo, RepositoryRef
from github_issue_todos.todos.manager import TodoManager

logger = logging.getLogger(__name__)


class StoredConnection(BaseModel):
    token: str
    owner: str
    name: str

    @property
    def repository(self) -> RepositoryRef:
        return RepositoryRef(owner=self.owner, name=self.name)


class ConnectionStore:
    """JSON-file backed store for the last successful connection."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> StoredConnection | None:
        if not self._path.exists():
            return None

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(
                "Connection file is not valid JSON; ignoring it",
                extra={"path": str(self._path)},
            )
            return None

        try:
            return StoredConnection.model_validate(raw)
        except ValidationError:
            logger.warning(
                "Connection file has unexpected shape; ignoring it",
                extra={"path": str(self._path)},
            )
            return None

    def save(self, connection: StoredConnection) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(connection.model_dump(mode="json"), indent=2) + "\n"
        # The file holds a token: create it readable by the owner only.
        fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
        logger.info(
            "Connection saved",
            extra={"path": str(self._path), "repo": connection.repository.full_name},
        )

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


class ConnectionNotConfigured(Exception):
    """No token or repository is available from the environment or the store."""


def _first_set(*values: str | None) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return ""


def resolve_connection(
    settings: TodoSettings,
    store: ConnectionStore,
    *,
    token: str | None = None,
    owner: str | None = None,
    name: str | None = None,
) -> StoredConnection:
    """Combine explicit values, env settings and the stored connection.

    Each field is resolved on its own: an explicit value wins, then the
    environment, then the stored connection.
    """

    stored = store.load()
    token = _first_set(token, settings.github_token, stored.token if stored else None)
    owner = _first_set(owner, settings.repo_owner, stored.owner if stored else None)
    name = _first_set(name, settings.repo_name, stored.name if stored else None)

    missing = [
        label
        for label, value in (("token", token), ("owner", owner), ("name", name))
        if not value
    ]
    if missing:
        raise ConnectionNotConfigured(
            "Not connected: missing repository "
            + ", ".join(missing)
            + ". Run 'todos connect' or set TODOS_GITHUB_TOKEN, TODOS_REPO_OWNER, TODOS_REPO_NAME."
        )
    return StoredConnection(token=token, owner=owner, name=name)


ClientFactory = Callable[[StoredConnection], GitHubClient]


def client_factory(settings: TodoSettings) -> ClientFactory:
    def _build(connection: StoredConnection) -> GitHubClient:
        return GitHubClient(
            token=connection.token,
            repository=connection.repository,
            base_url=settings.github_base_url,
            timeout=settings.http_timeout_seconds,
        )

    return _build


def connect(github: GitHubClient) -> tuple[TodoManager, ConnectionInfo]:
    """Test the token and repository; only on success build and init a manager.

    Returns:
        The initialized manager and the authenticated login/repository.

    Raises:
        GitHubAuthError: If the connection test fails. No manager is created.
    """

    info = github.test_connection()
    manager = TodoManager(github)
    manager.init()
    return manager, info


def switch_repository(manager: TodoManager, repository: RepositoryRef) -> None:
    """Point an existing manager at another repository, verify access, and re-init."""

    manager.switch_repository(repository.owner, repository.name)
    manager.test_connection()
    manager.init()
