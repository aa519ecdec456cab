"""Per-app server state: the owned TodoManager and how to build new ones."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from github_issue_todos.config import TodoSettings
from github_issue_todos.todos.connection import (
    ClientFactory,
    ConnectionStore,
    StoredConnection,
    resolve_connection,
)
from github_issue_todos.todos.manager import TodoManager

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ServerState:
    settings: TodoSettings
    store: ConnectionStore
    github_factory: ClientFactory
    manager: TodoManager | None = None

    def resolve_connection(
        self, *, token: str | None = None, owner: str | None = None, name: str | None = None
    ) -> StoredConnection:
        return resolve_connection(self.settings, self.store, token=token, owner=owner, name=name)

    def replace_manager(self, manager: TodoManager) -> None:
        previous = self.manager
        self.manager = manager
        if previous is not None and previous is not manager:
            previous.close()
        logger.info("Todo manager connected", extra={"repo": manager.repository.full_name})

    def close(self) -> None:
        if self.manager is not None:
            self.manager.close()
            self.manager = None
