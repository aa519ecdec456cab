from __future__ import annotations

import json
import stat
from pathlib import Path
from unittest.mock import Mock

import pytest

from github_issue_todos.config import TodoSettings
from github_issue_todos.github.client import GitHubAuthError, GitHubClient
from github_issue_todos.github.models import ConnectionInfo, RepositoryRef
from github_issue_todos.todos.connection import (
    ConnectionNotConfigured,
    ConnectionStore,
    StoredConnection,
    connect,
    resolve_connection,
    switch_repository,
)
from github_issue_todos.todos.manager import TodoManager


def test_store_round_trip_is_owner_only(tmp_path: Path) -> None:
    store = ConnectionStore(tmp_path / "state" / "connection.json")
    assert store.load() is None

    store.save(StoredConnection(token="t1", owner="acme", name="todos"))

    loaded = store.load()
    assert loaded == StoredConnection(token="t1", owner="acme", name="todos")
    assert loaded.repository == RepositoryRef(owner="acme", name="todos")
    assert stat.S_IMODE(store.path.stat().st_mode) == 0o600

    store.clear()
    assert store.load() is None


def test_store_ignores_corrupt_files(tmp_path: Path) -> None:
    path = tmp_path / "connection.json"
    store = ConnectionStore(path)

    path.write_text("{not json", encoding="utf-8")
    assert store.load() is None

    path.write_text(json.dumps({"token": "t1"}), encoding="utf-8")
    assert store.load() is None


def test_resolve_connection_prefers_env_field_by_field(
    settings: TodoSettings, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = ConnectionStore(settings.connection_state_file)
    store.save(StoredConnection(token="stored", owner="acme", name="todos"))
    monkeypatch.setenv("TODOS_REPO_NAME", "other")

    resolved = resolve_connection(TodoSettings(), store)

    assert resolved == StoredConnection(token="stored", owner="acme", name="other")


def test_resolve_connection_reports_missing_fields(settings: TodoSettings) -> None:
    store = ConnectionStore(settings.connection_state_file)

    with pytest.raises(ConnectionNotConfigured, match="token, owner, name"):
        resolve_connection(settings, store)


def test_connect_inits_manager_after_successful_test(github_client: GitHubClient) -> None:
    manager, info = connect(github_client)

    assert info.login == "octocat"
    assert manager.repository.full_name == "acme/todos"
    assert manager.label_cache.is_loaded
    assert {label.name for label in manager.get_all_labels()} == {
        "priority: low",
        "priority: medium",
        "priority: high",
    }


def test_connect_does_not_init_when_test_fails() -> None:
    github = Mock(spec=GitHubClient)
    github.test_connection.side_effect = GitHubAuthError("Bad credentials", status_code=401)

    with pytest.raises(GitHubAuthError):
        connect(github)

    github.ensure_priority_labels.assert_not_called()
    github.list_labels.assert_not_called()


def test_switch_repository_tests_then_reinits() -> None:
    github = Mock(spec=GitHubClient)
    github.repository = RepositoryRef(owner="acme", name="todos")
    github.test_connection.return_value = ConnectionInfo(login="octocat", repository="acme/next")
    github.ensure_priority_labels.return_value = []
    github.list_labels.return_value = []
    manager = TodoManager(github)

    switch_repository(manager, RepositoryRef(owner="acme", name="next"))

    github.update_repository.assert_called_once_with("acme", "next")
    github.test_connection.assert_called_once_with()
    github.ensure_priority_labels.assert_called_once_with()
    assert manager.label_cache.is_loaded


def test_switch_repository_to_missing_repo_fails(manager: TodoManager) -> None:
    with pytest.raises(GitHubAuthError):
        switch_repository(manager, RepositoryRef(owner="acme", name="missing"))

    assert not manager.label_cache.is_loaded


def test_resolve_connection_prefers_explicit_values(
    settings: TodoSettings, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TODOS_GITHUB_TOKEN", "from-env")
    store = ConnectionStore(settings.connection_state_file)

    resolved = resolve_connection(TodoSettings(), store, owner=" acme ", name="todos")
    assert resolved == StoredConnection(token="from-env", owner="acme", name="todos")

    resolved = resolve_connection(TodoSettings(), store, token="explicit", owner="a", name="b")
    assert resolved.token == "explicit"
