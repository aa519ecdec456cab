"""Test configuration and fixtures.

`FakeGitHub` is a small in-memory stand-in for the GitHub REST endpoints the
client uses. It plugs into `GitHubClient` as the injected `requests.Session`,
so tests exercise the real request/response handling without network calls.
"""

from __future__ import annotations

import json
import logging
import re
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from http import HTTPStatus
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import pytest
import requests

from github_issue_todos.config import TodoSettings
from github_issue_todos.github.client import GitHubClient
from github_issue_todos.github.models import RepositoryRef
from github_issue_todos.todos.manager import TodoManager

TOKEN = "t1"
TIMESTAMP = "2025-01-01T00:00:00Z"


def make_response(
    status: int, body: Any = None, *, url: str = "", reason: str | None = None
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason if reason is not None else HTTPStatus(status).phrase
    resp.url = url
    resp.headers["Content-Type"] = "application/json"
    if isinstance(body, bytes):
        resp._content = body
    else:
        resp._content = b"" if body is None else json.dumps(body).encode("utf-8")
    return resp


@dataclass
class RecordedCall:
    method: str
    path: str
    params: dict[str, Any] | None
    payload: dict[str, Any] | None


@dataclass
class FakeRepo:
    issues: dict[int, dict[str, Any]] = field(default_factory=dict)
    labels: dict[str, dict[str, Any]] = field(default_factory=dict)
    comments: dict[int, list[dict[str, Any]]] = field(default_factory=dict)
    next_number: int = 1
    next_comment_id: int = 1000


class FakeSession:
    """Duck-typed `requests.Session` that routes requests to a handler."""

    def __init__(self, fake: FakeGitHub) -> None:
        self._fake = fake
        self.headers: dict[str, str] = {}
        self.closed = False

    def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> requests.Response:
        return self._fake.handle(self.headers, method, url, params, json)

    def close(self) -> None:
        self.closed = True


class FakeGitHub:
    """In-memory GitHub serving one user and any number of repositories."""

    _REPO = re.compile(r"^/repos/(?P<owner>[^/]+)/(?P<name>[^/]+)(?P<rest>/.*)?$")

    def __init__(self, *, token: str = TOKEN, login: str = "octocat") -> None:
        self.token = token
        self.login = login
        self.repos: dict[str, FakeRepo] = {}
        self.calls: list[RecordedCall] = []
        self.failures: dict[tuple[str, str], tuple[int, Any]] = {}
        self._lock = threading.Lock()

    # -- setup helpers -------------------------------------------------

    def add_repo(self, full_name: str) -> FakeRepo:
        repo = FakeRepo()
        self.repos[full_name] = repo
        return repo

    def add_label(self, full_name: str, name: str, color: str = "ededed") -> None:
        self.repos[full_name].labels[name] = {"name": name, "color": color, "description": None}

    def add_issue(
        self,
        full_name: str,
        title: str,
        *,
        body: str | None = None,
        labels: list[str] | None = None,
        state: str = "open",
        pull_request: bool = False,
    ) -> dict[str, Any]:
        repo = self.repos[full_name]
        issue = self._new_issue(repo, full_name, title, body, labels or [])
        issue["state"] = state
        if pull_request:
            issue["pull_request"] = {"url": f"https://api.github.com/repos/{full_name}/pulls/1"}
        return issue

    def fail(self, method: str, path: str, status: int, body: Any = None) -> None:
        self.failures[(method, path)] = (status, body)

    def session(self) -> FakeSession:
        return FakeSession(self)

    def paths(self, method: str | None = None) -> list[str]:
        return [c.path for c in self.calls if method is None or c.method == method]

    # -- request handling ----------------------------------------------

    def handle(
        self,
        headers: dict[str, str],
        method: str,
        url: str,
        params: dict[str, Any] | None,
        payload: dict[str, Any] | None,
    ) -> requests.Response:
        path = urlsplit(url).path
        with self._lock:
            self.calls.append(RecordedCall(method, path, params, payload))
            if (method, path) in self.failures:
                status, body = self.failures[(method, path)]
                return make_response(status, body, url=url)
            if headers.get("Authorization") != f"Bearer {self.token}":
                return make_response(401, {"message": "Bad credentials"}, url=url)
            status, body = self._route(method, path, params or {}, payload or {})
            return make_response(status, body, url=url)

    def _route(
        self, method: str, path: str, params: dict[str, Any], payload: dict[str, Any]
    ) -> tuple[int, Any]:
        if path == "/user" and method == "GET":
            return 200, {"login": self.login}

        match = self._REPO.match(path)
        if match is None:
            return 404, {"message": "Not Found"}
        full_name = f"{match['owner']}/{match['name']}"
        repo = self.repos.get(full_name)
        if repo is None:
            return 404, {"message": "Not Found"}
        rest = (match["rest"] or "").rstrip("/")

        if rest == "" and method == "GET":
            return 200, {"full_name": full_name}
        if rest == "/labels":
            return self._labels(repo, method, params, payload)
        if rest == "/issues":
            return self._issues(repo, full_name, method, params, payload)

        issue_match = re.match(r"^/issues/(\d+)(/comments)?$", rest)
        if issue_match is None:
            return 404, {"message": "Not Found"}
        number = int(issue_match.group(1))
        issue = repo.issues.get(number)
        if issue is None:
            return 404, {"message": "Not Found"}
        if issue_match.group(2):
            return self._comments(repo, number, method, payload)
        if method == "GET":
            return 200, issue
        if method == "PATCH":
            for key in ("title", "body", "state"):
                if key in payload:
                    issue[key] = payload[key]
            if "labels" in payload:
                issue["labels"] = self._label_objects(repo, payload["labels"])
            return 200, issue
        return 404, {"message": "Not Found"}

    def _labels(
        self, repo: FakeRepo, method: str, params: dict[str, Any], payload: dict[str, Any]
    ) -> tuple[int, Any]:
        if method == "GET":
            per_page = int(params.get("per_page", 30))
            return 200, list(repo.labels.values())[:per_page]
        if method == "POST":
            name = payload["name"]
            if name in repo.labels:
                return 422, {"message": "Validation Failed"}
            repo.labels[name] = {
                "name": name,
                "color": payload["color"],
                "description": payload.get("description") or None,
            }
            return 201, repo.labels[name]
        return 404, {"message": "Not Found"}

    def _issues(
        self,
        repo: FakeRepo,
        full_name: str,
        method: str,
        params: dict[str, Any],
        payload: dict[str, Any],
    ) -> tuple[int, Any]:
        if method == "GET":
            state = params.get("state", "open")
            per_page = int(params.get("per_page", 30))
            issues = sorted(repo.issues.values(), key=lambda i: i["number"], reverse=True)
            if state != "all":
                issues = [i for i in issues if i["state"] == state]
            return 200, issues[:per_page]
        if method == "POST":
            issue = self._new_issue(
                repo, full_name, payload["title"], payload.get("body"), payload.get("labels", [])
            )
            return 201, issue
        return 404, {"message": "Not Found"}

    def _comments(
        self, repo: FakeRepo, number: int, method: str, payload: dict[str, Any]
    ) -> tuple[int, Any]:
        comments = repo.comments.setdefault(number, [])
        if method == "GET":
            return 200, comments
        if method == "POST":
            comment = {
                "id": repo.next_comment_id,
                "user": {"login": self.login},
                "body": payload["body"],
                "created_at": TIMESTAMP,
            }
            repo.next_comment_id += 1
            comments.append(comment)
            return 201, comment
        return 404, {"message": "Not Found"}

    def _label_objects(self, repo: FakeRepo, names: list[str]) -> list[dict[str, Any]]:
        # Like GitHub, applying an unknown label creates it.
        for name in names:
            repo.labels.setdefault(name, {"name": name, "color": "ededed", "description": None})
        return [dict(repo.labels[name]) for name in names]

    def _new_issue(
        self,
        repo: FakeRepo,
        full_name: str,
        title: str,
        body: str | None,
        labels: list[str],
    ) -> dict[str, Any]:
        number = repo.next_number
        repo.next_number += 1
        issue = {
            "number": number,
            "title": title,
            "body": body,
            "state": "open",
            "created_at": TIMESTAMP,
            "updated_at": TIMESTAMP,
            "html_url": f"https://github.com/{full_name}/issues/{number}",
            "labels": self._label_objects(repo, labels),
        }
        repo.issues[number] = issue
        return issue


@pytest.fixture
def fake_github() -> FakeGitHub:
    """A fake GitHub with an empty `acme/todos` repository."""
    fake = FakeGitHub()
    fake.add_repo("acme/todos")
    return fake


@pytest.fixture
def github_client(fake_github: FakeGitHub) -> GitHubClient:
    """A real GitHubClient talking to the fake, scoped to `acme/todos`."""
    return GitHubClient(
        token=TOKEN,
        repository=RepositoryRef(owner="acme", name="todos"),
        session=fake_github.session(),  # type: ignore[arg-type]
    )


@pytest.fixture
def manager(github_client: GitHubClient) -> TodoManager:
    return TodoManager(github_client)


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TodoSettings:
    """Settings isolated from the developer's environment and `.env`."""
    for var in (
        "TODOS_GITHUB_TOKEN",
        "TODOS_REPO_OWNER",
        "TODOS_REPO_NAME",
        "GITHUB_BASE_URL",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "TODOS_STATE_PATH",
        "TODOS_HTTP_TIMEOUT",
        "TODOS_CORS_ORIGINS",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TODOS_STATE_PATH", str(tmp_path / "state"))
    return TodoSettings()


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """`configure_logging` replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
