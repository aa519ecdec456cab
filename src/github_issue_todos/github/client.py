"""GitHub REST API client scoped to one repository at a time.

This wraps a ``requests.Session`` so GitHub calls stay out of the CLI/server code
and tests can inject a fake session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

import requests

from github_issue_todos.github.models import (
    Comment,
    ConnectionInfo,
    Issue,
    IssueState,
    Label,
    RepositoryRef,
)
from github_issue_todos.labels import LABEL_DELETED, PRIORITY_LABEL_SPECS

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"

# GitHub caps list endpoints at 100 items per page. Only the first page is
# fetched, so repositories with more issues show the 100 most recent ones.
ISSUES_PAGE_SIZE = 100
LABELS_PAGE_SIZE = 100

_ISSUE_STATES = frozenset({"all", "open", "closed"})

T = TypeVar("T")
U = TypeVar("U")


class GitHubApiError(Exception):
    """Any failed GitHub call: transport error or non-2xx response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GitHubAuthError(GitHubApiError):
    """The token is invalid or the repository is not accessible with it."""


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return f"HTTP {resp.status_code}: {resp.reason}"


class GitHubClient:
    """Authenticated calls against the GitHub REST API for a single repository."""

    def __init__(
        self,
        *,
        token: str,
        repository: RepositoryRef,
        base_url: str = DEFAULT_BASE_URL,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        if not token or not token.strip():
            raise ValueError("GitHub token is required")
        if repository is None:
            raise ValueError("GitHub repository is required")

        self._repository = repository
        self._rest_base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": "github-issue-todos",
            }
        )

    @property
    def repository(self) -> RepositoryRef:
        """The repository all issue and label calls are scoped to."""

        return self._repository

    def update_repository(self, owner: str, name: str) -> None:
        """Point all subsequent calls at another repository."""

        previous = self._repository
        self._repository = RepositoryRef(owner=owner, name=name)
        logger.info(
            "Switched repository",
            extra={"from_repo": previous.full_name, "to_repo": self._repository.full_name},
        )

    def _url(self, path: str) -> str:
        return f"{self._rest_base_url}/{path.lstrip('/')}"

    def _repo_path(self, suffix: str = "") -> str:
        base = f"repos/{self._repository.owner}/{self._repository.name}"
        suffix = suffix.strip("/")
        return f"{base}/{suffix}" if suffix else base

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        url = self._url(path)
        logger.debug("GitHub request", extra={"method": method, "url": url})
        try:
            resp = self._session.request(
                method, url, params=params, json=payload, timeout=self._timeout
            )
        except requests.RequestException as e:
            raise GitHubApiError(f"Request to GitHub failed: {e}") from e

        if resp.status_code // 100 != 2:
            message = _error_message(resp)
            logger.debug(
                "GitHub request failed",
                extra={"method": method, "url": url, "status_code": resp.status_code},
            )
            raise GitHubApiError(message, status_code=resp.status_code)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise GitHubApiError(
                f"Invalid JSON from GitHub: {e}", status_code=resp.status_code
            ) from e

    @staticmethod
    def _in_parallel(first: Callable[[], T], second: Callable[[], U]) -> tuple[T, U]:
        """Run two independent requests concurrently and wait for both."""

        with ThreadPoolExecutor(max_workers=2) as executor:
            first_future = executor.submit(first)
            second_future = executor.submit(second)
            return first_future.result(), second_future.result()

    def test_connection(self) -> ConnectionInfo:
        """Validate the token and repository access by fetching both concurrently.

        Raises:
            GitHubAuthError: If either request fails.
        """

        try:
            user, repo = self._in_parallel(
                lambda: self._request("GET", "user"),
                lambda: self._request("GET", self._repo_path()),
            )
        except GitHubApiError as e:
            logger.warning(
                "GitHub connection test failed",
                extra={"repo": self._repository.full_name, "status_code": e.status_code},
            )
            raise GitHubAuthError(e.message, status_code=e.status_code) from e

        info = ConnectionInfo(
            login=str(user.get("login", "")),
            repository=str(repo.get("full_name") or self._repository.full_name),
        )
        logger.info(
            "Authenticated with GitHub and connected to repository",
            extra={"repo": info.repository, "login": info.login},
        )
        return info

    def list_issues(self, state: str = "all") -> list[Issue]:
        """List up to :data:`ISSUES_PAGE_SIZE` issues; pull requests are included."""

        if state not in _ISSUE_STATES:
            raise ValueError("state must be one of: all, open, closed")
        data = self._request(
            "GET",
            self._repo_path("issues"),
            params={"state": state, "per_page": ISSUES_PAGE_SIZE},
        )
        return [Issue.model_validate(item) for item in data or []]

    def create_issue(self, title: str, body: str = "", labels: list[str] | None = None) -> Issue:
        data = self._request(
            "POST",
            self._repo_path("issues"),
            payload={"title": title, "body": body, "labels": list(labels or [])},
        )
        issue = Issue.model_validate(data)
        logger.info(
            "Issue created",
            extra={"repo": self._repository.full_name, "issue_number": issue.number},
        )
        return issue

    def update_issue(
        self,
        number: int,
        *,
        title: str | None = None,
        body: str | None = None,
        state: IssueState | None = None,
        labels: list[str] | None = None,
    ) -> Issue:
        """Patch any subset of title, body, state and labels.

        ``labels`` replaces the issue's whole label set.
        """

        payload: dict[str, Any] = {}
        if title is not None:
            payload["title"] = title
        if body is not None:
            payload["body"] = body
        if state is not None:
            payload["state"] = state
        if labels is not None:
            payload["labels"] = list(labels)
        if not payload:
            raise ValueError("At least one field to update is required")

        data = self._request("PATCH", self._repo_path(f"issues/{number}"), payload=payload)
        logger.info(
            "Issue updated",
            extra={
                "repo": self._repository.full_name,
                "issue_number": number,
                "fields": sorted(payload),
            },
        )
        return Issue.model_validate(data)

    def close_issue(self, number: int) -> Issue:
        return self.update_issue(number, state="closed")

    def reopen_issue(self, number: int) -> Issue:
        return self.update_issue(number, state="open")

    def delete_issue(self, number: int) -> Issue:
        """Close the issue and replace its labels with ``["deleted"]``.

        The API has no issue deletion. Every previous label, the priority label
        included, is dropped.
        """

        return self.update_issue(number, state="closed", labels=[LABEL_DELETED])

    def get_issue(self, number: int) -> Issue:
        data = self._request("GET", self._repo_path(f"issues/{number}"))
        return Issue.model_validate(data)

    def get_issue_comments(self, number: int) -> list[Comment]:
        data = self._request(
            "GET",
            self._repo_path(f"issues/{number}/comments"),
            params={"per_page": ISSUES_PAGE_SIZE},
        )
        return [Comment.model_validate(item) for item in data or []]

    def get_issue_with_comments(self, number: int) -> tuple[Issue, list[Comment]]:
        return self._in_parallel(
            lambda: self.get_issue(number),
            lambda: self.get_issue_comments(number),
        )

    def add_comment_to_issue(self, number: int, body: str) -> Comment:
        data = self._request(
            "POST", self._repo_path(f"issues/{number}/comments"), payload={"body": body}
        )
        logger.info(
            "Comment added",
            extra={"repo": self._repository.full_name, "issue_number": number},
        )
        return Comment.model_validate(data)

    def list_labels(self) -> list[Label]:
        data = self._request(
            "GET", self._repo_path("labels"), params={"per_page": LABELS_PAGE_SIZE}
        )
        return [Label.model_validate(item) for item in data or []]

    def create_label(self, name: str, color: str, description: str = "") -> Label:
        data = self._request(
            "POST",
            self._repo_path("labels"),
            payload={"name": name, "color": color.lstrip("#"), "description": description},
        )
        logger.info("Label created", extra={"repo": self._repository.full_name, "label": name})
        return Label.model_validate(data)

    def ensure_priority_labels(self) -> list[str]:
        """Create whichever canonical priority labels are missing.

        Failures are logged and never raised, so connecting is not blocked by
        e.g. a token without label write access.

        Returns:
            Names of the labels created by this call.
        """

        try:
            existing = {label.name for label in self.list_labels()}
        except GitHubApiError as e:
            logger.warning(
                "Could not list labels; skipping priority label setup",
                extra={"repo": self._repository.full_name, "error": e.message},
            )
            return []

        created: list[str] = []
        for spec in PRIORITY_LABEL_SPECS:
            if spec.name in existing:
                continue
            try:
                self.create_label(spec.name, spec.color, spec.description)
            except GitHubApiError as e:
                logger.warning(
                    "Could not create priority label",
                    extra={
                        "repo": self._repository.full_name,
                        "label": spec.name,
                        "error": e.message,
                    },
                )
                continue
            created.append(spec.name)
        return created

    def close(self) -> None:
        self._session.close()
