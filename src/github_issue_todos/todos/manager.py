"""Todo operations layered on top of GitHub issues.

A todo is an issue that is not a pull request; its priority comes from the
``priority: <level>`` label. All filtering and aggregation happens client-side
over the single page of issues the API returns.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Literal

from github_issue_todos.github.client import GitHubClient
from github_issue_todos.github.models import ConnectionInfo, Label, RepositoryRef
from github_issue_todos.labels import Priority, is_reserved_label, todo_label_names
from github_issue_todos.todos.label_cache import LabelCache
from github_issue_todos.todos.models import PriorityCounts, Todo, TodoDetail, TodoStats

logger = logging.getLogger(__name__)

DEFAULT_TODO_BODY = "Todo created via GitHub Issue Todos"

StateFilter = Literal["all", "open", "closed"]


def filter_todos(
    todos: Iterable[Todo],
    *,
    state: StateFilter = "all",
    labels: Iterable[str] = (),
    include_deleted: bool = False,
) -> list[Todo]:
    """Apply the list view filters: state, required labels, and deleted items."""

    required = set(labels)
    selected: list[Todo] = []
    for todo in todos:
        if not include_deleted and todo.is_deleted:
            continue
        if state != "all" and todo.state != state:
            continue
        if required and not required.issubset(todo.label_names):
            continue
        selected.append(todo)
    return selected


class TodoManager:
    """Presents a repository's issues as todos."""

    def __init__(self, github: GitHubClient) -> None:
        self._github = github
        self._labels = LabelCache(github.list_labels)

    @property
    def repository(self) -> RepositoryRef:
        return self._github.repository

    @property
    def label_cache(self) -> LabelCache:
        return self._labels

    def init(self) -> None:
        """Ensure the priority labels exist, then load the label catalog.

        Run once per connection and again after every repository switch.
        """

        created = self._github.ensure_priority_labels()
        if created:
            logger.info(
                "Priority labels created",
                extra={"repo": self.repository.full_name, "labels": created},
            )
        self.load_labels()

    def load_labels(self) -> list[Label]:
        return self._labels.refresh()

    def get_all_labels(self) -> list[Label]:
        return self._labels.labels

    def get_non_priority_labels(self) -> list[Label]:
        """Labels a user may pick; priority/todo/deleted labels are internal."""

        return [label for label in self._labels.labels if not is_reserved_label(label.name)]

    def create_label(self, name: str, color: str, description: str = "") -> Label:
        """Create a user label; a loaded label cache is refreshed to include it."""

        label = self._github.create_label(name, color, description)
        if self._labels.is_loaded:
            self._labels.refresh()
        return label

    def switch_repository(self, owner: str, name: str) -> None:
        """Target another repository; the label cache stays empty until reloaded."""

        self._github.update_repository(owner, name)
        self._labels.invalidate()

    def test_connection(self) -> ConnectionInfo:
        return self._github.test_connection()

    def close(self) -> None:
        self._github.close()

    def todo_url(self, todo_id: int) -> str:
        repo = self.repository
        return f"https://github.com/{repo.owner}/{repo.name}/issues/{todo_id}"

    def get_todos(self) -> list[Todo]:
        issues = self._github.list_issues("all")
        return [Todo.from_issue(issue) for issue in issues if not issue.is_pull_request]

    def get_todo(self, todo_id: int) -> Todo:
        return Todo.from_issue(self._github.get_issue(todo_id))

    def get_todo_detail(self, todo_id: int) -> TodoDetail:
        issue, comments = self._github.get_issue_with_comments(todo_id)
        return TodoDetail.from_issue_and_comments(issue, comments)

    def create_todo(
        self,
        title: str,
        description: str = "",
        priority: Priority = Priority.LOW,
        additional_labels: Iterable[str] | None = None,
    ) -> Todo:
        labels = todo_label_names(priority, additional_labels or ())
        body = description or DEFAULT_TODO_BODY
        issue = self._github.create_issue(title, body, labels)
        return Todo.from_issue(issue)

    def complete_todo(self, todo_id: int) -> Todo:
        return Todo.from_issue(self._github.close_issue(todo_id))

    def reopen_todo(self, todo_id: int) -> Todo:
        return Todo.from_issue(self._github.reopen_issue(todo_id))

    def delete_todo(self, todo_id: int) -> Todo:
        """Close the todo and replace ALL of its labels with ``deleted``.

        Priority and user labels are lost; see :meth:`GitHubClient.delete_issue`.
        """

        return Todo.from_issue(self._github.delete_issue(todo_id))

    def update_todo(
        self,
        todo_id: int,
        *,
        title: str | None = None,
        body: str | None = None,
        labels: list[str] | None = None,
    ) -> Todo:
        """Patch a todo. ``labels`` must already be the complete label set."""

        issue = self._github.update_issue(todo_id, title=title, body=body, labels=labels)
        return Todo.from_issue(issue)

    def set_todo_labels(self, todo_id: int, labels: list[str]) -> Todo:
        issue = self._github.update_issue(todo_id, labels=labels)
        return Todo.from_issue(issue)

    def add_comment_to_todo(self, todo_id: int, body: str) -> TodoDetail:
        self._github.add_comment_to_issue(todo_id, body)
        return self.get_todo_detail(todo_id)

    def search_todos(self, query: str) -> list[Todo]:
        todos = self.get_todos()
        if not query:
            return todos
        needle = query.lower()
        return [
            todo
            for todo in todos
            if needle in todo.title.lower() or needle in (todo.body or "").lower()
        ]

    def get_todos_by_priority(self, priority: Priority) -> list[Todo]:
        return [todo for todo in self.get_todos() if todo.priority == priority]

    def get_todo_stats(self) -> TodoStats:
        todos = self.get_todos()
        return TodoStats(
            total=len(todos),
            open=sum(1 for t in todos if t.state == "open"),
            closed=sum(1 for t in todos if t.state == "closed"),
            by_priority=PriorityCounts(
                high=sum(1 for t in todos if t.priority == Priority.HIGH),
                medium=sum(1 for t in todos if t.priority == Priority.MEDIUM),
                low=sum(1 for t in todos if t.priority == Priority.LOW),
            ),
        )
