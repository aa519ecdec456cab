"""Todo views decoded from GitHub issues."""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field

from github_issue_todos.github.models import Comment, Issue
from github_issue_todos.labels import LABEL_DELETED, Priority, extract_priority


class Todo(Issue):
    """An issue (never a pull request) with its priority decoded from labels."""

    priority: Priority = Priority.LOW

    @classmethod
    def from_issue(cls, issue: Issue) -> Todo:
        data = issue.model_dump()
        data["priority"] = extract_priority(issue.label_names)
        return cls.model_validate(data)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_deleted(self) -> bool:
        """Deleted todos still exist on GitHub, closed and labelled ``deleted``."""

        return LABEL_DELETED in self.label_names


class TodoDetail(Todo):
    comments: list[Comment] = Field(default_factory=list)

    @classmethod
    def from_issue_and_comments(cls, issue: Issue, comments: list[Comment]) -> TodoDetail:
        data = Todo.from_issue(issue).model_dump()
        data["comments"] = [c.model_dump() for c in comments]
        return cls.model_validate(data)


class PriorityCounts(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class TodoStats(BaseModel):
    total: int = 0
    open: int = 0
    closed: int = 0
    by_priority: PriorityCounts = Field(default_factory=PriorityCounts)
