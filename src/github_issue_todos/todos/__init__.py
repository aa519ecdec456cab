"""Todos stored as GitHub issues: decoding, operations and the connect flow."""

from github_issue_todos.todos.manager import DEFAULT_TODO_BODY, TodoManager, filter_todos
from github_issue_todos.todos.models import Todo, TodoDetail, TodoStats

__all__ = [
    "DEFAULT_TODO_BODY",
    "Todo",
    "TodoDetail",
    "TodoManager",
    "TodoStats",
    "filter_todos",
]
