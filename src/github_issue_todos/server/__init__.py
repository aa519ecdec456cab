"""FastAPI server adapter for github-issue-todos.

Design intent:
- Keep todo logic in `github_issue_todos.todos.*`
- Keep server-specific concerns (routing, CORS, error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from github_issue_todos.server.app import create_app
