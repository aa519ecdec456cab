"""GitHub Issue Todos.

Todo lists kept as GitHub issues:
- priority encoded as ``priority: <level>`` labels
- configuration loaded from `.env`
- structured logging
- a CLI and a small REST API over the same todo manager
"""

__version__ = "0.1.0"

from github_issue_todos.config import TodoSettings

__all__ = ["__version__", "TodoSettings"]
