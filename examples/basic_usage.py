#!/usr/bin/env python3
"""Programmatic todo example.

This demonstrates using the todo components directly:

* resolve the token and repository from `.env` or the stored connection
* connect (which also creates the priority labels if missing)
* create a todo, list open todos and print the stats
"""

from __future__ import annotations

import argparse
from typing import Sequence

from github_issue_todos.config import TodoSettings
from github_issue_todos.labels import Priority
from github_issue_todos.logging import configure_logging
from github_issue_todos.todos.connection import (
    ConnectionStore,
    client_factory,
    connect,
    resolve_connection,
)
from github_issue_todos.todos.manager import filter_todos


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a todo (programmatic example).")
    parser.add_argument("--title", required=True, help="Todo title")
    parser.add_argument("--description", default="", help="Todo description")
    parser.add_argument(
        "--priority",
        choices=[p.value for p in Priority],
        default=Priority.LOW.value,
        help="Todo priority",
    )
    parser.add_argument(
        "--labels",
        default="",
        help='Comma-separated extra labels, e.g. "work,errand" (optional)',
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    labels = [label.strip() for label in args.labels.split(",") if label.strip()]

    settings = TodoSettings()
    configure_logging(settings.log_level, json_output=False)

    connection = resolve_connection(settings, ConnectionStore(settings.connection_state_file))
    github = client_factory(settings)(connection)

    try:
        manager, info = connect(github)
        todo = manager.create_todo(args.title, args.description, Priority(args.priority), labels)

        print(f"Connected to {info.repository} as {info.login}")
        print(f"Created todo #{todo.number}: {todo.title}")
        print(f"URL: {manager.todo_url(todo.number)}")

        for item in filter_todos(manager.get_todos(), state="open"):
            print(f"  #{item.number} ({item.priority.value}) {item.title}")

        stats = manager.get_todo_stats()
        print(f"Open: {stats.open}, closed: {stats.closed}")
    finally:
        github.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
