"""CLI entrypoint: manage todos stored as GitHub issues.

Each invocation builds one GitHubClient/TodoManager pair from the resolved
connection and passes it to the command handler explicitly.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence

from pydantic import BaseModel, ValidationError

from github_issue_todos import __version__
from github_issue_todos.config import TodoSettings
from github_issue_todos.github.client import GitHubApiError, GitHubAuthError, GitHubClient
from github_issue_todos.github.models import Label, RepositoryRef
from github_issue_todos.labels import Priority, is_reserved_label, todo_label_names
from github_issue_todos.logging import configure_logging
from github_issue_todos.todos.connection import (
    ConnectionNotConfigured,
    ConnectionStore,
    StoredConnection,
    client_factory,
    connect,
    resolve_connection,
    switch_repository,
)
from github_issue_todos.todos.manager import TodoManager, filter_todos
from github_issue_todos.todos.models import Todo, TodoDetail
from github_issue_todos.todos.validation import require_comment, require_label_color, require_title

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]


def _confirm(prompt: str) -> bool:
    answer = input(f"{prompt} [y/N] ")
    return answer.strip().lower() in {"y", "yes"}


def _add_labels_option(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument(
        "--label",
        dest="labels",
        action="append",
        default=None,
        help=help_text,
    )


def _add_priority_option(parser: argparse.ArgumentParser, *, default: str | None) -> None:
    parser.add_argument(
        "--priority",
        choices=[p.value for p in Priority],
        default=default,
        help="Todo priority (stored as a 'priority: <level>' label)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todos",
        description="Todo lists backed by GitHub issues",
    )
    parser.add_argument("--version", action="version", version=f"github-issue-todos {__version__}")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON instead of text",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    connect_cmd = subparsers.add_parser(
        "connect",
        help="Test a token + repository, set up priority labels, and remember the connection",
    )
    connect_cmd.add_argument("--token", required=True, help="GitHub personal access token")
    connect_cmd.add_argument(
        "--repo",
        "--repository",
        dest="repository",
        required=True,
        help="Todo repository in the form 'owner/repo'",
    )

    list_cmd = subparsers.add_parser("list", help="List todos")
    list_cmd.add_argument(
        "--state",
        choices=["all", "open", "closed"],
        default="open",
        help="Only show todos in this state",
    )
    _add_labels_option(list_cmd, "Only show todos carrying this label (repeatable)")
    list_cmd.add_argument(
        "--include-deleted",
        action="store_true",
        help="Also show todos that were deleted (closed + 'deleted' label)",
    )
    _add_priority_option(list_cmd, default=None)

    show_cmd = subparsers.add_parser("show", help="Show a todo with its comments")
    show_cmd.add_argument("number", type=int, help="Todo (issue) number")

    create_cmd = subparsers.add_parser("create", help="Create a todo")
    create_cmd.add_argument("title", help="Todo title")
    create_cmd.add_argument("--description", default="", help="Todo description")
    _add_priority_option(create_cmd, default=Priority.LOW.value)
    _add_labels_option(create_cmd, "Additional label (repeatable)")

    for name, help_text in (
        ("complete", "Close a todo"),
        ("reopen", "Reopen a closed todo"),
    ):
        cmd = subparsers.add_parser(name, help=help_text)
        cmd.add_argument("number", type=int, help="Todo (issue) number")

    delete_cmd = subparsers.add_parser(
        "delete",
        help="Delete a todo (closes it and replaces ALL labels with 'deleted')",
    )
    delete_cmd.add_argument("number", type=int, help="Todo (issue) number")
    delete_cmd.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    edit_cmd = subparsers.add_parser("edit", help="Edit a todo's title, body, priority or labels")
    edit_cmd.add_argument("number", type=int, help="Todo (issue) number")
    edit_cmd.add_argument("--title", default=None, help="New title")
    edit_cmd.add_argument("--body", default=None, help="New body")
    _add_priority_option(edit_cmd, default=None)
    _add_labels_option(edit_cmd, "Replace the user labels with these (repeatable)")

    set_labels_cmd = subparsers.add_parser(
        "set-labels", help="Replace the full label set of a todo"
    )
    set_labels_cmd.add_argument("number", type=int, help="Todo (issue) number")
    set_labels_cmd.add_argument("labels", nargs="*", help="Complete list of label names")

    comment_cmd = subparsers.add_parser("comment", help="Comment on a todo")
    comment_cmd.add_argument("number", type=int, help="Todo (issue) number")
    comment_cmd.add_argument("body", help="Comment text")

    search_cmd = subparsers.add_parser("search", help="Search todo titles and bodies")
    search_cmd.add_argument("query", help="Case-insensitive text to look for")

    subparsers.add_parser("stats", help="Count todos by state and priority")

    labels_cmd = subparsers.add_parser("labels", help="List labels available for todos")
    labels_cmd.add_argument(
        "--all",
        action="store_true",
        help="Include internal labels (priority, todo, deleted)",
    )

    create_label_cmd = subparsers.add_parser("create-label", help="Create a repository label")
    create_label_cmd.add_argument("name", help="Label name")
    create_label_cmd.add_argument("color", help="Six hex digits, e.g. 'd73a4a'")
    create_label_cmd.add_argument("--description", default="", help="Label description")

    switch_cmd = subparsers.add_parser(
        "switch-repo", help="Switch the remembered connection to another repository"
    )
    switch_cmd.add_argument("repository", help="Repository in the form 'owner/repo'")

    return parser


def _emit(args: argparse.Namespace, value: BaseModel | list[BaseModel], text: str) -> None:
    if args.json:
        if isinstance(value, list):
            print("[" + ",".join(item.model_dump_json() for item in value) + "]")
        else:
            print(value.model_dump_json())
        return
    print(text)


def format_todo(todo: Todo) -> str:
    marker = "x" if todo.state == "closed" else " "
    user_labels = [name for name in todo.label_names if not is_reserved_label(name)]
    line = f"[{marker}] #{todo.number} ({todo.priority.value}) {todo.title}"
    if todo.is_deleted:
        line += " (deleted)"
    if user_labels:
        line += "  labels: " + ", ".join(user_labels)
    return line


def format_todo_detail(todo: TodoDetail, url: str) -> str:
    lines = [format_todo(todo), url]
    if todo.body:
        lines += ["", todo.body]
    for comment in todo.comments:
        author = comment.user.login if comment.user else "unknown"
        lines += ["", f"--- {author} at {comment.created_at.isoformat()}", comment.body]
    return "\n".join(lines)


def _format_labels(labels: list[Label]) -> str:
    if not labels:
        return "No labels"
    return "\n".join(
        f"{label.name} (#{label.color})" + (f" - {label.description}" if label.description else "")
        for label in labels
    )


def _run_todo_command(
    args: argparse.Namespace,
    manager: TodoManager,
    *,
    confirm: ConfirmFn,
) -> int:
    if args.command == "list":
        todos = filter_todos(
            manager.get_todos(),
            state=args.state,
            labels=args.labels or (),
            include_deleted=args.include_deleted,
        )
        if args.priority is not None:
            todos = [t for t in todos if t.priority == Priority(args.priority)]
        _emit(args, todos, "\n".join(format_todo(t) for t in todos) or "No todos")
        return 0

    if args.command == "show":
        detail = manager.get_todo_detail(args.number)
        _emit(args, detail, format_todo_detail(detail, manager.todo_url(args.number)))
        return 0

    if args.command == "create":
        todo = manager.create_todo(
            require_title(args.title),
            args.description,
            Priority(args.priority),
            args.labels or [],
        )
        _emit(args, todo, f"Created todo #{todo.number}: {todo.title}")
        return 0

    if args.command == "complete":
        todo = manager.complete_todo(args.number)
        _emit(args, todo, f"Completed todo #{todo.number}: {todo.title}")
        return 0

    if args.command == "reopen":
        todo = manager.reopen_todo(args.number)
        _emit(args, todo, f"Reopened todo #{todo.number}: {todo.title}")
        return 0

    if args.command == "delete":
        if not args.yes and not confirm(
            f"Delete todo #{args.number}? It will be closed and lose all of its labels."
        ):
            print("Aborted")
            return 0
        todo = manager.delete_todo(args.number)
        _emit(args, todo, f"Deleted todo #{todo.number}: {todo.title}")
        return 0

    if args.command == "edit":
        labels: list[str] | None = None
        if args.priority is not None or args.labels is not None:
            # The manager does not merge labels: rebuild the complete set here.
            current = manager.get_todo(args.number)
            priority = Priority(args.priority) if args.priority else current.priority
            user_labels = (
                args.labels
                if args.labels is not None
                else [n for n in current.label_names if not is_reserved_label(n)]
            )
            labels = todo_label_names(priority, user_labels)
        title = require_title(args.title) if args.title is not None else None
        todo = manager.update_todo(args.number, title=title, body=args.body, labels=labels)
        _emit(args, todo, f"Updated todo #{todo.number}: {todo.title}")
        return 0

    if args.command == "set-labels":
        todo = manager.set_todo_labels(args.number, list(args.labels))
        _emit(args, todo, format_todo(todo))
        return 0

    if args.command == "comment":
        detail = manager.add_comment_to_todo(args.number, require_comment(args.body))
        _emit(
            args,
            detail,
            f"Commented on todo #{detail.number} ({len(detail.comments)} comments)",
        )
        return 0

    if args.command == "search":
        todos = manager.search_todos(args.query)
        _emit(args, todos, "\n".join(format_todo(t) for t in todos) or "No matching todos")
        return 0

    if args.command == "stats":
        stats = manager.get_todo_stats()
        _emit(
            args,
            stats,
            (
                f"Total: {stats.total} (open {stats.open}, closed {stats.closed})\n"
                f"Priority: high {stats.by_priority.high}, "
                f"medium {stats.by_priority.medium}, low {stats.by_priority.low}"
            ),
        )
        return 0

    if args.command == "labels":
        manager.load_labels()
        labels_out = manager.get_all_labels() if args.all else manager.get_non_priority_labels()
        _emit(args, labels_out, _format_labels(labels_out))
        return 0

    if args.command == "create-label":
        label = manager.create_label(args.name, require_label_color(args.color), args.description)
        _emit(args, label, f"Created label {label.name}")
        return 0

    logger.error("Unknown command", extra={"command": args.command})
    return 2


def main(
    argv: Sequence[str] | None = None,
    *,
    github_factory: Callable[[StoredConnection], GitHubClient] | None = None,
    confirm: ConfirmFn = _confirm,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = TodoSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level, json_output=settings.log_format == "json")

    store = ConnectionStore(settings.connection_state_file)
    build_client = github_factory or client_factory(settings)

    try:
        if args.command == "connect":
            repository = RepositoryRef.parse(args.repository)
            connection = StoredConnection(
                token=args.token, owner=repository.owner, name=repository.name
            )
            github = build_client(connection)
            try:
                _, info = connect(github)
            finally:
                github.close()
            store.save(connection)
            print(f"Connected to {repository.full_name} as {info.login}")
            return 0

        connection = resolve_connection(settings, store)

        if args.command == "switch-repo":
            repository = RepositoryRef.parse(args.repository)
            github = build_client(connection)
            try:
                switch_repository(TodoManager(github), repository)
            finally:
                github.close()
            store.save(
                connection.model_copy(update={"owner": repository.owner, "name": repository.name})
            )
            print(f"Switched to {repository.full_name}")
            return 0

        github = build_client(connection)
        try:
            return _run_todo_command(args, TodoManager(github), confirm=confirm)
        finally:
            github.close()

    except GitHubAuthError as e:
        logger.warning("Connection failed", extra={"status_code": e.status_code})
        print(f"Connection failed: {e.message}", file=sys.stderr)
        return 1

    except GitHubApiError as e:
        logger.warning(
            "GitHub request failed", extra={"command": args.command, "status_code": e.status_code}
        )
        print(f"GitHub error: {e.message}", file=sys.stderr)
        return 1

    except ConnectionNotConfigured as e:
        print(str(e), file=sys.stderr)
        return 2

    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
