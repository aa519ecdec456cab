"""Label conventions used to store todo metadata on GitHub issues.

Priority and deletion are encoded as plain label names so the repository stays
usable from the GitHub UI:

- ``priority: low|medium|high`` carries the todo priority
- ``todo`` tags issues created by this tool
- ``deleted`` marks issues that were "deleted" (closed, since the API cannot delete)

Label names are decoded into :class:`Priority` here, once, instead of being
re-parsed at every call site.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def label_name(self) -> str:
        return f"{PRIORITY_PREFIX} {self.value}"


@dataclass(frozen=True, slots=True)
class LabelSpec:
    name: str
    color: str
    description: str


PRIORITY_PREFIX = "priority:"
LABEL_TODO = "todo"
LABEL_DELETED = "deleted"


PRIORITY_LABEL_SPECS: tuple[LabelSpec, ...] = (
    LabelSpec(
        name=Priority.LOW.label_name,
        color="28a745",
        description="Low priority todo item",
    ),
    LabelSpec(
        name=Priority.MEDIUM.label_name,
        color="ffc107",
        description="Medium priority todo item",
    ),
    LabelSpec(
        name=Priority.HIGH.label_name,
        color="dc3545",
        description="High priority todo item",
    ),
)


def parse_priority(value: str | Priority | None) -> Priority:
    """Parse a user-supplied priority, falling back to ``low``."""

    if isinstance(value, Priority):
        return value
    normalized = (value or "").strip().lower()
    for priority in Priority:
        if priority.value == normalized:
            return priority
    return Priority.LOW


def is_priority_label(name: str) -> bool:
    return name.strip().lower().startswith(PRIORITY_PREFIX)


def extract_priority(label_names: Iterable[str]) -> Priority:
    """Return the priority encoded by the first ``priority:`` label.

    Missing or malformed priority labels decode to :attr:`Priority.LOW`.
    """

    for name in label_names:
        if not is_priority_label(name):
            continue
        _, _, level = name.partition(":")
        return parse_priority(level)
    return Priority.LOW


def is_reserved_label(name: str) -> bool:
    """Whether a label is internal and should not be offered as a user choice."""

    lowered = name.lower()
    return (
        lowered.startswith(PRIORITY_PREFIX) or LABEL_TODO in lowered or LABEL_DELETED in lowered
    )


def todo_label_names(priority: Priority, additional: Iterable[str] = ()) -> list[str]:
    """Build the label set for a new todo: priority, the todo tag, then user labels."""

    return [priority.label_name, LABEL_TODO, *additional]
