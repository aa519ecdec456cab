"""Input checks the UIs run before calling the todo manager."""

from __future__ import annotations

import re

_HEX_COLOR = re.compile(r"^[0-9a-fA-F]{6}$")


def require_title(title: str) -> str:
    if not title.strip():
        raise ValueError("Please enter a todo title")
    return title.strip()


def require_comment(body: str) -> str:
    if not body.strip():
        raise ValueError("Comment cannot be empty")
    return body


def require_label_color(color: str) -> str:
    """Normalize a label color to six hex digits without the leading '#'."""

    normalized = color.strip().lstrip("#")
    if not _HEX_COLOR.match(normalized):
        raise ValueError("Label color must be 6 hex digits, e.g. 'd73a4a'")
    return normalized.lower()
