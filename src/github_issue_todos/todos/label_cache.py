"""In-memory cache of a repository's label catalog."""

from __future__ import annotations

import logging
from collections.abc import Callable

from github_issue_todos.github.models import Label

logger = logging.getLogger(__name__)


class LabelCache:
    """Holds the last loaded label list until explicitly refreshed or invalidated.

    The cache never reloads on its own: after :meth:`invalidate` it is empty
    until :meth:`refresh` is called.
    """

    def __init__(self, loader: Callable[[], list[Label]]) -> None:
        self._loader = loader
        self._labels: list[Label] = []
        self._loaded = False

    @property
    def labels(self) -> list[Label]:
        return list(self._labels)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def refresh(self) -> list[Label]:
        labels = self._loader()
        self._labels = list(labels)
        self._loaded = True
        logger.debug("Label cache refreshed", extra={"label_count": len(self._labels)})
        return self.labels

    def invalidate(self) -> None:
        self._labels = []
        self._loaded = False
