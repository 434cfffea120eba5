"""A simple LIFO pool of reusable objects."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

__all__ = ["Freelist"]

_log = logging.getLogger(__name__)


class Freelist:
    """A freelist of arbitrary objects. Not safe for concurrent use."""

    def __init__(self) -> None:
        self._items: List[Any] = []
        self.max_count = 0

    def __len__(self) -> int:
        return len(self._items)

    def _note_size(self, msg: str) -> None:
        if len(self._items) > self.max_count:
            self.max_count = len(self._items)
            _log.info("[%s] max count: %d", msg, self.max_count)

    def get(self, msg: str) -> Optional[Any]:
        """Take the most recently returned item, or None if the list is empty."""
        self._note_size(msg)
        if not self._items:
            return None
        return self._items.pop()

    def put(self, item: Any, msg: str) -> None:
        """Give an item back to the list."""
        self._items.append(item)
        self._note_size(msg)