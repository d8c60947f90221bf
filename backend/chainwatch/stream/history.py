"""Fixed-capacity, newest-first buffers backing the snapshot endpoints and init messages."""

from __future__ import annotations

import threading
from collections import deque
from itertools import islice
from typing import Deque, Generic, List, Optional, TypeVar

T = TypeVar("T")

TX_HISTORY_CAPACITY = 300
ALERT_HISTORY_CAPACITY = 200


class BoundedHistory(Generic[T]):
    """Ordered by insertion, newest first; the oldest entries fall off the back.

    Reads return copies taken under the lock, so a snapshot requested from a
    request thread never observes a half-applied prepend.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._items: Deque[T] = deque()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def prepend(self, item: T) -> List[T]:
        """Insert ``item`` at the front and return whatever was evicted."""
        evicted: List[T] = []
        with self._lock:
            self._items.appendleft(item)
            while len(self._items) > self._capacity:
                evicted.append(self._items.pop())
        return evicted

    def snapshot(self, limit: Optional[int] = None) -> List[T]:
        """Copy of the first ``limit`` items (all when ``None``) in current order."""
        with self._lock:
            if limit is None:
                return list(self._items)
            return list(islice(self._items, max(0, limit)))

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


__all__ = ["BoundedHistory", "TX_HISTORY_CAPACITY", "ALERT_HISTORY_CAPACITY"]
