"""Per-key mutual exclusion for thumbnail derivation."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

T = TypeVar("T")


class DerivationLockTable:
    """Map of source blob name to a lock, created on first use.

    At most one holder per key; different keys never wait on each other.
    Entries are never evicted, so the table grows with the number of distinct
    blobs thumbnailed during the process lifetime.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._lock_for(key)
        with lock:
            yield

    def with_lock(self, key: str, fn: Callable[[], T]) -> T:
        """Run ``fn`` while holding the lock for ``key``; released however ``fn`` exits."""
        with self.hold(key):
            return fn()

    def is_locked(self, key: str) -> bool:
        with self._guard:
            lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
