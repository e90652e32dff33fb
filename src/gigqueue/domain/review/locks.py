"""Per-key re-entrant locks serializing queue mutations by group key."""

from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class KeyedLocks:
    """``RLock`` per key, created on first use and dropped when no caller holds it.

    ``holding`` acquires several keys in sorted order so two callers locking
    overlapping key sets cannot deadlock.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key -> (lock, number of callers holding or waiting for it)
        self._locks: dict[tuple[str, str], tuple[threading.RLock, int]] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def holding(self, keys: Iterable[tuple[str, str]]) -> Iterator[None]:
        ordered = sorted(set(keys))
        locks = self._checkout(ordered)
        try:
            with ExitStack() as stack:
                for lock in locks:
                    stack.enter_context(lock)
                yield
        finally:
            self._checkin(ordered)

    def _checkout(self, keys: list[tuple[str, str]]) -> list[threading.RLock]:
        with self._guard:
            locks: list[threading.RLock] = []
            for key in keys:
                lock, users = self._locks.get(key, (None, 0))
                if lock is None:
                    lock = threading.RLock()
                self._locks[key] = (lock, users + 1)
                locks.append(lock)
            return locks

    def _checkin(self, keys: list[tuple[str, str]]) -> None:
        with self._guard:
            for key in keys:
                lock, users = self._locks[key]
                if users <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)
