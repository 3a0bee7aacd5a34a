from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator

from errors import TransientStorageError

logger = logging.getLogger(__name__)

EXAM_LOCK_TIMEOUT_S = float(os.getenv("EXAM_LOCK_TIMEOUT_S", "10"))


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0  # holders + waiters


class KeyedLocks:
    """
    One mutex per key. Serializes everything that reads and rewrites one
    exam's attempt set inside this process.
    An entry lives only while someone holds or waits on it, so lookups for
    unknown keys leave nothing behind.
    """

    def __init__(self, timeout: float = EXAM_LOCK_TIMEOUT_S) -> None:
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, _Entry] = {}

    def _checkout(self, key: Hashable) -> _Entry:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: Hashable, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        entry = self._checkout(key)
        try:
            if not entry.lock.acquire(timeout=self.timeout):
                logger.warning("lock timeout after %.1fs for key %s", self.timeout, key)
                raise TransientStorageError(f"timed out waiting for lock on {key}")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(key, entry)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# shared by every manager in the process; per-exam exclusion must be process-wide
exam_locks = KeyedLocks()
