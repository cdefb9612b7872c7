"""Per-key exclusive sections.

Used to serialize read-modify-write cycles on one project (team-member
list changes) or one meeting (participant joins) without blocking work on
other keys.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

DEFAULT_LOCK_TIMEOUT = 5.0


class KeyedLocks:
    """A registry of one lock per key."""

    def __init__(self, timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self._timeout = timeout
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[bool]:
        """Hold the lock for ``key``.

        Yields:
            True once the lock is held, or False if it could not be acquired
            within the timeout (the body then runs without the lock and
            should abort).
        """
        lock = self._lock_for(key)
        acquired = lock.acquire(timeout=self._timeout)
        try:
            yield acquired
        finally:
            if acquired:
                lock.release()
