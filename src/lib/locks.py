"""
Per-key mutual exclusion.

Used to serialize read-compute-write sequences on one shared record
(e.g. a business's cached rating) while leaving other keys unblocked.
"""
from contextlib import contextmanager
from threading import Lock
from typing import Dict, Hashable, Iterator, Tuple


class KeyedLock:
    """A lock per key, created on demand and dropped once nobody holds or waits for it."""

    def __init__(self):
        self._guard = Lock()
        # key -> (lock, number of holders + waiters)
        self._entries: Dict[Hashable, Tuple[Lock, int]] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock, users = self._entries.get(key, (None, 0))
            if lock is None:
                lock = Lock()
            self._entries[key] = (lock, users + 1)

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                _, users = self._entries[key]
                if users <= 1:
                    del self._entries[key]
                else:
                    self._entries[key] = (lock, users - 1)

    def active_keys(self) -> int:
        """Number of keys currently tracked (for tests and diagnostics)."""
        with self._guard:
            return len(self._entries)
