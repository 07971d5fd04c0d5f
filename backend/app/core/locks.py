"""In-process mutexes keyed by resource id.

Used to serialize the booking critical sections (capacity check + insert per
session, cancel vs. confirm per booking) inside one process. Cross-process
exclusion comes from row locks and conditional updates in the database.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple


class KeyedLock:
    def __init__(self):
        self._guard = threading.Lock()
        # key -> (lock, number of holders/waiters)
        self._locks: Dict[str, Tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                _, users = self._locks[key]
                if users <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)

    def active_keys(self) -> int:
        with self._guard:
            return len(self._locks)


booking_locks = KeyedLock()


def session_lock_key(session_id: int) -> str:
    return f"session:{session_id}:capacity"


def booking_lock_key(booking_id: int) -> str:
    return f"booking:{booking_id}:mutex"
