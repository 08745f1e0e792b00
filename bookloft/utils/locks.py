# bookloft/utils/locks.py
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

class BookLocks:
    """Per-book mutual exclusion.

    The ledger's increment and the sync reconciler's overwrite both go through
    ``hold(book_id)``, so the two write paths on one book never interleave.
    Entries are reference counted and dropped once nobody holds or waits on them.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}

    def _acquire_entry(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
                self._users[key] = 0
            self._users[key] += 1
            return lock

    def _release_entry(self, key: str) -> None:
        with self._guard:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, book_id: str) -> Iterator[None]:
        lock = self._acquire_entry(book_id)
        try:
            with lock:
                yield
        finally:
            self._release_entry(book_id)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
