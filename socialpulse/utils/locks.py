import threading
from collections import defaultdict
from contextlib import contextmanager


class KeyedLocks:
    """
    One lock per key, created on demand and dropped when nobody holds or
    waits for it, so the map does not grow with every account ever synced.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}
        self._users = defaultdict(int)

    @contextmanager
    def hold(self, key):
        key = str(key)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            self._users[key] += 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._users[key] -= 1
                if self._users[key] <= 0:
                    self._users.pop(key, None)
                    self._locks.pop(key, None)

    def __len__(self):
        with self._guard:
            return len(self._locks)
