# socialpulse/services/social/insights_cache.py

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from ...utils.logger import Log


DEFAULT_TTL_SECONDS = 3600


class InsightsCache:
    """
    Time-expiring memo of insight text keyed by (user_id, account_id).

    The lock only guards the dict. `compute_fn` runs outside it, so a slow
    LLM call never blocks other keys; two requests missing on the same key
    may both compute, and the last write wins.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[Tuple[str, str], Tuple[str, float]] = {}

    @staticmethod
    def _key(user_id, account_id) -> Tuple[str, str]:
        return str(user_id), str(account_id)

    def peek(self, user_id, account_id) -> Optional[str]:
        key = self._key(user_id, account_id)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            text, created_at = entry
            if now - created_at >= self.ttl_seconds:
                # lazy expiry
                self._entries.pop(key, None)
                return None
            return text

    def put(self, user_id, account_id, text: str) -> None:
        with self._lock:
            self._entries[self._key(user_id, account_id)] = (text, self._clock())

    def get(self, user_id, account_id, compute_fn: Callable[[], str]) -> str:
        cached = self.peek(user_id, account_id)
        if cached is not None:
            return cached

        text = compute_fn()
        self.put(user_id, account_id, text)
        return text

    def invalidate(self, user_id, account_id) -> None:
        with self._lock:
            self._entries.pop(self._key(user_id, account_id), None)

    def invalidate_all(self, user_id) -> int:
        user_id = str(user_id)
        with self._lock:
            stale = [k for k in self._entries if k[0] == user_id]
            for k in stale:
                del self._entries[k]
        if stale:
            Log.info(f"[insights_cache.py][InsightsCache][invalidate_all] dropped {len(stale)} insight(s) for user {user_id}")
        return len(stale)

    def __len__(self):
        with self._lock:
            return len(self._entries)
