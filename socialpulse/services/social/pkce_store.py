# socialpulse/services/social/pkce_store.py
#
# One-time storage of PKCE code verifiers between the authorize redirect and
# the provider callback, keyed by the opaque OAuth `state`.

import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

from ...utils.logger import Log


DEFAULT_TTL_SECONDS = 600
DEFAULT_MAX_ENTRIES = 10_000


class VerifierStore:
    """put(state, verifier) once, take(state) at most once."""

    def put(self, state: str, verifier: str) -> None:
        raise NotImplementedError

    def take(self, state: str) -> Optional[str]:
        raise NotImplementedError


class InMemoryVerifierStore(VerifierStore):
    """
    Process-local store for single-worker deployments and tests.

    Entries expire after `ttl_seconds` and the map never holds more than
    `max_entries`; the least recently written entry goes first.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[str, tuple]" = OrderedDict()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def _expired(self, created_at: float, now: float) -> bool:
        return now - created_at >= self.ttl_seconds

    def _sweep(self, now: float) -> None:
        # oldest entries sit at the front
        while self._entries:
            state, (_, created_at) = next(iter(self._entries.items()))
            if not self._expired(created_at, now):
                break
            self._entries.popitem(last=False)

    def put(self, state: str, verifier: str) -> None:
        if not state or not verifier:
            raise ValueError("state and verifier are required")

        now = self._clock()
        with self._lock:
            self._sweep(now)
            self._entries.pop(state, None)
            self._entries[state] = (verifier, now)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
                Log.info("[pkce_store.py][InMemoryVerifierStore][put] evicted oldest verifier, store at capacity")

    def take(self, state: str) -> Optional[str]:
        if not state:
            return None

        now = self._clock()
        with self._lock:
            entry = self._entries.pop(state, None)

        if entry is None:
            return None

        verifier, created_at = entry
        if self._expired(created_at, now):
            return None
        return verifier


class RedisVerifierStore(VerifierStore):
    """
    Shared store for multi-worker deployments. Expiry is Redis' own key TTL;
    `take` reads and deletes inside one MULTI/EXEC so two callbacks racing on
    the same state cannot both get the verifier.
    """

    key_prefix = "pkce_verifier:"

    def __init__(self, redis_client, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    def _key(self, state: str) -> str:
        return f"{self.key_prefix}{state}"

    def put(self, state: str, verifier: str) -> None:
        if not state or not verifier:
            raise ValueError("state and verifier are required")
        self.redis.setex(self._key(state), self.ttl_seconds, verifier)

    def take(self, state: str) -> Optional[str]:
        if not state:
            return None

        key = self._key(state)
        pipe = self.redis.pipeline(transaction=True)
        pipe.get(key)
        pipe.delete(key)
        raw, _deleted = pipe.execute()

        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return raw
