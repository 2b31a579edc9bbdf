"""Unit tests for PKCE helpers and verifier stores."""

import base64
import hashlib
import re
import threading
from unittest.mock import MagicMock

import pytest

from socialpulse.services.social.pkce_store import InMemoryVerifierStore, RedisVerifierStore
from socialpulse.utils.pkce import code_challenge_for, generate_code_verifier, generate_state
from tests.factories import FakeClock


class TestPkceHelpers:
    """Tests for verifier and challenge generation."""

    def test_verifier_shape(self):
        """Verifiers are 43 base64url characters without padding."""
        verifier = generate_code_verifier()

        assert len(verifier) == 43
        assert re.fullmatch(r"[A-Za-z0-9_-]+", verifier)

    def test_verifiers_are_random(self):
        """Two verifiers never collide."""
        assert generate_code_verifier() != generate_code_verifier()

    def test_verifier_rejects_short_entropy(self):
        """Fewer than 32 random bytes is refused."""
        with pytest.raises(ValueError):
            generate_code_verifier(16)

    def test_challenge_known_vector(self):
        """S256 challenge of a fixed verifier."""
        verifier = "dBjftJeZ4CVP-mJ92K9qhnA4BfqPOP3QNL0-EBCdNOM"

        assert code_challenge_for(verifier) == "N5hg0H5893k1gkwnv46rlXHVlfxtJIfL8G1DLCuCyj0"

    def test_challenge_is_unpadded_base64url_sha256(self):
        """The challenge equals base64url(sha256(verifier)) without '='."""
        verifier = generate_code_verifier()
        expected = base64.urlsafe_b64encode(
            hashlib.sha256(verifier.encode("ascii")).digest()
        ).decode("ascii").rstrip("=")

        assert code_challenge_for(verifier) == expected
        assert len(expected) == 43

    def test_state_is_url_safe(self):
        """Generated state is URL safe."""
        assert re.fullmatch(r"[A-Za-z0-9_-]+", generate_state())


class TestInMemoryVerifierStore:
    """Tests for the process-local verifier store."""

    def test_take_returns_verifier_once(self):
        """A verifier can be taken exactly once."""
        store = InMemoryVerifierStore()
        store.put("state-1", "verifier-1")

        assert store.take("state-1") == "verifier-1"
        assert store.take("state-1") is None

    def test_concurrent_takes_hand_out_the_verifier_once(self):
        """Of many threads racing take(state), exactly one gets the verifier."""
        store = InMemoryVerifierStore()
        store.put("state-1", "verifier-1")
        start = threading.Barrier(16)
        results = []
        results_lock = threading.Lock()

        def worker():
            start.wait()
            value = store.take("state-1")
            with results_lock:
                results.append(value)

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert len(results) == 16
        assert results.count("verifier-1") == 1
        assert results.count(None) == 15

    def test_unknown_state(self):
        """Unknown or empty state yields None."""
        store = InMemoryVerifierStore()

        assert store.take("nope") is None
        assert store.take("") is None

    def test_expired_verifier_is_not_returned(self):
        """Verifiers older than the TTL are gone."""
        clock = FakeClock()
        store = InMemoryVerifierStore(ttl_seconds=600, clock=clock)
        store.put("state-1", "verifier-1")

        clock.advance(601)

        assert store.take("state-1") is None

    def test_put_sweeps_expired_entries(self):
        """Writing a new verifier drops expired ones."""
        clock = FakeClock()
        store = InMemoryVerifierStore(ttl_seconds=10, clock=clock)
        store.put("old", "v-old")
        clock.advance(11)

        store.put("new", "v-new")

        assert len(store) == 1
        assert store.take("new") == "v-new"

    def test_capacity_evicts_oldest(self):
        """The store never exceeds max_entries; the oldest entry goes first."""
        store = InMemoryVerifierStore(max_entries=2)
        store.put("a", "1")
        store.put("b", "2")
        store.put("c", "3")

        assert len(store) == 2
        assert store.take("a") is None
        assert store.take("b") == "2"
        assert store.take("c") == "3"

    def test_put_requires_state_and_verifier(self):
        """Empty keys or values are refused."""
        store = InMemoryVerifierStore()

        with pytest.raises(ValueError):
            store.put("", "v")
        with pytest.raises(ValueError):
            store.put("s", "")


class TestRedisVerifierStore:
    """Tests for the Redis-backed verifier store."""

    def test_put_sets_key_with_ttl(self):
        """put writes a prefixed key with SETEX."""
        redis_client = MagicMock()
        store = RedisVerifierStore(redis_client, ttl_seconds=300)

        store.put("state-1", "verifier-1")

        redis_client.setex.assert_called_once_with("pkce_verifier:state-1", 300, "verifier-1")

    def test_take_reads_and_deletes_atomically(self):
        """take runs GET and DEL in one transaction and decodes bytes."""
        redis_client = MagicMock()
        pipe = redis_client.pipeline.return_value
        pipe.execute.return_value = [b"verifier-1", 1]
        store = RedisVerifierStore(redis_client)

        assert store.take("state-1") == "verifier-1"
        redis_client.pipeline.assert_called_once_with(transaction=True)
        pipe.get.assert_called_once_with("pkce_verifier:state-1")
        pipe.delete.assert_called_once_with("pkce_verifier:state-1")

    def test_take_missing_key(self):
        """A consumed or expired key yields None."""
        redis_client = MagicMock()
        redis_client.pipeline.return_value.execute.return_value = [None, 0]
        store = RedisVerifierStore(redis_client)

        assert store.take("state-1") is None
