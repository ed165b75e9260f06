"""Tests for the in-process cluster lock provider."""

import threading
import time

import pytest

from k0s_orchestrator.exceptions import LockContentionError
from k0s_orchestrator.locking import InProcessLockProvider


class TestInProcessLockProvider:
    def test_acquire_and_release(self):
        provider = InProcessLockProvider()

        token = provider.acquire("prod", "run-1")

        assert token.cluster_name == "prod"
        assert token.owner == "run-1"
        assert provider.is_locked("prod")
        assert provider.holder("prod") == "run-1"

        provider.release(token)

        assert token.released
        assert not provider.is_locked("prod")

    def test_second_acquire_is_rejected(self):
        provider = InProcessLockProvider()
        provider.acquire("prod", "run-1")

        with pytest.raises(LockContentionError) as exc_info:
            provider.acquire("prod", "run-2")

        assert exc_info.value.holder == "run-1"
        assert exc_info.value.cluster_name == "prod"

    def test_names_are_independent(self):
        provider = InProcessLockProvider()
        provider.acquire("prod", "run-1")
        token = provider.acquire("staging", "run-2")
        assert token.cluster_name == "staging"

    def test_release_is_idempotent(self):
        provider = InProcessLockProvider()
        token = provider.acquire("prod", "run-1")
        provider.release(token)
        provider.release(token)
        assert not provider.is_locked("prod")

    def test_stale_token_does_not_free_new_holder(self):
        provider = InProcessLockProvider()
        stale = provider.acquire("prod", "run-1")
        provider.release(stale)
        provider.acquire("prod", "run-2")

        stale.released = False
        provider.release(stale)

        assert provider.holder("prod") == "run-2"

    def test_held_context_manager(self):
        provider = InProcessLockProvider()
        with provider.held("prod", "run-1") as token:
            assert provider.holder("prod") == "run-1"
            assert not token.released
        assert not provider.is_locked("prod")

    def test_held_releases_on_error(self):
        provider = InProcessLockProvider()
        with pytest.raises(RuntimeError):
            with provider.held("prod", "run-1"):
                raise RuntimeError("boom")
        assert not provider.is_locked("prod")

    def test_wait_timeout_gets_lock_once_freed(self):
        provider = InProcessLockProvider(wait_timeout=5.0)
        first = provider.acquire("prod", "run-1")
        threading.Timer(0.2, provider.release, args=(first,)).start()

        token = provider.acquire("prod", "run-2")

        assert token.owner == "run-2"

    def test_wait_timeout_expires(self):
        provider = InProcessLockProvider(wait_timeout=0.6)
        provider.acquire("prod", "run-1")

        started = time.monotonic()
        with pytest.raises(LockContentionError):
            provider.acquire("prod", "run-2")
        assert time.monotonic() - started >= 0.5

    def test_mutual_exclusion_under_threads(self):
        """Only one of many simultaneous acquirers wins."""
        provider = InProcessLockProvider()
        barrier = threading.Barrier(8)
        winners: list[str] = []
        mutex = threading.Lock()

        def contend(owner: str) -> None:
            barrier.wait()
            try:
                provider.acquire("prod", owner)
            except LockContentionError:
                return
            with mutex:
                winners.append(owner)

        threads = [threading.Thread(target=contend, args=(f"run-{i}",)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(winners) == 1
        assert provider.holder("prod") == winners[0]
