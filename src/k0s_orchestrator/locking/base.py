"""Cluster lock abstractions.

A mutating pipeline run holds the lock for its cluster name from before the
first mutating step until after the last one. The contract is two-phase:
``acquire`` returns a ``LockToken`` or raises ``LockContentionError``, and
``release`` takes that token back. ``held`` wraps both for scoped use.
"""

from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import arrow
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_delay, wait_fixed

from k0s_orchestrator.exceptions import LockContentionError

LOCK_POLL_INTERVAL_SECONDS = 0.5


@dataclass
class LockToken:
    """Proof of holding the lock for one cluster name."""

    cluster_name: str
    owner: str
    provider: "LockProvider" = field(repr=False)
    acquired_at: str = field(default_factory=lambda: arrow.utcnow().isoformat())
    handle: Any = field(default=None, repr=False)  # provider-private state
    released: bool = False


class LockProvider(ABC):
    """Mutual exclusion per cluster name across pipeline runs."""

    def __init__(self, wait_timeout: float = 0.0):
        """Initialize the provider.

        Args:
            wait_timeout: Seconds to keep retrying a contended lock; 0 fails immediately
        """
        self.wait_timeout = wait_timeout

    @abstractmethod
    def _try_acquire(self, cluster_name: str, owner: str) -> LockToken | None:
        """Take the lock if free; return None if another owner holds it."""

    @abstractmethod
    def _release(self, token: LockToken) -> None:
        """Give the lock back."""

    @abstractmethod
    def holder(self, cluster_name: str) -> str | None:
        """Owner currently holding the lock, if known."""

    def is_locked(self, cluster_name: str) -> bool:
        return self.holder(cluster_name) is not None

    def acquire(self, cluster_name: str, owner: str) -> LockToken:
        """Acquire the lock for ``cluster_name``.

        Args:
            cluster_name: Lock scope
            owner: Identifier of the acquiring run

        Returns:
            LockToken to pass to ``release``

        Raises:
            LockContentionError: If the lock is still held when the wait timeout expires
        """
        if self.wait_timeout <= 0:
            return self._attempt(cluster_name, owner)

        @retry(
            stop=stop_after_delay(self.wait_timeout),
            wait=wait_fixed(LOCK_POLL_INTERVAL_SECONDS),
            retry=retry_if_exception_type(LockContentionError),
            reraise=True,
        )
        def _acquire_with_wait() -> LockToken:
            return self._attempt(cluster_name, owner)

        return _acquire_with_wait()

    def _attempt(self, cluster_name: str, owner: str) -> LockToken:
        token = self._try_acquire(cluster_name, owner)
        if token is None:
            holder = self.holder(cluster_name)
            logger.debug(f"Lock for cluster '{cluster_name}' is held by {holder or 'another process'}")
            raise LockContentionError(cluster_name, holder)
        logger.debug(f"Lock for cluster '{cluster_name}' acquired by {owner}")
        return token

    def release(self, token: LockToken) -> None:
        """Release a previously acquired lock. Releasing twice is a no-op."""
        if token.released:
            logger.debug(f"Lock for cluster '{token.cluster_name}' already released")
            return
        self._release(token)
        token.released = True
        logger.debug(f"Lock for cluster '{token.cluster_name}' released by {token.owner}")

    @contextmanager
    def held(self, cluster_name: str, owner: str) -> Generator[LockToken]:
        """Context manager holding the lock for the duration of the block.

        Example:
            with provider.held("prod", run_id) as token:
                # Only one run per cluster enters here
                ...
        """
        token = self.acquire(cluster_name, owner)
        try:
            yield token
        finally:
            self.release(token)
