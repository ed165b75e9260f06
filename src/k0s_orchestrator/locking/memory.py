"""In-process cluster locks for a single orchestrator process."""

import threading

from k0s_orchestrator.locking.base import LockProvider, LockToken


class InProcessLockProvider(LockProvider):
    """Thread-safe registry of held cluster names.

    Locks do not survive a process restart and are not shared between
    processes; use the PostgreSQL provider when several orchestrators run.
    """

    def __init__(self, wait_timeout: float = 0.0):
        super().__init__(wait_timeout)
        self._mutex = threading.Lock()
        self._held: dict[str, LockToken] = {}

    def _try_acquire(self, cluster_name: str, owner: str) -> LockToken | None:
        with self._mutex:
            if cluster_name in self._held:
                return None
            token = LockToken(cluster_name=cluster_name, owner=owner, provider=self)
            self._held[cluster_name] = token
            return token

    def _release(self, token: LockToken) -> None:
        with self._mutex:
            current = self._held.get(token.cluster_name)
            # Only the token that took the lock may free it
            if current is token:
                del self._held[token.cluster_name]

    def holder(self, cluster_name: str) -> str | None:
        with self._mutex:
            token = self._held.get(cluster_name)
            return token.owner if token else None
