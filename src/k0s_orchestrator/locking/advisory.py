"""PostgreSQL advisory locks for coordinating orchestrators across processes.

Each cluster name maps to a stable 63-bit advisory lock key. The lock is taken
with ``pg_try_advisory_lock`` on a dedicated session that the ``LockToken``
keeps open for the whole pipeline run, and freed with ``pg_advisory_unlock``.
If the orchestrator dies, PostgreSQL drops the session and the lock with it.

Example:
    provider = PostgresAdvisoryLockProvider()
    with provider.held("prod", run_id):
        # Only one orchestrator process works on "prod" here
        ...
"""

import hashlib
import threading
from collections.abc import Callable

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from k0s_orchestrator.database.connection import create_session
from k0s_orchestrator.locking.base import LockProvider, LockToken

LOCK_KEY_NAMESPACE = "k0s-orchestrator:cluster:"


def cluster_lock_key(cluster_name: str) -> int:
    """Derive the advisory lock key for a cluster name.

    The key is a positive signed 64-bit integer so it fits PostgreSQL's bigint.
    """
    digest = hashlib.blake2b(f"{LOCK_KEY_NAMESPACE}{cluster_name}".encode(), digest_size=8).digest()
    return int.from_bytes(digest, "big") >> 1


class PostgresAdvisoryLockProvider(LockProvider):
    """Cluster locks backed by PostgreSQL session-level advisory locks."""

    def __init__(self, wait_timeout: float = 0.0, session_factory: Callable[[], Session] = create_session):
        super().__init__(wait_timeout)
        self._session_factory = session_factory
        self._owners: dict[str, str] = {}
        self._owners_mutex = threading.Lock()

    def _try_acquire(self, cluster_name: str, owner: str) -> LockToken | None:
        key = cluster_lock_key(cluster_name)
        logger.debug(f"Trying advisory lock for cluster '{cluster_name}' (key={key})...")
        session = self._session_factory()
        try:
            acquired = session.exec(text("SELECT pg_try_advisory_lock(:key)").bindparams(key=key)).scalar()
        except SQLAlchemyError:
            session.close()
            raise

        if not acquired:
            session.close()
            logger.debug(f"Advisory lock for cluster '{cluster_name}' not available (another process holds it)")
            return None

        with self._owners_mutex:
            self._owners[cluster_name] = owner
        return LockToken(cluster_name=cluster_name, owner=owner, provider=self, handle=session)

    def _release(self, token: LockToken) -> None:
        key = cluster_lock_key(token.cluster_name)
        session: Session = token.handle
        logger.debug(f"Releasing advisory lock for cluster '{token.cluster_name}'...")
        try:
            session.exec(text("SELECT pg_advisory_unlock(:key)").bindparams(key=key))
        finally:
            session.close()
            with self._owners_mutex:
                self._owners.pop(token.cluster_name, None)

    def holder(self, cluster_name: str) -> str | None:
        with self._owners_mutex:
            owner = self._owners.get(cluster_name)
        if owner is not None:
            return owner

        # Held by another process: bigint keys are split into classid (high) and objid (low)
        key = cluster_lock_key(cluster_name)
        session = self._session_factory()
        try:
            held = session.exec(
                text(
                    "SELECT count(*) FROM pg_locks WHERE locktype = 'advisory' AND granted "
                    "AND classid::bigint = :high AND objid::bigint = :low AND objsubid = 1"
                ).bindparams(high=key >> 32, low=key & 0xFFFFFFFF)
            ).scalar()
        finally:
            session.close()
        return "another process" if held else None
