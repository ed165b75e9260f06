"""Storage of cluster records for the REST caller.

The orchestrator itself is stateless between runs; the REST surface keeps the
last applied request and kubeconfig per cluster name so that reads, updates
and deletes can be issued by name.
"""

import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

from loguru import logger
from sqlmodel import select

from k0s_orchestrator.database import borrow_db_session
from k0s_orchestrator.models.db_model import ClusterRecord


class ClusterStore(ABC):
    """Keyed storage of ``ClusterRecord`` objects."""

    @abstractmethod
    def get(self, name: str) -> ClusterRecord | None: ...

    @abstractmethod
    def list(self) -> list[ClusterRecord]: ...

    @abstractmethod
    def save(self, name: str, request: dict[str, Any], kubeconfig: str | None) -> ClusterRecord:
        """Insert or update the record for ``name``."""

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Remove the record; return False if there was none."""


def _detached(record: ClusterRecord) -> ClusterRecord:
    return ClusterRecord(
        name=record.name,
        request=dict(record.request),
        kubeconfig=record.kubeconfig,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class InMemoryClusterStore(ClusterStore):
    """Process-local store used when no database is configured."""

    def __init__(self):
        self._records: dict[str, ClusterRecord] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> ClusterRecord | None:
        with self._lock:
            record = self._records.get(name)
            return _detached(record) if record else None

    def list(self) -> list[ClusterRecord]:
        with self._lock:
            return [_detached(self._records[name]) for name in sorted(self._records)]

    def save(self, name: str, request: dict[str, Any], kubeconfig: str | None) -> ClusterRecord:
        with self._lock:
            record = self._records.get(name)
            if record is None:
                record = ClusterRecord(name=name, request=request, kubeconfig=kubeconfig)
                self._records[name] = record
            else:
                record.request = request
                record.kubeconfig = kubeconfig
                record.updated_at = datetime.now(UTC)
            return _detached(record)

    def delete(self, name: str) -> bool:
        with self._lock:
            return self._records.pop(name, None) is not None


class SqlClusterStore(ClusterStore):
    """Store backed by the ``cluster_records`` table."""

    def get(self, name: str) -> ClusterRecord | None:
        with borrow_db_session() as session:
            record = session.get(ClusterRecord, name)
            if record is not None:
                session.expunge(record)
            return record

    def list(self) -> list[ClusterRecord]:
        with borrow_db_session() as session:
            records = list(session.exec(select(ClusterRecord).order_by(ClusterRecord.name)).all())
            for record in records:
                session.expunge(record)
            return records

    def save(self, name: str, request: dict[str, Any], kubeconfig: str | None) -> ClusterRecord:
        with borrow_db_session() as session:
            try:
                record = session.get(ClusterRecord, name)
                if record is None:
                    record = ClusterRecord(name=name, request=request, kubeconfig=kubeconfig)
                else:
                    record.request = request
                    record.kubeconfig = kubeconfig
                    record.updated_at = datetime.now(UTC)
                session.add(record)
                session.commit()
                session.refresh(record)
                session.expunge(record)
                return record
            except Exception as e:
                logger.error(f"Failed to save cluster record '{name}': {e}")
                session.rollback()
                raise

    def delete(self, name: str) -> bool:
        with borrow_db_session() as session:
            record = session.get(ClusterRecord, name)
            if record is None:
                return False
            session.delete(record)
            session.commit()
            return True
