"""Cluster service module.

Name-keyed cluster management for the REST surface, on top of the
lifecycle service and a cluster store.
"""

from functools import lru_cache
from typing import Any

from loguru import logger

from k0s_orchestrator.constants import RESOURCE_CLUSTER
from k0s_orchestrator.exceptions import ResourceAlreadyExistsError, ResourceNotFoundError, SpecificationValidationError
from k0s_orchestrator.models.api_model import ClusterResult, ClusterSummary, PipelinePlan
from k0s_orchestrator.models.db_model import ClusterRecord
from k0s_orchestrator.pipeline import LifecycleVerb
from k0s_orchestrator.services.cluster_store import ClusterStore, InMemoryClusterStore, SqlClusterStore
from k0s_orchestrator.services.lifecycle_service import LifecycleService, get_lifecycle_service
from k0s_orchestrator.settings import get_settings
from k0s_orchestrator.specification import ClusterRequest


class ClusterService:
    """Create, read, update and delete clusters by name.

    The record of a cluster is written only after its pipeline succeeded, so
    a failed create leaves nothing behind and a failed delete keeps the
    record for a retry.
    """

    def __init__(self, lifecycle: LifecycleService, store: ClusterStore):
        self.lifecycle = lifecycle
        self.store = store

    def list_clusters(self) -> list[ClusterSummary]:
        return [self._summary(record) for record in self.store.list()]

    def get_cluster(self, name: str) -> ClusterSummary:
        return self._summary(self._require(name))

    def create_cluster(self, request: ClusterRequest) -> ClusterResult:
        name = request.name.strip()
        if self.store.get(name) is not None:
            raise ResourceAlreadyExistsError(RESOURCE_CLUSTER, name)

        result = self.lifecycle.create(request)
        self.store.save(result.name, self._dump(request), result.kubeconfig)
        logger.debug(f"Service: create_cluster - stored record for '{result.name}'")
        return result

    def read_cluster(self, name: str) -> ClusterResult:
        """Refresh the cluster from its hosts and store the fresh kubeconfig."""
        record = self._require(name)
        result = self.lifecycle.read(record.request)
        self.store.save(name, record.request, result.kubeconfig)
        return result

    def update_cluster(self, name: str, request: ClusterRequest) -> ClusterResult:
        self._require(name)
        if request.name.strip() != name:
            raise SpecificationValidationError([f"name: cannot rename cluster '{name}' to '{request.name}'"])

        result = self.lifecycle.update(request)
        self.store.save(name, self._dump(request), result.kubeconfig)
        return result

    def delete_cluster(self, name: str) -> ClusterResult:
        record = self._require(name)
        result = self.lifecycle.delete(record.request)
        self.store.delete(name)
        logger.debug(f"Service: delete_cluster - removed record for '{name}'")
        return result

    def plan(self, verb: LifecycleVerb, request: ClusterRequest) -> PipelinePlan:
        return self.lifecycle.plan(verb, request)

    def _require(self, name: str) -> ClusterRecord:
        record = self.store.get(name)
        if record is None:
            raise ResourceNotFoundError(RESOURCE_CLUSTER, name)
        return record

    @staticmethod
    def _dump(request: ClusterRequest) -> dict[str, Any]:
        return request.model_dump(mode="json")

    @staticmethod
    def _summary(record: ClusterRecord) -> ClusterSummary:
        return ClusterSummary(
            name=record.name,
            version=record.request.get("version"),
            hosts=len(record.request.get("hosts") or []),
            created_at=record.created_at.isoformat() if record.created_at else None,
            updated_at=record.updated_at.isoformat() if record.updated_at else None,
        )


@lru_cache
def get_cluster_store() -> ClusterStore:
    """SQL-backed store when a database is configured, in-memory otherwise."""
    if get_settings().database_url:
        return SqlClusterStore()
    return InMemoryClusterStore()


@lru_cache
def get_cluster_service() -> ClusterService:
    """Get the cluster service singleton."""
    return ClusterService(get_lifecycle_service(), get_cluster_store())
