"""
Cluster API - lifecycle operations on declared clusters.

This module provides REST endpoints for managing clusters by name:
- Create, read (refresh), update and delete a cluster
- List stored clusters
- Plan a verb without executing it

Handlers stay thin: validation, lock and pipeline failures are raised by
ClusterService and turned into HTTP responses by the exception handlers.
"""

from fastapi import APIRouter, Depends, status

from k0s_orchestrator.api.dependencies import service
from k0s_orchestrator.models.api_model import ClusterResult, ClusterSummary, PipelinePlan
from k0s_orchestrator.pipeline import LifecycleVerb
from k0s_orchestrator.services.cluster_service import ClusterService
from k0s_orchestrator.specification import ClusterRequest

router = APIRouter()

cluster_service_dependency = Depends(service(ClusterService))


@router.get("/clusters", response_model=list[ClusterSummary])
def list_clusters(cluster_service: ClusterService = cluster_service_dependency) -> list[ClusterSummary]:
    """List stored clusters."""
    return cluster_service.list_clusters()


@router.post("/clusters", response_model=ClusterResult, status_code=status.HTTP_201_CREATED)
def create_cluster(request: ClusterRequest, cluster_service: ClusterService = cluster_service_dependency) -> ClusterResult:
    """Create a cluster.

    Args:
        request: Declarative cluster request
        cluster_service: Cluster service instance

    Returns:
        ClusterResult with the admin kubeconfig and the pipeline report
    """
    return cluster_service.create_cluster(request)


@router.post("/clusters/plan", response_model=PipelinePlan)
def plan_cluster(
    request: ClusterRequest,
    verb: LifecycleVerb = LifecycleVerb.CREATE,
    cluster_service: ClusterService = cluster_service_dependency,
) -> PipelinePlan:
    """Return the ordered steps ``verb`` would run for the request; nothing is executed."""
    return cluster_service.plan(verb, request)


@router.get("/clusters/{name}", response_model=ClusterResult)
def read_cluster(name: str, cluster_service: ClusterService = cluster_service_dependency) -> ClusterResult:
    """Read a cluster from its leader and return a fresh kubeconfig."""
    return cluster_service.read_cluster(name)


@router.put("/clusters/{name}", response_model=ClusterResult)
def update_cluster(
    name: str,
    request: ClusterRequest,
    cluster_service: ClusterService = cluster_service_dependency,
) -> ClusterResult:
    """Converge an existing cluster to an updated request.

    Args:
        name: Name of the stored cluster; must match ``request.name``
        request: Updated declarative cluster request
        cluster_service: Cluster service instance
    """
    return cluster_service.update_cluster(name, request)


@router.delete("/clusters/{name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_cluster(name: str, cluster_service: ClusterService = cluster_service_dependency) -> None:
    """Tear the cluster down and forget it."""
    cluster_service.delete_cluster(name)
