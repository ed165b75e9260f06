"""API dependencies for FastAPI endpoints."""

from collections.abc import Callable
from typing import TypeVar

from k0s_orchestrator.services.registry import get_service_registry

T = TypeVar("T")


def service[T](service_type: type[T]) -> Callable[[], T]:
    """FastAPI dependency that resolves a service from the registry by type.

    Example:
        ```python
        @router.get("/clusters")
        def list_clusters(cluster_service: ClusterService = Depends(service(ClusterService))):
            return cluster_service.list_clusters()
        ```
    """

    def get_service() -> T:
        return get_service_registry().get(service_type)

    return get_service
