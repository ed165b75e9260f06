"""Dependency injection setup module.

This module provides centralized service registration for both
FastAPI server and CLI applications.
"""

from loguru import logger

from k0s_orchestrator.backends.base import ProvisioningBackend
from k0s_orchestrator.locking.base import LockProvider
from k0s_orchestrator.services.cluster_service import ClusterService, get_cluster_service, get_cluster_store
from k0s_orchestrator.services.cluster_store import ClusterStore
from k0s_orchestrator.services.lifecycle_service import LifecycleService, get_backend, get_lifecycle_service, get_lock_provider
from k0s_orchestrator.services.registry import ServiceRegistry


def register_core_services(registry: ServiceRegistry) -> None:
    """Register the lock provider, provisioning backend and lifecycle service.

    Registered as factories: the get_*() functions already provide
    singleton behavior via @lru_cache, and a provider is only built (and a
    database only touched) when first requested.

    Args:
        registry: Service registry instance to register services in
    """
    logger.debug("Registering core services in DI container")

    registry.register_factory(LockProvider, get_lock_provider)
    registry.register_factory(ProvisioningBackend, get_backend)
    registry.register_factory(LifecycleService, get_lifecycle_service)


def register_app_services(registry: ServiceRegistry) -> None:
    """Register the services behind the REST cluster endpoints.

    Args:
        registry: Service registry instance to register services in
    """
    logger.debug("Registering application services in DI container")

    registry.register_factory(ClusterStore, get_cluster_store)
    registry.register_factory(ClusterService, get_cluster_service)


def register_all_services(registry: ServiceRegistry) -> None:
    """Register both core and application services."""
    register_core_services(registry)
    register_app_services(registry)


def reset_service_caches() -> None:
    """Drop cached service singletons so they are rebuilt from current settings."""
    for getter in (get_cluster_service, get_cluster_store, get_lifecycle_service, get_backend, get_lock_provider):
        getter.cache_clear()
