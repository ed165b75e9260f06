"""Service registry for dependency injection."""

from collections.abc import Callable
from functools import lru_cache
from typing import Any, TypeVar, cast

T = TypeVar("T")
ServiceFactory = Callable[[], T]
ServiceProvider = T | ServiceFactory[T]


class ServiceRegistry:
    """Registry of the shared services (lock provider, backend, lifecycle and cluster services).

    Services are keyed by type name, so an abstract base such as
    ``LockProvider`` resolves to whichever implementation was registered.
    """

    def __init__(self):
        self._services: dict[str, ServiceProvider[Any]] = {}

    def register_singleton(self, service_type: type[T], instance: T) -> None:
        """Register a ready-made instance under ``service_type``.

        Args:
            service_type: The type the instance is looked up by
            instance: The instance to hand out
        """
        self._services[service_type.__name__] = instance

    def register_factory(self, service_type: type[T], factory: ServiceFactory[T]) -> None:
        """Register a factory called on every lookup of ``service_type``.

        Factories are usually ``@lru_cache`` getters, which makes them lazy
        singletons.

        Args:
            service_type: The type the factory is looked up by
            factory: Zero-argument callable returning the service
        """
        self._services[service_type.__name__] = factory

    def is_registered(self, service_type: type) -> bool:
        return service_type.__name__ in self._services

    def get(self, service_type: type[T]) -> T:
        """Resolve a service by type.

        Raises:
            KeyError: If nothing is registered for ``service_type``
        """
        service_name = service_type.__name__

        if service_name not in self._services:
            raise KeyError(f"Service {service_name} not registered")

        provider = self._services[service_name]

        # Instances of a class with __call__ are registered as singletons, not called
        if callable(provider) and not isinstance(provider, service_type):
            return provider()

        return cast(T, provider)

    def clear(self) -> None:
        """Forget every registration."""
        self._services.clear()


@lru_cache
def get_service_registry() -> ServiceRegistry:
    """Get the process-wide service registry."""
    return ServiceRegistry()
