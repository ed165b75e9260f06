"""Provisioning backends: the interface steps call and its implementations."""

import importlib

from loguru import logger

from .base import DiscoveredFacts, ProvisioningBackend, RuntimeStatus
from .simulated import SimulatedBackend, SimulatedHost


def load_backend(import_path: str) -> ProvisioningBackend:
    """Instantiate the backend class named by ``module:Class``.

    Raises:
        ValueError: If the path cannot be imported or does not name a backend
    """
    module_name, _, class_name = import_path.partition(":")
    try:
        backend_class = getattr(importlib.import_module(module_name), class_name)
    except (ImportError, AttributeError) as e:
        raise ValueError(f"Cannot load provisioning backend '{import_path}': {e}") from e

    if not (isinstance(backend_class, type) and issubclass(backend_class, ProvisioningBackend)):
        raise ValueError(f"'{import_path}' is not a ProvisioningBackend")

    logger.debug(f"Using provisioning backend {import_path}")
    return backend_class()


__all__ = [
    "DiscoveredFacts",
    "ProvisioningBackend",
    "RuntimeStatus",
    "SimulatedBackend",
    "SimulatedHost",
    "load_backend",
]
