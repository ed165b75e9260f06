"""Shared fixtures: cluster requests, the simulated backend and lock providers."""

from collections.abc import Callable
from typing import Any

import pytest

from k0s_orchestrator.backends import SimulatedBackend
from k0s_orchestrator.locking import InProcessLockProvider
from k0s_orchestrator.services.lifecycle_service import LifecycleService

VERSION = "v1.30.2+k0s.0"


def _host(address: str, role: str, **extra: Any) -> dict[str, Any]:
    return {"role": role, "ssh": {"address": address}, **extra}


def _request(
    name: str = "demo",
    version: str = VERSION,
    hosts: list[dict[str, Any]] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    if hosts is None:
        hosts = [
            _host("10.0.0.1", "controller"),
            _host("10.0.0.2", "controller"),
            _host("10.0.0.3", "worker"),
            _host("10.0.0.4", "worker"),
        ]
    return {"name": name, "version": version, "hosts": hosts, **extra}


@pytest.fixture
def host_entry() -> Callable[..., dict[str, Any]]:
    """Factory for one host descriptor: ``host_entry("10.0.0.9", "worker")``."""
    return _host


@pytest.fixture
def make_request() -> Callable[..., dict[str, Any]]:
    """Factory for a cluster request; defaults to two controllers and two workers."""
    return _request


@pytest.fixture
def backend() -> SimulatedBackend:
    return SimulatedBackend()


@pytest.fixture
def lock_provider() -> InProcessLockProvider:
    return InProcessLockProvider()


@pytest.fixture
def lifecycle(lock_provider: InProcessLockProvider, backend: SimulatedBackend) -> LifecycleService:
    return LifecycleService(lock_provider, backend)
