"""Common exceptions for the orchestrator.

This module contains the exception classes shared by the specification
translator, the lock providers, the provisioning backends, the lifecycle
services and the HTTP layer.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from k0s_orchestrator.pipeline.models import PipelineResult


class OrchestratorError(Exception):
    """Base class for all orchestrator errors."""


class SpecificationValidationError(OrchestratorError):
    """Raised when a cluster request cannot be turned into a valid specification.

    Raised before any step runs, so a rejected request never touches a host.
    """

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid cluster specification: " + "; ".join(errors))


class LockContentionError(OrchestratorError):
    """Raised when the cluster lock is held by another run."""

    def __init__(self, cluster_name: str, holder: str | None = None):
        self.cluster_name = cluster_name
        self.holder = holder
        held_by = f" by run {holder}" if holder else ""
        super().__init__(f"Cluster '{cluster_name}' is locked{held_by}; retry later")


class ProvisioningError(OrchestratorError):
    """Raised by a provisioning backend when a host-level operation fails."""

    def __init__(self, operation: str, host: str, message: str):
        self.operation = operation
        self.host = host
        self.message = message
        super().__init__(f"{operation} failed on {host}: {message}")


class PipelineExecutionError(OrchestratorError):
    """Raised when a lifecycle pipeline stops on a failed step.

    The failing step's diagnostic is carried unchanged. Steps that completed
    before the failure are not rolled back; re-running the verb converges.
    """

    def __init__(self, result: "PipelineResult"):
        self.result = result
        self.step = result.failed_step
        self.diagnostic = result.message
        super().__init__(f"Step '{self.step}' failed: {self.diagnostic}")


class ClusterLockedError(PipelineExecutionError):
    """Raised when a mutating pipeline could not acquire the cluster lock."""


class ResourceNotFoundError(OrchestratorError):
    """Raised when a resource doesn't exist.

    Generic exception for any resource that cannot be found by its identifier.
    """

    def __init__(self, resource_type: str, identifier: str):
        self.resource_type = resource_type
        self.identifier = identifier
        super().__init__(f"{resource_type} not found: {identifier}")


class ResourceAlreadyExistsError(OrchestratorError):
    """Raised when creating a resource whose identifier is already taken."""

    def __init__(self, resource_type: str, identifier: str):
        self.resource_type = resource_type
        self.identifier = identifier
        super().__init__(f"{resource_type} already exists: {identifier}")
