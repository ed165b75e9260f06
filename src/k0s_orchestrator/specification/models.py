"""Internal cluster specification models.

A ``ClusterSpecification`` is built fresh from a caller request at the start of
every lifecycle verb and is read-mostly for the rest of the run. Facts that
steps discover about hosts live on the run context, never on these models.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class HostRole(StrEnum):
    """Role of a host in the cluster."""

    CONTROLLER = "controller"
    CONTROLLER_WORKER = "controller+worker"
    SINGLE = "single"
    WORKER = "worker"

    @property
    def is_controller(self) -> bool:
        """Host runs the control plane."""
        return self is not HostRole.WORKER

    @property
    def is_worker(self) -> bool:
        """Host runs workloads."""
        return self is not HostRole.CONTROLLER


class SSHConnection(BaseModel):
    """Connection parameters for a host; opaque beyond the connect step."""

    model_config = {"frozen": True}

    address: str
    user: str = "root"
    port: int = Field(default=22, ge=1, le=65535)
    key_path: str | None = None


class UploadFile(BaseModel):
    """A local file to place on a host before installation."""

    model_config = {"frozen": True}

    name: str
    source: str
    destination: str
    permissions: str | None = None


class HostSpec(BaseModel):
    """Declared state of a single host."""

    model_config = {"frozen": True}

    role: HostRole
    connection: SSHConnection
    no_taints: bool = False
    upload_binary: bool = False
    hostname: str | None = None
    private_interface: str | None = None
    private_address: str | None = None
    os: str | None = None
    install_flags: list[str] = Field(default_factory=list)
    environment: dict[str, str] = Field(default_factory=dict)
    files: list[UploadFile] = Field(default_factory=list)

    @property
    def address(self) -> str:
        return self.connection.address

    @property
    def label(self) -> str:
        """Stable identifier used in logs, facts and per-host results."""
        if self.connection.port == 22:
            return self.connection.address
        return f"{self.connection.address}:{self.connection.port}"

    @property
    def is_controller(self) -> bool:
        return self.role.is_controller

    @property
    def is_worker(self) -> bool:
        return self.role.is_worker

    def __str__(self) -> str:
        return f"{self.role}@{self.label}"


class ClusterSpecification(BaseModel):
    """Desired state of a cluster."""

    model_config = {"frozen": True}

    name: str = Field(min_length=1)
    runtime_version: str
    dynamic_config: bool = False
    embedded_config: dict[str, Any] | None = None
    hosts: list[HostSpec] = Field(min_length=1)

    @model_validator(mode="after")
    def _require_controller(self) -> "ClusterSpecification":
        if not any(host.is_controller for host in self.hosts):
            raise ValueError("at least one controller-capable host is required")
        return self

    @property
    def leader(self) -> HostSpec:
        """First controller-capable host in declaration order."""
        return next(host for host in self.hosts if host.is_controller)

    def controllers(self) -> list[HostSpec]:
        """Controller-capable hosts, leader first."""
        return [host for host in self.hosts if host.is_controller]

    def workers(self) -> list[HostSpec]:
        """Hosts with the plain worker role."""
        return [host for host in self.hosts if host.role == HostRole.WORKER]
