"""Provisioning backend interface.

The orchestrator never talks to hosts directly. Every host-level operation a
step needs goes through a ``ProvisioningBackend``; implementations own the
transport (SSH sessions, timeouts, retries of individual commands) and raise
``ProvisioningError`` when an operation fails on a host.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel

from k0s_orchestrator.specification.models import HostRole, HostSpec, UploadFile


class DiscoveredFacts(BaseModel):
    """Generic facts discovered on a host."""

    hostname: str
    arch: str
    private_interface: str | None = None
    private_address: str | None = None


class RuntimeStatus(BaseModel):
    """State of the cluster runtime on a host."""

    running_version: str | None = None
    role: str | None = None

    @property
    def is_running(self) -> bool:
        return self.running_version is not None


class ProvisioningBackend(ABC):
    """Host-level capabilities invoked by pipeline steps.

    Methods are called concurrently for different hosts, so implementations
    must be safe to use from multiple threads.
    """

    # Session handling

    @abstractmethod
    def connect(self, host: HostSpec) -> None:
        """Open a session to the host."""

    @abstractmethod
    def disconnect(self, host: HostSpec) -> None:
        """Close the session to the host."""

    # Discovery

    @abstractmethod
    def detect_os(self, host: HostSpec) -> str:
        """Return the OS identifier of the host (e.g. ``ubuntu``)."""

    @abstractmethod
    def prepare_host(self, host: HostSpec, os_id: str) -> None:
        """Install host prerequisites and apply environment settings."""

    @abstractmethod
    def gather_facts(self, host: HostSpec) -> DiscoveredFacts:
        """Discover hostname, architecture and private networking."""

    @abstractmethod
    def gather_runtime_facts(self, host: HostSpec) -> RuntimeStatus:
        """Report the runtime version currently running on the host, if any."""

    @abstractmethod
    def etcd_members(self, leader: HostSpec) -> list[str]:
        """Return the peer addresses of the control plane's etcd members."""

    @abstractmethod
    def default_config(self, version: str) -> dict[str, Any]:
        """Return the default runtime configuration for a version."""

    # Binaries and files

    @abstractmethod
    def download_binary(self, version: str, arch: str) -> str:
        """Download the runtime binary locally and return its path."""

    @abstractmethod
    def upload_binary(self, host: HostSpec, local_path: str) -> None:
        """Upload a locally downloaded binary to the host."""

    @abstractmethod
    def download_binary_on_host(self, host: HostSpec, version: str, arch: str) -> None:
        """Have the host download the runtime binary itself."""

    @abstractmethod
    def upload_file(self, host: HostSpec, upload: UploadFile) -> None:
        """Place a local file on the host."""

    @abstractmethod
    def install_binary(self, host: HostSpec, version: str) -> None:
        """Move the staged binary into place."""

    @abstractmethod
    def prepare_arm(self, host: HostSpec) -> None:
        """Apply the settings 32-bit ARM controllers need."""

    # Installation

    @abstractmethod
    def configure(self, host: HostSpec, config: dict[str, Any], dynamic_config: bool) -> None:
        """Write the runtime configuration on a controller."""

    @abstractmethod
    def initialize_controller(self, host: HostSpec, version: str) -> None:
        """Bootstrap the first controller of a new cluster."""

    @abstractmethod
    def create_join_token(self, leader: HostSpec, role: HostRole) -> str:
        """Create a join token on the leader for the given role."""

    @abstractmethod
    def join_controller(self, host: HostSpec, token: str) -> None:
        """Join a controller to the cluster."""

    @abstractmethod
    def join_worker(self, host: HostSpec, token: str, wait: bool) -> None:
        """Join a worker, optionally waiting until it reports ready."""

    @abstractmethod
    def upgrade_controller(self, host: HostSpec, version: str) -> None:
        """Restart a controller on the installed version."""

    @abstractmethod
    def upgrade_worker(self, host: HostSpec, version: str, drain: bool) -> None:
        """Restart a worker on the installed version, draining it first if asked."""

    @abstractmethod
    def fetch_kubeconfig(self, leader: HostSpec, api_address: str) -> str:
        """Read the admin kubeconfig from the leader."""

    # Removal

    @abstractmethod
    def reset_worker(self, host: HostSpec, drain: bool, delete_node: bool) -> None:
        """Remove the runtime from a worker."""

    @abstractmethod
    def reset_controller(self, host: HostSpec, drain: bool, delete_node: bool, leave_etcd: bool) -> None:
        """Remove the runtime from a controller."""
