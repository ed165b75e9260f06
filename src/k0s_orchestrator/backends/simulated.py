"""In-memory provisioning backend.

``SimulatedBackend`` keeps a model of every host it is asked about and applies
each operation to that model instead of a real machine. It backs dry runs and
the test suite: every call is recorded in order, host state can be seeded to
describe an existing cluster, and failures can be injected per operation and
host.
"""

import threading
from dataclasses import dataclass, field
from typing import Any

import arrow
import yaml
from loguru import logger

from k0s_orchestrator.backends.base import DiscoveredFacts, ProvisioningBackend, RuntimeStatus
from k0s_orchestrator.exceptions import ProvisioningError
from k0s_orchestrator.specification.models import HostRole, HostSpec, UploadFile


@dataclass
class SimulatedHost:
    """Modelled state of one host."""

    os: str = "ubuntu"
    arch: str = "amd64"
    hostname: str | None = None
    private_interface: str = "eth0"
    private_address: str | None = None
    connected: bool = False
    prepared: bool = False
    staged_version: str | None = None
    installed_version: str | None = None
    running_version: str | None = None
    role: str | None = None
    arm_prepared: bool = False
    config: dict[str, Any] | None = None
    files: dict[str, str] = field(default_factory=dict)


class SimulatedBackend(ProvisioningBackend):
    """Thread-safe provisioning backend operating on modelled hosts."""

    def __init__(self):
        self.hosts: dict[str, SimulatedHost] = {}
        self.calls: list[tuple[str, str]] = []
        self.etcd: set[str] = set()
        self._failures: dict[tuple[str, str | None], str] = {}
        self._downloads: dict[str, str] = {}
        self._kubeconfig_serial = 0
        self._lock = threading.RLock()

    # Test and dry-run helpers

    def seed_host(self, label: str, **state: Any) -> SimulatedHost:
        """Pre-set the modelled state of a host, e.g. ``running_version``."""
        with self._lock:
            host = self.hosts.setdefault(label, SimulatedHost())
            for key, value in state.items():
                setattr(host, key, value)
            return host

    def fail(self, operation: str, address: str | None = None, message: str = "simulated failure") -> None:
        """Make ``operation`` fail on ``address`` (or on every host when None)."""
        with self._lock:
            self._failures[(operation, address)] = message

    def clear_failures(self) -> None:
        with self._lock:
            self._failures.clear()

    def calls_for(self, operation: str) -> list[str]:
        """Host labels an operation was invoked for, in call order."""
        with self._lock:
            return [label for name, label in self.calls if name == operation]

    def operations(self) -> list[str]:
        """Distinct operation names in first-call order."""
        with self._lock:
            return list(dict.fromkeys(name for name, _ in self.calls))

    def _state(self, host: HostSpec) -> SimulatedHost:
        state = self.hosts.setdefault(host.label, SimulatedHost())
        if state.private_address is None:
            state.private_address = host.address
        return state

    def _record(self, operation: str, host: HostSpec | None) -> SimulatedHost | None:
        label = host.label if host is not None else "-"
        with self._lock:
            self.calls.append((operation, label))
            message = self._failures.get((operation, label)) or self._failures.get((operation, None))
            if message is not None:
                raise ProvisioningError(operation, label, message)
            return self._state(host) if host is not None else None

    def _peer_address(self, host: HostSpec, state: SimulatedHost) -> str:
        return host.private_address or state.private_address or host.address

    # Session handling

    def connect(self, host: HostSpec) -> None:
        state = self._record("connect", host)
        state.connected = True

    def disconnect(self, host: HostSpec) -> None:
        state = self._record("disconnect", host)
        state.connected = False

    def _require_session(self, operation: str, host: HostSpec, state: SimulatedHost) -> None:
        if not state.connected:
            raise ProvisioningError(operation, host.label, "not connected")

    # Discovery

    def detect_os(self, host: HostSpec) -> str:
        state = self._record("detect_os", host)
        self._require_session("detect_os", host, state)
        return state.os

    def prepare_host(self, host: HostSpec, os_id: str) -> None:
        state = self._record("prepare_host", host)
        self._require_session("prepare_host", host, state)
        state.prepared = True

    def gather_facts(self, host: HostSpec) -> DiscoveredFacts:
        state = self._record("gather_facts", host)
        self._require_session("gather_facts", host, state)
        return DiscoveredFacts(
            hostname=state.hostname or host.address.replace(".", "-"),
            arch=state.arch,
            private_interface=state.private_interface,
            private_address=state.private_address,
        )

    def gather_runtime_facts(self, host: HostSpec) -> RuntimeStatus:
        state = self._record("gather_runtime_facts", host)
        self._require_session("gather_runtime_facts", host, state)
        return RuntimeStatus(running_version=state.running_version, role=state.role)

    def etcd_members(self, leader: HostSpec) -> list[str]:
        self._record("etcd_members", leader)
        with self._lock:
            return sorted(self.etcd)

    def default_config(self, version: str) -> dict[str, Any]:
        self._record("default_config", None)
        return {
            "apiVersion": "k0s.k0sproject.io/v1beta1",
            "kind": "ClusterConfig",
            "metadata": {"name": "k0s"},
            "spec": {"network": {"provider": "kuberouter"}},
        }

    # Binaries and files

    def download_binary(self, version: str, arch: str) -> str:
        self._record("download_binary", None)
        path = f"/var/cache/k0s/k0s-{version}-{arch}"
        with self._lock:
            self._downloads[path] = version
        return path

    def upload_binary(self, host: HostSpec, local_path: str) -> None:
        state = self._record("upload_binary", host)
        self._require_session("upload_binary", host, state)
        with self._lock:
            if local_path not in self._downloads:
                raise ProvisioningError("upload_binary", host.label, f"{local_path} was never downloaded")
            state.staged_version = self._downloads[local_path]

    def download_binary_on_host(self, host: HostSpec, version: str, arch: str) -> None:
        state = self._record("download_binary_on_host", host)
        self._require_session("download_binary_on_host", host, state)
        state.staged_version = version

    def upload_file(self, host: HostSpec, upload: UploadFile) -> None:
        state = self._record("upload_file", host)
        self._require_session("upload_file", host, state)
        state.files[upload.destination] = upload.source

    def install_binary(self, host: HostSpec, version: str) -> None:
        state = self._record("install_binary", host)
        self._require_session("install_binary", host, state)
        if state.staged_version != version:
            raise ProvisioningError("install_binary", host.label, f"no staged binary for {version}")
        state.installed_version = version

    def prepare_arm(self, host: HostSpec) -> None:
        state = self._record("prepare_arm", host)
        state.arm_prepared = True

    # Installation

    def configure(self, host: HostSpec, config: dict[str, Any], dynamic_config: bool) -> None:
        state = self._record("configure", host)
        self._require_session("configure", host, state)
        state.config = config

    def initialize_controller(self, host: HostSpec, version: str) -> None:
        state = self._record("initialize_controller", host)
        self._start(host, state, version)

    def create_join_token(self, leader: HostSpec, role: HostRole) -> str:
        state = self._record("create_join_token", leader)
        if state.running_version is None:
            raise ProvisioningError("create_join_token", leader.label, "leader is not running")
        return f"{role}-token-{arrow.utcnow().int_timestamp}"

    def join_controller(self, host: HostSpec, token: str) -> None:
        state = self._record("join_controller", host)
        self._start(host, state, state.installed_version)

    def join_worker(self, host: HostSpec, token: str, wait: bool) -> None:
        state = self._record("join_worker", host)
        self._start(host, state, state.installed_version)

    def _start(self, host: HostSpec, state: SimulatedHost, version: str | None) -> None:
        if version is None or state.installed_version != version:
            raise ProvisioningError("start", host.label, "runtime binary is not installed")
        with self._lock:
            state.running_version = version
            state.role = str(host.role)
            if host.is_controller:
                self.etcd.add(self._peer_address(host, state))

    def upgrade_controller(self, host: HostSpec, version: str) -> None:
        state = self._record("upgrade_controller", host)
        self._start(host, state, version)

    def upgrade_worker(self, host: HostSpec, version: str, drain: bool) -> None:
        state = self._record("upgrade_worker", host)
        self._start(host, state, version)

    def fetch_kubeconfig(self, leader: HostSpec, api_address: str) -> str:
        self._record("fetch_kubeconfig", leader)
        with self._lock:
            self._kubeconfig_serial += 1
            serial = self._kubeconfig_serial
        document = {
            "apiVersion": "v1",
            "kind": "Config",
            "clusters": [{"name": "k0s", "cluster": {"server": f"https://{api_address}:6443"}}],
            "users": [{"name": "admin", "user": {"token": f"simulated-admin-{serial}"}}],
            "contexts": [{"name": "k0s", "context": {"cluster": "k0s", "user": "admin"}}],
            "current-context": "k0s",
        }
        return yaml.safe_dump(document, sort_keys=False)

    # Removal

    def reset_worker(self, host: HostSpec, drain: bool, delete_node: bool) -> None:
        state = self._record("reset_worker", host)
        self._reset(state)

    def reset_controller(self, host: HostSpec, drain: bool, delete_node: bool, leave_etcd: bool) -> None:
        state = self._record("reset_controller", host)
        with self._lock:
            if leave_etcd:
                self.etcd.discard(self._peer_address(host, state))
            self._reset(state)
            # The last controller going away takes the etcd cluster with it
            if not any(other.running_version and other.role != HostRole.WORKER for other in self.hosts.values()):
                self.etcd.clear()

    def _reset(self, state: SimulatedHost) -> None:
        with self._lock:
            state.running_version = None
            state.installed_version = None
            state.staged_version = None
            state.role = None
            state.config = None
        logger.trace("Simulated host reset")
