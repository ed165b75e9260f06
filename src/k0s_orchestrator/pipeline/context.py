"""Per-run state shared by the steps of one pipeline execution.

A ``RunContext`` is created when a runner invocation starts and discarded when
it ends. It is never shared between runs, and the cluster lock guarantees that
no two runs of the same cluster mutate hosts at the same time.
"""

import threading
import uuid
from dataclasses import dataclass, field
from typing import Any

from k0s_orchestrator.backends.base import ProvisioningBackend
from k0s_orchestrator.locking.base import LockToken
from k0s_orchestrator.specification.models import ClusterSpecification, HostSpec
from k0s_orchestrator.specification.options import PipelineOptions

from .enums import HostScope


@dataclass
class HostFacts:
    """What the steps have learned about one host during this run."""

    os: str | None = None
    hostname: str | None = None
    arch: str | None = None
    private_interface: str | None = None
    private_address: str | None = None
    running_version: str | None = None
    runtime_gathered: bool = False
    connected: bool = False


@dataclass
class RunContext:
    """Host set, lock token, cancellation flag and accumulating result of a run."""

    specification: ClusterSpecification
    options: PipelineOptions
    backend: ProvisioningBackend
    hosts: list[HostSpec]
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    lock_token: LockToken | None = None
    cancelled: threading.Event = field(default_factory=threading.Event)
    facts: dict[str, HostFacts] = field(default_factory=dict)
    config: dict[str, Any] | None = None
    binaries: dict[str, str] = field(default_factory=dict)  # arch -> local binary path
    join_tokens: dict[str, str] = field(default_factory=dict, repr=False)  # role -> token
    kubeconfig: str | None = field(default=None, repr=False)

    def __post_init__(self):
        # Every host gets its facts entry up front so fan-out threads never insert
        for host in self.hosts:
            self.facts.setdefault(host.label, HostFacts())

    @classmethod
    def create(
        cls,
        specification: ClusterSpecification,
        options: PipelineOptions,
        backend: ProvisioningBackend,
        host_scope: HostScope = HostScope.ALL,
    ) -> "RunContext":
        """Create the context for a run, resolving the host set from the scope."""
        hosts = [specification.leader] if host_scope == HostScope.LEADER else list(specification.hosts)
        return cls(specification=specification, options=options, backend=backend, hosts=hosts)

    @property
    def cluster_name(self) -> str:
        return self.specification.name

    @property
    def target_version(self) -> str:
        return self.specification.runtime_version

    @property
    def leader(self) -> HostSpec:
        return self.specification.leader

    def facts_for(self, host: HostSpec) -> HostFacts:
        return self.facts[host.label]

    def controllers(self) -> list[HostSpec]:
        return [host for host in self.hosts if host.is_controller]

    def workers(self) -> list[HostSpec]:
        return [host for host in self.hosts if not host.is_controller]

    def is_running(self, host: HostSpec) -> bool:
        return self.facts_for(host).running_version is not None

    def needs_binary(self, host: HostSpec) -> bool:
        """Host does not yet run the target version."""
        return self.facts_for(host).running_version != self.target_version

    def api_address(self) -> str:
        """Address clients use to reach the control plane."""
        return self.leader.address

    def cancel(self) -> None:
        self.cancelled.set()

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled.is_set()
