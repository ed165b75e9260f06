"""Steps that bring the runtime up, join hosts and upgrade them."""

from k0s_orchestrator.constants import (
    STEP_CONFIGURE,
    STEP_FETCH_CREDENTIALS,
    STEP_INITIALIZE_LEADER,
    STEP_INSTALL_CONTROLLERS,
    STEP_INSTALL_WORKERS,
    STEP_UPGRADE_CONTROLLERS,
    STEP_UPGRADE_WORKERS,
)
from k0s_orchestrator.pipeline.base import HostFanOutStep, Step
from k0s_orchestrator.pipeline.context import RunContext
from k0s_orchestrator.pipeline.models import StepResult
from k0s_orchestrator.specification.models import HostRole, HostSpec


class ConfigureRuntime(HostFanOutStep):
    """Write the runtime configuration to every controller."""

    idle_message = "No controllers to configure"

    def __init__(self):
        super().__init__(STEP_CONFIGURE, "Write runtime configuration to controllers")

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return ctx.controllers()

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        ctx.backend.configure(host, ctx.config or {}, ctx.specification.dynamic_config)
        return "configured"


class InitializeLeader(Step):
    """Bootstrap the cluster on the leader if it is not running yet."""

    def __init__(self):
        super().__init__(STEP_INITIALIZE_LEADER, "Initialize the leader controller")

    def _execute(self, ctx: RunContext) -> StepResult:
        leader = ctx.leader
        if ctx.is_running(leader):
            return self.success(f"Leader {leader.label} already running {ctx.facts_for(leader).running_version}")

        ctx.backend.initialize_controller(leader, ctx.target_version)
        ctx.facts_for(leader).running_version = ctx.target_version
        return self.success(f"Leader {leader.label} initialized", host_results={leader.label: "initialized"})


class InstallControllers(HostFanOutStep):
    """Join the remaining controllers, one at a time."""

    max_concurrency = 1
    idle_message = "All controllers already joined"

    def __init__(self):
        super().__init__(STEP_INSTALL_CONTROLLERS, "Join additional controllers")

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return [host for host in ctx.controllers() if host != ctx.leader and not ctx.is_running(host)]

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        # etcd membership changes one at a time, so every controller gets its own token
        token = ctx.backend.create_join_token(ctx.leader, HostRole.CONTROLLER)
        ctx.backend.join_controller(host, token)
        ctx.facts_for(host).running_version = ctx.target_version
        return "joined"


class InstallWorkers(HostFanOutStep):
    """Join every worker that is not running yet."""

    idle_message = "All workers already joined"

    def __init__(self, no_wait: bool = False):
        super().__init__(STEP_INSTALL_WORKERS, "Join workers")
        self.no_wait = no_wait

    def flags(self) -> dict[str, bool]:
        return {"no_wait": self.no_wait}

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return [host for host in ctx.workers() if not ctx.is_running(host)]

    def _execute(self, ctx: RunContext) -> StepResult:
        if self.select_hosts(ctx) and HostRole.WORKER not in ctx.join_tokens:
            ctx.join_tokens[HostRole.WORKER] = ctx.backend.create_join_token(ctx.leader, HostRole.WORKER)
        return super()._execute(ctx)

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        ctx.backend.join_worker(host, ctx.join_tokens[HostRole.WORKER], wait=not self.no_wait)
        ctx.facts_for(host).running_version = ctx.target_version
        return "joined" if self.no_wait else "joined and ready"


class UpgradeControllers(HostFanOutStep):
    """Upgrade running controllers to the target version, one at a time."""

    max_concurrency = 1
    idle_message = "All controllers at target version"

    def __init__(self):
        super().__init__(STEP_UPGRADE_CONTROLLERS, "Upgrade controllers")

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return [host for host in ctx.controllers() if ctx.is_running(host) and ctx.needs_binary(host)]

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        previous = ctx.facts_for(host).running_version
        ctx.backend.upgrade_controller(host, ctx.target_version)
        ctx.facts_for(host).running_version = ctx.target_version
        return f"{previous} -> {ctx.target_version}"


class UpgradeWorkers(HostFanOutStep):
    """Upgrade running workers to the target version."""

    idle_message = "All workers at target version"

    def __init__(self, no_drain: bool = False):
        super().__init__(STEP_UPGRADE_WORKERS, "Upgrade workers")
        self.no_drain = no_drain

    def flags(self) -> dict[str, bool]:
        return {"no_drain": self.no_drain}

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return [host for host in ctx.workers() if ctx.is_running(host) and ctx.needs_binary(host)]

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        previous = ctx.facts_for(host).running_version
        ctx.backend.upgrade_worker(host, ctx.target_version, drain=not self.no_drain)
        ctx.facts_for(host).running_version = ctx.target_version
        return f"{previous} -> {ctx.target_version}"


class FetchCredentials(Step):
    """Read the admin kubeconfig from the leader."""

    def __init__(self):
        super().__init__(STEP_FETCH_CREDENTIALS, "Fetch admin kubeconfig from the leader")

    def _execute(self, ctx: RunContext) -> StepResult:
        leader = ctx.leader
        if ctx.facts_for(leader).runtime_gathered and not ctx.is_running(leader):
            return self.failed(f"Leader {leader.label} is not running, no credentials to fetch")

        ctx.kubeconfig = ctx.backend.fetch_kubeconfig(leader, ctx.api_address())
        return self.success(f"Kubeconfig fetched from {leader.label}", {"api_address": ctx.api_address()})
