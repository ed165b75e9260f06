"""Teardown steps used by the delete pipeline.

Workers go first, then the non-leader controllers one by one, and the
leader last so the cluster API stays reachable while nodes are removed.
"""

from k0s_orchestrator.constants import STEP_RESET_CONTROLLERS, STEP_RESET_LEADER, STEP_RESET_WORKERS
from k0s_orchestrator.pipeline.base import HostFanOutStep, Step
from k0s_orchestrator.pipeline.context import RunContext
from k0s_orchestrator.pipeline.models import StepResult
from k0s_orchestrator.specification.models import HostSpec


class ResetWorkers(HostFanOutStep):
    idle_message = "No running workers"

    def __init__(self, no_drain: bool = False, no_delete: bool = False):
        super().__init__(STEP_RESET_WORKERS, "Reset workers")
        self.no_drain = no_drain
        self.no_delete = no_delete

    def flags(self) -> dict[str, bool]:
        return {"no_drain": self.no_drain, "no_delete": self.no_delete}

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return [host for host in ctx.workers() if ctx.is_running(host)]

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        ctx.backend.reset_worker(host, drain=not self.no_drain, delete_node=not self.no_delete)
        ctx.facts_for(host).running_version = None
        return "reset"


class ResetControllers(HostFanOutStep):
    """Reset the non-leader controllers, one at a time."""

    max_concurrency = 1
    idle_message = "No running controllers besides the leader"

    def __init__(self, no_drain: bool = False, no_delete: bool = False, no_leave: bool = False):
        super().__init__(STEP_RESET_CONTROLLERS, "Reset controllers")
        self.no_drain = no_drain
        self.no_delete = no_delete
        self.no_leave = no_leave

    def flags(self) -> dict[str, bool]:
        return {"no_drain": self.no_drain, "no_delete": self.no_delete, "no_leave": self.no_leave}

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return [host for host in ctx.controllers() if host != ctx.leader and ctx.is_running(host)]

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        ctx.backend.reset_controller(
            host,
            drain=not self.no_drain,
            delete_node=not self.no_delete,
            leave_etcd=not self.no_leave,
        )
        ctx.facts_for(host).running_version = None
        return "reset"


class ResetLeader(Step):
    """Reset the leader once everything else is gone."""

    def __init__(self):
        super().__init__(STEP_RESET_LEADER, "Reset the leader controller")

    def _execute(self, ctx: RunContext) -> StepResult:
        leader = ctx.leader
        if not ctx.is_running(leader):
            return self.success(f"Leader {leader.label} has nothing to reset")

        # Nothing left to drain, delete or leave once the leader is the last controller
        ctx.backend.reset_controller(leader, drain=False, delete_node=False, leave_etcd=False)
        ctx.facts_for(leader).running_version = None
        return self.success(f"Leader {leader.label} reset", host_results={leader.label: "reset"})
