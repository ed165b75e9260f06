"""Discovery and validation steps.

These steps learn about the hosts and refuse to continue when the declared
cluster cannot be applied to what was found. None of them changes the
runtime on a host.
"""

import copy
from collections import defaultdict

from k0s_orchestrator.constants import (
    STEP_DEFAULT_VERSION,
    STEP_GATHER_FACTS,
    STEP_GATHER_RUNTIME_FACTS,
    STEP_PREPARE_HOSTS,
    STEP_VALIDATE_FACTS,
    STEP_VALIDATE_HOSTS,
    STEP_VALIDATE_QUORUM,
)
from k0s_orchestrator.pipeline.base import HostFanOutStep, Step
from k0s_orchestrator.pipeline.context import RunContext
from k0s_orchestrator.pipeline.models import StepResult
from k0s_orchestrator.specification.models import HostRole, HostSpec
from k0s_orchestrator.specification.version import parse_version


class ResolveDefaults(Step):
    """Settle the runtime configuration for the run.

    A declared configuration document is used as is; without one the backend
    generates the default configuration for the target version.
    """

    def __init__(self):
        super().__init__(STEP_DEFAULT_VERSION, "Resolve version defaults and runtime configuration")

    def _execute(self, ctx: RunContext) -> StepResult:
        embedded = ctx.specification.embedded_config
        if embedded is not None:
            ctx.config = copy.deepcopy(embedded)
            return self.success(f"Using declared configuration for {ctx.target_version}")

        ctx.config = ctx.backend.default_config(ctx.target_version)
        return self.success(f"Generated default configuration for {ctx.target_version}")


class PrepareHosts(HostFanOutStep):
    """Install OS prerequisites and apply host environment settings."""

    def __init__(self):
        super().__init__(STEP_PREPARE_HOSTS, "Install host prerequisites")

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        os_id = ctx.facts_for(host).os or "unknown"
        ctx.backend.prepare_host(host, os_id)
        return f"prepared ({os_id})"


class GatherFacts(HostFanOutStep):
    """Discover hostname, architecture and private networking.

    Declared overrides win over discovered values.
    """

    def __init__(self):
        super().__init__(STEP_GATHER_FACTS, "Gather host facts")

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        discovered = ctx.backend.gather_facts(host)
        facts = ctx.facts_for(host)
        facts.hostname = host.hostname or discovered.hostname
        facts.arch = discovered.arch
        facts.private_interface = host.private_interface or discovered.private_interface
        facts.private_address = host.private_address or discovered.private_address
        return f"{facts.hostname} ({facts.arch})"


class ValidateHosts(Step):
    """Reject host sets whose hostnames or private addresses collide."""

    def __init__(self):
        super().__init__(STEP_VALIDATE_HOSTS, "Validate gathered host facts")

    def _execute(self, ctx: RunContext) -> StepResult:
        problems = []
        for attribute in ("hostname", "private_address"):
            owners: dict[str, list[str]] = defaultdict(list)
            for host in ctx.hosts:
                value = getattr(ctx.facts_for(host), attribute)
                if value:
                    owners[value].append(host.label)
            problems.extend(
                f"{attribute} '{value}' is used by {', '.join(labels)}" for value, labels in owners.items() if len(labels) > 1
            )

        if problems:
            return self.failed("Host validation failed: " + "; ".join(problems), {"problems": problems})
        return self.success(f"{len(ctx.hosts)} hosts validated")


def _canonical_version(version: str | None) -> str | None:
    """Same textual form as the target version; unparsable values are kept for validation to report."""
    if version is None:
        return None
    try:
        return str(parse_version(version))
    except ValueError:
        return version


class GatherRuntimeFacts(HostFanOutStep):
    """Find out which runtime version, if any, each host is running."""

    def __init__(self):
        super().__init__(STEP_GATHER_RUNTIME_FACTS, "Gather cluster runtime facts")

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        status = ctx.backend.gather_runtime_facts(host)
        facts = ctx.facts_for(host)
        facts.running_version = _canonical_version(status.running_version)
        facts.runtime_gathered = True
        return f"running {facts.running_version}" if status.is_running else "not installed"


class ValidateFacts(Step):
    """Reject downgrades of hosts already running a newer version."""

    def __init__(self, skip_downgrade_check: bool = False):
        super().__init__(STEP_VALIDATE_FACTS, "Validate runtime facts")
        self.skip_downgrade_check = skip_downgrade_check

    def flags(self) -> dict[str, bool]:
        return {"skip_downgrade_check": self.skip_downgrade_check}

    def _execute(self, ctx: RunContext) -> StepResult:
        target = parse_version(ctx.target_version)
        problems = []
        for host in ctx.hosts:
            running = ctx.facts_for(host).running_version
            if running is None:
                continue
            try:
                current = parse_version(running)
            except ValueError:
                problems.append(f"{host.label} reports unparsable version '{running}'")
                continue
            if current > target and not self.skip_downgrade_check:
                problems.append(f"{host.label} runs {current}, downgrading to {target} is not supported")

        if problems:
            return self.failed("Runtime facts validation failed: " + "; ".join(problems), {"problems": problems})
        return self.success(f"Target version {target} is valid for all hosts")


class ValidateQuorum(Step):
    """Check that running controllers are members of the etcd cluster.

    Nothing to check for a new cluster or a single-node cluster, which runs
    without etcd.
    """

    def __init__(self):
        super().__init__(STEP_VALIDATE_QUORUM, "Validate etcd membership of controllers")

    def _execute(self, ctx: RunContext) -> StepResult:
        if ctx.leader.role == HostRole.SINGLE:
            return self.success("Single-node cluster has no etcd membership")

        running = [host for host in ctx.controllers() if ctx.is_running(host)]
        if not running:
            return self.success("New cluster, no etcd membership to validate")

        members = set(ctx.backend.etcd_members(running[0]))
        missing = [
            host.label
            for host in running
            if (ctx.facts_for(host).private_address or host.private_address or host.address) not in members
        ]
        if missing:
            return self.failed(
                f"Running controllers are not etcd members: {', '.join(missing)}",
                {"missing": missing, "members": sorted(members)},
            )
        return self.success(f"{len(running)} running controllers are etcd members", {"members": sorted(members)})
