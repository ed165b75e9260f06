"""Base abstractions for lifecycle pipeline steps."""

from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from k0s_orchestrator.specification.models import HostSpec

from .context import RunContext
from .enums import StepStatus
from .fanout import run_on_hosts
from .models import StepResult


class Step(ABC):
    """Abstract base class for a single idempotent unit of pipeline work.

    A step reports exactly one outcome. Success lets the pipeline continue;
    failure stops it with no undo of earlier steps. Running a step again
    against a converged cluster must be a no-op that still reports success.

    Attributes:
        acquires_lock: Step takes the cluster lock
        releases_lock: Step gives the cluster lock back
    """

    acquires_lock: bool = False
    releases_lock: bool = False

    def __init__(self, name: str, description: str = "", always_run: bool = False):
        """Initialize the step.

        Args:
            name: The name of this step (used in result.step_name)
            description: Human readable summary shown in plans
            always_run: If True, the step is a finalizer and still runs after
                an earlier step failed (lock release, disconnect)
        """
        self.name = name
        self.description = description
        self.always_run = always_run

    @abstractmethod
    def _execute(self, ctx: RunContext) -> StepResult:
        """Execute the step against the run context.

        This method should be implemented by subclasses.

        Returns:
            StepResult: The result of the step
        """

    def run(self, ctx: RunContext) -> StepResult:
        """Execute the step and return its result."""
        return self._execute(ctx)

    def flags(self) -> dict[str, Any]:
        """Behavior flags this step was built with, for plans and assertions."""
        return {}

    def describe(self) -> dict[str, Any]:
        """Plan entry for this step."""
        return {
            "name": self.name,
            "description": self.description,
            "finalizer": self.always_run,
            "flags": self.flags(),
        }

    def _result(
        self,
        status: StepStatus,
        message: str,
        details: dict[str, Any] | None,
        host_results: dict[str, str] | None,
    ) -> StepResult:
        return StepResult(
            step_name=self.name,
            status=status,
            message=message,
            details=details or {},
            host_results=host_results or {},
            finalizer=self.always_run,
        )

    def success(self, message: str, details: dict[str, Any] | None = None, host_results: dict[str, str] | None = None) -> StepResult:
        """Return a successful step result."""
        return self._result(StepStatus.SUCCESS, message, details, host_results)

    def failed(self, message: str, details: dict[str, Any] | None = None, host_results: dict[str, str] | None = None) -> StepResult:
        """Return a failed step result."""
        return self._result(StepStatus.FAILED, message, details, host_results)

    def skipped(self, message: str, details: dict[str, Any] | None = None) -> StepResult:
        """Return a skipped step result.

        Use only when the step had nothing it was allowed to act on, e.g.
        releasing a lock that was never acquired.
        """
        return self._result(StepStatus.SKIPPED, message, details, None)

    def __repr__(self) -> str:
        flags = ", ".join(f"{key}={value}" for key, value in self.flags().items())
        return f"{type(self).__name__}({self.name!r}{', ' + flags if flags else ''})"


class HostFanOutStep(Step):
    """Step that applies one operation to a selection of hosts in parallel.

    Subclasses choose the hosts and implement the per-host operation. Hosts
    already at the target state are left out of the selection, so a re-run
    selects nothing and succeeds.

    Attributes:
        fail_fast: Stop starting new hosts after the first host failure
        max_concurrency: Upper bound regardless of caller options; 1 makes the
            step process hosts one at a time
    """

    fail_fast: bool = True
    max_concurrency: int | None = None
    idle_message: str = "No hosts require this step"

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        """Hosts this step acts on. Defaults to the whole host set."""
        return list(ctx.hosts)

    @abstractmethod
    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        """Perform the operation on one host and return a short outcome message."""

    def concurrency(self, ctx: RunContext) -> int:
        requested = ctx.options.concurrency
        if self.max_concurrency is None:
            return requested
        if requested <= 0:
            return self.max_concurrency
        return min(requested, self.max_concurrency)

    def _execute(self, ctx: RunContext) -> StepResult:
        hosts = self.select_hosts(ctx)
        if not hosts:
            return self.success(self.idle_message)

        logger.debug(f"Step {self.name}: {len(hosts)} hosts, concurrency {self.concurrency(ctx) or 'unbounded'}")
        report = run_on_hosts(
            hosts,
            lambda host: self.apply_to_host(ctx, host),
            concurrency=self.concurrency(ctx),
            fail_fast=self.fail_fast,
            # Finalizers clean up after a failed run, so cancellation does not stop them
            cancelled=None if self.always_run else ctx.cancelled,
            name=self.name,
        )

        details = {"hosts": [host.label for host in hosts]}
        if report.not_started:
            details["not_started"] = report.not_started

        if not report.ok:
            errors = "; ".join(f"{label}: {error}" for label, error in report.errors.items())
            details["errors"] = report.errors
            return self.failed(
                f"{len(report.errors)} of {len(hosts)} hosts failed: {errors}",
                details,
                host_results=report.outcomes,
            )

        if report.not_started:
            return self.failed("Run was cancelled before all hosts were processed", details, host_results=report.outcomes)

        return self.success(f"Completed on {len(hosts)} hosts", details, host_results=report.outcomes)
