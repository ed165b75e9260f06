"""Main pipeline implementation for orchestrating lifecycle steps.

This module provides the Pipeline class, the ordered, verb-specific list of
steps a lifecycle operation executes. A pipeline is built without touching
any host, so its step order and step flags can be inspected (planned) before
anything runs.

Key Features:
- Fixed step order per lifecycle verb
- Host scope (whole host set, or the leader only for reads)
- Integration with executor and calculator components
- Plan output without execution

Typical Usage:
    pipeline = build_pipeline(LifecycleVerb.CREATE, options, lock_provider)
    print(pipeline.get_step_names())

    ctx = RunContext.create(specification, options, backend, pipeline.host_scope)
    result = pipeline.execute(ctx)
    if result.succeeded:
        print(result.kubeconfig)
"""

from typing import Any

import arrow
from loguru import logger

from k0s_orchestrator.backends.base import ProvisioningBackend
from k0s_orchestrator.specification.models import ClusterSpecification
from k0s_orchestrator.specification.options import PipelineOptions

from .base import Step
from .calculator import ResultCalculator
from .context import RunContext
from .enums import HostScope, LifecycleVerb
from .executor import PipelineExecutor
from .models import PipelineResult, StepResult


class Pipeline:
    """Ordered steps of one lifecycle verb.

    Attributes:
        verb: Lifecycle verb the pipeline implements
        steps: Steps to execute in order
        host_scope: Hosts the run context should target
        last_result: Most recent completed execution result
    """

    def __init__(self, verb: LifecycleVerb, steps: list[Step], host_scope: HostScope = HostScope.ALL):
        self.verb = verb
        self.steps = steps
        self.host_scope = host_scope
        self.last_result: PipelineResult | None = None

        self._executor = PipelineExecutor()
        self._calculator = ResultCalculator()

    def execute(self, ctx: RunContext) -> PipelineResult:
        """Execute the pipeline against ``ctx`` and return the finalized result.

        All log records of the run carry the cluster name, verb and run id.
        """
        start_time = arrow.utcnow().float_timestamp
        with logger.contextualize(cluster=ctx.cluster_name, verb=str(self.verb), run_id=ctx.run_id):
            result = self._executor.execute_pipeline(self.steps, ctx, self.verb)
            result = self._calculator.finalize_result(result, ctx, start_time)

        self.last_result = result
        return result

    def create_context(
        self, specification: ClusterSpecification, options: PipelineOptions, backend: ProvisioningBackend
    ) -> RunContext:
        """Create a run context targeting this pipeline's host scope."""
        return RunContext.create(specification, options, backend, self.host_scope)

    def get_step_names(self) -> list[str]:
        """Get names of all steps in execution order."""
        return [step.name for step in self.steps]

    def get_step(self, step_name: str) -> Step | None:
        """Get a step by name, or None if the pipeline has no such step."""
        return next((step for step in self.steps if step.name == step_name), None)

    def get_step_result(self, step_name: str) -> StepResult | None:
        """Get the last execution result for a specific step."""
        if not self.last_result:
            return None
        return self.last_result.get_step_result(step_name)

    def describe(self) -> list[dict[str, Any]]:
        """Ordered plan of the pipeline; nothing is executed."""
        return [step.describe() for step in self.steps]

    def __str__(self) -> str:
        return f"Pipeline(verb={self.verb}, steps={len(self.steps)})"

    def __repr__(self) -> str:
        return f"Pipeline(verb={self.verb}, host_scope={self.host_scope}, steps={self.get_step_names()})"
