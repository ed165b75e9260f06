"""Pipeline execution orchestration components.

This module provides the PipelineExecutor class responsible for running the
ordered steps of a lifecycle pipeline against a RunContext.

Key Features:
- Strictly sequential steps: step i+1 never starts before step i succeeded
- Fail-fast: after the first failure no further regular step is executed
- Finalizer steps (lock release, disconnect) still run after a failure and
  never replace the original diagnostic
- A still-held lock token is released on every exit path
- No rollback and no pipeline-level retry
"""

from loguru import logger

from .base import Step
from .context import RunContext
from .enums import LifecycleVerb, StepStatus
from .models import PipelineResult, StepResult
from .step_executor import StepExecutor


class PipelineExecutor:
    """Handles the execution logic for lifecycle pipelines.

    The PipelineExecutor walks the steps in order, records one StepResult per
    step and stops scheduling regular steps at the first failure. Steps that
    were never executed are recorded as skipped so the caller can see exactly
    what did not run.
    """

    def __init__(self):
        self._step_executor = StepExecutor()

    def execute_pipeline(self, steps: list[Step], ctx: RunContext, verb: LifecycleVerb) -> PipelineResult:
        """Execute the steps sequentially.

        Args:
            steps: Ordered steps of the pipeline
            ctx: Run context for this invocation
            verb: Lifecycle verb being executed (for the result)

        Returns:
            PipelineResult: Step results and, on failure, the failing step and
                its diagnostic. Counts and timing are added by ResultCalculator.
        """
        logger.info(f"Starting {verb} pipeline for cluster '{ctx.cluster_name}' ({len(steps)} steps)")

        result = PipelineResult(
            verb=verb,
            cluster_name=ctx.cluster_name,
            run_id=ctx.run_id,
            overall_status=StepStatus.RUNNING,
            message=f"{verb} pipeline in progress",
        )
        failure: StepResult | None = None
        current: Step | None = None

        try:
            for step in steps:
                current = step
                if failure is not None and not step.always_run:
                    result.step_results.append(self._skipped_result(step, failure))
                    continue

                step_result = self._step_executor.execute_step(step, ctx)
                result.step_results.append(step_result)

                if step_result.status != StepStatus.FAILED:
                    continue
                if failure is None:
                    failure = step_result
                    ctx.cancel()
                    logger.error(f"Step {step.name} failed, remaining steps will not run")
                else:
                    logger.warning(f"Finalizer {step.name} failed after earlier failure of {failure.step_name}: {step_result.message}")

        except Exception as e:
            logger.error(f"Pipeline execution failed with exception: {e}")
            ctx.cancel()
            if failure is None:
                failure = StepResult(
                    step_name=current.name if current else "pipeline",
                    status=StepStatus.FAILED,
                    message=f"Pipeline execution failed: {e}",
                    details={"exception": str(e), "type": type(e).__name__},
                )
        finally:
            self._release_leftover_lock(ctx)

        if failure is not None:
            result.overall_status = StepStatus.FAILED
            result.failed_step = failure.step_name
            result.message = failure.message

        return result

    def _skipped_result(self, step: Step, failure: StepResult) -> StepResult:
        logger.info(f"Skipping step {step.name} due to failure of {failure.step_name}")
        return StepResult(
            step_name=step.name,
            status=StepStatus.SKIPPED,
            message=f"Not executed: step '{failure.step_name}' failed",
        )

    def _release_leftover_lock(self, ctx: RunContext) -> None:
        """Release the lock if no release step did, e.g. after an interrupt."""
        token = ctx.lock_token
        if token is None or token.released:
            return

        logger.warning(f"Lock for cluster '{token.cluster_name}' still held at end of run, releasing")
        try:
            token.provider.release(token)
        except Exception as e:  # noqa: BLE001
            # Must not mask the run's own outcome
            logger.error(f"Failed to release lock for cluster '{token.cluster_name}': {e}")
        finally:
            ctx.lock_token = None
