"""Step execution components for lifecycle pipelines.

This module provides the StepExecutor class responsible for executing individual
steps. It handles timing, exception management, and result enrichment.

Key Features:
- Individual step execution with timing measurement
- Exception handling and conversion to failed results
- Result enrichment with execution timestamps
"""

import arrow
from loguru import logger

from .base import Step
from .context import RunContext
from .enums import StepStatus
from .models import StepResult


class StepExecutor:
    """Handles individual step execution within a pipeline run.

    The StepExecutor runs one Step, measures its execution time and converts
    any exception into a failed StepResult carrying the exception
    type and message, so the runner always receives a result and the
    diagnostic reaches the caller unchanged.
    """

    def execute_step(self, step: Step, ctx: RunContext) -> StepResult:
        """Execute a single step and return its enriched result.

        Args:
            step: The Step instance to execute
            ctx: Run context shared by the steps of this run

        Returns:
            StepResult: Enriched result containing execution status, timing
                and timestamp, or exception details if the step raised.
        """
        logger.debug(f"Running step: {step.name}")
        step_start_time = arrow.utcnow().float_timestamp
        executed_at = arrow.utcnow().isoformat()

        try:
            step_result = step.run(ctx)
        except Exception as e:  # noqa: BLE001
            return self._handle_step_exception(step, e, step_start_time, executed_at)

        step_result.executed_at = executed_at
        step_result.execution_time_ms = (arrow.utcnow().float_timestamp - step_start_time) * 1000

        if step_result.status == StepStatus.FAILED:
            logger.error(f"Step {step.name} failed: {step_result.message}")
        else:
            logger.info(f"Step {step.name}: {step_result.message} ({step_result.execution_time_ms:.0f} ms)")
        return step_result

    def _handle_step_exception(self, step: Step, e: Exception, step_start_time: float, executed_at: str) -> StepResult:
        """Convert an exception raised by a step into a failed result."""
        logger.error(f"Step {step.name} raised {type(e).__name__}: {e}")
        return StepResult(
            step_name=step.name,
            status=StepStatus.FAILED,
            message=str(e),
            details={"exception": str(e), "type": type(e).__name__},
            executed_at=executed_at,
            execution_time_ms=(arrow.utcnow().float_timestamp - step_start_time) * 1000,
            finalizer=step.always_run,
        )
