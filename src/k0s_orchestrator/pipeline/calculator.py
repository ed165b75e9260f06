"""Pipeline result finalization.

Typical Usage:
    calculator = ResultCalculator()
    final_result = calculator.finalize_result(pipeline_result, ctx, start_time)

    if final_result.succeeded:
        print(final_result.kubeconfig)
"""

import arrow
from loguru import logger

from .context import RunContext
from .enums import StepStatus
from .models import PipelineResult


class ResultCalculator:
    """Computes counts, final status and outputs of a pipeline run.

    A run succeeds only if no step failed; there is no partial success. The
    credential issued by the fetch-credentials step is copied from the run
    context into the result only for successful runs.
    """

    def finalize_result(self, result: PipelineResult, ctx: RunContext, start_time: float) -> PipelineResult:
        """Calculate final statistics and the overall status.

        Args:
            result: Result produced by PipelineExecutor
            ctx: Run context holding the accumulated outputs
            start_time: Unix timestamp (float) when the run began

        Returns:
            PipelineResult: The same result object, finalized
        """
        result.total_steps = len(result.step_results)
        result.successful_steps = sum(1 for sr in result.step_results if sr.status == StepStatus.SUCCESS)
        result.failed_steps = sum(1 for sr in result.step_results if sr.status == StepStatus.FAILED)
        result.skipped_steps = sum(1 for sr in result.step_results if sr.status == StepStatus.SKIPPED)

        if result.overall_status == StepStatus.RUNNING and result.failed_steps == 0:
            result.overall_status = StepStatus.SUCCESS
            result.message = f"{result.verb} of cluster '{result.cluster_name}' completed successfully"
            result.kubeconfig = ctx.kubeconfig
            logger.info(f"Pipeline completed successfully ({result.total_steps} steps)")
        else:
            logger.warning(f"Pipeline failed at step {result.failed_step}: {result.message}")

        result.total_execution_time_ms = (arrow.utcnow().float_timestamp - start_time) * 1000
        return result
