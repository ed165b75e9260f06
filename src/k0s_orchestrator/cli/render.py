"""Rich rendering of pipeline results and plans."""

from rich.console import Console
from rich.table import Table

from k0s_orchestrator.models.api_model import PipelinePlan
from k0s_orchestrator.pipeline import PipelineResult, StepStatus

STATUS_STYLES = {
    StepStatus.SUCCESS: "green",
    StepStatus.FAILED: "red",
    StepStatus.SKIPPED: "dim",
    StepStatus.RUNNING: "yellow",
    StepStatus.PENDING: "dim",
}


def render_result(console: Console, result: PipelineResult) -> None:
    """Print one row per step with its status, timing and message."""
    table = Table(title=f"{result.verb} {result.cluster_name} (run {result.run_id})")
    table.add_column("Step", style="bold", no_wrap=True)
    table.add_column("Status")
    table.add_column("Time (ms)", justify="right")
    table.add_column("Message")

    for step in result.step_results:
        style = STATUS_STYLES.get(StepStatus(step.status), "")
        elapsed = f"{step.execution_time_ms:.0f}" if step.execution_time_ms is not None else "-"
        table.add_row(step.step_name, f"[{style}]{step.status}[/{style}]", elapsed, step.message)

    console.print(table)
    console.print(
        f"{result.successful_steps} succeeded, {result.failed_steps} failed, "
        f"{result.skipped_steps} skipped of {result.total_steps} steps"
    )


def render_plan(console: Console, plan: PipelinePlan) -> None:
    table = Table(title=f"Plan: {plan.verb} {plan.cluster_name} ({plan.host_scope} hosts)")
    table.add_column("#", justify="right")
    table.add_column("Step", style="bold", no_wrap=True)
    table.add_column("Description")
    table.add_column("Flags")

    for index, step in enumerate(plan.steps, start=1):
        flags = ", ".join(f"{key}={value}" for key, value in step.flags.items())
        name = f"{step.name} [dim](finalizer)[/dim]" if step.finalizer else step.name
        table.add_row(str(index), name, step.description, flags)

    console.print(table)
    console.print(f"Hosts: {', '.join(plan.hosts)}")
