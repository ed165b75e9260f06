"""Cluster lifecycle commands."""

from pathlib import Path

import typer

from k0s_orchestrator.cli.render import render_plan, render_result
from k0s_orchestrator.cli.utils import console, load_request_document
from k0s_orchestrator.exceptions import PipelineExecutionError, SpecificationValidationError
from k0s_orchestrator.models.api_model import ClusterResult
from k0s_orchestrator.pipeline import LifecycleVerb
from k0s_orchestrator.services.lifecycle_service import LifecycleService
from k0s_orchestrator.services.registry import get_service_registry

app = typer.Typer(help="Cluster lifecycle operations", no_args_is_help=True)

FILE_ARGUMENT = typer.Argument(..., help="Cluster request document (YAML)", metavar="<file>")
KUBECONFIG_OPTION = typer.Option(
    None,
    "--kubeconfig-out",
    "-o",
    help="Write the admin kubeconfig to this path instead of printing it",
    metavar="<path>",
)  # fmt: skip


def _lifecycle() -> LifecycleService:
    return get_service_registry().get(LifecycleService)


def _run(verb: LifecycleVerb, file: Path) -> ClusterResult:
    """Run one verb and render its outcome; exit 1 on rejection or failure."""
    document = load_request_document(file)
    try:
        result = _lifecycle().run(verb, document)
    except SpecificationValidationError as e:
        console.print("[red]Invalid cluster specification:[/red]")
        for error in e.errors:
            console.print(f"  [red]- {error}[/red]")
        raise typer.Exit(1) from None
    except PipelineExecutionError as e:
        render_result(console, e.result)
        console.print(f"[red]Step '{e.step}' failed: {e.diagnostic}[/red]")
        raise typer.Exit(1) from None

    render_result(console, result.pipeline)
    return result


def _emit_kubeconfig(result: ClusterResult, kubeconfig_out: Path | None) -> None:
    if not result.kubeconfig:
        return
    if kubeconfig_out is None:
        console.print(result.kubeconfig, markup=False, highlight=False)
        return
    kubeconfig_out.write_text(result.kubeconfig, encoding="utf-8")
    kubeconfig_out.chmod(0o600)
    console.print(f"[green]Kubeconfig written to {kubeconfig_out}[/green]")


@app.command()
def apply(
    file: Path = FILE_ARGUMENT,
    update: bool = typer.Option(False, "--update", help="Converge an existing cluster instead of creating one"),
    kubeconfig_out: Path | None = KUBECONFIG_OPTION,
):
    """Create (or with --update, update) the cluster described by FILE.

    Examples:
        k0s-orchestrator-cli cluster apply cluster.yaml
        k0s-orchestrator-cli cluster apply cluster.yaml --update -o admin.conf
    """
    verb = LifecycleVerb.UPDATE if update else LifecycleVerb.CREATE
    result = _run(verb, file)
    console.print(f"[bold green]Cluster '{result.name}' is ready[/bold green]")
    _emit_kubeconfig(result, kubeconfig_out)


@app.command()
def read(file: Path = FILE_ARGUMENT, kubeconfig_out: Path | None = KUBECONFIG_OPTION):
    """Read the cluster from its leader and fetch a fresh kubeconfig."""
    result = _run(LifecycleVerb.READ, file)
    _emit_kubeconfig(result, kubeconfig_out)


@app.command()
def delete(
    file: Path = FILE_ARGUMENT,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Reset every host of the cluster described by FILE."""
    if not yes:
        console.print("[yellow]This resets the runtime on every host of the cluster.[/yellow]")
        if not typer.confirm("Proceed with cluster deletion?"):
            console.print("[yellow]Deletion cancelled.[/yellow]")
            raise typer.Exit(0)

    result = _run(LifecycleVerb.DELETE, file)
    console.print(f"[bold green]Cluster '{result.name}' deleted[/bold green]")


@app.command()
def plan(
    file: Path = FILE_ARGUMENT,
    verb: LifecycleVerb = typer.Option(LifecycleVerb.CREATE, "--verb", help="Lifecycle verb to plan"),
):
    """Show the ordered steps a verb would run, without touching any host."""
    document = load_request_document(file)
    try:
        pipeline_plan = _lifecycle().plan(verb, document)
    except SpecificationValidationError as e:
        console.print("[red]Invalid cluster specification:[/red]")
        for error in e.errors:
            console.print(f"  [red]- {error}[/red]")
        raise typer.Exit(1) from None
    render_plan(console, pipeline_plan)
