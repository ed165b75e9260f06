"""Main CLI application."""

import typer

from k0s_orchestrator.cli.commands import cluster, db
from k0s_orchestrator.services.di import register_core_services
from k0s_orchestrator.services.registry import get_service_registry

app = typer.Typer(
    name="k0s-orchestrator-cli",
    help="k0s orchestrator CLI - cluster lifecycle and administrative tools",
    no_args_is_help=True,
)


@app.callback()
def main_callback():
    """Global options for all commands."""
    registry = get_service_registry()
    register_core_services(registry)


app.add_typer(cluster.app, name="cluster")
app.add_typer(db.app, name="db")
