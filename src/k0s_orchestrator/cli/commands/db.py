"""Database management commands."""

import typer
from sqlalchemy.exc import SQLAlchemyError

from k0s_orchestrator.cli.utils import console
from k0s_orchestrator.database import AlembicManager, borrow_db_session
from k0s_orchestrator.settings import get_settings

app = typer.Typer(help="Database operations for cluster records and advisory locks")


def _check_connection() -> None:
    """Exit 1 unless a database is configured and reachable."""
    if not get_settings().database_url:
        console.print("[red]No database configured: set K0S_ORCHESTRATOR_DATABASE_URL[/red]")
        raise typer.Exit(1)
    try:
        with borrow_db_session():
            pass
    except (OSError, ValueError, SQLAlchemyError) as e:
        console.print(f"[red]Database connection failed: {e}[/red]")
        raise typer.Exit(1) from None
    console.print("[green]Database connection is healthy[/green]")


@app.command()
def check():
    """Check database connection and schema status.

    Examples:
        k0s-orchestrator-cli db check
    """
    console.print("[bold]Checking database connection and schema...[/bold]\n")
    _check_connection()

    message, details, is_current = AlembicManager().validate_schema_state()
    if not is_current:
        console.print(f"[red]{message}[/red]")
        console.print(f"[dim]Current: {details.get('current_revision', 'Unknown')}[/dim]")
        console.print(f"[dim]Head: {details.get('head_revision', 'Unknown')}[/dim]")
        raise typer.Exit(1)

    console.print(f"[green]{message}[/green]")


@app.command()
def upgrade(
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt and proceed with migration automatically",
    ),
):
    """Upgrade database to latest schema version.

    Examples:
        k0s-orchestrator-cli db upgrade
        k0s-orchestrator-cli db upgrade --yes
    """
    console.print("[bold]Upgrading database to latest version...[/bold]\n")
    _check_connection()

    alembic_manager = AlembicManager()
    message, details, is_current = alembic_manager.validate_schema_state()

    if is_current:
        console.print("[green]Database is already at latest version[/green]")
        console.print(f"[dim]Current revision: {details.get('current_revision', 'Unknown')}[/dim]")
        return

    console.print("[yellow]Database upgrade needed:[/yellow]")
    console.print(f"[dim]{message}[/dim]\n")

    if not yes:
        console.print("[yellow]The upgrade process will modify your database schema.[/yellow]")
        if not typer.confirm("Proceed with database upgrade?"):
            console.print("[yellow]Upgrade cancelled.[/yellow]")
            raise typer.Exit(0)

    if not alembic_manager.perform_migration():
        console.print("[red]Database upgrade failed[/red]")
        raise typer.Exit(1)

    message, _, is_current = alembic_manager.validate_schema_state()
    if not is_current:
        console.print(f"[red]Post-upgrade validation failed: {message}[/red]")
        raise typer.Exit(1)
    console.print("[bold green]Database upgrade completed successfully![/bold green]")
