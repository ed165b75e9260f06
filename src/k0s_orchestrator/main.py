"""Main entry point for the orchestrator server using Typer and Pydantic Settings."""

import typer
import uvicorn
from loguru import logger

from k0s_orchestrator.logging import setup_logging
from k0s_orchestrator.settings import get_settings

app = typer.Typer(no_args_is_help=True)


@app.callback()
def main_callback() -> None:
    """k0s orchestrator server."""


HOST_OPTION = typer.Option(
    None,
    help="Host to bind the server to (overrides K0S_ORCHESTRATOR_HOST)",
    metavar="<server>",
)  # fmt: skip
PORT_OPTION = typer.Option(
    None,
    help="Port to bind the server to (overrides K0S_ORCHESTRATOR_PORT)",
    metavar="<port>",
)  # fmt: skip
RELOAD_OPTION = typer.Option(
    None,
    help="Enable/disable auto-reload (overrides K0S_ORCHESTRATOR_RELOAD)",
)  # fmt: skip
LOG_LEVEL_OPTION = typer.Option(
    None,
    help="Log level (overrides K0S_ORCHESTRATOR_LOG_LEVEL)",
    metavar="<level>",
    case_sensitive=False,
)  # fmt: skip
SQL_LOG_OPTION = typer.Option(
    None,
    help="Enable/disable SQL query logging (overrides K0S_ORCHESTRATOR_SQL_LOG)",
)  # fmt: skip
DATABASE_URL_OPTION = typer.Option(
    None,
    help="Database URL for cluster records and advisory locks (overrides K0S_ORCHESTRATOR_DATABASE_URL)",
    metavar="<dsn>",
)  # fmt: skip
LOCK_BACKEND_OPTION = typer.Option(
    None,
    help="Cluster lock backend: memory or postgres (overrides K0S_ORCHESTRATOR_LOCK_BACKEND)",
    metavar="<backend>",
)  # fmt: skip
BACKEND_OPTION = typer.Option(
    None,
    help="Provisioning backend as module:Class (overrides K0S_ORCHESTRATOR_BACKEND)",
    metavar="<module:Class>",
)  # fmt: skip


def _update_settings(
    host: str | None,
    port: int | None,
    log_level: str | None,
    reload: bool | None,
    sql_log: bool | None,
    database_url: str | None,
    lock_backend: str | None,
    backend: str | None,
) -> None:
    """Update settings with CLI overrides.

    The database URL is applied before the lock backend, which validates
    against it.
    """
    settings = get_settings()

    if host is not None:
        settings.host = host
    if port is not None:
        settings.port = port
    if log_level is not None:
        settings.log_level = log_level
    if reload is not None:
        settings.reload = reload
    if sql_log is not None:
        settings.sql_log = sql_log
    if database_url is not None:
        settings.database_url = database_url
    if lock_backend is not None:
        settings.lock_backend = lock_backend
    if backend is not None:
        settings.backend = backend


@app.command()
def run(
    host: str = HOST_OPTION,
    port: int = PORT_OPTION,
    log_level: str = LOG_LEVEL_OPTION,
    reload: bool = RELOAD_OPTION,
    sql_log: bool = SQL_LOG_OPTION,
    database_url: str = DATABASE_URL_OPTION,
    lock_backend: str = LOCK_BACKEND_OPTION,
    backend: str = BACKEND_OPTION,
) -> None:
    """Run the orchestrator API server."""
    _update_settings(host, port, log_level, reload, sql_log, database_url, lock_backend, backend)

    settings = get_settings()

    setup_logging(settings.log_level)

    logger.info(f"Starting orchestrator on {settings.host}:{settings.port}")
    logger.info(f"Reload: {settings.reload}")

    # Run the app - use import string for reload mode
    if settings.reload:
        uvicorn.run(
            "k0s_orchestrator.app:app",
            host=settings.host,
            port=settings.port,
            reload=True,
            log_level=settings.log_level.lower(),
        )
    else:
        from k0s_orchestrator.app import app as fastapi_app

        uvicorn.run(
            fastapi_app,
            host=settings.host,
            port=settings.port,
            reload=False,
            log_level=settings.log_level.lower(),
        )


if __name__ == "__main__":
    app()
