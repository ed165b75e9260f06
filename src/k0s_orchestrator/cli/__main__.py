"""CLI entry point.

Usage:
    python -m k0s_orchestrator.cli cluster apply cluster.yaml
    k0s-orchestrator-cli cluster plan cluster.yaml --verb delete
    k0s-orchestrator-cli db upgrade
"""

from k0s_orchestrator.cli.app import app
from k0s_orchestrator.logging import setup_cli_logging
from k0s_orchestrator.settings import get_settings


def main() -> None:
    """CLI entry point with logging configuration."""
    setup_cli_logging(get_settings().log_level)
    app()


if __name__ == "__main__":
    main()
