"""CLI module for the orchestrator.

Provides cluster lifecycle commands and administrative tasks like database management.
"""

from k0s_orchestrator.cli.app import app

__all__ = ["app"]
