"""CLI utility functions shared across commands.

This module contains generic CLI utilities for:
- Path validation
- Loading YAML request documents
- Console output
"""

from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console

console = Console()


def validate_path_exists(path: Path, description: str = "Path") -> None:
    """Validate that a path exists.

    Args:
        path: Path to validate
        description: Human-readable description for error message

    Raises:
        typer.Exit: If path does not exist
    """
    if not path.exists():
        console.print(f"[red]Error: {description} does not exist: {path}[/red]")
        raise typer.Exit(1)


def load_request_document(path: Path) -> dict[str, Any]:
    """Read a cluster request from a YAML file.

    Raises:
        typer.Exit: If the file is missing, unreadable or not a YAML mapping
    """
    validate_path_exists(path, "Cluster file")
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        console.print(f"[red]Error: Cannot read cluster file {path}: {e}[/red]")
        raise typer.Exit(1) from e

    if not isinstance(document, dict):
        console.print(f"[red]Error: Cluster file {path} must contain a YAML mapping[/red]")
        raise typer.Exit(1)
    return document
