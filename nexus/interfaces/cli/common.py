"""Shared utilities for Nexus CLI commands.

This module provides common utilities used across CLI commands:
- Formatted output helpers (error, success, info, warning)
- The operator identity the CLI acts as
- Loading the workflow engine from the global configuration
"""

from typing import TypeVar

import typer
from rich.console import Console

from nexus.bootstrap import StorageLoadError, Workflow, build_workflow
from nexus.config import get_global_config
from nexus.domain.shared import DomainError, Err, Result
from nexus.domain.types import Caller, Role

T = TypeVar("T")

console = Console()

# Operator commands run with admin rights on the local data directory
CLI_CALLER = Caller(user_id="cli", role=Role.ADMIN)


def print_error(msg: str) -> None:
    """Print a formatted error message.

    Args:
        msg: Error message to display
    """
    typer.echo(typer.style(f"Error: {msg}", fg=typer.colors.RED), err=True)


def print_success(msg: str) -> None:
    """Print a formatted success message.

    Args:
        msg: Success message to display
    """
    typer.echo(typer.style(msg, fg=typer.colors.GREEN))


def print_info(msg: str) -> None:
    typer.echo(typer.style(msg, fg=typer.colors.BLUE))


def print_warning(msg: str) -> None:
    typer.echo(typer.style(f"Warning: {msg}", fg=typer.colors.YELLOW), err=True)


def load_workflow() -> Workflow:
    """Build the workflow engine from the global config.

    Raises:
        typer.Exit: If persisted state cannot be loaded.
    """
    config = get_global_config()
    if config.data_dir is None:
        print_warning("No data_dir configured; running against an empty in-memory store.")
    try:
        return build_workflow(config)
    except StorageLoadError as e:
        print_error(f"Failed to load data: {e}")
        raise typer.Exit(1)


def exit_on_error(result: Result[T, DomainError]) -> T:
    """Return the Ok value, or print the error and exit with status 1."""
    if isinstance(result, Err):
        print_error(str(result.error))
        raise typer.Exit(1)
    return result.value


__all__ = [
    "CLI_CALLER",
    "console",
    "exit_on_error",
    "load_workflow",
    "print_error",
    "print_success",
    "print_info",
    "print_warning",
]
