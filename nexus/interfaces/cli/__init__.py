"""CLI interface for Nexus using Typer.

Operator commands for the Nexus workflow engine. They act on the data
directory named in the global configuration.

Usage:
    nexus burndown SPRINT_ID        # Sprint burndown table
    nexus summary PROJECT_ID        # Project progress summary
    nexus notifications sweep       # Run housekeeping once
    nexus config show               # Show configuration

The CLI is structured as:
- app: Main Typer application
- commands/: Individual command groups (sprint, project, notifications, config)
- common.py: Shared utilities for CLI commands
- main.py: Entry point that runs the app
"""

import logging
from typing import Optional

import typer
from rich.logging import RichHandler

from nexus import __version__
from nexus.interfaces.cli.commands import config, notifications, project, sprint

# Create the main Typer application
app = typer.Typer(
    name="nexus",
    help="Workflow engine for collaborative student projects",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"nexus version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log workflow activity"),
) -> None:
    """Nexus - milestones, tasks, sprints and meetings for student teams."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(rich_tracebacks=True)],
        )


# =============================================================================
# Register Command Groups
# =============================================================================

app.add_typer(sprint.app, name="sprint")
app.add_typer(project.app, name="project")
app.add_typer(notifications.app, name="notifications")
app.add_typer(config.app, name="config")


# =============================================================================
# Top-Level Shortcuts for Common Commands
# =============================================================================


@app.command("burndown")
def burndown(
    sprint_id: str = typer.Argument(..., help="Sprint ID"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw series as JSON"),
) -> None:
    """Show sprint burndown (shortcut for 'sprint burndown')."""
    sprint.burndown(sprint_id, as_json=as_json)


@app.command("summary")
def summary(
    project_id: str = typer.Argument(..., help="Project ID"),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON"),
) -> None:
    """Show project summary (shortcut for 'project summary')."""
    project.summary(project_id, as_json=as_json)


__all__ = ["app"]
