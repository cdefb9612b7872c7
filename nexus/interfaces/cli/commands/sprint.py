"""Sprint CLI commands."""

import typer
from rich.table import Table

from nexus.interfaces.cli.common import CLI_CALLER, console, exit_on_error, load_workflow

app = typer.Typer(help="Sprint commands")


@app.command("burndown")
def burndown(
    sprint_id: str = typer.Argument(..., help="Sprint ID"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw series as JSON"),
) -> None:
    """Show the burndown series for a sprint.

    Example:
        nexus burndown 3f2a9c1e
    """
    workflow = load_workflow()
    sprint = exit_on_error(workflow.sprints.get_sprint(CLI_CALLER, sprint_id))
    chart = exit_on_error(workflow.sprints.burndown(CLI_CALLER, sprint_id))

    if as_json:
        typer.echo(chart.model_dump_json(indent=2))
        return

    table = Table(title=f"Burndown: {sprint.name}")
    table.add_column("Date")
    table.add_column("Ideal", justify="right")
    table.add_column("Secured", justify="right")
    for point in chart.points:
        actual = "-" if point.actual is None else str(point.actual)
        table.add_row(point.date.isoformat(), f"{point.ideal:.1f}", actual)
    console.print(table)
    typer.echo(f"Secured {chart.secured_points} of {chart.total_points} points")


@app.command("stats")
def stats(sprint_id: str = typer.Argument(..., help="Sprint ID")) -> None:
    """Show task counts and story points for a sprint."""
    workflow = load_workflow()
    result = exit_on_error(workflow.sprints.stats(CLI_CALLER, sprint_id))
    typer.echo(f"Tasks: {result.total} ({result.pending} pending, {result.in_progress} in progress, "
               f"{result.completed} completed)")
    typer.echo(f"Awaiting review: {result.awaiting_review}")
    typer.echo(f"Points: {result.secured_points}/{result.committed_points} secured")
