"""Project CLI commands."""

import typer

from nexus.interfaces.cli.common import CLI_CALLER, exit_on_error, load_workflow, print_warning

app = typer.Typer(help="Project commands")


@app.command("summary")
def summary(
    project_id: str = typer.Argument(..., help="Project ID"),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON"),
) -> None:
    """Show progress and team figures for a project."""
    workflow = load_workflow()
    result = exit_on_error(workflow.projects.get_summary(CLI_CALLER, project_id))

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    typer.echo(f"{result.title} [{result.status.value}]")
    typer.echo(f"Progress: {result.progress_percent}% "
               f"({result.approved_milestones}/{result.total_milestones} milestones approved)")
    typer.echo(f"Tasks: {result.completed_tasks}/{result.total_tasks} completed")
    typer.echo(f"Team: {result.team_size} members, {result.pending_invitations} pending invitations")
    typer.echo(f"Mentor: {result.mentor_id or '-'}")
    if result.is_stuck:
        print_warning("The team has asked for help on this project.")


@app.command("list")
def list_projects() -> None:
    """List every project."""
    workflow = load_workflow()
    projects = workflow.projects.list_projects(CLI_CALLER)
    if not projects:
        typer.echo("No projects found.")
        return
    for project in projects:
        typer.echo(f"{project.id}  {project.title} [{project.status.value}]")
