"""Notification housekeeping commands."""

import typer

from nexus.interfaces.cli.common import exit_on_error, load_workflow, print_success

app = typer.Typer(help="Notification housekeeping")


@app.command("sweep")
def sweep() -> None:
    """Purge expired notifications, archive elapsed meetings and escalate due tasks.

    Intended to run from a scheduler such as cron.
    """
    workflow = load_workflow()
    report = exit_on_error(workflow.sweep())
    print_success(
        f"Purged {report.purged_notifications} notifications, "
        f"archived {report.archived_meetings} meetings, "
        f"escalated {report.escalated_tasks} tasks"
    )
