"""CLI command groups for Nexus.

Command groups:
- sprint: Burndown and sprint statistics
- project: Project summary and listing
- notifications: Housekeeping sweep
- config: Show and change the global configuration

Each command group is a Typer app that gets registered
with the main app using app.add_typer().
"""

from nexus.interfaces.cli.commands import config, notifications, project, sprint

__all__ = ["sprint", "project", "notifications", "config"]
