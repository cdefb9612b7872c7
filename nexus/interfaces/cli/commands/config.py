"""Configuration commands.

Reads and writes the global ``config.json`` in the Nexus config directory.
"""

from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from nexus.config import WorkflowConfig, get_config_dir, get_global_config, save_global_config
from nexus.interfaces.cli.common import print_error, print_success

app = typer.Typer(help="Configuration commands")

# Never echoed in full
SECRET_KEYS = {"github_token"}


def _display(key: str, value: Any) -> str:
    if key in SECRET_KEYS and value:
        return "****" + str(value)[-4:]
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return "-" if value is None else str(value)


@app.command("show")
def show() -> None:
    """Show the effective configuration."""
    config = get_global_config()
    typer.echo(f"Config directory: {get_config_dir()}")
    for key, value in config.model_dump().items():
        typer.echo(f"  {key} = {_display(key, value)}")


@app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Setting name, e.g. notification_ttl_days"),
    value: str | None = typer.Argument(None, help="New value; lists are comma-separated"),
    unset: bool = typer.Option(False, "--unset", help="Reset the setting to its default"),
) -> None:
    """Change one configuration setting.

    Example:
        nexus config set data_dir ~/nexus-data
        nexus config set allowed_image_types png,jpeg
    """
    fields = WorkflowConfig.model_fields
    if key not in fields:
        print_error(f"Unknown setting '{key}'. Valid settings: {', '.join(fields)}")
        raise typer.Exit(1)

    data = get_global_config().model_dump()
    if unset:
        data.pop(key)
    elif value is None:
        print_error("Provide a value or --unset")
        raise typer.Exit(1)
    elif fields[key].annotation == list[str]:
        data[key] = [v.strip() for v in value.split(",") if v.strip()]
    elif key == "data_dir":
        data[key] = Path(value).expanduser()
    else:
        data[key] = value

    try:
        config = WorkflowConfig(**data)
    except ValidationError as e:
        print_error(f"Invalid value for {key}: {e.errors()[0]['msg']}")
        raise typer.Exit(1)

    path = save_global_config(config)
    print_success(f"{key} = {_display(key, getattr(config, key))} (saved to {path})")
