"""Global configuration storage for Nexus.

Stores workflow settings in ``~/.nexus/config.json``. The directory can be
moved with the ``NEXUS_HOME`` environment variable.
"""

import json
import logging
import os
from datetime import timedelta
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.json"


class WorkflowConfig(BaseModel):
    """Tunable limits and integration settings for the workflow engine."""

    # None keeps every collection in memory
    data_dir: Path | None = None

    notification_ttl_days: int = Field(default=30, ge=1)
    notification_page_size: int = Field(default=50, ge=1)

    max_screenshots: int = Field(default=5, ge=0)
    max_screenshot_bytes: int = Field(default=5 * 1024 * 1024, ge=1)
    allowed_image_types: list[str] = Field(default_factory=lambda: ["jpeg", "jpg", "png", "gif", "webp"])

    submilestone_spacing_days: int = Field(default=7, ge=1)
    escalation_window_hours: int = Field(default=24, ge=1)

    github_api_url: str = "https://api.github.com"
    github_token: str | None = None

    @property
    def notification_ttl(self) -> timedelta:
        return timedelta(days=self.notification_ttl_days)

    @property
    def escalation_window(self) -> timedelta:
        return timedelta(hours=self.escalation_window_hours)

    @property
    def upload_dir(self) -> Path | None:
        return self.data_dir / "uploads" if self.data_dir is not None else None


def get_config_dir() -> Path:
    """Get the Nexus config directory."""
    override = os.environ.get("NEXUS_HOME")
    config_dir = Path(override) if override else Path.home() / ".nexus"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_global_config() -> WorkflowConfig:
    """Load global workflow configuration, falling back to defaults."""
    config_file = get_config_dir() / CONFIG_FILENAME
    if config_file.exists():
        try:
            data = json.loads(config_file.read_text(encoding="utf-8"))
            return WorkflowConfig(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring invalid config file {config_file}: {e}")
    return WorkflowConfig()


def save_global_config(config: WorkflowConfig) -> Path:
    """Save global workflow configuration.

    Returns:
        Path of the written file.
    """
    config_file = get_config_dir() / CONFIG_FILENAME
    config_file.write_text(
        json.dumps(config.model_dump(mode="json"), indent=2),
        encoding="utf-8",
    )
    return config_file
