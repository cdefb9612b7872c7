"""Sprint domain models."""

import datetime as dt
from enum import Enum

from pydantic import BaseModel, model_validator

from nexus.domain.shared.entity import Entity


class SprintStatus(str, Enum):
    """Lifecycle stage of a sprint."""

    PLANNED = "Planned"
    ACTIVE = "Active"
    COMPLETED = "Completed"


class Sprint(Entity):
    """A time-boxed container of tasks.

    Tasks point at their sprint via ``Task.sprint_id``; the sprint itself
    holds no task list so committed points always reflect current assignment.
    """

    project_id: str
    name: str
    goal: str = ""
    start_date: dt.date
    end_date: dt.date
    status: SprintStatus = SprintStatus.PLANNED

    @model_validator(mode="after")
    def _ends_after_start(self) -> "Sprint":
        if self.end_date < self.start_date:
            raise ValueError("sprint end date must not be before its start date")
        return self


class BurndownPoint(BaseModel):
    """One sampled day of a burndown series.

    ``actual`` is None for days that have not happened yet.
    """

    date: dt.date
    ideal: float
    actual: int | None = None


class Burndown(BaseModel):
    """Ideal vs. secured story points over a sprint."""

    sprint_id: str
    total_points: int
    secured_points: int
    points: list[BurndownPoint]


class SprintStats(BaseModel):
    """Task and story-point counts of a sprint.

    Provides a summary view of sprint progress for dashboard display.
    """

    sprint_id: str
    total: int
    pending: int
    in_progress: int
    completed: int
    awaiting_review: int
    committed_points: int
    secured_points: int

    @property
    def progress_percent(self) -> float:
        """Share of committed points that are secured."""
        if self.committed_points == 0:
            return 0.0
        return round(self.secured_points / self.committed_points * 100, 1)
