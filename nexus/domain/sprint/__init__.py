"""Sprint domain package."""

from nexus.domain.sprint.burndown import compute_burndown, ideal_points, sprint_stats
from nexus.domain.sprint.models import (
    Burndown,
    BurndownPoint,
    Sprint,
    SprintStats,
    SprintStatus,
)

__all__ = [
    "Sprint",
    "SprintStatus",
    "SprintStats",
    "Burndown",
    "BurndownPoint",
    "compute_burndown",
    "ideal_points",
    "sprint_stats",
]
