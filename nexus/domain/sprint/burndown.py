"""Sprint burndown and statistics.

Pure functions over a sprint and the tasks that currently reference it.
Scope is not snapshotted: a task added mid-sprint raises ``total_points``
for every sampled day, but contributes to ``actual`` only from the day it
was completed.
"""

from datetime import date, datetime, timedelta

from nexus.domain.sprint.models import Burndown, BurndownPoint, Sprint, SprintStats
from nexus.domain.task.models import PendingReview, Task, TaskStatus


def _secured_on(task: Task, today: date) -> date:
    """Day a secured task's points were delivered."""
    stamp: datetime | None = task.completed_at or task.verified_at
    if stamp is None:
        return today
    return stamp.date()


def ideal_points(total: int, start: date, end: date, day: date) -> float:
    """Linear target from 0 at ``start`` to ``total`` at ``end``, held after."""
    span = (end - start).days
    if span <= 0:
        return float(total)
    elapsed = (day - start).days
    return round(min(total, total * elapsed / span), 2)


def compute_burndown(
    sprint: Sprint,
    tasks: list[Task],
    *,
    today: date,
    enforce_review: bool = True,
) -> Burndown:
    """Compute the burndown series for a sprint.

    Samples every day from the sprint start through its end date, extended
    through ``today`` when the sprint runs late. Days after ``today`` carry
    no actual value, except the first day, which always shows the initial
    state.

    Args:
        sprint: The sprint to chart.
        tasks: Candidate tasks; only those referencing the sprint count.
        today: The current date according to the caller's clock.
        enforce_review: Whether the project requires review-gated tasks to
            be verified before their points are secured.

    Returns:
        Burndown with the daily series, total points and secured points.
    """
    sprint_tasks = [t for t in tasks if t.sprint_id == sprint.id]
    total = sum(t.story_points for t in sprint_tasks)
    secured = [t for t in sprint_tasks if t.is_secured(enforce_review)]
    secured_total = sum(t.story_points for t in secured)

    last_day = max(sprint.end_date, today)
    points: list[BurndownPoint] = []
    day = sprint.start_date
    while day <= last_day:
        actual: int | None = None
        if day <= today or day == sprint.start_date:
            actual = sum(t.story_points for t in secured if _secured_on(t, today) <= day)
        points.append(
            BurndownPoint(
                date=day,
                ideal=ideal_points(total, sprint.start_date, sprint.end_date, day),
                actual=actual,
            )
        )
        day += timedelta(days=1)

    return Burndown(
        sprint_id=sprint.id,
        total_points=total,
        secured_points=secured_total,
        points=points,
    )


def sprint_stats(sprint: Sprint, tasks: list[Task], *, enforce_review: bool = True) -> SprintStats:
    """Count a sprint's tasks by status and sum its story points."""
    sprint_tasks = [t for t in tasks if t.sprint_id == sprint.id]

    def count(status: TaskStatus) -> int:
        return sum(1 for t in sprint_tasks if t.status == status)

    return SprintStats(
        sprint_id=sprint.id,
        total=len(sprint_tasks),
        pending=count(TaskStatus.PENDING),
        in_progress=count(TaskStatus.IN_PROGRESS),
        completed=count(TaskStatus.COMPLETED),
        awaiting_review=sum(1 for t in sprint_tasks if isinstance(t.review, PendingReview)),
        committed_points=sum(t.story_points for t in sprint_tasks),
        secured_points=sum(t.story_points for t in sprint_tasks if t.is_secured(enforce_review)),
    )
