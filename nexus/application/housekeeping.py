"""Periodic housekeeping: expiry sweep, meeting archival and deadline escalation."""

import logging

from pydantic import BaseModel

from nexus.application.meeting_service import MeetingService
from nexus.application.notification_service import NotificationService
from nexus.application.task_service import TaskService
from nexus.domain.shared import DomainError, Err, Ok, Result

logger = logging.getLogger(__name__)


class SweepReport(BaseModel):
    purged_notifications: int
    archived_meetings: int
    escalated_tasks: int


def run_sweep(
    notifications: NotificationService,
    meetings: MeetingService,
    tasks: TaskService,
) -> Result[SweepReport, DomainError]:
    """Run every housekeeping job once.

    Returns:
        Ok(SweepReport), or the first job error (later jobs do not run).
    """
    purged = notifications.purge_expired()
    if isinstance(purged, Err):
        return purged
    archived = meetings.archive_elapsed()
    if isinstance(archived, Err):
        return archived
    escalated = tasks.escalate_due_tasks()
    if isinstance(escalated, Err):
        return escalated

    report = SweepReport(
        purged_notifications=purged.value,
        archived_meetings=len(archived.value),
        escalated_tasks=len(escalated.value),
    )
    logger.info(
        f"Sweep done: {report.purged_notifications} purged, "
        f"{report.archived_meetings} archived, {report.escalated_tasks} escalated"
    )
    return Ok(report)
