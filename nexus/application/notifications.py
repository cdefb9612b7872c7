"""Notification dispatcher.

Turns committed domain events into recipient notifications. Delivery is
best-effort: a failed write is logged and never reaches the operation that
published the event.
"""

import logging
from collections.abc import Iterable

from nexus.application.events import EventOutbox
from nexus.application.ports import Clock
from nexus.config import WorkflowConfig
from nexus.domain.evaluation.events import FeedbackGiven, ProjectEvaluated
from nexus.domain.meeting.events import MeetingJoined, MeetingScheduled, MeetingStarted
from nexus.domain.milestone.events import MilestoneApproved, MilestoneRejected, MilestoneSubmitted
from nexus.domain.notification.models import Notification, NotificationType
from nexus.domain.project.events import MemberAdded, MemberJoined, MentorAssigned, ProjectFlagged
from nexus.domain.shared import Err
from nexus.domain.task.events import TaskApproved, TaskAssigned, TaskRejected, TaskSubmitted
from nexus.infrastructure.storage import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Creates time-boxed notifications for the users affected by a transition.

    Args:
        notifications: Repository the notifications are appended to.
        clock: Source of the creation timestamp.
        config: Supplies the notification lifetime.
    """

    def __init__(self, notifications: NotificationRepository, clock: Clock, config: WorkflowConfig) -> None:
        self._notifications = notifications
        self._clock = clock
        self._config = config

    def notify(
        self,
        recipient_id: str,
        type: NotificationType,
        title: str,
        message: str,
        *,
        meeting_id: str | None = None,
        project_id: str | None = None,
        created_by: str | None = None,
    ) -> Notification | None:
        """Append one notification.

        Returns:
            The stored notification, or None if it could not be stored.
        """
        try:
            notification = Notification.issue(
                recipient_id=recipient_id,
                type=type,
                title=title,
                message=message,
                now=self._clock(),
                ttl=self._config.notification_ttl,
                meeting_id=meeting_id,
                project_id=project_id,
                created_by=created_by,
            )
            result = self._notifications.add(notification)
        except Exception:
            logger.exception(f"Failed to create {type.value} notification for {recipient_id}")
            return None

        if isinstance(result, Err):
            logger.warning(f"Dropped {type.value} notification for {recipient_id}: {result.error}")
            return None
        return result.value

    def notify_all(
        self,
        recipient_ids: Iterable[str | None],
        type: NotificationType,
        title: str,
        message: str,
        *,
        skip: str | None = None,
        meeting_id: str | None = None,
        project_id: str | None = None,
        created_by: str | None = None,
    ) -> list[Notification]:
        """Notify each distinct recipient once, leaving out ``skip`` and empty ids."""
        sent: list[Notification] = []
        seen: set[str] = set()
        for recipient_id in recipient_ids:
            if not recipient_id or recipient_id == skip or recipient_id in seen:
                continue
            seen.add(recipient_id)
            notification = self.notify(
                recipient_id,
                type,
                title,
                message,
                meeting_id=meeting_id,
                project_id=project_id,
                created_by=created_by,
            )
            if notification is not None:
                sent.append(notification)
        return sent

    def register(self, outbox: EventOutbox) -> None:
        """Subscribe this dispatcher's handlers to ``outbox``."""
        outbox.subscribe(MeetingScheduled, self.on_meeting_scheduled)
        outbox.subscribe(MeetingJoined, self.on_meeting_joined)
        outbox.subscribe(MeetingStarted, self.on_meeting_started)
        outbox.subscribe(TaskAssigned, self.on_task_assigned)
        outbox.subscribe(TaskSubmitted, self.on_task_submitted)
        outbox.subscribe(TaskApproved, self.on_task_approved)
        outbox.subscribe(TaskRejected, self.on_task_rejected)
        outbox.subscribe(MilestoneSubmitted, self.on_milestone_submitted)
        outbox.subscribe(MilestoneApproved, self.on_milestone_approved)
        outbox.subscribe(MilestoneRejected, self.on_milestone_rejected)
        outbox.subscribe(MemberAdded, self.on_member_added)
        outbox.subscribe(MemberJoined, self.on_member_joined)
        outbox.subscribe(MentorAssigned, self.on_mentor_assigned)
        outbox.subscribe(ProjectFlagged, self.on_project_flagged)
        outbox.subscribe(ProjectEvaluated, self.on_project_evaluated)
        outbox.subscribe(FeedbackGiven, self.on_feedback_given)

    # Meetings

    def on_meeting_scheduled(self, event: MeetingScheduled) -> None:
        when = event.scheduled_at.strftime("%Y-%m-%d %H:%M")
        organizer = event.organizer_name or "Your mentor"
        self.notify_all(
            event.invitee_ids,
            NotificationType.MEETING_CREATED,
            f"New meeting: {event.title}",
            f"{organizer} scheduled '{event.title}' for {when} UTC",
            skip=event.actor_id,
            meeting_id=event.meeting_id,
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    def on_meeting_joined(self, event: MeetingJoined) -> None:
        name = event.participant_name or "A participant"
        self.notify_all(
            [event.mentor_id],
            NotificationType.MEETING_JOINED,
            f"{name} joined {event.title}",
            f"{name} joined the meeting '{event.title}'",
            skip=event.participant_id,
            meeting_id=event.meeting_id,
            project_id=event.project_id,
            created_by=event.participant_id,
        )

    def on_meeting_started(self, event: MeetingStarted) -> None:
        self.notify_all(
            event.audience_ids,
            NotificationType.MEETING_STARTED,
            f"{event.title} has started",
            f"Everyone has joined '{event.title}'; the meeting is now in progress",
            meeting_id=event.meeting_id,
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    # Tasks

    def on_task_assigned(self, event: TaskAssigned) -> None:
        self.notify_all(
            [event.assignee_id],
            NotificationType.TASK_ASSIGNED,
            f"New task: {event.title}",
            f"You have been assigned '{event.title}'",
            skip=event.actor_id,
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    def on_task_submitted(self, event: TaskSubmitted) -> None:
        shots = f" with {event.screenshot_count} screenshot(s)" if event.screenshot_count else ""
        self.notify_all(
            [event.mentor_id],
            NotificationType.TASK_SUBMITTED,
            f"Task submitted: {event.title}",
            f"'{event.title}' was submitted for review{shots}",
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    def on_task_approved(self, event: TaskApproved) -> None:
        self.notify_all(
            [event.submitted_by],
            NotificationType.TASK_REVIEWED,
            f"Task approved: {event.title}",
            f"Your submission for '{event.title}' was approved",
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    def on_task_rejected(self, event: TaskRejected) -> None:
        detail = f": {event.notes}" if event.notes else ""
        self.notify_all(
            [event.submitted_by],
            NotificationType.TASK_REVIEWED,
            f"Changes requested: {event.title}",
            f"Your submission for '{event.title}' was sent back{detail}",
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    # Milestones

    def on_milestone_submitted(self, event: MilestoneSubmitted) -> None:
        self.notify_all(
            [event.mentor_id],
            NotificationType.MILESTONE_SUBMITTED,
            f"Milestone submitted: {event.title}",
            f"'{event.title}' was submitted for review ({event.github_link})",
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    def on_milestone_approved(self, event: MilestoneApproved) -> None:
        detail = f": {event.notes}" if event.notes else ""
        self.notify_all(
            [event.submitted_by],
            NotificationType.MILESTONE_REVIEWED,
            f"Milestone approved: {event.title}",
            f"'{event.title}' was approved{detail}",
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    def on_milestone_rejected(self, event: MilestoneRejected) -> None:
        self.notify_all(
            [event.submitted_by],
            NotificationType.MILESTONE_REVIEWED,
            f"Milestone needs changes: {event.title}",
            f"'{event.title}' was rejected: {event.notes}",
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    # Team and project

    def on_member_added(self, event: MemberAdded) -> None:
        self.notify_all(
            [event.user_id],
            NotificationType.TEAM_INVITED,
            f"Added to {event.title}",
            f"You were added to the team of '{event.title}'",
            skip=event.actor_id,
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    def on_member_joined(self, event: MemberJoined) -> None:
        self.notify_all(
            [event.owner_id, event.mentor_id],
            NotificationType.MEMBER_JOINED,
            f"New team member in {event.title}",
            f"{event.email} joined the team of '{event.title}'",
            skip=event.user_id,
            project_id=event.project_id,
            created_by=event.user_id,
        )

    def on_mentor_assigned(self, event: MentorAssigned) -> None:
        self.notify_all(
            [event.mentor_id],
            NotificationType.TEAM_INVITED,
            f"Mentoring {event.title}",
            f"You were assigned as mentor of '{event.title}'",
            skip=event.actor_id,
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    def on_project_flagged(self, event: ProjectFlagged) -> None:
        self.notify_all(
            [event.mentor_id],
            NotificationType.PROJECT_SOS,
            f"SOS: {event.title}",
            f"The team of '{event.title}' is stuck and asked for help",
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    # Evaluations

    def on_project_evaluated(self, event: ProjectEvaluated) -> None:
        self.notify_all(
            event.student_ids,
            NotificationType.PROJECT_EVALUATED,
            f"Project evaluated: {event.title}",
            f"'{event.title}' was evaluated on '{event.rubric_name}': {event.total_score:g}/{event.max_score:g}",
            skip=event.actor_id,
            project_id=event.project_id,
            created_by=event.actor_id,
        )

    def on_feedback_given(self, event: FeedbackGiven) -> None:
        self.notify_all(
            [event.to_id],
            NotificationType.FEEDBACK_RECEIVED,
            f"New feedback on {event.title}",
            f"You received feedback rated {event.rating}/5 on '{event.title}'",
            skip=event.actor_id,
            project_id=event.project_id,
            created_by=event.actor_id,
        )
