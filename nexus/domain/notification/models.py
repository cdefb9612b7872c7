"""Notification domain models.

Notifications are time-boxed, recipient-owned records of a workflow
transition. Only the recipient may mark them read or delete them.
"""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field

from nexus.domain.shared.entity import Entity


class NotificationType(str, Enum):
    """Closed set of notification kinds."""

    MEETING_CREATED = "meeting_created"
    MEETING_JOINED = "meeting_joined"
    MEETING_STARTED = "meeting_started"
    TASK_ASSIGNED = "task_assigned"
    TASK_SUBMITTED = "task_submitted"
    TASK_REVIEWED = "task_reviewed"
    MILESTONE_SUBMITTED = "milestone_submitted"
    MILESTONE_REVIEWED = "milestone_reviewed"
    TEAM_INVITED = "team_invited"
    MEMBER_JOINED = "member_joined"
    PROJECT_SOS = "project_sos"
    PROJECT_EVALUATED = "project_evaluated"
    FEEDBACK_RECEIVED = "feedback_received"


class Notification(Entity):
    """A message delivered to one recipient."""

    recipient_id: str
    type: NotificationType
    title: str
    message: str
    meeting_id: str | None = None
    project_id: str | None = None
    created_by: str | None = None
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime
    expires_at: datetime

    @classmethod
    def issue(
        cls,
        *,
        recipient_id: str,
        type: NotificationType,
        title: str,
        message: str,
        now: datetime,
        ttl: timedelta,
        meeting_id: str | None = None,
        project_id: str | None = None,
        created_by: str | None = None,
    ) -> "Notification":
        """Create a notification stamped to expire ``ttl`` after ``now``."""
        return cls(
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
            meeting_id=meeting_id,
            project_id=project_id,
            created_by=created_by,
            created_at=now,
            expires_at=now + ttl,
        )

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def mark_read(self, now: datetime) -> "Notification":
        if self.is_read:
            return self
        return self.model_copy(update={"is_read": True, "read_at": now})


class NotificationFeed(BaseModel):
    """A recipient's newest notifications plus their unread count."""

    recipient_id: str
    items: list[Notification] = Field(default_factory=list)
    unread_count: int = 0
