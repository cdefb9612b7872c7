"""Meeting domain events.

All events are pure data structures - no I/O, no side effects.
"""

from datetime import datetime

from nexus.domain.meeting.models import MeetingStatus
from nexus.domain.shared.events import DomainEvent


class MeetingScheduled(DomainEvent):
    """Event raised when a mentor schedules a meeting."""

    meeting_id: str
    title: str
    scheduled_at: datetime
    organizer_name: str = ""
    invitee_ids: list[str]


class MeetingJoined(DomainEvent):
    """Event raised when an invited participant joins a meeting."""

    meeting_id: str
    title: str
    participant_id: str
    participant_name: str = ""
    mentor_id: str | None = None


class MeetingStarted(DomainEvent):
    """Event raised when a meeting auto-advances to ongoing."""

    meeting_id: str
    title: str
    audience_ids: list[str]


class MeetingStatusChanged(DomainEvent):
    """Event raised when a meeting's status is edited directly."""

    meeting_id: str
    previous: MeetingStatus
    current: MeetingStatus
