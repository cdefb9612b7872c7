"""Meeting domain package."""

from nexus.domain.meeting.attendance import (
    build_invitations,
    has_elapsed,
    mark_attendance,
    record_join,
    should_start,
)
from nexus.domain.meeting.events import (
    MeetingJoined,
    MeetingScheduled,
    MeetingStarted,
    MeetingStatusChanged,
)
from nexus.domain.meeting.models import (
    Meeting,
    MeetingStatus,
    Participant,
    ParticipantStatus,
)

__all__ = [
    # Models
    "Meeting",
    "MeetingStatus",
    "Participant",
    "ParticipantStatus",
    # Rules
    "build_invitations",
    "record_join",
    "should_start",
    "mark_attendance",
    "has_elapsed",
    # Events
    "MeetingScheduled",
    "MeetingJoined",
    "MeetingStarted",
    "MeetingStatusChanged",
]
