"""Meeting domain models."""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field

from nexus.domain.shared.entity import Entity
from nexus.domain.types import Role


class MeetingStatus(str, Enum):
    """Lifecycle stage of a meeting."""

    SCHEDULED = "scheduled"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ParticipantStatus(str, Enum):
    """Attendance state of an invited participant."""

    INVITED = "invited"
    JOINED = "joined"
    ATTENDED = "attended"


class Participant(BaseModel):
    """An invited attendee, captured at meeting creation time."""

    user_id: str
    name: str = ""
    email: str = ""
    status: ParticipantStatus = ParticipantStatus.INVITED
    joined_at: datetime | None = None

    @property
    def has_joined(self) -> bool:
        return self.status in (ParticipantStatus.JOINED, ParticipantStatus.ATTENDED)


class Meeting(Entity):
    """A synchronous call scheduled by a project's mentor."""

    project_id: str
    title: str
    description: str = ""
    call_link: str
    call_id: str | None = None
    created_by: str
    created_by_role: Role
    mentor_id: str | None = None
    participants: list[Participant] = Field(default_factory=list)
    scheduled_at: datetime
    duration_minutes: int = Field(default=60, ge=1)
    status: MeetingStatus = MeetingStatus.SCHEDULED
    notes: str | None = None
    recording_link: str | None = None

    @property
    def ends_at(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)

    def find_participant(self, user_id: str) -> Participant | None:
        for participant in self.participants:
            if participant.user_id == user_id:
                return participant
        return None

    def is_invited(self, user_id: str) -> bool:
        return self.find_participant(user_id) is not None

    def is_mentor(self, user_id: str) -> bool:
        return self.mentor_id is not None and self.mentor_id == user_id

    def everyone_joined(self) -> bool:
        """Check whether every invited participant has joined or attended."""
        return all(p.has_joined for p in self.participants)

    def audience(self) -> list[str]:
        """Mentor and participant ids."""
        ids = [p.user_id for p in self.participants]
        if self.mentor_id and self.mentor_id not in ids:
            ids.insert(0, self.mentor_id)
        return ids
