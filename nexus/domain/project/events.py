"""Project domain events.

Domain events represent significant occurrences within the project
aggregate: team changes, mentor assignment, and SOS flags.

All events are pure data structures - no I/O, no side effects.
"""

from typing import Literal

from nexus.domain.shared.events import DomainEvent


class ProjectCreated(DomainEvent):
    """Event raised when a new project is registered."""

    title: str


class MentorAssigned(DomainEvent):
    """Event raised when a mentor is assigned to a project."""

    title: str
    mentor_id: str


class MemberAdded(DomainEvent):
    """Event raised when a team member is added by email.

    ``user_id`` is set only when the email already matched an account,
    in which case the member was added as joined.
    """

    title: str
    email: str
    user_id: str | None = None


class MemberJoined(DomainEvent):
    """Event raised when a pending member is bound to an account."""

    title: str
    email: str
    user_id: str
    via: Literal["registration", "claim"]
    mentor_id: str | None = None
    owner_id: str | None = None


class MemberRemoved(DomainEvent):
    """Event raised when a member is removed from the team."""

    email: str
    user_id: str | None = None


class ProjectFlagged(DomainEvent):
    """Event raised when a student raises the SOS flag on a project."""

    title: str
    mentor_id: str | None = None
