"""Milestone domain events.

All events are pure data structures - no I/O, no side effects.
"""

from nexus.domain.shared.events import DomainEvent


class MilestoneSubmitted(DomainEvent):
    """Event raised when a student submits a milestone for review."""

    milestone_id: str
    title: str
    github_link: str
    mentor_id: str | None = None


class MilestoneApproved(DomainEvent):
    """Event raised when a reviewer approves a submitted milestone."""

    milestone_id: str
    title: str
    submitted_by: str
    notes: str = ""


class MilestoneRejected(DomainEvent):
    """Event raised when a reviewer sends a submission back for rework."""

    milestone_id: str
    title: str
    submitted_by: str
    notes: str
