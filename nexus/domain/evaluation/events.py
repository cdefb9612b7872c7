"""Evaluation domain events.

All events are pure data structures - no I/O, no side effects.
"""

from pydantic import Field

from nexus.domain.shared.events import DomainEvent


class ProjectEvaluated(DomainEvent):
    """Event raised when an evaluator scores a project against a rubric."""

    evaluation_id: str
    title: str
    rubric_name: str
    total_score: float
    max_score: float
    student_ids: list[str] = Field(default_factory=list)


class FeedbackGiven(DomainEvent):
    """Event raised for each feedback message delivered to a participant."""

    feedback_id: str
    title: str
    to_id: str
    rating: int
