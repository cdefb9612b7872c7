"""Task domain models.

A task has a visible workflow ``status`` and an independent ``review``
variant tracking its proof-of-work cycle. The two are decoupled so a task
can stay InProgress while a submission goes through several review rounds.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from nexus.domain.shared.entity import Entity
from nexus.domain.types import Priority


class TaskStatus(str, Enum):
    """Visible workflow stage of a task."""

    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


class ReviewStatus(str, Enum):
    """Review sub-state of a task's submission."""

    NONE = "none"
    PENDING_REVIEW = "pendingReview"
    REJECTED = "rejected"
    APPROVED = "approved"


class TaskSubmission(BaseModel):
    """Proof of work: a code link plus stored screenshot references."""

    github_link: str
    screenshots: list[str] = Field(default_factory=list)
    submitted_by: str
    submitted_at: datetime


class NoSubmission(BaseModel):
    review: Literal["none"] = "none"


class PendingReview(BaseModel):
    review: Literal["pendingReview"] = "pendingReview"
    submission: TaskSubmission


class RejectedSubmission(BaseModel):
    review: Literal["rejected"] = "rejected"
    submission: TaskSubmission
    notes: str = ""
    reviewer_id: str
    reviewed_at: datetime


class ApprovedSubmission(BaseModel):
    review: Literal["approved"] = "approved"
    submission: TaskSubmission | None = None
    reviewer_id: str
    verified_at: datetime


TaskReview = Annotated[
    Union[NoSubmission, PendingReview, RejectedSubmission, ApprovedSubmission],
    Field(discriminator="review"),
]


class Task(Entity):
    """A unit of work, optionally sprint-assigned and review-gated."""

    project_id: str
    title: str
    description: str = ""
    sprint_id: str | None = None
    milestone_id: str | None = None
    assignee_id: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority = Priority.MEDIUM
    story_points: int = Field(default=0, ge=0)
    deadline: datetime | None = None
    completed_at: datetime | None = None
    review: TaskReview = Field(default_factory=NoSubmission)

    @property
    def review_status(self) -> ReviewStatus:
        return ReviewStatus(self.review.review)

    @property
    def is_verified(self) -> bool:
        return isinstance(self.review, ApprovedSubmission)

    @property
    def verified_at(self) -> datetime | None:
        if isinstance(self.review, ApprovedSubmission):
            return self.review.verified_at
        return None

    @property
    def submission(self) -> TaskSubmission | None:
        if isinstance(self.review, NoSubmission):
            return None
        return self.review.submission

    def is_review_gated(self, enforce_review: bool) -> bool:
        """Check whether completion must go through submit-then-review."""
        return enforce_review and self.story_points > 0

    def is_secured(self, enforce_review: bool) -> bool:
        """Check whether the task's story points count as delivered.

        A completed task is secured unless it is review-gated and has not
        been verified.
        """
        if self.status != TaskStatus.COMPLETED:
            return False
        if self.is_review_gated(enforce_review):
            return self.is_verified
        return True
