"""Milestone domain models.

A milestone's workflow stage is a tagged variant rather than a set of
parallel status fields: the submission and approval data live inside the
state that owns them, so an Approved milestone without a submission cannot
be constructed.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from nexus.domain.shared.entity import Entity
from nexus.domain.types import Priority


class MilestoneStatus(str, Enum):
    """Visible workflow stage of a milestone."""

    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"


class Submission(BaseModel):
    """Proof of work handed in by a student."""

    github_link: str
    description: str
    submitted_by: str
    submitted_at: datetime


class Review(BaseModel):
    """A reviewer's decision on a submission."""

    notes: str = ""
    reviewer_id: str
    reviewed_at: datetime


class NotStarted(BaseModel):
    status: Literal["NotStarted"] = "NotStarted"
    last_rejection: Review | None = None


class InProgress(BaseModel):
    status: Literal["InProgress"] = "InProgress"
    last_rejection: Review | None = None


class Submitted(BaseModel):
    status: Literal["Submitted"] = "Submitted"
    submission: Submission


class Approved(BaseModel):
    status: Literal["Approved"] = "Approved"
    submission: Submission
    approval: Review


MilestoneState = Annotated[
    Union[NotStarted, InProgress, Submitted, Approved],
    Field(discriminator="status"),
]


class Milestone(Entity):
    """A mentor-reviewed deliverable of a project.

    Top-level milestones are listed on the project in order; sub-milestones
    point at their parent and are ordered by ``order``.
    """

    project_id: str
    title: str
    description: str = ""
    due_date: datetime | None = None
    priority: Priority = Priority.MEDIUM
    state: MilestoneState = Field(default_factory=NotStarted)
    parent_id: str | None = None
    submilestone_ids: list[str] = Field(default_factory=list)
    order: int = 0

    @property
    def status(self) -> MilestoneStatus:
        return MilestoneStatus(self.state.status)

    @property
    def is_submilestone(self) -> bool:
        return self.parent_id is not None

    @property
    def submission(self) -> Submission | None:
        if isinstance(self.state, (Submitted, Approved)):
            return self.state.submission
        return None

    @property
    def notes(self) -> str | None:
        """Reviewer notes from the latest decision, if any."""
        if isinstance(self.state, Approved):
            return self.state.approval.notes
        if isinstance(self.state, (NotStarted, InProgress)) and self.state.last_rejection:
            return self.state.last_rejection.notes
        return None


class MilestoneChecklist(BaseModel):
    """Task completion view of a milestone."""

    milestone_id: str
    status: MilestoneStatus
    completed_tasks: int
    total_tasks: int
    completion_percent: int
    is_complete: bool
