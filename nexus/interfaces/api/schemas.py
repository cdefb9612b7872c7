"""Request/Response schemas for the Nexus API.

These Pydantic models define the API contract for request bodies and the
few responses that are not domain models themselves.
"""

from datetime import date, datetime

from pydantic import Base64Bytes, BaseModel, Field

from nexus.domain.evaluation.models import Criterion
from nexus.domain.meeting.models import MeetingStatus
from nexus.domain.milestone.models import MilestoneStatus
from nexus.domain.project.models import ProjectStatus
from nexus.domain.sprint.models import SprintStatus
from nexus.domain.task.models import TaskStatus
from nexus.domain.types import Priority, Role, ScreenshotUpload

# =============================================================================
# Error Schema
# =============================================================================


class ErrorBody(BaseModel):
    """Body of every non-2xx response."""

    code: str
    reason: str
    message: str


# =============================================================================
# Account Schemas
# =============================================================================


class RegisterRequest(BaseModel):
    name: str
    email: str
    role: Role


# =============================================================================
# Project Schemas
# =============================================================================


class CreateProjectRequest(BaseModel):
    title: str
    description: str = ""
    repository_url: str | None = None


class AssignMentorRequest(BaseModel):
    mentor_id: str


class ProjectStatusRequest(BaseModel):
    status: ProjectStatus


class RepositoryRequest(BaseModel):
    repository_url: str | None = None


class TaskReviewRequest(BaseModel):
    enforce: bool


class AddMemberRequest(BaseModel):
    email: str
    name: str = ""
    role: str = ""


# =============================================================================
# Milestone Schemas
# =============================================================================


class CreateMilestoneRequest(BaseModel):
    title: str
    description: str = ""
    due_date: datetime | None = None
    priority: Priority = Priority.MEDIUM
    submilestones: int = Field(default=0, ge=0)


class SubmitMilestoneRequest(BaseModel):
    github_link: str
    description: str
    expected_version: int | None = None


class ReviewRequest(BaseModel):
    """Approve or reject. Milestone rejections require notes."""

    notes: str = ""
    expected_version: int | None = None


class MilestoneStatusRequest(BaseModel):
    status: MilestoneStatus
    expected_version: int | None = None


# =============================================================================
# Task Schemas
# =============================================================================


class CreateTaskRequest(BaseModel):
    title: str
    description: str = ""
    assignee_email: str | None = None
    sprint_id: str | None = None
    milestone_id: str | None = None
    priority: Priority = Priority.MEDIUM
    story_points: int = Field(default=0, ge=0)
    deadline: datetime | None = None


class TaskStatusRequest(BaseModel):
    status: TaskStatus
    expected_version: int | None = None


class ScreenshotPayload(BaseModel):
    """An inline screenshot; ``data`` is base64-encoded."""

    filename: str
    content_type: str
    data: Base64Bytes

    def to_upload(self) -> ScreenshotUpload:
        return ScreenshotUpload(filename=self.filename, content_type=self.content_type, data=self.data)


class SubmitTaskRequest(BaseModel):
    github_link: str
    screenshots: list[ScreenshotPayload] = Field(default_factory=list)
    expected_version: int | None = None


class VersionRequest(BaseModel):
    expected_version: int | None = None


# =============================================================================
# Sprint Schemas
# =============================================================================


class CreateSprintRequest(BaseModel):
    name: str
    start_date: date
    end_date: date
    goal: str = ""


class SprintStatusRequest(BaseModel):
    status: SprintStatus
    expected_version: int | None = None


# =============================================================================
# Meeting Schemas
# =============================================================================


class CreateMeetingRequest(BaseModel):
    title: str
    call_link: str
    scheduled_at: datetime
    duration_minutes: int = 60
    description: str = ""
    call_id: str | None = None


class MeetingStatusRequest(BaseModel):
    status: MeetingStatus
    notes: str | None = None
    recording_link: str | None = None


# =============================================================================
# Evaluation Schemas
# =============================================================================


class CreateRubricRequest(BaseModel):
    name: str
    criteria: list[Criterion]


class EvaluateRequest(BaseModel):
    rubric_id: str
    scores: dict[str, float] = Field(default_factory=dict)
    comments: str = ""
    feedback: str = ""


class FeedbackRequest(BaseModel):
    """Feedback for one participant, or the whole team when ``recipient_id`` is omitted."""

    message: str
    rating: int = 5
    recipient_id: str | None = None


# =============================================================================
# Response Schemas
# =============================================================================


class CountResponse(BaseModel):
    count: int


class SweepResponse(BaseModel):
    """Outcome of a housekeeping run."""

    purged_notifications: int
    archived_meetings: int
    escalated_tasks: int
