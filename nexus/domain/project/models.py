"""Project domain models.

The project is the aggregation root: it exclusively owns its team-member
list and references its milestones by id. These are pure data structures
with no I/O or side effects.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from nexus.domain.shared.entity import Entity
from nexus.domain.types import normalize_email


class ProjectStatus(str, Enum):
    """Lifecycle stage of a project."""

    PLANNING = "Planning"
    IN_PROGRESS = "InProgress"
    APP_COMPLETE = "AppComplete"
    COMPLETED = "Completed"


class MemberStatus(str, Enum):
    """Whether an invited team member has been bound to an account."""

    PENDING = "pending"
    JOINED = "joined"


class TeamMember(BaseModel):
    """A project participant, identified by email until bound to an account.

    A member is ``joined`` exactly when ``user_id`` is set.
    """

    name: str = ""
    email: str
    user_id: str | None = None
    status: MemberStatus = MemberStatus.PENDING
    role: str = ""
    joined_at: datetime | None = None

    @field_validator("email")
    @classmethod
    def _canonical_email(cls, value: str) -> str:
        return normalize_email(value)

    @model_validator(mode="after")
    def _joined_iff_linked(self) -> "TeamMember":
        if (self.status == MemberStatus.JOINED) != (self.user_id is not None):
            raise ValueError("team member is joined if and only if a user id is linked")
        return self

    @property
    def is_joined(self) -> bool:
        return self.status == MemberStatus.JOINED

    def bind(self, user_id: str, joined_at: datetime) -> "TeamMember":
        """Return a copy bound to an account and marked joined."""
        return self.model_copy(
            update={
                "user_id": user_id,
                "status": MemberStatus.JOINED,
                "joined_at": joined_at,
            }
        )


class Project(Entity):
    """A collaborative student project.

    Holds at most one student-owner and at most one mentor. Team members are
    unique by email.
    """

    title: str
    description: str = ""
    status: ProjectStatus = ProjectStatus.PLANNING
    creator_id: str
    owner_id: str | None = Field(default=None, description="Student-owner account id")
    mentor_id: str | None = None
    milestone_ids: list[str] = Field(default_factory=list)
    team_members: list[TeamMember] = Field(default_factory=list)
    repository_url: str | None = Field(
        default=None,
        description="Canonical code repository milestone submissions must match",
    )
    enforce_task_review: bool = True
    is_stuck: bool = False

    @model_validator(mode="after")
    def _unique_member_emails(self) -> "Project":
        emails = [m.email for m in self.team_members]
        if len(emails) != len(set(emails)):
            raise ValueError("team member emails must be unique within a project")
        return self

    def find_member(self, email: str) -> TeamMember | None:
        """Get a team member by email (case-insensitive)."""
        key = normalize_email(email)
        for member in self.team_members:
            if member.email == key:
                return member
        return None

    def find_member_by_user(self, user_id: str) -> TeamMember | None:
        """Get the joined team member bound to an account."""
        for member in self.team_members:
            if member.user_id == user_id:
                return member
        return None

    def joined_members(self) -> list[TeamMember]:
        return [m for m in self.team_members if m.is_joined]

    def pending_members(self) -> list[TeamMember]:
        return [m for m in self.team_members if not m.is_joined]

    def replace_member(self, member: TeamMember) -> "Project":
        """Return a copy with the member of the same email replaced."""
        members = [member if m.email == member.email else m for m in self.team_members]
        return self.model_copy(update={"team_members": members})

    def is_mentor(self, user_id: str) -> bool:
        return self.mentor_id is not None and self.mentor_id == user_id

    def is_owner(self, user_id: str) -> bool:
        return self.owner_id is not None and self.owner_id == user_id

    def is_creator(self, user_id: str) -> bool:
        return self.creator_id == user_id

    def is_member(self, user_id: str) -> bool:
        """Check whether the account is a joined team member."""
        return self.find_member_by_user(user_id) is not None

    def is_participant(self, user_id: str) -> bool:
        """Creator, mentor, owner or joined team member."""
        return (
            self.is_creator(user_id)
            or self.is_mentor(user_id)
            or self.is_owner(user_id)
            or self.is_member(user_id)
        )

    def student_ids(self) -> list[str]:
        """Owner followed by joined members, without duplicates."""
        ids: list[str] = []
        if self.owner_id:
            ids.append(self.owner_id)
        for member in self.joined_members():
            if member.user_id and member.user_id not in ids:
                ids.append(member.user_id)
        return ids


class ProjectSummary(BaseModel):
    """Progress view of a project for dashboard display."""

    id: str
    title: str
    status: ProjectStatus
    mentor_id: str | None = None
    owner_id: str | None = None
    is_stuck: bool = False
    team_size: int = 0
    pending_invitations: int = 0
    total_milestones: int = 0
    approved_milestones: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    progress_percent: int = 0
