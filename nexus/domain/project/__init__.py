"""Project domain package.

This package contains the project aggregate - models, events,
and related domain logic for team membership.
"""

from nexus.domain.project.events import (
    MemberAdded,
    MemberJoined,
    MemberRemoved,
    MentorAssigned,
    ProjectCreated,
    ProjectFlagged,
)
from nexus.domain.project.models import (
    MemberStatus,
    Project,
    ProjectStatus,
    ProjectSummary,
    TeamMember,
)

__all__ = [
    # Models
    "Project",
    "ProjectStatus",
    "ProjectSummary",
    "TeamMember",
    "MemberStatus",
    # Events
    "ProjectCreated",
    "MentorAssigned",
    "MemberAdded",
    "MemberJoined",
    "MemberRemoved",
    "ProjectFlagged",
]
