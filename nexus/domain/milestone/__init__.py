"""Milestone domain package."""

from nexus.domain.milestone.events import (
    MilestoneApproved,
    MilestoneRejected,
    MilestoneSubmitted,
)
from nexus.domain.milestone.lifecycle import (
    approve_milestone,
    plan_submilestones,
    reject_milestone,
    set_work_status,
    submit_milestone,
)
from nexus.domain.milestone.models import (
    Approved,
    InProgress,
    Milestone,
    MilestoneChecklist,
    MilestoneStatus,
    NotStarted,
    Review,
    Submission,
    Submitted,
)

__all__ = [
    # Models
    "Milestone",
    "MilestoneStatus",
    "MilestoneChecklist",
    "NotStarted",
    "InProgress",
    "Submitted",
    "Approved",
    "Submission",
    "Review",
    # Transitions
    "submit_milestone",
    "approve_milestone",
    "reject_milestone",
    "set_work_status",
    "plan_submilestones",
    # Events
    "MilestoneSubmitted",
    "MilestoneApproved",
    "MilestoneRejected",
]
