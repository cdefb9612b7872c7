"""Task domain package.

This package contains the task models, the task state machine, and the
events it emits.
"""

from nexus.domain.task.events import (
    TaskApproved,
    TaskAssigned,
    TaskRejected,
    TaskStatusChanged,
    TaskSubmitted,
)
from nexus.domain.task.lifecycle import (
    approve_task,
    change_status,
    check_points_edit,
    check_submittable,
    is_due_soon,
    reject_task,
    start_task,
    submit_task,
    validate_screenshots,
)
from nexus.domain.task.models import (
    ApprovedSubmission,
    NoSubmission,
    PendingReview,
    RejectedSubmission,
    ReviewStatus,
    Task,
    TaskStatus,
    TaskSubmission,
)

__all__ = [
    # Models
    "Task",
    "TaskStatus",
    "ReviewStatus",
    "TaskSubmission",
    "NoSubmission",
    "PendingReview",
    "RejectedSubmission",
    "ApprovedSubmission",
    # Transitions
    "start_task",
    "change_status",
    "check_points_edit",
    "check_submittable",
    "submit_task",
    "approve_task",
    "reject_task",
    "validate_screenshots",
    "is_due_soon",
    # Events
    "TaskAssigned",
    "TaskStatusChanged",
    "TaskSubmitted",
    "TaskApproved",
    "TaskRejected",
]
