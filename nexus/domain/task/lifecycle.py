"""Task state machine and submission checks.

    Pending --start--> InProgress
    InProgress --submit(link, screenshots)--> review=pendingReview
    pendingReview --approve--> Completed, review=approved (verified)
    pendingReview --reject--> InProgress, review=rejected

Pure functions only; callers supply the clock reading and the caller's
privilege level.
"""

from datetime import datetime, timedelta

from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.task.models import (
    ApprovedSubmission,
    PendingReview,
    RejectedSubmission,
    Task,
    TaskStatus,
    TaskSubmission,
)
from nexus.domain.types import Priority, ScreenshotUpload


def _verified_error(task: Task, privileged: bool) -> DomainError:
    if privileged:
        return DomainError.validation(
            "task.verified_terminal",
            f"Task '{task.title}' is verified; approval is final",
        )
    return DomainError.forbidden(
        "task.verified",
        f"Task '{task.title}' is verified and can no longer be changed",
    )


def start_task(task: Task, *, privileged: bool = False) -> Result[Task, DomainError]:
    """Mark a pending task InProgress."""
    if task.is_verified:
        return Err(_verified_error(task, privileged))

    if task.status != TaskStatus.PENDING:
        return Err(
            DomainError.validation(
                "task.not_pending",
                f"Task '{task.title}' is not pending (current status: {task.status.value})",
            )
        )
    return Ok(task.model_copy(update={"status": TaskStatus.IN_PROGRESS}))


def change_status(
    task: Task,
    status: TaskStatus,
    *,
    now: datetime,
    review_gated: bool,
    privileged: bool,
) -> Result[Task, DomainError]:
    """Apply a direct status edit.

    Args:
        task: Task to update.
        status: Requested status.
        now: Edit time, stamped as ``completed_at`` when completing.
        review_gated: Whether the task must be completed through review.
        privileged: Whether the caller is the project's mentor or an admin.

    Returns:
        Ok(Task) with the new status, or Err describing the refusal.
    """
    if task.is_verified:
        return Err(_verified_error(task, privileged))

    if isinstance(task.review, PendingReview) and not privileged:
        return Err(
            DomainError.validation(
                "task.under_review",
                f"Task '{task.title}' has a submission awaiting review",
            )
        )

    if status == TaskStatus.COMPLETED and review_gated and not privileged:
        return Err(
            DomainError.validation(
                "task.review_required",
                f"Task '{task.title}' must be submitted for review to be completed",
            )
        )

    if status == task.status:
        return Ok(task)

    completed_at = now if status == TaskStatus.COMPLETED else None
    return Ok(task.model_copy(update={"status": status, "completed_at": completed_at}))


def check_points_edit(
    task: Task,
    story_points: int,
    *,
    enforce_review: bool,
    privileged: bool,
) -> Result[None, DomainError]:
    """Check that a student may change a task's story points.

    Points are frozen once a task is completed or awaiting review, and a
    review-gated task cannot be dropped to zero points.
    """
    if privileged or story_points == task.story_points:
        return Ok(None)

    if task.status == TaskStatus.COMPLETED or isinstance(task.review, PendingReview):
        return Err(
            DomainError.forbidden(
                "task.points_locked",
                f"Story points of '{task.title}' are locked once it is submitted or completed",
            )
        )

    if story_points == 0 and task.is_review_gated(enforce_review):
        return Err(
            DomainError.forbidden(
                "task.points_locked",
                f"Task '{task.title}' requires review and cannot be set to zero points",
            )
        )
    return Ok(None)


def validate_screenshots(
    screenshots: list[ScreenshotUpload],
    *,
    max_count: int,
    max_bytes: int,
    allowed_types: list[str],
) -> Result[None, DomainError]:
    """Check screenshot count, type and size before anything is stored.

    Args:
        screenshots: Uploaded files.
        max_count: Maximum number of screenshots per submission.
        max_bytes: Size ceiling per screenshot.
        allowed_types: Permitted image extensions (``png``, ``jpeg``, ...).

    Returns:
        Ok(None) if every screenshot is acceptable, else Err(validation).
    """
    if len(screenshots) > max_count:
        return Err(
            DomainError.validation(
                "task.too_many_screenshots",
                f"At most {max_count} screenshots are allowed ({len(screenshots)} given)",
            )
        )

    for shot in screenshots:
        subtype = shot.content_type.partition("/")[2].lower()
        if (
            not shot.content_type.lower().startswith("image/")
            or shot.extension not in allowed_types
            or subtype not in allowed_types
        ):
            return Err(
                DomainError.validation(
                    "task.screenshot_not_image",
                    f"'{shot.filename}' is not an accepted image type",
                )
            )
        if shot.size > max_bytes:
            return Err(
                DomainError.validation(
                    "task.screenshot_too_large",
                    f"'{shot.filename}' exceeds the {max_bytes // (1024 * 1024)} MB limit",
                )
            )
    return Ok(None)


def check_submittable(task: Task, github_link: str) -> Result[None, DomainError]:
    """Check that a task can accept a new submission."""
    if task.is_verified:
        return Err(_verified_error(task, privileged=False))

    if not github_link.strip():
        return Err(DomainError.validation("task.link_required", "GitHub link is required"))

    if isinstance(task.review, PendingReview):
        return Err(
            DomainError.validation(
                "task.under_review",
                f"Task '{task.title}' already has a submission awaiting review",
            )
        )

    if task.status != TaskStatus.IN_PROGRESS:
        return Err(
            DomainError.validation(
                "task.not_in_progress",
                f"Only tasks in progress can be submitted (current status: {task.status.value})",
            )
        )
    return Ok(None)


def submit_task(
    task: Task,
    *,
    github_link: str,
    screenshot_refs: list[str],
    submitted_by: str,
    now: datetime,
) -> Result[Task, DomainError]:
    """Attach a submission and put the task up for review."""
    checked = check_submittable(task, github_link)
    if isinstance(checked, Err):
        return checked

    submission = TaskSubmission(
        github_link=github_link.strip(),
        screenshots=screenshot_refs,
        submitted_by=submitted_by,
        submitted_at=now,
    )
    return Ok(task.model_copy(update={"review": PendingReview(submission=submission)}))


def approve_task(task: Task, *, reviewer_id: str, now: datetime) -> Result[Task, DomainError]:
    """Verify a pending submission and complete the task."""
    if not isinstance(task.review, PendingReview):
        return Err(
            DomainError.validation(
                "task.not_pending_review",
                f"Task '{task.title}' has no submission awaiting review "
                f"(review status: {task.review_status.value})",
            )
        )

    review = ApprovedSubmission(
        submission=task.review.submission,
        reviewer_id=reviewer_id,
        verified_at=now,
    )
    return Ok(
        task.model_copy(
            update={"status": TaskStatus.COMPLETED, "completed_at": now, "review": review}
        )
    )


def reject_task(
    task: Task,
    *,
    reviewer_id: str,
    now: datetime,
    notes: str = "",
) -> Result[Task, DomainError]:
    """Send a pending submission back; the task returns to InProgress."""
    if not isinstance(task.review, PendingReview):
        return Err(
            DomainError.validation(
                "task.not_pending_review",
                f"Task '{task.title}' has no submission awaiting review "
                f"(review status: {task.review_status.value})",
            )
        )

    review = RejectedSubmission(
        submission=task.review.submission,
        notes=notes.strip(),
        reviewer_id=reviewer_id,
        reviewed_at=now,
    )
    return Ok(
        task.model_copy(
            update={"status": TaskStatus.IN_PROGRESS, "completed_at": None, "review": review}
        )
    )


def is_due_soon(task: Task, now: datetime, window: timedelta) -> bool:
    """Check whether an open, non-urgent task's deadline is within ``window`` of now."""
    if task.status == TaskStatus.COMPLETED or task.priority == Priority.HIGH:
        return False
    if task.deadline is None:
        return False
    return now - window < task.deadline < now + window
