"""Milestone state machine.

    NotStarted|InProgress --submit(link, description)--> Submitted
    Submitted --approve(notes)--> Approved
    Submitted --reject(notes)--> NotStarted

Each transition is a pure function returning a new Milestone (or an Err
describing why the transition is illegal). Persistence and authorization
happen in the application layer.
"""

from datetime import datetime, timedelta

from nexus.domain.milestone.models import (
    Approved,
    InProgress,
    Milestone,
    MilestoneStatus,
    NotStarted,
    Review,
    Submission,
    Submitted,
)
from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.types import RepositoryLink


def submit_milestone(
    milestone: Milestone,
    *,
    github_link: str,
    description: str,
    submitted_by: str,
    now: datetime,
    repository_url: str | None = None,
) -> Result[Milestone, DomainError]:
    """Move a milestone to Submitted.

    Args:
        milestone: Milestone to submit.
        github_link: Link to the submitted work.
        description: What was delivered.
        submitted_by: Account id of the submitting student.
        now: Submission time.
        repository_url: The project's canonical repository, if one is set.

    Returns:
        Ok(Milestone) in the Submitted state, or Err(validation).
    """
    link = github_link.strip()
    text = description.strip()
    if not link or not text:
        return Err(
            DomainError.validation(
                "milestone.submission_incomplete",
                "GitHub link and description are required",
            )
        )

    if repository_url and not RepositoryLink(repository_url).matches(link):
        return Err(
            DomainError.validation(
                "milestone.repository_mismatch",
                f"Submitted link must point at the project repository ({repository_url})",
            )
        )

    if not isinstance(milestone.state, (NotStarted, InProgress)):
        return Err(
            DomainError.validation(
                "milestone.not_submittable",
                f"Milestone '{milestone.title}' cannot be submitted "
                f"(current status: {milestone.status.value})",
            )
        )

    submission = Submission(
        github_link=link,
        description=text,
        submitted_by=submitted_by,
        submitted_at=now,
    )
    return Ok(milestone.model_copy(update={"state": Submitted(submission=submission)}))


def approve_milestone(
    milestone: Milestone,
    *,
    reviewer_id: str,
    now: datetime,
    notes: str = "",
) -> Result[Milestone, DomainError]:
    """Approve a submitted milestone. Approved is terminal."""
    if not isinstance(milestone.state, Submitted):
        return Err(
            DomainError.validation(
                "milestone.not_submitted",
                f"Only submitted milestones can be approved "
                f"(current status: {milestone.status.value})",
            )
        )

    approval = Review(notes=notes.strip(), reviewer_id=reviewer_id, reviewed_at=now)
    state = Approved(submission=milestone.state.submission, approval=approval)
    return Ok(milestone.model_copy(update={"state": state}))


def reject_milestone(
    milestone: Milestone,
    *,
    reviewer_id: str,
    now: datetime,
    notes: str,
) -> Result[Milestone, DomainError]:
    """Send a submitted milestone back to NotStarted with reviewer feedback.

    Rejection must carry actionable notes; the notes stay on the milestone
    until the next decision.
    """
    if not notes or not notes.strip():
        return Err(
            DomainError.validation(
                "milestone.notes_required",
                "Rejecting a milestone requires feedback notes",
            )
        )

    if not isinstance(milestone.state, Submitted):
        return Err(
            DomainError.validation(
                "milestone.not_submitted",
                f"Only submitted milestones can be rejected "
                f"(current status: {milestone.status.value})",
            )
        )

    rejection = Review(notes=notes.strip(), reviewer_id=reviewer_id, reviewed_at=now)
    return Ok(milestone.model_copy(update={"state": NotStarted(last_rejection=rejection)}))


def set_work_status(milestone: Milestone, status: MilestoneStatus) -> Result[Milestone, DomainError]:
    """Toggle a milestone between NotStarted and InProgress.

    Review outcomes (Submitted, Approved) are only reachable through
    submit/approve, never by a direct status edit.
    """
    if status not in (MilestoneStatus.NOT_STARTED, MilestoneStatus.IN_PROGRESS):
        return Err(
            DomainError.validation(
                "milestone.status_not_editable",
                "Status can only be set to NotStarted or InProgress directly",
            )
        )

    if not isinstance(milestone.state, (NotStarted, InProgress)):
        return Err(
            DomainError.validation(
                "milestone.under_review",
                f"Milestone '{milestone.title}' is {milestone.status.value}",
            )
        )

    rejection = milestone.state.last_rejection
    state: NotStarted | InProgress
    if status == MilestoneStatus.NOT_STARTED:
        state = NotStarted(last_rejection=rejection)
    else:
        state = InProgress(last_rejection=rejection)
    return Ok(milestone.model_copy(update={"state": state}))


def plan_submilestones(parent: Milestone, count: int, spacing_days: int) -> list[Milestone]:
    """Create the phase sub-milestones of a new milestone.

    Phase ``i`` (1-based) is titled ``"<title> - Phase i"`` and is due
    ``i * spacing_days`` after the parent's due date.

    Args:
        parent: The top-level milestone being created.
        count: Number of phases.
        spacing_days: Days between consecutive phase due dates.

    Returns:
        New sub-milestones in phase order.
    """
    phases: list[Milestone] = []
    for i in range(1, count + 1):
        due = parent.due_date + timedelta(days=i * spacing_days) if parent.due_date else None
        phases.append(
            Milestone(
                project_id=parent.project_id,
                title=f"{parent.title} - Phase {i}",
                description=f"Sub-milestone {i} for {parent.title}",
                due_date=due,
                priority=parent.priority,
                parent_id=parent.id,
                order=i - 1,
            )
        )
    return phases
