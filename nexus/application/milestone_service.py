"""Milestone application service.

Orchestrates milestone lifecycle operations: each operation loads the
milestone and its project, checks the caller, applies a pure transition
from ``nexus.domain.milestone`` and commits it with a compare-and-swap on
the version that was read. Events are published only after the commit.
"""

import logging
from datetime import datetime

from nexus.application.authorization import Action, authorize_any
from nexus.application.common import check_version, load_authorized_project, mutate_project
from nexus.application.events import EventOutbox
from nexus.application.ports import Clock
from nexus.config import WorkflowConfig
from nexus.domain.milestone import (
    Milestone,
    MilestoneApproved,
    MilestoneChecklist,
    MilestoneRejected,
    MilestoneStatus,
    MilestoneSubmitted,
    approve_milestone,
    plan_submilestones,
    reject_milestone,
    set_work_status,
    submit_milestone,
)
from nexus.domain.project.models import Project
from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.task.models import TaskStatus
from nexus.domain.types import Caller, Priority
from nexus.infrastructure.storage import KeyedLocks, MilestoneRepository, ProjectRepository, TaskRepository

logger = logging.getLogger(__name__)


class MilestoneService:
    def __init__(
        self,
        milestones: MilestoneRepository,
        projects: ProjectRepository,
        tasks: TaskRepository,
        locks: KeyedLocks,
        outbox: EventOutbox,
        clock: Clock,
        config: WorkflowConfig,
    ) -> None:
        self._milestones = milestones
        self._projects = projects
        self._tasks = tasks
        self._locks = locks
        self._outbox = outbox
        self._clock = clock
        self._config = config

    def _load(
        self,
        caller: Caller,
        milestone_id: str,
        actions: list[Action],
    ) -> Result[tuple[Milestone, Project], DomainError]:
        """Load a milestone with its project and check the caller against ``actions``."""
        milestone = self._milestones.get(milestone_id)
        if isinstance(milestone, Err):
            return milestone
        project = self._projects.get(milestone.value.project_id)
        if isinstance(project, Err):
            return project
        allowed = authorize_any(caller, actions, project.value)
        if isinstance(allowed, Err):
            return allowed
        return Ok((milestone.value, project.value))

    def create_milestone(
        self,
        caller: Caller,
        project_id: str,
        title: str,
        description: str = "",
        due_date: datetime | None = None,
        priority: Priority = Priority.MEDIUM,
        submilestones: int = 0,
    ) -> Result[Milestone, DomainError]:
        """Create a top-level milestone, optionally with phase sub-milestones.

        Phase ``i`` is titled ``"<title> - Phase i"`` and falls due
        ``i * submilestone_spacing_days`` after the parent.

        Returns:
            Ok(Milestone) for the parent, Err(validation) for a blank title
            or negative phase count, Err(forbidden) unless the caller manages
            milestones on this project.
        """
        if not title.strip():
            return Err(DomainError.validation("milestone.title_required", "Milestone title is required"))
        if submilestones < 0:
            return Err(DomainError.validation("milestone.bad_phase_count", "Sub-milestone count cannot be negative"))

        project = load_authorized_project(self._projects, caller, Action.MANAGE_MILESTONES, project_id)
        if isinstance(project, Err):
            return project

        parent = Milestone(
            project_id=project_id,
            title=title.strip(),
            description=description.strip(),
            due_date=due_date,
            priority=priority,
            order=len(project.value.milestone_ids),
        )
        phases = plan_submilestones(parent, submilestones, self._config.submilestone_spacing_days)
        parent = parent.model_copy(update={"submilestone_ids": [p.id for p in phases]})

        created: list[str] = []
        for milestone in [parent, *phases]:
            added = self._milestones.add(milestone)
            if isinstance(added, Err):
                self._discard(created)
                return added
            created.append(milestone.id)

        def attach(current: Project) -> Result[Project, DomainError]:
            return Ok(current.model_copy(update={"milestone_ids": [*current.milestone_ids, parent.id]}))

        attached = mutate_project(self._projects, self._locks, project_id, attach)
        if isinstance(attached, Err):
            self._discard(created)
            return attached

        logger.info(f"Created milestone {parent.id} '{parent.title}' with {len(phases)} phase(s)")
        return self._milestones.get(parent.id)

    def _discard(self, milestone_ids: list[str]) -> None:
        for milestone_id in milestone_ids:
            removed = self._milestones.remove(milestone_id)
            if isinstance(removed, Err):
                logger.error(f"Could not roll back milestone {milestone_id}: {removed.error}")

    def get_milestone(self, caller: Caller, milestone_id: str) -> Result[Milestone, DomainError]:
        loaded = self._load(caller, milestone_id, [Action.VIEW_PROJECT])
        if isinstance(loaded, Err):
            return loaded
        return Ok(loaded.value[0])

    def list_milestones(
        self, caller: Caller, project_id: str, include_phases: bool = True
    ) -> Result[list[Milestone], DomainError]:
        project = load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, project_id)
        if isinstance(project, Err):
            return project
        milestones = self._milestones.for_project(project_id)
        if not include_phases:
            milestones = [m for m in milestones if not m.is_submilestone]
        return Ok(milestones)

    def pending_submissions(self, caller: Caller, project_id: str) -> Result[list[Milestone], DomainError]:
        project = load_authorized_project(self._projects, caller, Action.REVIEW_MILESTONE, project_id)
        if isinstance(project, Err):
            return project
        return Ok(self._milestones.awaiting_review(project_id))

    def submit(
        self,
        caller: Caller,
        milestone_id: str,
        github_link: str,
        description: str,
        expected_version: int | None = None,
    ) -> Result[Milestone, DomainError]:
        """Submit a milestone for review.

        The link must point at the project's canonical repository when one
        is set (compared ignoring case and trailing slashes).
        """
        loaded = self._load(caller, milestone_id, [Action.SUBMIT_MILESTONE])
        if isinstance(loaded, Err):
            return loaded
        milestone, project = loaded.value

        fresh = check_version(milestone, expected_version)
        if isinstance(fresh, Err):
            return fresh

        transitioned = submit_milestone(
            milestone,
            github_link=github_link,
            description=description,
            submitted_by=caller.user_id,
            now=self._clock(),
            repository_url=project.repository_url,
        )
        if isinstance(transitioned, Err):
            return transitioned

        committed = self._milestones.replace(transitioned.value, milestone.version)
        if isinstance(committed, Err):
            return committed

        saved = committed.value
        logger.info(f"Milestone {milestone_id} submitted by {caller.user_id}")
        self._outbox.publish(
            MilestoneSubmitted(
                project_id=project.id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                milestone_id=saved.id,
                title=saved.title,
                github_link=saved.submission.github_link if saved.submission else github_link,
                mentor_id=project.mentor_id,
            )
        )
        return committed

    def approve(
        self,
        caller: Caller,
        milestone_id: str,
        notes: str = "",
        expected_version: int | None = None,
    ) -> Result[Milestone, DomainError]:
        """Approve a submitted milestone. Approval is final.

        Two reviewers approving the same version concurrently: the first
        commit wins, the second gets Err(conflict).
        """
        loaded = self._load(caller, milestone_id, [Action.REVIEW_MILESTONE])
        if isinstance(loaded, Err):
            return loaded
        milestone, project = loaded.value

        fresh = check_version(milestone, expected_version)
        if isinstance(fresh, Err):
            return fresh

        submitted_by = milestone.submission.submitted_by if milestone.submission else ""
        transitioned = approve_milestone(milestone, reviewer_id=caller.user_id, now=self._clock(), notes=notes)
        if isinstance(transitioned, Err):
            return transitioned

        committed = self._milestones.replace(transitioned.value, milestone.version)
        if isinstance(committed, Err):
            return committed

        logger.info(f"Milestone {milestone_id} approved by {caller.user_id}")
        self._outbox.publish(
            MilestoneApproved(
                project_id=project.id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                milestone_id=milestone.id,
                title=milestone.title,
                submitted_by=submitted_by,
                notes=notes.strip(),
            )
        )
        return committed

    def reject(
        self,
        caller: Caller,
        milestone_id: str,
        notes: str,
        expected_version: int | None = None,
    ) -> Result[Milestone, DomainError]:
        """Send a submitted milestone back to NotStarted with reviewer notes."""
        loaded = self._load(caller, milestone_id, [Action.REVIEW_MILESTONE])
        if isinstance(loaded, Err):
            return loaded
        milestone, project = loaded.value

        fresh = check_version(milestone, expected_version)
        if isinstance(fresh, Err):
            return fresh

        submitted_by = milestone.submission.submitted_by if milestone.submission else ""
        transitioned = reject_milestone(milestone, reviewer_id=caller.user_id, now=self._clock(), notes=notes)
        if isinstance(transitioned, Err):
            return transitioned

        committed = self._milestones.replace(transitioned.value, milestone.version)
        if isinstance(committed, Err):
            return committed

        logger.info(f"Milestone {milestone_id} rejected by {caller.user_id}")
        self._outbox.publish(
            MilestoneRejected(
                project_id=project.id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                milestone_id=milestone.id,
                title=milestone.title,
                submitted_by=submitted_by,
                notes=notes.strip(),
            )
        )
        return committed

    def set_status(
        self,
        caller: Caller,
        milestone_id: str,
        status: MilestoneStatus,
        expected_version: int | None = None,
    ) -> Result[Milestone, DomainError]:
        """Toggle between NotStarted and InProgress."""
        loaded = self._load(caller, milestone_id, [Action.SUBMIT_MILESTONE, Action.MANAGE_MILESTONES])
        if isinstance(loaded, Err):
            return loaded
        milestone, _ = loaded.value

        fresh = check_version(milestone, expected_version)
        if isinstance(fresh, Err):
            return fresh

        transitioned = set_work_status(milestone, status)
        if isinstance(transitioned, Err):
            return transitioned
        return self._milestones.replace(transitioned.value, milestone.version)

    def delete_milestone(self, caller: Caller, milestone_id: str) -> Result[None, DomainError]:
        """Delete a milestone and its phases, detaching it from its project or parent."""
        loaded = self._load(caller, milestone_id, [Action.MANAGE_MILESTONES])
        if isinstance(loaded, Err):
            return loaded
        milestone, project = loaded.value

        if milestone.parent_id is not None:
            parent = self._milestones.get(milestone.parent_id)
            if isinstance(parent, Ok):
                remaining = [i for i in parent.value.submilestone_ids if i != milestone.id]
                detached = self._milestones.save(parent.value.model_copy(update={"submilestone_ids": remaining}))
                if isinstance(detached, Err):
                    return detached
        else:

            def detach(current: Project) -> Result[Project, DomainError]:
                remaining = [i for i in current.milestone_ids if i != milestone.id]
                return Ok(current.model_copy(update={"milestone_ids": remaining}))

            detached_project = mutate_project(self._projects, self._locks, project.id, detach)
            if isinstance(detached_project, Err):
                return detached_project

        for phase_id in milestone.submilestone_ids:
            removed = self._milestones.remove(phase_id)
            if isinstance(removed, Err):
                logger.warning(f"Could not remove phase {phase_id} of milestone {milestone_id}: {removed.error}")

        removed = self._milestones.remove(milestone.id)
        if isinstance(removed, Err):
            return removed
        logger.info(f"Deleted milestone {milestone_id} from project {project.id}")
        return Ok(None)

    def checklist(self, caller: Caller, milestone_id: str) -> Result[MilestoneChecklist, DomainError]:
        """Completion of the tasks linked to a milestone, computed on read."""
        loaded = self._load(caller, milestone_id, [Action.VIEW_PROJECT])
        if isinstance(loaded, Err):
            return loaded
        milestone, _ = loaded.value

        tasks = self._tasks.for_milestone(milestone.id)
        completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
        percent = round(completed / len(tasks) * 100) if tasks else 0
        return Ok(
            MilestoneChecklist(
                milestone_id=milestone.id,
                status=milestone.status,
                completed_tasks=completed,
                total_tasks=len(tasks),
                completion_percent=percent,
                is_complete=bool(tasks) and completed == len(tasks),
            )
        )
