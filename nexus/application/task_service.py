"""Task application service.

Orchestrates task lifecycle operations: creation with assignee resolution,
field edits, direct status edits, submission with screenshots, review, and
deadline escalation.
"""

import logging
from datetime import datetime

from pydantic import BaseModel, Field

from nexus.application.authorization import Action, is_privileged
from nexus.application.common import check_version, load_authorized_project
from nexus.application.events import EventOutbox
from nexus.application.ports import Clock, FileStore
from nexus.config import WorkflowConfig
from nexus.domain.project.models import Project
from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.task import (
    Task,
    TaskApproved,
    TaskAssigned,
    TaskRejected,
    TaskStatus,
    TaskStatusChanged,
    TaskSubmitted,
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
from nexus.domain.types import Caller, Priority, ScreenshotUpload
from nexus.infrastructure.storage import (
    MilestoneRepository,
    ProjectRepository,
    SprintRepository,
    TaskRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


class TaskChanges(BaseModel):
    """Field edits for a task. Only fields that are explicitly set are applied.

    Setting ``assignee_email``, ``sprint_id``, ``milestone_id`` or
    ``deadline`` to None clears it.
    """

    title: str | None = None
    description: str | None = None
    story_points: int | None = Field(default=None, ge=0)
    priority: Priority | None = None
    deadline: datetime | None = None
    sprint_id: str | None = None
    milestone_id: str | None = None
    assignee_email: str | None = None


class TaskService:
    def __init__(
        self,
        tasks: TaskRepository,
        projects: ProjectRepository,
        users: UserRepository,
        sprints: SprintRepository,
        milestones: MilestoneRepository,
        files: FileStore,
        outbox: EventOutbox,
        clock: Clock,
        config: WorkflowConfig,
    ) -> None:
        self._tasks = tasks
        self._projects = projects
        self._users = users
        self._sprints = sprints
        self._milestones = milestones
        self._files = files
        self._outbox = outbox
        self._clock = clock
        self._config = config

    def _load(self, caller: Caller, task_id: str, action: Action) -> Result[tuple[Task, Project], DomainError]:
        task = self._tasks.get(task_id)
        if isinstance(task, Err):
            return task
        project = load_authorized_project(self._projects, caller, action, task.value.project_id)
        if isinstance(project, Err):
            return project
        return Ok((task.value, project.value))

    def _resolve_assignee(self, project: Project, email: str | None) -> Result[str | None, DomainError]:
        """Turn an assignee email into a participant's account id."""
        if email is None or not email.strip():
            return Ok(None)
        account = self._users.get_by_email(email)
        if isinstance(account, Err):
            return Err(DomainError.validation("task.unknown_assignee", f"No account for {email.strip()}"))
        if not project.is_participant(account.value.id):
            return Err(
                DomainError.validation(
                    "task.assignee_not_member",
                    f"{account.value.email} is not a participant of '{project.title}'",
                )
            )
        return Ok(account.value.id)

    def _check_refs(
        self, project: Project, sprint_id: str | None, milestone_id: str | None
    ) -> Result[None, DomainError]:
        if sprint_id is not None:
            sprint = self._sprints.get(sprint_id)
            if isinstance(sprint, Err):
                return sprint
            if sprint.value.project_id != project.id:
                return Err(DomainError.validation("task.foreign_sprint", "Sprint belongs to another project"))
        if milestone_id is not None:
            milestone = self._milestones.get(milestone_id)
            if isinstance(milestone, Err):
                return milestone
            if milestone.value.project_id != project.id:
                return Err(DomainError.validation("task.foreign_milestone", "Milestone belongs to another project"))
        return Ok(None)

    def create_task(
        self,
        caller: Caller,
        project_id: str,
        title: str,
        description: str = "",
        assignee_email: str | None = None,
        sprint_id: str | None = None,
        milestone_id: str | None = None,
        priority: Priority = Priority.MEDIUM,
        story_points: int = 0,
        deadline: datetime | None = None,
    ) -> Result[Task, DomainError]:
        """Create a task. The assignee is resolved from an email at write time."""
        if not title.strip():
            return Err(DomainError.validation("task.title_required", "Task title is required"))
        if story_points < 0:
            return Err(DomainError.validation("task.negative_points", "Story points cannot be negative"))

        project = load_authorized_project(self._projects, caller, Action.CONTRIBUTE, project_id)
        if isinstance(project, Err):
            return project

        assignee = self._resolve_assignee(project.value, assignee_email)
        if isinstance(assignee, Err):
            return assignee
        refs = self._check_refs(project.value, sprint_id, milestone_id)
        if isinstance(refs, Err):
            return refs

        task = Task(
            project_id=project_id,
            title=title.strip(),
            description=description.strip(),
            sprint_id=sprint_id,
            milestone_id=milestone_id,
            assignee_id=assignee.value,
            priority=priority,
            story_points=story_points,
            deadline=deadline,
        )
        result = self._tasks.add(task)
        if isinstance(result, Err):
            return result

        logger.info(f"Created task {task.id} '{task.title}' in project {project_id}")
        if task.assignee_id:
            self._publish_assigned(caller, result.value, task.assignee_id)
        return result

    def _publish_assigned(self, caller: Caller, task: Task, assignee_id: str) -> None:
        self._outbox.publish(
            TaskAssigned(
                project_id=task.project_id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                task_id=task.id,
                title=task.title,
                assignee_id=assignee_id,
            )
        )

    def get_task(self, caller: Caller, task_id: str) -> Result[Task, DomainError]:
        loaded = self._load(caller, task_id, Action.VIEW_PROJECT)
        if isinstance(loaded, Err):
            return loaded
        return Ok(loaded.value[0])

    def list_tasks(
        self,
        caller: Caller,
        project_id: str,
        sprint_id: str | None = None,
        status: TaskStatus | None = None,
    ) -> Result[list[Task], DomainError]:
        """List a project's tasks.

        Assignees who are no longer project participants are reported as
        unassigned.
        """
        project = load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, project_id)
        if isinstance(project, Err):
            return project

        tasks = self._tasks.for_sprint(sprint_id) if sprint_id else self._tasks.for_project(project_id)
        listed = []
        for task in tasks:
            if task.project_id != project_id or (status is not None and task.status != status):
                continue
            if task.assignee_id and not project.value.is_participant(task.assignee_id):
                task = task.model_copy(update={"assignee_id": None})
            listed.append(task)
        return Ok(listed)

    def update_task(
        self,
        caller: Caller,
        task_id: str,
        changes: TaskChanges,
        expected_version: int | None = None,
    ) -> Result[Task, DomainError]:
        """Edit task fields. Students cannot edit a verified task."""
        loaded = self._load(caller, task_id, Action.CONTRIBUTE)
        if isinstance(loaded, Err):
            return loaded
        task, project = loaded.value

        if task.is_verified and not is_privileged(caller, project):
            return Err(DomainError.forbidden("task.verified", f"Task '{task.title}' is verified and locked"))

        fresh = check_version(task, expected_version)
        if isinstance(fresh, Err):
            return fresh

        fields = changes.model_dump(include=changes.model_fields_set)
        update: dict = {}
        if "title" in fields:
            if not (fields["title"] or "").strip():
                return Err(DomainError.validation("task.title_required", "Task title is required"))
            update["title"] = fields["title"].strip()
        if "description" in fields:
            update["description"] = (fields["description"] or "").strip()
        if fields.get("story_points") is not None:
            points = check_points_edit(
                task,
                fields["story_points"],
                enforce_review=project.enforce_task_review,
                privileged=is_privileged(caller, project),
            )
            if isinstance(points, Err):
                return points
            update["story_points"] = fields["story_points"]
        if fields.get("priority") is not None:
            update["priority"] = fields["priority"]
        if "deadline" in fields:
            update["deadline"] = fields["deadline"]

        refs = self._check_refs(project, fields.get("sprint_id"), fields.get("milestone_id"))
        if isinstance(refs, Err):
            return refs
        for name in ("sprint_id", "milestone_id"):
            if name in fields:
                update[name] = fields[name]

        if "assignee_email" in fields:
            assignee = self._resolve_assignee(project, fields["assignee_email"])
            if isinstance(assignee, Err):
                return assignee
            update["assignee_id"] = assignee.value

        committed = self._tasks.replace(task.model_copy(update=update), task.version)
        if isinstance(committed, Err):
            return committed

        saved = committed.value
        if saved.assignee_id and saved.assignee_id != task.assignee_id:
            self._publish_assigned(caller, saved, saved.assignee_id)
        return committed

    def start(self, caller: Caller, task_id: str, expected_version: int | None = None) -> Result[Task, DomainError]:
        loaded = self._load(caller, task_id, Action.CONTRIBUTE)
        if isinstance(loaded, Err):
            return loaded
        task, project = loaded.value

        fresh = check_version(task, expected_version)
        if isinstance(fresh, Err):
            return fresh

        transitioned = start_task(task, privileged=is_privileged(caller, project))
        if isinstance(transitioned, Err):
            return transitioned
        return self._commit_status(caller, task, transitioned.value)

    def update_status(
        self,
        caller: Caller,
        task_id: str,
        status: TaskStatus,
        expected_version: int | None = None,
    ) -> Result[Task, DomainError]:
        """Apply a direct status edit.

        Completed stamps ``completed_at``; any other status clears it. A
        student cannot complete a review-gated task this way.
        """
        loaded = self._load(caller, task_id, Action.CONTRIBUTE)
        if isinstance(loaded, Err):
            return loaded
        task, project = loaded.value

        fresh = check_version(task, expected_version)
        if isinstance(fresh, Err):
            return fresh

        transitioned = change_status(
            task,
            status,
            now=self._clock(),
            review_gated=task.is_review_gated(project.enforce_task_review),
            privileged=is_privileged(caller, project),
        )
        if isinstance(transitioned, Err):
            return transitioned
        if transitioned.value is task:
            return Ok(task)
        return self._commit_status(caller, task, transitioned.value)

    def _commit_status(self, caller: Caller, before: Task, after: Task) -> Result[Task, DomainError]:
        committed = self._tasks.replace(after, before.version)
        if isinstance(committed, Err):
            return committed
        logger.info(f"Task {before.id}: {before.status.value} -> {after.status.value}")
        self._outbox.publish(
            TaskStatusChanged(
                project_id=before.project_id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                task_id=before.id,
                title=before.title,
                previous=before.status,
                current=after.status,
            )
        )
        return committed

    def submit(
        self,
        caller: Caller,
        task_id: str,
        github_link: str,
        screenshots: list[ScreenshotUpload] | None = None,
        expected_version: int | None = None,
    ) -> Result[Task, DomainError]:
        """Submit an in-progress task for review.

        Screenshots are validated before anything is uploaded; uploads are
        deleted again if the submission cannot be committed.
        """
        shots = screenshots or []
        loaded = self._load(caller, task_id, Action.SUBMIT_TASK)
        if isinstance(loaded, Err):
            return loaded
        task, project = loaded.value

        fresh = check_version(task, expected_version)
        if isinstance(fresh, Err):
            return fresh

        submittable = check_submittable(task, github_link)
        if isinstance(submittable, Err):
            return submittable

        valid = validate_screenshots(
            shots,
            max_count=self._config.max_screenshots,
            max_bytes=self._config.max_screenshot_bytes,
            allowed_types=self._config.allowed_image_types,
        )
        if isinstance(valid, Err):
            return valid

        refs: list[str] = []
        for shot in shots:
            stored = self._files.put(shot.filename, shot.content_type, shot.data)
            if isinstance(stored, Err):
                self._cleanup(refs)
                return stored
            refs.append(stored.value)

        transitioned = submit_task(
            task,
            github_link=github_link,
            screenshot_refs=refs,
            submitted_by=caller.user_id,
            now=self._clock(),
        )
        if isinstance(transitioned, Err):
            self._cleanup(refs)
            return transitioned

        committed = self._tasks.replace(transitioned.value, task.version)
        if isinstance(committed, Err):
            self._cleanup(refs)
            return committed

        logger.info(f"Task {task_id} submitted by {caller.user_id} with {len(refs)} screenshot(s)")
        self._outbox.publish(
            TaskSubmitted(
                project_id=project.id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                task_id=task.id,
                title=task.title,
                screenshot_count=len(refs),
                mentor_id=project.mentor_id,
            )
        )
        return committed

    def _cleanup(self, refs: list[str]) -> None:
        for ref in refs:
            deleted = self._files.delete(ref)
            if isinstance(deleted, Err):
                logger.error(f"Could not delete orphaned upload {ref}: {deleted.error}")

    def approve(self, caller: Caller, task_id: str, expected_version: int | None = None) -> Result[Task, DomainError]:
        """Verify a pending submission; the task becomes Completed. Approval is final."""
        loaded = self._load(caller, task_id, Action.REVIEW_TASK)
        if isinstance(loaded, Err):
            return loaded
        task, project = loaded.value

        fresh = check_version(task, expected_version)
        if isinstance(fresh, Err):
            return fresh

        submitted_by = task.submission.submitted_by if task.submission else ""
        transitioned = approve_task(task, reviewer_id=caller.user_id, now=self._clock())
        if isinstance(transitioned, Err):
            return transitioned

        committed = self._tasks.replace(transitioned.value, task.version)
        if isinstance(committed, Err):
            return committed

        logger.info(f"Task {task_id} approved by {caller.user_id}")
        self._outbox.publish(
            TaskApproved(
                project_id=project.id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                task_id=task.id,
                title=task.title,
                submitted_by=submitted_by,
            )
        )
        return committed

    def reject(
        self,
        caller: Caller,
        task_id: str,
        notes: str = "",
        expected_version: int | None = None,
    ) -> Result[Task, DomainError]:
        """Send a pending submission back; the task returns to InProgress."""
        loaded = self._load(caller, task_id, Action.REVIEW_TASK)
        if isinstance(loaded, Err):
            return loaded
        task, project = loaded.value

        fresh = check_version(task, expected_version)
        if isinstance(fresh, Err):
            return fresh

        submitted_by = task.submission.submitted_by if task.submission else ""
        transitioned = reject_task(task, reviewer_id=caller.user_id, now=self._clock(), notes=notes)
        if isinstance(transitioned, Err):
            return transitioned

        committed = self._tasks.replace(transitioned.value, task.version)
        if isinstance(committed, Err):
            return committed

        logger.info(f"Task {task_id} sent back by {caller.user_id}")
        self._outbox.publish(
            TaskRejected(
                project_id=project.id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                task_id=task.id,
                title=task.title,
                submitted_by=submitted_by,
                notes=notes.strip(),
            )
        )
        return committed

    def escalate_due_tasks(self) -> Result[list[Task], DomainError]:
        """Raise open tasks whose deadline is near to High priority.

        A task modified concurrently is skipped and picked up by the next run.
        """
        now = self._clock()
        window = self._config.escalation_window
        escalated: list[Task] = []
        for task in self._tasks.find(lambda t: is_due_soon(t, now, window)):
            result = self._tasks.replace(task.model_copy(update={"priority": Priority.HIGH}), task.version)
            if isinstance(result, Err):
                logger.warning(f"Skipped escalating task {task.id}: {result.error}")
                continue
            escalated.append(result.value)

        if escalated:
            logger.info(f"Escalated {len(escalated)} task(s) to High priority")
        return Ok(escalated)
