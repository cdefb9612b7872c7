"""Project application service.

Creation, ownership, mentor assignment, status and repository settings,
the SOS flag, and the summary read model.
"""

import logging

from nexus.application.authorization import Action, authorize
from nexus.application.common import load_authorized_project, mutate_project
from nexus.application.events import EventOutbox
from nexus.application.ports import Clock
from nexus.domain.milestone.models import Milestone, MilestoneStatus
from nexus.domain.project.events import MentorAssigned, ProjectCreated, ProjectFlagged
from nexus.domain.project.models import Project, ProjectStatus, ProjectSummary
from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.task.models import Task, TaskStatus
from nexus.domain.types import Caller, RepositoryLink, Role
from nexus.infrastructure.github import GitHubClient, RepositoryActivity
from nexus.infrastructure.storage import (
    KeyedLocks,
    MilestoneRepository,
    ProjectRepository,
    TaskRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


def build_summary(project: Project, milestones: list[Milestone], tasks: list[Task]) -> ProjectSummary:
    """Aggregate a project snapshot into its summary.

    Progress is the share of approved top-level milestones.
    """
    top_level = [m for m in milestones if not m.is_submilestone]
    approved = sum(1 for m in top_level if m.status == MilestoneStatus.APPROVED)
    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    progress = round(approved / len(top_level) * 100) if top_level else 0

    return ProjectSummary(
        id=project.id,
        title=project.title,
        status=project.status,
        mentor_id=project.mentor_id,
        owner_id=project.owner_id,
        is_stuck=project.is_stuck,
        team_size=len(project.joined_members()),
        pending_invitations=len(project.pending_members()),
        total_milestones=len(top_level),
        approved_milestones=approved,
        total_tasks=len(tasks),
        completed_tasks=completed,
        progress_percent=progress,
    )


class ProjectService:
    def __init__(
        self,
        projects: ProjectRepository,
        users: UserRepository,
        milestones: MilestoneRepository,
        tasks: TaskRepository,
        locks: KeyedLocks,
        outbox: EventOutbox,
        clock: Clock,
        github: GitHubClient | None = None,
    ) -> None:
        self._projects = projects
        self._users = users
        self._milestones = milestones
        self._tasks = tasks
        self._locks = locks
        self._outbox = outbox
        self._clock = clock
        self._github = github

    def create_project(
        self,
        caller: Caller,
        title: str,
        description: str = "",
        repository_url: str | None = None,
    ) -> Result[Project, DomainError]:
        """Create a project. A student creator becomes its owner, a mentor creator its mentor."""
        if not title.strip():
            return Err(DomainError.validation("project.title_required", "Project title is required"))
        if repository_url and RepositoryLink(repository_url).owner_and_name() is None:
            return Err(DomainError.validation("project.invalid_repository", f"Not a repository link: {repository_url}"))

        project = Project(
            title=title.strip(),
            description=description.strip(),
            creator_id=caller.user_id,
            owner_id=caller.user_id if caller.role == Role.STUDENT else None,
            mentor_id=caller.user_id if caller.role == Role.MENTOR else None,
            repository_url=repository_url.strip() if repository_url else None,
        )
        result = self._projects.add(project)
        if isinstance(result, Err):
            return result

        logger.info(f"Created project {project.id} '{project.title}'")
        self._outbox.publish(
            ProjectCreated(
                project_id=project.id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                title=project.title,
            )
        )
        return result

    def get_project(self, caller: Caller, project_id: str) -> Result[Project, DomainError]:
        return load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, project_id)

    def list_projects(self, caller: Caller) -> list[Project]:
        if caller.is_admin:
            return self._projects.all()
        return self._projects.for_user(caller.user_id)

    def adopt_project(self, caller: Caller, project_id: str) -> Result[Project, DomainError]:
        """Let a student take ownership of an unowned project.

        Adoption starts the work: a Planning project moves to InProgress.
        """
        if not caller.is_student:
            return Err(DomainError.forbidden("project.adopt_students_only", "Only students can adopt projects"))

        def adopt(project: Project) -> Result[Project, DomainError]:
            if project.owner_id is not None:
                return Err(DomainError.conflict("project.already_owned", f"'{project.title}' already has an owner"))
            update: dict = {"owner_id": caller.user_id}
            if project.status == ProjectStatus.PLANNING:
                update["status"] = ProjectStatus.IN_PROGRESS
            return Ok(project.model_copy(update=update))

        result = mutate_project(self._projects, self._locks, project_id, adopt)
        if isinstance(result, Ok):
            logger.info(f"Project {project_id} adopted by {caller.user_id}")
        return result

    def assign_mentor(self, caller: Caller, project_id: str, mentor_id: str) -> Result[Project, DomainError]:
        account = self._users.get(mentor_id)
        if isinstance(account, Err):
            return account
        if account.value.role != Role.MENTOR:
            return Err(DomainError.validation("project.not_a_mentor", f"{account.value.email} is not a mentor"))

        def assign(project: Project) -> Result[Project, DomainError]:
            allowed = authorize(caller, Action.ASSIGN_MENTOR, project)
            if isinstance(allowed, Err):
                return allowed
            return Ok(project.model_copy(update={"mentor_id": mentor_id}))

        result = mutate_project(self._projects, self._locks, project_id, assign)
        if isinstance(result, Err):
            return result

        logger.info(f"Assigned mentor {mentor_id} to project {project_id}")
        self._outbox.publish(
            MentorAssigned(
                project_id=project_id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                title=result.value.title,
                mentor_id=mentor_id,
            )
        )
        return result

    def update_status(self, caller: Caller, project_id: str, status: ProjectStatus) -> Result[Project, DomainError]:
        def change(project: Project) -> Result[Project, DomainError]:
            allowed = authorize(caller, Action.UPDATE_PROJECT, project)
            if isinstance(allowed, Err):
                return allowed
            return Ok(project.model_copy(update={"status": status}))

        return mutate_project(self._projects, self._locks, project_id, change)

    def set_repository(
        self, caller: Caller, project_id: str, repository_url: str | None
    ) -> Result[Project, DomainError]:
        """Designate (or clear) the canonical repository milestone submissions are checked against."""
        url = repository_url.strip() if repository_url else None
        if url and RepositoryLink(url).owner_and_name() is None:
            return Err(DomainError.validation("project.invalid_repository", f"Not a repository link: {url}"))

        def change(project: Project) -> Result[Project, DomainError]:
            allowed = authorize(caller, Action.UPDATE_PROJECT, project)
            if isinstance(allowed, Err):
                return allowed
            return Ok(project.model_copy(update={"repository_url": url}))

        return mutate_project(self._projects, self._locks, project_id, change)

    def set_task_review(self, caller: Caller, project_id: str, enforce: bool) -> Result[Project, DomainError]:
        """Turn mandatory review of pointed tasks on or off (mentor or admin)."""

        def change(project: Project) -> Result[Project, DomainError]:
            allowed = authorize(caller, Action.REVIEW_TASK, project)
            if isinstance(allowed, Err):
                return allowed
            return Ok(project.model_copy(update={"enforce_task_review": enforce}))

        return mutate_project(self._projects, self._locks, project_id, change)

    def toggle_sos(self, caller: Caller, project_id: str) -> Result[Project, DomainError]:
        """Flip the project's SOS flag. Raising it alerts the mentor."""

        def toggle(project: Project) -> Result[Project, DomainError]:
            allowed = authorize(caller, Action.CONTRIBUTE, project)
            if isinstance(allowed, Err):
                return allowed
            return Ok(project.model_copy(update={"is_stuck": not project.is_stuck}))

        result = mutate_project(self._projects, self._locks, project_id, toggle)
        if isinstance(result, Err):
            return result

        project = result.value
        if project.is_stuck:
            logger.warning(f"Project {project_id} raised SOS")
            self._outbox.publish(
                ProjectFlagged(
                    project_id=project_id,
                    actor_id=caller.user_id,
                    occurred_at=self._clock(),
                    title=project.title,
                    mentor_id=project.mentor_id,
                )
            )
        return result

    def get_summary(self, caller: Caller, project_id: str) -> Result[ProjectSummary, DomainError]:
        result = load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, project_id)
        if isinstance(result, Err):
            return result
        project = result.value
        return Ok(
            build_summary(
                project,
                self._milestones.for_project(project.id),
                self._tasks.for_project(project.id),
            )
        )

    def repository_activity(self, caller: Caller, project_id: str) -> Result[RepositoryActivity, DomainError]:
        """Recent commits, branches, pull requests and contributors of the canonical repository."""
        result = load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, project_id)
        if isinstance(result, Err):
            return result
        project = result.value
        if not project.repository_url:
            return Err(DomainError.validation("project.no_repository", f"'{project.title}' has no linked repository"))
        if self._github is None:
            return Err(DomainError.unavailable("github.not_configured", "No source-hosting client is configured"))
        return self._github.activity(RepositoryLink(project.repository_url))
