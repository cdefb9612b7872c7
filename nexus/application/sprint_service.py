"""Sprint application service: sprint bookkeeping, burndown and statistics."""

import logging
from datetime import date

from nexus.application.authorization import Action
from nexus.application.common import check_version, load_authorized_project
from nexus.application.ports import Clock
from nexus.domain.project.models import Project
from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.sprint import Burndown, Sprint, SprintStats, SprintStatus, compute_burndown, sprint_stats
from nexus.domain.types import Caller
from nexus.infrastructure.storage import ProjectRepository, SprintRepository, TaskRepository

logger = logging.getLogger(__name__)


class SprintService:
    def __init__(
        self,
        sprints: SprintRepository,
        projects: ProjectRepository,
        tasks: TaskRepository,
        clock: Clock,
    ) -> None:
        self._sprints = sprints
        self._projects = projects
        self._tasks = tasks
        self._clock = clock

    def _load(self, caller: Caller, sprint_id: str, action: Action) -> Result[tuple[Sprint, Project], DomainError]:
        sprint = self._sprints.get(sprint_id)
        if isinstance(sprint, Err):
            return sprint
        project = load_authorized_project(self._projects, caller, action, sprint.value.project_id)
        if isinstance(project, Err):
            return project
        return Ok((sprint.value, project.value))

    def create_sprint(
        self,
        caller: Caller,
        project_id: str,
        name: str,
        start_date: date,
        end_date: date,
        goal: str = "",
    ) -> Result[Sprint, DomainError]:
        if not name.strip():
            return Err(DomainError.validation("sprint.name_required", "Sprint name is required"))
        if end_date < start_date:
            return Err(DomainError.validation("sprint.invalid_dates", "Sprint cannot end before it starts"))

        project = load_authorized_project(self._projects, caller, Action.CONTRIBUTE, project_id)
        if isinstance(project, Err):
            return project

        sprint = Sprint(
            project_id=project_id,
            name=name.strip(),
            goal=goal.strip(),
            start_date=start_date,
            end_date=end_date,
        )
        result = self._sprints.add(sprint)
        if isinstance(result, Ok):
            logger.info(f"Created sprint {sprint.id} '{sprint.name}' ({start_date} to {end_date})")
        return result

    def get_sprint(self, caller: Caller, sprint_id: str) -> Result[Sprint, DomainError]:
        loaded = self._load(caller, sprint_id, Action.VIEW_PROJECT)
        if isinstance(loaded, Err):
            return loaded
        return Ok(loaded.value[0])

    def list_sprints(self, caller: Caller, project_id: str) -> Result[list[Sprint], DomainError]:
        project = load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, project_id)
        if isinstance(project, Err):
            return project
        return Ok(self._sprints.for_project(project_id))

    def update_status(
        self,
        caller: Caller,
        sprint_id: str,
        status: SprintStatus,
        expected_version: int | None = None,
    ) -> Result[Sprint, DomainError]:
        """Set a sprint's status. Any transition is allowed."""
        loaded = self._load(caller, sprint_id, Action.CONTRIBUTE)
        if isinstance(loaded, Err):
            return loaded
        sprint, _ = loaded.value

        fresh = check_version(sprint, expected_version)
        if isinstance(fresh, Err):
            return fresh
        return self._sprints.replace(sprint.model_copy(update={"status": status}), sprint.version)

    def burndown(self, caller: Caller, sprint_id: str) -> Result[Burndown, DomainError]:
        """Ideal and actual secured story points per day of the sprint."""
        loaded = self._load(caller, sprint_id, Action.VIEW_PROJECT)
        if isinstance(loaded, Err):
            return loaded
        sprint, project = loaded.value
        return Ok(
            compute_burndown(
                sprint,
                self._tasks.for_sprint(sprint.id),
                today=self._clock().date(),
                enforce_review=project.enforce_task_review,
            )
        )

    def stats(self, caller: Caller, sprint_id: str) -> Result[SprintStats, DomainError]:
        loaded = self._load(caller, sprint_id, Action.VIEW_PROJECT)
        if isinstance(loaded, Err):
            return loaded
        sprint, project = loaded.value
        return Ok(
            sprint_stats(sprint, self._tasks.for_sprint(sprint.id), enforce_review=project.enforce_task_review)
        )
