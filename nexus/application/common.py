"""Helpers shared by the application services."""

from collections.abc import Callable

from nexus.application.authorization import Action, authorize
from nexus.domain.project.models import Project
from nexus.domain.shared import DomainError, Entity, Err, Ok, Result, flat_map, map_result
from nexus.domain.types import Caller
from nexus.infrastructure.storage import KeyedLocks, ProjectRepository


def project_key(project_id: str) -> str:
    return f"project:{project_id}"


def meeting_key(meeting_id: str) -> str:
    return f"meeting:{meeting_id}"


def busy(key: str) -> DomainError:
    return DomainError.unavailable("lock.timeout", f"Timed out waiting for {key}; try again")


def load_authorized_project(
    projects: ProjectRepository,
    caller: Caller,
    action: Action,
    project_id: str,
) -> Result[Project, DomainError]:
    """Load a project and check ``action`` against it."""
    return flat_map(
        projects.get(project_id),
        lambda project: map_result(authorize(caller, action, project), lambda _: project),
    )


def check_version(entity: Entity, expected_version: int | None) -> Result[None, DomainError]:
    """Fail with Conflict when the caller's last-seen version is stale."""
    if expected_version is not None and entity.version != expected_version:
        label = type(entity).__name__.lower()
        return Err(
            DomainError.conflict(
                f"{label}.stale",
                f"{type(entity).__name__} {entity.id} changed since version {expected_version} "
                f"(now at {entity.version})",
            )
        )
    return Ok(None)


def mutate_project(
    projects: ProjectRepository,
    locks: KeyedLocks,
    project_id: str,
    change: Callable[[Project], Result[Project, DomainError]],
) -> Result[Project, DomainError]:
    """Read, change and write a project inside its exclusive section.

    ``change`` receives the freshly read project and returns the updated
    copy (or an Err, which aborts without writing).
    """
    key = project_key(project_id)
    with locks.hold(key) as held:
        if not held:
            return Err(busy(key))
        return flat_map(flat_map(projects.get(project_id), change), projects.save)
