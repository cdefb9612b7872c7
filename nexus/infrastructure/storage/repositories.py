"""Repository implementations for workflow entities.

Every collection keeps its records as JSON-ready dicts behind a lock and,
when a data directory is configured, mirrors them to ``<name>.json``. The
file is written before the in-memory swap, so a failed write leaves both
copies untouched.

Writes go through ``replace(entity, expected_version)``, a compare-and-swap
on the stored version: a stale copy yields ``Err(conflict)`` instead of
silently overwriting a concurrent change.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from nexus.domain.evaluation.models import Evaluation, Feedback, Rubric
from nexus.domain.meeting.models import Meeting
from nexus.domain.milestone.models import Milestone, MilestoneStatus
from nexus.domain.notification.models import Notification
from nexus.domain.project.models import Project
from nexus.domain.shared import DomainError, Entity, Err, Ok, Result
from nexus.domain.sprint.models import Sprint
from nexus.domain.task.models import Task
from nexus.domain.types import normalize_email
from nexus.domain.user.models import User
from nexus.infrastructure.storage.json_storage import JsonStorage

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class Collection(Generic[E]):
    """A versioned set of entities of one type.

    Args:
        model: Entity class stored in this collection.
        label: Singular name used in error reasons, e.g. ``"project"``.
        data_dir: Directory to persist into. ``None`` keeps data in memory.
        storage: JsonStorage instance to use. Creates new one if not provided.
    """

    name: str = "records"

    def __init__(
        self,
        model: type[E],
        label: str,
        data_dir: Path | None = None,
        storage: JsonStorage | None = None,
    ) -> None:
        self._model = model
        self._label = label
        self._storage = storage or JsonStorage()
        self._path = data_dir / f"{self.name}.json" if data_dir is not None else None
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()

    @property
    def path(self) -> Path | None:
        return self._path

    def load(self) -> Result[int, DomainError]:
        """Load persisted records, if any.

        Returns:
            Ok(count) with the number of records loaded (0 when there is no
            file yet), or Err if the file is unreadable or malformed.
        """
        if self._path is None or not self._path.exists():
            return Ok(0)

        result = self._storage.load_json(self._path)
        if isinstance(result, Err):
            return result

        records: dict[str, dict[str, Any]] = {}
        for raw in result.value.get("items", []):
            try:
                entity = self._model.model_validate(raw)
            except ValidationError as e:
                return Err(
                    DomainError.unavailable("storage.corrupt", f"Invalid {self._label} record in {self._path}: {e}")
                )
            records[entity.id] = entity.model_dump(mode="json")

        with self._lock:
            self._records = records
        logger.debug(f"Loaded {len(records)} {self.name} from {self._path}")
        return Ok(len(records))

    def _decode(self, record: dict[str, Any]) -> E:
        return self._model.model_validate(record)

    def _commit(self, records: dict[str, dict[str, Any]]) -> Result[None, DomainError]:
        """Persist and install a new snapshot. Caller must hold the lock."""
        if self._path is not None:
            saved = self._storage.save_json(self._path, {"items": list(records.values())})
            if isinstance(saved, Err):
                logger.error(f"Failed to persist {self.name}: {saved.error.message}")
                return saved
        self._records = records
        return Ok(None)

    def _not_found(self, entity_id: str) -> DomainError:
        return DomainError.not_found(f"{self._label}.not_found", f"{self._label.capitalize()} not found: {entity_id}")

    def get(self, entity_id: str) -> Result[E, DomainError]:
        with self._lock:
            record = self._records.get(entity_id)
        if record is None:
            return Err(self._not_found(entity_id))
        return Ok(self._decode(record))

    def exists(self, entity_id: str) -> bool:
        with self._lock:
            return entity_id in self._records

    def all(self) -> list[E]:
        with self._lock:
            records = list(self._records.values())
        return [self._decode(r) for r in records]

    def find(self, predicate: Callable[[E], bool]) -> list[E]:
        return [e for e in self.all() if predicate(e)]

    def add(self, entity: E) -> Result[E, DomainError]:
        """Insert a new entity at version 0."""
        with self._lock:
            if entity.id in self._records:
                return Err(
                    DomainError.conflict(f"{self._label}.exists", f"{self._label.capitalize()} already exists: {entity.id}")
                )
            stored = entity.model_copy(update={"version": 0})
            records = dict(self._records)
            records[stored.id] = stored.model_dump(mode="json")
            committed = self._commit(records)
            if isinstance(committed, Err):
                return committed
        return Ok(stored)

    def replace(self, entity: E, expected_version: int) -> Result[E, DomainError]:
        """Store ``entity`` if the stored version still equals ``expected_version``.

        Args:
            entity: The updated entity.
            expected_version: Version the caller's copy was read at.

        Returns:
            Ok(entity) carrying the incremented version, Err(not_found) if the
            entity is gone, or Err(conflict) if someone else wrote first.
        """
        with self._lock:
            current = self._records.get(entity.id)
            if current is None:
                return Err(self._not_found(entity.id))
            if current["version"] != expected_version:
                return Err(
                    DomainError.conflict(
                        f"{self._label}.stale",
                        f"{self._label.capitalize()} {entity.id} was modified concurrently "
                        f"(expected version {expected_version}, found {current['version']})",
                    )
                )
            stored = entity.model_copy(update={"version": expected_version + 1})
            records = dict(self._records)
            records[stored.id] = stored.model_dump(mode="json")
            committed = self._commit(records)
            if isinstance(committed, Err):
                return committed
        return Ok(stored)

    def save(self, entity: E) -> Result[E, DomainError]:
        """Compare-and-swap ``entity`` against the version it carries."""
        return self.replace(entity, entity.version)

    def remove(self, entity_id: str) -> Result[None, DomainError]:
        with self._lock:
            if entity_id not in self._records:
                return Err(self._not_found(entity_id))
            records = dict(self._records)
            del records[entity_id]
            return self._commit(records)

    def remove_where(self, predicate: Callable[[E], bool]) -> Result[int, DomainError]:
        """Remove every entity matching ``predicate`` in one write."""
        with self._lock:
            doomed = [eid for eid, r in self._records.items() if predicate(self._decode(r))]
            if not doomed:
                return Ok(0)
            records = {eid: r for eid, r in self._records.items() if eid not in doomed}
            committed = self._commit(records)
            if isinstance(committed, Err):
                return committed
        return Ok(len(doomed))


class UserRepository(Collection[User]):
    """Account directory. Emails are unique."""

    name = "users"

    def __init__(self, data_dir: Path | None = None, storage: JsonStorage | None = None) -> None:
        super().__init__(User, "user", data_dir, storage)

    def get_by_email(self, email: str) -> Result[User, DomainError]:
        key = normalize_email(email)
        for user in self.all():
            if user.email == key:
                return Ok(user)
        return Err(DomainError.not_found("user.not_found", f"No account for {key}"))

    def add(self, entity: User) -> Result[User, DomainError]:
        with self._lock:
            if isinstance(self.get_by_email(entity.email), Ok):
                return Err(DomainError.conflict("user.email_taken", f"An account already exists for {entity.email}"))
            return super().add(entity)


class ProjectRepository(Collection[Project]):
    name = "projects"

    def __init__(self, data_dir: Path | None = None, storage: JsonStorage | None = None) -> None:
        super().__init__(Project, "project", data_dir, storage)

    def with_pending_email(self, email: str) -> list[Project]:
        """Projects holding an unclaimed team slot for ``email``."""
        key = normalize_email(email)
        return self.find(lambda p: any(m.email == key and not m.is_joined for m in p.team_members))

    def for_user(self, user_id: str) -> list[Project]:
        return self.find(lambda p: p.is_participant(user_id))


class MilestoneRepository(Collection[Milestone]):
    name = "milestones"

    def __init__(self, data_dir: Path | None = None, storage: JsonStorage | None = None) -> None:
        super().__init__(Milestone, "milestone", data_dir, storage)

    def for_project(self, project_id: str) -> list[Milestone]:
        milestones = self.find(lambda m: m.project_id == project_id)
        return sorted(milestones, key=lambda m: m.order)

    def awaiting_review(self, project_id: str) -> list[Milestone]:
        return [m for m in self.for_project(project_id) if m.status == MilestoneStatus.SUBMITTED]


class TaskRepository(Collection[Task]):
    name = "tasks"

    def __init__(self, data_dir: Path | None = None, storage: JsonStorage | None = None) -> None:
        super().__init__(Task, "task", data_dir, storage)

    def for_project(self, project_id: str) -> list[Task]:
        return self.find(lambda t: t.project_id == project_id)

    def for_sprint(self, sprint_id: str) -> list[Task]:
        return self.find(lambda t: t.sprint_id == sprint_id)

    def for_milestone(self, milestone_id: str) -> list[Task]:
        return self.find(lambda t: t.milestone_id == milestone_id)


class SprintRepository(Collection[Sprint]):
    name = "sprints"

    def __init__(self, data_dir: Path | None = None, storage: JsonStorage | None = None) -> None:
        super().__init__(Sprint, "sprint", data_dir, storage)

    def for_project(self, project_id: str) -> list[Sprint]:
        return sorted(self.find(lambda s: s.project_id == project_id), key=lambda s: s.start_date)


class MeetingRepository(Collection[Meeting]):
    name = "meetings"

    def __init__(self, data_dir: Path | None = None, storage: JsonStorage | None = None) -> None:
        super().__init__(Meeting, "meeting", data_dir, storage)

    def for_project(self, project_id: str) -> list[Meeting]:
        return sorted(self.find(lambda m: m.project_id == project_id), key=lambda m: m.scheduled_at)

    def for_user(self, user_id: str) -> list[Meeting]:
        meetings = self.find(
            lambda m: m.created_by == user_id or m.mentor_id == user_id or m.find_participant(user_id) is not None
        )
        return sorted(meetings, key=lambda m: m.scheduled_at, reverse=True)


class RubricRepository(Collection[Rubric]):
    name = "rubrics"

    def __init__(self, data_dir: Path | None = None, storage: JsonStorage | None = None) -> None:
        super().__init__(Rubric, "rubric", data_dir, storage)

    def available_to(self, project_id: str) -> list[Rubric]:
        """Global rubrics plus those scoped to ``project_id``, oldest first."""
        return sorted(self.find(lambda r: r.applies_to(project_id)), key=lambda r: r.created_at)


class EvaluationRepository(Collection[Evaluation]):
    name = "evaluations"

    def __init__(self, data_dir: Path | None = None, storage: JsonStorage | None = None) -> None:
        super().__init__(Evaluation, "evaluation", data_dir, storage)

    def for_project(self, project_id: str) -> list[Evaluation]:
        return sorted(self.find(lambda e: e.project_id == project_id), key=lambda e: e.created_at, reverse=True)


class FeedbackRepository(Collection[Feedback]):
    name = "feedback"

    def __init__(self, data_dir: Path | None = None, storage: JsonStorage | None = None) -> None:
        super().__init__(Feedback, "feedback", data_dir, storage)

    def for_project(self, project_id: str) -> list[Feedback]:
        return sorted(self.find(lambda f: f.project_id == project_id), key=lambda f: f.created_at, reverse=True)

    def for_recipient(self, user_id: str) -> list[Feedback]:
        return sorted(self.find(lambda f: f.to_id == user_id), key=lambda f: f.created_at, reverse=True)

class NotificationRepository(Collection[Notification]):
    name = "notifications"

    def __init__(self, data_dir: Path | None = None, storage: JsonStorage | None = None) -> None:
        super().__init__(Notification, "notification", data_dir, storage)

    def for_recipient(self, recipient_id: str, now: datetime) -> list[Notification]:
        """Unexpired notifications for ``recipient_id``, newest first."""
        items = self.find(lambda n: n.recipient_id == recipient_id and not n.is_expired(now))
        return sorted(items, key=lambda n: n.created_at, reverse=True)

    def mark_all_read(self, recipient_id: str, now: datetime) -> Result[int, DomainError]:
        with self._lock:
            records = dict(self._records)
            changed = 0
            for eid, record in self._records.items():
                notification = self._decode(record)
                if notification.recipient_id != recipient_id or notification.is_read or notification.is_expired(now):
                    continue
                updated = notification.mark_read(now).model_copy(update={"version": notification.version + 1})
                records[eid] = updated.model_dump(mode="json")
                changed += 1
            if changed == 0:
                return Ok(0)
            committed = self._commit(records)
            if isinstance(committed, Err):
                return committed
        return Ok(changed)

    def purge_expired(self, now: datetime) -> Result[int, DomainError]:
        return self.remove_where(lambda n: n.is_expired(now))
