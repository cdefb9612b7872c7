"""Task domain events.

Domain events represent significant occurrences within the task domain.
They are immutable records of state changes used to fan out notifications.

All events are pure data structures - no I/O, no side effects.
"""

from nexus.domain.shared.events import DomainEvent
from nexus.domain.task.models import TaskStatus


class TaskAssigned(DomainEvent):
    """Event raised when a task is assigned to an account."""

    task_id: str
    title: str
    assignee_id: str


class TaskStatusChanged(DomainEvent):
    """Event raised when a task's visible status changes by direct edit."""

    task_id: str
    title: str
    previous: TaskStatus
    current: TaskStatus


class TaskSubmitted(DomainEvent):
    """Event raised when proof of work is submitted for review."""

    task_id: str
    title: str
    screenshot_count: int = 0
    mentor_id: str | None = None


class TaskApproved(DomainEvent):
    """Event raised when a reviewer verifies a task."""

    task_id: str
    title: str
    submitted_by: str


class TaskRejected(DomainEvent):
    """Event raised when a reviewer rejects a task submission."""

    task_id: str
    title: str
    submitted_by: str
    notes: str = ""
