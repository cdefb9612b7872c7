"""Base domain event infrastructure.

Domain events are immutable records of a committed state transition. The
application services publish them to the event outbox after a successful
write; the notification dispatcher consumes them.

All events are pure data structures - no I/O, no side effects.

Example usage:
    >>> class SprintStarted(DomainEvent):
    ...     sprint_id: str
    ...
    >>> event = SprintStarted(project_id="p1", actor_id="u1", sprint_id="s1")
    >>> event.event_type
    'SprintStarted'
"""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field


class DomainEvent(BaseModel):
    """Base class for all domain events.

    Each event has a unique ID, a timestamp, the project it belongs to, and
    the user whose action caused it. Services pass ``occurred_at`` from
    their injected clock so event time matches the state they wrote.
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    project_id: str
    actor_id: str | None = None

    model_config = {"frozen": True}

    @property
    def event_type(self) -> str:
        """Name of the concrete event class."""
        return type(self).__name__
