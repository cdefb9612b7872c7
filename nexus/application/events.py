"""In-process event outbox.

Services publish domain events after a transition has been committed.
Subscribers run synchronously, one after another; a failing subscriber is
logged and does not affect the publisher or the remaining subscribers.
"""

import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from nexus.domain.shared import DomainEvent

logger = logging.getLogger(__name__)

Ev = TypeVar("Ev", bound=DomainEvent)
Handler = Callable[[DomainEvent], None]


class EventOutbox:
    """Routes published events to subscribers by event class."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: list[tuple[type[DomainEvent], Handler]] = []

    def subscribe(self, event_type: type[Ev], handler: Callable[[Ev], None]) -> None:
        """Register ``handler`` for ``event_type`` and its subclasses."""
        with self._lock:
            self._subscribers.append((event_type, handler))  # type: ignore[arg-type]

    def publish(self, *events: DomainEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        for event in events:
            logger.debug(f"Publishing {event.event_type} for project {event.project_id}")
            for event_type, handler in subscribers:
                if not isinstance(event, event_type):
                    continue
                try:
                    handler(event)
                except Exception:
                    logger.exception(f"Subscriber {getattr(handler, '__name__', handler)} failed on {event.event_type}")
