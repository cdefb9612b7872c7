"""Recipient-side notification operations."""

import logging

from nexus.application.ports import Clock
from nexus.config import WorkflowConfig
from nexus.domain.notification import Notification, NotificationFeed
from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.types import Caller
from nexus.infrastructure.storage import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, notifications: NotificationRepository, clock: Clock, config: WorkflowConfig) -> None:
        self._notifications = notifications
        self._clock = clock
        self._config = config

    def _owned(self, caller: Caller, notification_id: str) -> Result[Notification, DomainError]:
        loaded = self._notifications.get(notification_id)
        if isinstance(loaded, Err):
            return loaded
        if loaded.value.recipient_id != caller.user_id:
            return Err(DomainError.forbidden("notification.not_recipient", "This notification belongs to someone else"))
        return loaded

    def feed(self, caller: Caller, limit: int | None = None) -> NotificationFeed:
        """The caller's newest unexpired notifications and unread count."""
        items = self._notifications.for_recipient(caller.user_id, self._clock())
        page = items[: limit or self._config.notification_page_size]
        return NotificationFeed(
            recipient_id=caller.user_id,
            items=page,
            unread_count=sum(1 for n in items if not n.is_read),
        )

    def unread_count(self, caller: Caller) -> int:
        items = self._notifications.for_recipient(caller.user_id, self._clock())
        return sum(1 for n in items if not n.is_read)

    def mark_read(self, caller: Caller, notification_id: str) -> Result[Notification, DomainError]:
        loaded = self._owned(caller, notification_id)
        if isinstance(loaded, Err):
            return loaded
        notification = loaded.value
        if notification.is_read:
            return loaded
        return self._notifications.replace(notification.mark_read(self._clock()), notification.version)

    def mark_all_read(self, caller: Caller) -> Result[int, DomainError]:
        return self._notifications.mark_all_read(caller.user_id, self._clock())

    def delete(self, caller: Caller, notification_id: str) -> Result[None, DomainError]:
        loaded = self._owned(caller, notification_id)
        if isinstance(loaded, Err):
            return loaded
        return self._notifications.remove(notification_id)

    def purge_expired(self) -> Result[int, DomainError]:
        """Delete every notification past its expiry."""
        result = self._notifications.purge_expired(self._clock())
        if isinstance(result, Ok) and result.value:
            logger.info(f"Purged {result.value} expired notification(s)")
        return result
