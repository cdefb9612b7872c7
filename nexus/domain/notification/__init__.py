"""Notification domain package."""

from nexus.domain.notification.models import Notification, NotificationFeed, NotificationType

__all__ = ["Notification", "NotificationFeed", "NotificationType"]
