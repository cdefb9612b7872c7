"""Tests for notification delivery, the recipient feed and expiry."""

from nexus.domain.notification import NotificationType
from nexus.domain.shared import DomainError, Err, ErrorCode
from tests.conftest import REPO_URL
from tests.helpers import NOW, err, ok


def send(workflow, recipient, title):
    return workflow.dispatcher.notify(recipient.user_id, NotificationType.PROJECT_SOS, title, f"{title} body")


class TestFeed:
    def test_newest_first_with_unread_count(self, workflow, clock, people):
        send(workflow, people.outsider, "first")
        clock.advance(minutes=5)
        send(workflow, people.outsider, "second")

        feed = workflow.notifications.feed(people.outsider)
        assert [n.title for n in feed.items] == ["second", "first"]
        assert feed.unread_count == 2
        assert workflow.notifications.unread_count(people.outsider) == 2

    def test_limit_pages_the_feed(self, workflow, people):
        for i in range(3):
            send(workflow, people.outsider, f"n{i}")
        feed = workflow.notifications.feed(people.outsider, limit=2)
        assert len(feed.items) == 2
        assert feed.unread_count == 3

    def test_expiry_is_stamped_from_ttl(self, workflow, config, people):
        notification = send(workflow, people.outsider, "hello")
        assert notification.created_at == NOW
        assert notification.expires_at == NOW + config.notification_ttl


class TestReadState:
    def test_mark_read(self, workflow, people):
        notification = send(workflow, people.outsider, "hello")
        read = ok(workflow.notifications.mark_read(people.outsider, notification.id))
        assert read.is_read
        assert workflow.notifications.unread_count(people.outsider) == 0

    def test_only_recipient_may_touch(self, workflow, people):
        notification = send(workflow, people.outsider, "hello")
        err(workflow.notifications.mark_read(people.owner, notification.id), ErrorCode.FORBIDDEN, "notification.not_recipient")
        err(workflow.notifications.delete(people.owner, notification.id), ErrorCode.FORBIDDEN)

    def test_mark_all_read(self, workflow, people):
        for i in range(3):
            send(workflow, people.outsider, f"n{i}")
        send(workflow, people.owner, "someone else's")

        assert ok(workflow.notifications.mark_all_read(people.outsider)) == 3
        assert ok(workflow.notifications.mark_all_read(people.outsider)) == 0
        assert workflow.notifications.unread_count(people.owner) >= 1

    def test_delete(self, workflow, people):
        notification = send(workflow, people.outsider, "hello")
        ok(workflow.notifications.delete(people.outsider, notification.id))
        assert workflow.notifications.feed(people.outsider).items == []


class TestExpiry:
    def test_expired_notifications_are_hidden_then_purged(self, workflow, clock, people):
        send(workflow, people.outsider, "old")
        clock.advance(days=31)
        send(workflow, people.outsider, "new")

        assert [n.title for n in workflow.notifications.feed(people.outsider).items] == ["new"]
        report = ok(workflow.sweep())
        assert report.purged_notifications >= 1
        assert [n.title for n in workflow.notifications_repo.all() if n.recipient_id == people.outsider.user_id] == ["new"]


class TestBestEffortDelivery:
    """A failed notification write never fails the operation that caused it."""

    def test_storage_error_is_swallowed(self, workflow, monkeypatch, people, project):
        def refuse(notification):
            return Err(DomainError.unavailable("storage.write_failed", "disk full"))

        monkeypatch.setattr(workflow.notifications_repo, "add", refuse)
        milestone = ok(workflow.milestones.create_milestone(people.mentor, project.id, "Prototype"))
        ok(workflow.milestones.submit(people.owner, milestone.id, REPO_URL, "Clickable prototype"))
        types = [n.type for n in workflow.notifications.feed(people.mentor).items]
        assert NotificationType.MILESTONE_SUBMITTED not in types

    def test_unexpected_exception_is_swallowed(self, workflow, monkeypatch, people, project):
        def explode(notification):
            raise OSError("disk unplugged")

        monkeypatch.setattr(workflow.notifications_repo, "add", explode)
        ok(workflow.projects.toggle_sos(people.owner, project.id))
        assert ok(workflow.projects_repo.get(project.id)).is_stuck
