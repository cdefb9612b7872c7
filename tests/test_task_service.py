"""Tests for the task service: submissions, review and escalation."""

from datetime import timedelta

import pytest

from nexus.application import TaskChanges
from nexus.domain.notification import NotificationType
from nexus.domain.shared import ErrorCode
from nexus.domain.task import ReviewStatus, TaskStatus
from nexus.domain.types import Priority, ScreenshotUpload
from tests.conftest import REPO_URL
from tests.helpers import NOW, err, ok

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def shot(name: str = "screen.png", content_type: str = "image/png", data: bytes = PNG) -> ScreenshotUpload:
    return ScreenshotUpload(filename=name, content_type=content_type, data=data)


@pytest.fixture
def task(workflow, people, project):
    created = ok(workflow.tasks.create_task(people.owner, project.id, "Map tiles", story_points=3))
    return ok(workflow.tasks.start(people.owner, created.id))


@pytest.fixture
def submitted(workflow, people, task):
    return ok(workflow.tasks.submit(people.member, task.id, REPO_URL, [shot()]))


class TestCreateTask:
    def test_assignee_resolved_from_email(self, workflow, people, project):
        task = ok(workflow.tasks.create_task(people.owner, project.id, "Legend", assignee_email="KIM@uni.edu"))
        assert task.assignee_id == people.member.user_id
        feed = workflow.notifications.feed(people.member)
        assert NotificationType.TASK_ASSIGNED in [n.type for n in feed.items]

    def test_unknown_assignee(self, workflow, people, project):
        result = workflow.tasks.create_task(people.owner, project.id, "Legend", assignee_email="nobody@uni.edu")
        err(result, ErrorCode.VALIDATION, "task.unknown_assignee")

    def test_assignee_must_participate(self, workflow, people, project):
        result = workflow.tasks.create_task(people.owner, project.id, "Legend", assignee_email=people.outsider.email)
        err(result, ErrorCode.VALIDATION, "task.assignee_not_member")

    def test_outsider_cannot_create(self, workflow, people, project):
        err(workflow.tasks.create_task(people.outsider, project.id, "Legend"), ErrorCode.FORBIDDEN)

    def test_listing_filters_by_status(self, workflow, people, project, task):
        ok(workflow.tasks.create_task(people.owner, project.id, "Legend"))
        listed = ok(workflow.tasks.list_tasks(people.member, project.id, status=TaskStatus.IN_PROGRESS))
        assert [t.id for t in listed] == [task.id]


class TestSubmitTask:
    def test_too_many_screenshots_stores_nothing(self, workflow, files, people, task):
        shots = [shot(f"s{i}.png") for i in range(6)]
        err(workflow.tasks.submit(people.member, task.id, REPO_URL, shots), ErrorCode.VALIDATION, "task.too_many_screenshots")
        assert files.files == {}
        assert ok(workflow.tasks_repo.get(task.id)).review_status == ReviewStatus.NONE

    def test_non_image_is_rejected(self, workflow, files, people, task):
        result = workflow.tasks.submit(people.member, task.id, REPO_URL, [shot("notes.pdf", "application/pdf")])
        err(result, ErrorCode.VALIDATION, "task.screenshot_not_image")
        assert files.files == {}

    def test_oversized_screenshot_is_rejected(self, workflow, config, people, task):
        big = shot(data=b"\x00" * (config.max_screenshot_bytes + 1))
        err(workflow.tasks.submit(people.member, task.id, REPO_URL, [big]), ErrorCode.VALIDATION, "task.screenshot_too_large")

    def test_valid_submission_stores_references(self, workflow, files, people, submitted):
        assert submitted.review_status == ReviewStatus.PENDING_REVIEW
        assert submitted.status == TaskStatus.IN_PROGRESS
        assert list(files.files) == submitted.submission.screenshots
        feed = workflow.notifications.feed(people.mentor)
        assert NotificationType.TASK_SUBMITTED in [n.type for n in feed.items]

    def test_pending_task_cannot_be_submitted(self, workflow, people, project):
        task = ok(workflow.tasks.create_task(people.owner, project.id, "Legend"))
        err(workflow.tasks.submit(people.owner, task.id, REPO_URL), ErrorCode.VALIDATION, "task.not_in_progress")

    def test_mentor_cannot_submit(self, workflow, people, task):
        err(workflow.tasks.submit(people.mentor, task.id, REPO_URL), ErrorCode.FORBIDDEN)


class TestReviewTask:
    def test_approval_verifies_and_locks(self, workflow, people, submitted):
        approved = ok(workflow.tasks.approve(people.mentor, submitted.id, submitted.version))
        assert approved.status == TaskStatus.COMPLETED
        assert approved.is_verified
        assert approved.completed_at == NOW

        err(workflow.tasks.update_task(people.owner, submitted.id, TaskChanges(title="Renamed")), ErrorCode.FORBIDDEN, "task.verified")
        err(workflow.tasks.update_status(people.mentor, submitted.id, TaskStatus.PENDING), ErrorCode.VALIDATION, "task.verified_terminal")

    def test_submitter_is_told_about_the_review(self, workflow, people, submitted):
        ok(workflow.tasks.reject(people.mentor, submitted.id, "Blurry screenshot"))
        feed = workflow.notifications.feed(people.member)
        assert NotificationType.TASK_REVIEWED in [n.type for n in feed.items]

    def test_rejection_returns_to_in_progress(self, workflow, people, submitted):
        rejected = ok(workflow.tasks.reject(people.mentor, submitted.id, "Blurry screenshot"))
        assert rejected.status == TaskStatus.IN_PROGRESS
        assert rejected.review_status == ReviewStatus.REJECTED
        resubmitted = ok(workflow.tasks.submit(people.member, submitted.id, REPO_URL))
        assert resubmitted.review_status == ReviewStatus.PENDING_REVIEW

    def test_concurrent_reviews_conflict(self, workflow, people, submitted):
        ok(workflow.tasks.approve(people.mentor, submitted.id, submitted.version))
        err(workflow.tasks.reject(people.admin, submitted.id, "", submitted.version), ErrorCode.CONFLICT, "task.stale")

    def test_students_cannot_review(self, workflow, people, submitted):
        err(workflow.tasks.approve(people.owner, submitted.id), ErrorCode.FORBIDDEN, "auth.review_task")

    def test_nothing_to_review(self, workflow, people, task):
        err(workflow.tasks.approve(people.mentor, task.id), ErrorCode.VALIDATION, "task.not_pending_review")


class TestDirectStatusEdits:
    def test_gated_task_needs_review(self, workflow, people, task):
        err(workflow.tasks.update_status(people.owner, task.id, TaskStatus.COMPLETED), ErrorCode.VALIDATION, "task.review_required")

    def test_mentor_may_complete_directly(self, workflow, people, task):
        completed = ok(workflow.tasks.update_status(people.mentor, task.id, TaskStatus.COMPLETED))
        assert completed.completed_at == NOW

    def test_ungated_task_completes_directly(self, workflow, people, project):
        ok(workflow.projects.set_task_review(people.mentor, project.id, False))
        task = ok(workflow.tasks.create_task(people.owner, project.id, "Readme", story_points=1))
        completed = ok(workflow.tasks.update_status(people.owner, task.id, TaskStatus.COMPLETED))
        assert completed.status == TaskStatus.COMPLETED

    def test_reopening_clears_completion(self, workflow, people, task):
        ok(workflow.tasks.update_status(people.mentor, task.id, TaskStatus.COMPLETED))
        reopened = ok(workflow.tasks.update_status(people.mentor, task.id, TaskStatus.IN_PROGRESS))
        assert reopened.completed_at is None

    def test_stale_edit_conflicts(self, workflow, people, task):
        changes = TaskChanges(story_points=5)
        err(workflow.tasks.update_task(people.owner, task.id, changes, expected_version=task.version - 1), ErrorCode.CONFLICT)

    def test_zeroing_points_cannot_bypass_review(self, workflow, people, task):
        err(workflow.tasks.update_task(people.owner, task.id, TaskChanges(story_points=0)), ErrorCode.FORBIDDEN, "task.points_locked")
        err(workflow.tasks.update_status(people.owner, task.id, TaskStatus.COMPLETED), ErrorCode.VALIDATION, "task.review_required")

        stored = ok(workflow.tasks_repo.get(task.id))
        assert stored.status == TaskStatus.IN_PROGRESS
        assert stored.story_points == 3

    def test_points_frozen_while_under_review(self, workflow, people, submitted):
        err(workflow.tasks.update_task(people.member, submitted.id, TaskChanges(story_points=8)), ErrorCode.FORBIDDEN, "task.points_locked")

    def test_points_frozen_once_completed(self, workflow, people, project):
        ok(workflow.projects.set_task_review(people.mentor, project.id, False))
        task = ok(workflow.tasks.create_task(people.owner, project.id, "Readme"))
        ok(workflow.tasks.update_status(people.owner, task.id, TaskStatus.COMPLETED))
        ok(workflow.projects.set_task_review(people.mentor, project.id, True))

        err(workflow.tasks.update_task(people.owner, task.id, TaskChanges(story_points=5)), ErrorCode.FORBIDDEN, "task.points_locked")

    def test_students_may_still_resize_open_tasks(self, workflow, people, task):
        assert ok(workflow.tasks.update_task(people.owner, task.id, TaskChanges(story_points=5))).story_points == 5

    def test_mentor_may_zero_points(self, workflow, people, task):
        assert ok(workflow.tasks.update_task(people.mentor, task.id, TaskChanges(story_points=0))).story_points == 0


class TestEscalation:
    def test_sweep_raises_priority_of_due_tasks(self, workflow, people, project):
        due = ok(workflow.tasks.create_task(people.owner, project.id, "Deploy", deadline=NOW + timedelta(hours=3)))
        later = ok(workflow.tasks.create_task(people.owner, project.id, "Polish", deadline=NOW + timedelta(days=5)))

        report = ok(workflow.sweep())

        assert report.escalated_tasks == 1
        assert ok(workflow.tasks_repo.get(due.id)).priority == Priority.HIGH
        assert ok(workflow.tasks_repo.get(later.id)).priority == Priority.MEDIUM

    def test_second_sweep_is_a_no_op(self, workflow, people, project):
        ok(workflow.tasks.create_task(people.owner, project.id, "Deploy", deadline=NOW + timedelta(hours=3)))
        ok(workflow.sweep())
        assert ok(workflow.sweep()).escalated_tasks == 0
