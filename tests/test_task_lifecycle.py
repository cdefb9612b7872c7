"""Tests for the task state machine, screenshot checks and escalation rule."""

from datetime import timedelta

from nexus.domain.shared import ErrorCode
from nexus.domain.task import (
    ApprovedSubmission,
    ReviewStatus,
    Task,
    TaskStatus,
    approve_task,
    change_status,
    is_due_soon,
    reject_task,
    start_task,
    submit_task,
    validate_screenshots,
)
from nexus.domain.types import Priority, ScreenshotUpload
from tests.helpers import NOW, err, ok

LINK = "https://github.com/team/campus-map/pull/7"


def make_task(**kwargs) -> Task:
    return Task(project_id="p1", title="Login form", **kwargs)


def pending_review(**kwargs) -> Task:
    task = make_task(status=TaskStatus.IN_PROGRESS, story_points=3, **kwargs)
    return ok(submit_task(task, github_link=LINK, screenshot_refs=["a.png"], submitted_by="s1", now=NOW))


def verified() -> Task:
    return ok(approve_task(pending_review(), reviewer_id="m1", now=NOW))


def shot(name: str = "screen.png", content_type: str = "image/png", size: int = 10) -> ScreenshotUpload:
    return ScreenshotUpload(filename=name, content_type=content_type, data=b"x" * size)


class TestStartTask:
    def test_pending_task_starts(self):
        assert ok(start_task(make_task())).status == TaskStatus.IN_PROGRESS

    def test_only_pending_tasks_start(self):
        err(start_task(make_task(status=TaskStatus.IN_PROGRESS)), ErrorCode.VALIDATION, "task.not_pending")

    def test_verified_task_is_forbidden_for_students(self):
        err(start_task(verified()), ErrorCode.FORBIDDEN, "task.verified")

    def test_verified_task_is_terminal_for_reviewers(self):
        err(start_task(verified(), privileged=True), ErrorCode.VALIDATION, "task.verified_terminal")


class TestChangeStatus:
    """Direct status edits, gated by review for pointed tasks."""

    def test_completing_stamps_completed_at(self):
        result = ok(change_status(make_task(), TaskStatus.COMPLETED, now=NOW, review_gated=False, privileged=False))
        assert result.status == TaskStatus.COMPLETED
        assert result.completed_at == NOW

    def test_reopening_clears_completed_at(self):
        done = make_task(status=TaskStatus.COMPLETED, completed_at=NOW)
        result = ok(change_status(done, TaskStatus.IN_PROGRESS, now=NOW, review_gated=False, privileged=False))
        assert result.completed_at is None

    def test_review_gated_task_cannot_be_completed_by_student(self):
        result = change_status(make_task(story_points=5), TaskStatus.COMPLETED, now=NOW, review_gated=True, privileged=False)
        err(result, ErrorCode.VALIDATION, "task.review_required")

    def test_reviewer_may_complete_gated_task(self):
        result = change_status(make_task(story_points=5), TaskStatus.COMPLETED, now=NOW, review_gated=True, privileged=True)
        assert ok(result).status == TaskStatus.COMPLETED

    def test_task_under_review_is_locked_for_students(self):
        result = change_status(pending_review(), TaskStatus.PENDING, now=NOW, review_gated=True, privileged=False)
        err(result, ErrorCode.VALIDATION, "task.under_review")

    def test_same_status_is_a_no_op(self):
        task = make_task()
        assert ok(change_status(task, TaskStatus.PENDING, now=NOW, review_gated=False, privileged=False)) is task

    def test_verified_task_cannot_change(self):
        result = change_status(verified(), TaskStatus.PENDING, now=NOW, review_gated=True, privileged=False)
        err(result, ErrorCode.FORBIDDEN, "task.verified")


class TestValidateScreenshots:
    """Count, type and size limits are checked before storage."""

    LIMITS = {"max_count": 5, "max_bytes": 100, "allowed_types": ["jpeg", "jpg", "png", "gif", "webp"]}

    def test_five_images_are_accepted(self):
        ok(validate_screenshots([shot(f"s{i}.png") for i in range(5)], **self.LIMITS))

    def test_no_screenshots_are_accepted(self):
        ok(validate_screenshots([], **self.LIMITS))

    def test_six_images_are_too_many(self):
        result = validate_screenshots([shot(f"s{i}.png") for i in range(6)], **self.LIMITS)
        err(result, ErrorCode.VALIDATION, "task.too_many_screenshots")

    def test_non_image_is_rejected(self):
        result = validate_screenshots([shot("notes.pdf", "application/pdf")], **self.LIMITS)
        err(result, ErrorCode.VALIDATION, "task.screenshot_not_image")

    def test_extension_must_be_an_image_type(self):
        result = validate_screenshots([shot("payload.exe", "image/png")], **self.LIMITS)
        err(result, ErrorCode.VALIDATION, "task.screenshot_not_image")

    def test_oversized_image_is_rejected(self):
        result = validate_screenshots([shot(size=101)], **self.LIMITS)
        err(result, ErrorCode.VALIDATION, "task.screenshot_too_large")


class TestReviewCycle:
    def test_submit_requires_in_progress(self):
        result = submit_task(make_task(), github_link=LINK, screenshot_refs=[], submitted_by="s1", now=NOW)
        err(result, ErrorCode.VALIDATION, "task.not_in_progress")

    def test_submit_requires_link(self):
        task = make_task(status=TaskStatus.IN_PROGRESS)
        result = submit_task(task, github_link=" ", screenshot_refs=[], submitted_by="s1", now=NOW)
        err(result, ErrorCode.VALIDATION, "task.link_required")

    def test_submission_keeps_status_and_awaits_review(self):
        task = pending_review()
        assert task.status == TaskStatus.IN_PROGRESS
        assert task.review_status == ReviewStatus.PENDING_REVIEW
        assert task.submission.screenshots == ["a.png"]

    def test_second_submission_while_pending_is_rejected(self):
        result = submit_task(pending_review(), github_link=LINK, screenshot_refs=[], submitted_by="s1", now=NOW)
        err(result, ErrorCode.VALIDATION, "task.under_review")

    def test_approval_completes_and_verifies(self):
        task = verified()
        assert task.status == TaskStatus.COMPLETED
        assert task.completed_at == NOW
        assert task.is_verified
        assert isinstance(task.review, ApprovedSubmission)

    def test_rejection_returns_to_in_progress(self):
        task = ok(reject_task(pending_review(), reviewer_id="m1", now=NOW, notes="Blurry screenshot"))
        assert task.status == TaskStatus.IN_PROGRESS
        assert task.review_status == ReviewStatus.REJECTED
        assert task.review.notes == "Blurry screenshot"

    def test_rejected_task_can_be_resubmitted(self):
        rejected = ok(reject_task(pending_review(), reviewer_id="m1", now=NOW))
        again = submit_task(rejected, github_link=LINK, screenshot_refs=[], submitted_by="s1", now=NOW)
        assert ok(again).review_status == ReviewStatus.PENDING_REVIEW

    def test_review_requires_pending_submission(self):
        err(approve_task(make_task(), reviewer_id="m1", now=NOW), ErrorCode.VALIDATION, "task.not_pending_review")
        err(reject_task(make_task(), reviewer_id="m1", now=NOW), ErrorCode.VALIDATION, "task.not_pending_review")


class TestSecuredPoints:
    def test_gated_completed_task_needs_verification(self):
        done = make_task(status=TaskStatus.COMPLETED, story_points=5, completed_at=NOW)
        assert not done.is_secured(enforce_review=True)
        assert done.is_secured(enforce_review=False)

    def test_zero_point_task_is_never_gated(self):
        done = make_task(status=TaskStatus.COMPLETED, completed_at=NOW)
        assert done.is_secured(enforce_review=True)

    def test_verified_task_is_secured(self):
        assert verified().is_secured(enforce_review=True)


class TestIsDueSoon:
    WINDOW = timedelta(hours=24)

    def test_deadline_within_window(self):
        assert is_due_soon(make_task(deadline=NOW + timedelta(hours=2)), NOW, self.WINDOW)

    def test_deadline_far_away(self):
        assert not is_due_soon(make_task(deadline=NOW + timedelta(days=3)), NOW, self.WINDOW)

    def test_high_priority_and_completed_tasks_are_skipped(self):
        soon = NOW + timedelta(hours=2)
        assert not is_due_soon(make_task(deadline=soon, priority=Priority.HIGH), NOW, self.WINDOW)
        assert not is_due_soon(make_task(deadline=soon, status=TaskStatus.COMPLETED), NOW, self.WINDOW)

    def test_no_deadline(self):
        assert not is_due_soon(make_task(), NOW, self.WINDOW)
