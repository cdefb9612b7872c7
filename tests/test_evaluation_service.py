"""Tests for the evaluation service: rubrics, project evaluations and feedback."""

import pytest

from nexus.bootstrap import build_workflow
from nexus.config import WorkflowConfig
from nexus.domain.evaluation import Criterion
from nexus.domain.notification import NotificationType
from nexus.domain.shared import ErrorCode
from nexus.domain.types import Role
from tests.conftest import as_caller
from tests.helpers import err, ok

CRITERIA = [Criterion(name="Design", weight=2, max_score=10), Criterion(name="Code", max_score=5)]


def notification_types(workflow, caller):
    return [n.type for n in workflow.notifications.feed(caller).items]


@pytest.fixture
def rubric(workflow, people, project):
    return ok(workflow.evaluations.create_rubric(people.mentor, "Demo day", CRITERIA, project.id))


@pytest.fixture
def other_project(workflow, people):
    return ok(workflow.projects.create_project(people.other_mentor, "Study Buddy"))


class TestRubrics:
    def test_mentor_defines_project_rubric(self, rubric, project):
        assert rubric.project_id == project.id
        assert rubric.max_total == 25

    def test_students_cannot_define_rubrics(self, workflow, people, project):
        result = workflow.evaluations.create_rubric(people.owner, "Peer", CRITERIA, project.id)
        err(result, ErrorCode.FORBIDDEN, "auth.evaluate_project")

    def test_global_rubrics_are_admin_only(self, workflow, people):
        err(workflow.evaluations.create_rubric(people.mentor, "Final", CRITERIA), ErrorCode.FORBIDDEN, "auth.global_rubric")
        assert ok(workflow.evaluations.create_rubric(people.admin, "Final", CRITERIA)).is_global

    def test_listing_offers_global_and_own_rubrics(self, workflow, people, project, rubric, other_project):
        shared = ok(workflow.evaluations.create_rubric(people.admin, "Final", CRITERIA))
        ok(workflow.evaluations.create_rubric(people.other_mentor, "Elsewhere", CRITERIA, other_project.id))

        listed = ok(workflow.evaluations.list_rubrics(people.member, project.id))

        assert {r.id for r in listed} == {rubric.id, shared.id}

    def test_outsiders_cannot_list(self, workflow, people, project):
        err(workflow.evaluations.list_rubrics(people.outsider, project.id), ErrorCode.FORBIDDEN)


class TestEvaluate:
    def test_weighted_score_is_recorded(self, workflow, people, project, rubric):
        evaluation = ok(workflow.evaluations.evaluate(people.mentor, project.id, rubric.id, {"Design": 8, "Code": 4}, "Solid"))
        assert evaluation.total_score == 20
        assert evaluation.max_score == 25
        assert evaluation.evaluator_id == people.mentor.user_id
        assert evaluation.comments == "Solid"

    def test_students_are_notified(self, workflow, people, project, rubric):
        ok(workflow.evaluations.evaluate(people.mentor, project.id, rubric.id, {"Design": 8}))

        assert NotificationType.PROJECT_EVALUATED in notification_types(workflow, people.owner)
        assert NotificationType.PROJECT_EVALUATED in notification_types(workflow, people.member)
        assert NotificationType.PROJECT_EVALUATED not in notification_types(workflow, people.mentor)

    def test_only_reviewers_evaluate(self, workflow, people, project, rubric):
        result = workflow.evaluations.evaluate(people.owner, project.id, rubric.id, {"Design": 10})
        err(result, ErrorCode.FORBIDDEN, "auth.evaluate_project")

    def test_rubric_of_another_project(self, workflow, people, project, other_project):
        foreign = ok(workflow.evaluations.create_rubric(people.other_mentor, "Elsewhere", CRITERIA, other_project.id))
        result = workflow.evaluations.evaluate(people.mentor, project.id, foreign.id, {"Design": 5})
        err(result, ErrorCode.VALIDATION, "evaluation.foreign_rubric")

    def test_score_above_maximum(self, workflow, people, project, rubric):
        result = workflow.evaluations.evaluate(people.mentor, project.id, rubric.id, {"Code": 6})
        err(result, ErrorCode.VALIDATION, "evaluation.score_out_of_range")
        assert ok(workflow.evaluations.list_evaluations(people.owner, project.id)) == []

    def test_listing_is_newest_first(self, workflow, clock, people, project, rubric):
        first = ok(workflow.evaluations.evaluate(people.mentor, project.id, rubric.id, {"Design": 4}))
        clock.advance(days=1)
        second = ok(workflow.evaluations.evaluate(people.admin, project.id, rubric.id, {"Design": 9}))

        listed = ok(workflow.evaluations.list_evaluations(people.member, project.id))

        assert [e.id for e in listed] == [second.id, first.id]

    def test_evaluations_survive_reload(self, tmp_path, clock):
        config = WorkflowConfig(data_dir=tmp_path)
        workflow = build_workflow(config, clock=clock)
        mentor = as_caller(ok(workflow.accounts.register("Maya Mentor", "maya@uni.edu", Role.MENTOR)))
        project = ok(workflow.projects.create_project(mentor, "Campus Map"))
        rubric = ok(workflow.evaluations.create_rubric(mentor, "Demo day", CRITERIA, project.id))
        ok(workflow.evaluations.evaluate(mentor, project.id, rubric.id, {"Design": 7}))

        reloaded = build_workflow(config, clock=clock)

        [evaluation] = ok(reloaded.evaluations.list_evaluations(mentor, project.id))
        assert evaluation.total_score == 14


class TestFeedback:
    def test_feedback_for_one_member(self, workflow, people, project):
        [entry] = ok(workflow.evaluations.give_feedback(people.mentor, project.id, "Great demo", 4, people.member.user_id))
        assert (entry.from_id, entry.to_id, entry.rating) == (people.mentor.user_id, people.member.user_id, 4)
        assert NotificationType.FEEDBACK_RECEIVED in notification_types(workflow, people.member)
        assert NotificationType.FEEDBACK_RECEIVED not in notification_types(workflow, people.owner)

    def test_broadcast_reaches_the_team_but_not_the_sender(self, workflow, people, project):
        sent = ok(workflow.evaluations.give_feedback(people.mentor, project.id, "Keep going"))
        assert sorted(f.to_id for f in sent) == sorted([people.owner.user_id, people.member.user_id])
        assert all(f.rating == 5 for f in sent)

    def test_students_cannot_give_feedback(self, workflow, people, project):
        result = workflow.evaluations.give_feedback(people.owner, project.id, "Thanks", 5, people.member.user_id)
        err(result, ErrorCode.FORBIDDEN, "auth.give_feedback")

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_must_be_one_to_five(self, workflow, people, project, rating):
        result = workflow.evaluations.give_feedback(people.mentor, project.id, "Hmm", rating, people.member.user_id)
        err(result, ErrorCode.VALIDATION, "feedback.bad_rating")

    def test_recipient_must_participate(self, workflow, people, project):
        result = workflow.evaluations.give_feedback(people.mentor, project.id, "Hello", 3, people.outsider.user_id)
        err(result, ErrorCode.VALIDATION, "feedback.recipient_not_participant")

    def test_no_feedback_to_self(self, workflow, people, project):
        result = workflow.evaluations.give_feedback(people.mentor, project.id, "Me", 5, people.mentor.user_id)
        err(result, ErrorCode.VALIDATION, "feedback.self")

    def test_listings(self, workflow, people, project):
        ok(workflow.evaluations.give_feedback(people.mentor, project.id, "Great demo", 4, people.member.user_id))

        assert len(ok(workflow.evaluations.feedback_for_project(people.owner, project.id))) == 1
        assert len(ok(workflow.evaluations.feedback_for_user(people.member, people.member.user_id))) == 1
        assert ok(workflow.evaluations.feedback_for_user(people.owner, people.owner.user_id)) == []
        assert len(ok(workflow.evaluations.feedback_for_user(people.admin, people.member.user_id))) == 1

    def test_others_cannot_read_a_users_feedback(self, workflow, people, project):
        err(workflow.evaluations.feedback_for_user(people.owner, people.member.user_id), ErrorCode.FORBIDDEN, "feedback.not_yours")
