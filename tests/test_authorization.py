"""Tests for the authorization gate."""

import pytest

from nexus.application.authorization import Action, authorize, authorize_any, is_privileged
from nexus.domain.meeting import Meeting, Participant
from nexus.domain.project import MemberStatus, Project, TeamMember
from nexus.domain.shared import ErrorCode
from nexus.domain.types import Caller, Role
from tests.helpers import NOW, err, ok

ADMIN = Caller(user_id="a1", role=Role.ADMIN)
MENTOR = Caller(user_id="m1", role=Role.MENTOR)
OTHER_MENTOR = Caller(user_id="m2", role=Role.MENTOR)
OWNER = Caller(user_id="s1", role=Role.STUDENT)
MEMBER = Caller(user_id="s2", role=Role.STUDENT)
OUTSIDER = Caller(user_id="s9", role=Role.STUDENT)


@pytest.fixture
def project():
    return Project(
        title="Campus Map",
        creator_id="s1",
        owner_id="s1",
        mentor_id="m1",
        team_members=[
            TeamMember(email="kim@uni.edu", user_id="s2", status=MemberStatus.JOINED),
            TeamMember(email="pending@uni.edu"),
        ],
    )


@pytest.fixture
def meeting():
    return Meeting(
        project_id="p1",
        title="Weekly sync",
        call_link="https://meet.example.com/abc",
        created_by="m1",
        created_by_role=Role.MENTOR,
        mentor_id="m1",
        participants=[Participant(user_id="s1"), Participant(user_id="s2")],
        scheduled_at=NOW,
    )


class TestReviewActions:
    """Only the project's mentor or an admin reviews."""

    @pytest.mark.parametrize("caller", [MENTOR, ADMIN])
    def test_reviewers_allowed(self, project, caller):
        ok(authorize(caller, Action.REVIEW_MILESTONE, project))
        ok(authorize(caller, Action.REVIEW_TASK, project))
        assert is_privileged(caller, project)

    @pytest.mark.parametrize("caller", [OTHER_MENTOR, OWNER, MEMBER])
    def test_others_forbidden(self, project, caller):
        error = err(authorize(caller, Action.REVIEW_MILESTONE, project), ErrorCode.FORBIDDEN)
        assert error.reason == "auth.review_milestone"
        assert not is_privileged(caller, project)


class TestSubmitActions:
    @pytest.mark.parametrize("caller", [OWNER, MEMBER])
    def test_owner_and_joined_members_submit(self, project, caller):
        ok(authorize(caller, Action.SUBMIT_MILESTONE, project))
        ok(authorize(caller, Action.SUBMIT_TASK, project))

    @pytest.mark.parametrize("caller", [MENTOR, ADMIN, OUTSIDER])
    def test_non_contributors_cannot_submit(self, project, caller):
        err(authorize(caller, Action.SUBMIT_MILESTONE, project), ErrorCode.FORBIDDEN, "auth.submit_milestone")


class TestTeamAndProjectActions:
    def test_manage_team(self, project):
        for caller in (OWNER, MENTOR, ADMIN):
            ok(authorize(caller, Action.MANAGE_TEAM, project))
        for caller in (MEMBER, OUTSIDER, OTHER_MENTOR):
            err(authorize(caller, Action.MANAGE_TEAM, project), ErrorCode.FORBIDDEN)

    def test_assign_mentor_needs_admin_or_creator(self, project):
        ok(authorize(ADMIN, Action.ASSIGN_MENTOR, project))
        ok(authorize(OWNER, Action.ASSIGN_MENTOR, project))
        err(authorize(MENTOR, Action.ASSIGN_MENTOR, project), ErrorCode.FORBIDDEN)

    def test_view_requires_participation(self, project):
        for caller in (OWNER, MEMBER, MENTOR, ADMIN):
            ok(authorize(caller, Action.VIEW_PROJECT, project))
        err(authorize(OUTSIDER, Action.VIEW_PROJECT, project), ErrorCode.FORBIDDEN, "auth.view_project")


class TestMeetingActions:
    def test_only_project_mentor_schedules(self, project):
        ok(authorize(MENTOR, Action.CREATE_MEETING, project))
        for caller in (OTHER_MENTOR, OWNER, ADMIN):
            err(authorize(caller, Action.CREATE_MEETING, project), ErrorCode.FORBIDDEN)

    def test_join_requires_invitation(self, meeting):
        for caller in (MENTOR, OWNER, MEMBER):
            ok(authorize(caller, Action.JOIN_MEETING, meeting))
        err(authorize(OUTSIDER, Action.JOIN_MEETING, meeting), ErrorCode.FORBIDDEN, "auth.join_meeting")

    def test_only_creator_deletes(self, meeting):
        ok(authorize(MENTOR, Action.DELETE_MEETING, meeting))
        err(authorize(OWNER, Action.DELETE_MEETING, meeting), ErrorCode.FORBIDDEN)

    def test_wrong_target_type_is_a_programming_error(self, project):
        with pytest.raises(TypeError):
            authorize(MENTOR, Action.JOIN_MEETING, project)


class TestAuthorizeAny:
    def test_any_allowed_action_passes(self, project):
        ok(authorize_any(MENTOR, [Action.SUBMIT_MILESTONE, Action.MANAGE_MILESTONES], project))

    def test_first_denial_is_reported(self, project):
        err(authorize_any(OUTSIDER, [Action.SUBMIT_MILESTONE, Action.MANAGE_MILESTONES], project), reason="auth.submit_milestone")

    def test_empty_action_list_is_a_programming_error(self, project):
        with pytest.raises(ValueError):
            authorize_any(MENTOR, [], project)
