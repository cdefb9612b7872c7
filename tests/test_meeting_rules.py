"""Tests for meeting invitations and attendance."""

from datetime import timedelta

from nexus.domain.meeting import (
    Meeting,
    MeetingStatus,
    ParticipantStatus,
    build_invitations,
    has_elapsed,
    mark_attendance,
    record_join,
    should_start,
)
from nexus.domain.project import MemberStatus, Project, TeamMember
from nexus.domain.types import Role
from nexus.domain.user import User
from tests.helpers import NOW


def make_project() -> Project:
    return Project(
        title="Campus Map",
        creator_id="s1",
        owner_id="s1",
        mentor_id="m1",
        team_members=[
            TeamMember(email="kim@uni.edu", user_id="s2", status=MemberStatus.JOINED, name="Kim"),
            TeamMember(email="pending@uni.edu"),
        ],
    )


def make_meeting(**kwargs) -> Meeting:
    defaults = dict(
        project_id="p1",
        title="Weekly sync",
        call_link="https://meet.example.com/abc",
        created_by="m1",
        created_by_role=Role.MENTOR,
        mentor_id="m1",
        participants=build_invitations(make_project(), {}),
        scheduled_at=NOW,
    )
    defaults.update(kwargs)
    return Meeting(**defaults)


class TestBuildInvitations:
    """The owner and joined members are invited; the mentor and pending members are not."""

    def test_invite_list(self):
        accounts = {"s1": User(id="s1", name="Sam", email="sam@uni.edu", role=Role.STUDENT)}
        invited = build_invitations(make_project(), accounts)

        assert [p.user_id for p in invited] == ["s1", "s2"]
        assert [p.name for p in invited] == ["Sam", "Kim"]
        assert all(p.status == ParticipantStatus.INVITED for p in invited)

    def test_owner_who_is_also_a_member_is_invited_once(self):
        project = make_project()
        project = project.model_copy(
            update={"team_members": [*project.team_members, TeamMember(email="sam@uni.edu", user_id="s1", status=MemberStatus.JOINED)]}
        )
        assert [p.user_id for p in build_invitations(project, {})] == ["s1", "s2"]


class TestRecordJoin:
    def test_join_marks_participant(self):
        meeting = record_join(make_meeting(), "s1", NOW)
        participant = meeting.find_participant("s1")
        assert participant.status == ParticipantStatus.JOINED
        assert participant.joined_at == NOW

    def test_second_join_is_a_no_op(self):
        once = record_join(make_meeting(), "s1", NOW)
        assert record_join(once, "s1", NOW + timedelta(minutes=5)) is once

    def test_mentor_join_leaves_participants_unchanged(self):
        meeting = make_meeting()
        assert record_join(meeting, "m1", NOW) is meeting


class TestAutoStart:
    def test_starts_only_when_everyone_joined(self):
        meeting = record_join(make_meeting(), "s1", NOW)
        assert not should_start(meeting)
        meeting = record_join(meeting, "s2", NOW)
        assert should_start(meeting)

    def test_ongoing_meeting_does_not_start_again(self):
        meeting = record_join(record_join(make_meeting(), "s1", NOW), "s2", NOW)
        assert not should_start(meeting.model_copy(update={"status": MeetingStatus.ONGOING}))


class TestAttendance:
    def test_joined_participants_become_attendees(self):
        meeting = mark_attendance(record_join(make_meeting(), "s1", NOW))
        assert meeting.find_participant("s1").status == ParticipantStatus.ATTENDED
        assert meeting.find_participant("s2").status == ParticipantStatus.INVITED

    def test_elapsed_meetings(self):
        meeting = make_meeting(scheduled_at=NOW - timedelta(hours=2), duration_minutes=60)
        assert has_elapsed(meeting, NOW)
        assert not has_elapsed(meeting.model_copy(update={"status": MeetingStatus.CANCELLED}), NOW)
        assert not has_elapsed(make_meeting(), NOW)
