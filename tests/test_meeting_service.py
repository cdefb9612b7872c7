"""Tests for the meeting scheduler."""

from datetime import timedelta

import pytest

from nexus.domain.meeting import MeetingStatus, ParticipantStatus
from nexus.domain.notification import NotificationType
from nexus.domain.shared import ErrorCode
from tests.helpers import NOW, err, ok

CALL = "https://meet.example.com/campus-map"


@pytest.fixture
def meeting(workflow, people, project):
    return ok(
        workflow.meetings.create_meeting(
            people.mentor, project.id, "Weekly sync", CALL, scheduled_at=NOW + timedelta(minutes=10)
        )
    )


def notification_types(workflow, caller):
    return [n.type for n in workflow.notifications.feed(caller).items]


class TestCreateMeeting:
    def test_invites_owner_and_joined_members(self, workflow, people, meeting):
        assert [p.user_id for p in meeting.participants] == [people.owner.user_id, people.member.user_id]
        assert meeting.mentor_id == people.mentor.user_id
        assert meeting.status == MeetingStatus.SCHEDULED
        assert NotificationType.MEETING_CREATED in notification_types(workflow, people.member)

    @pytest.mark.parametrize("who", ["owner", "admin", "other_mentor"])
    def test_only_the_project_mentor_schedules(self, workflow, people, project, who):
        result = workflow.meetings.create_meeting(getattr(people, who), project.id, "Sync", CALL, scheduled_at=NOW)
        err(result, ErrorCode.FORBIDDEN, "auth.create_meeting")

    def test_call_link_required(self, workflow, people, project):
        result = workflow.meetings.create_meeting(people.mentor, project.id, "Sync", " ", scheduled_at=NOW)
        err(result, ErrorCode.VALIDATION, "meeting.call_link_required")


class TestJoinMeeting:
    """The meeting starts once every invited participant has joined."""

    def test_join_notifies_mentor(self, workflow, people, meeting):
        joined = ok(workflow.meetings.join(people.owner, meeting.id))
        assert joined.find_participant(people.owner.user_id).status == ParticipantStatus.JOINED
        assert joined.status == MeetingStatus.SCHEDULED
        assert NotificationType.MEETING_JOINED in notification_types(workflow, people.mentor)

    def test_last_join_starts_the_meeting(self, workflow, people, meeting):
        ok(workflow.meetings.join(people.owner, meeting.id))
        started = ok(workflow.meetings.join(people.member, meeting.id))
        assert started.status == MeetingStatus.ONGOING
        for caller in (people.mentor, people.owner, people.member):
            assert NotificationType.MEETING_STARTED in notification_types(workflow, caller)

    def test_rejoin_is_a_no_op(self, workflow, people, meeting):
        first = ok(workflow.meetings.join(people.owner, meeting.id))
        again = ok(workflow.meetings.join(people.owner, meeting.id))
        assert again.version == first.version
        assert again.find_participant(people.owner.user_id).joined_at == first.find_participant(people.owner.user_id).joined_at

    def test_uninvited_cannot_join(self, workflow, people, meeting):
        err(workflow.meetings.join(people.outsider, meeting.id), ErrorCode.FORBIDDEN, "auth.join_meeting")

    def test_closed_meeting_cannot_be_joined(self, workflow, people, meeting):
        ok(workflow.meetings.update_status(people.mentor, meeting.id, MeetingStatus.CANCELLED))
        err(workflow.meetings.join(people.owner, meeting.id), ErrorCode.VALIDATION, "meeting.closed")


class TestMeetingStatus:
    def test_completion_marks_attendance(self, workflow, people, meeting):
        ok(workflow.meetings.join(people.owner, meeting.id))
        completed = ok(workflow.meetings.update_status(people.mentor, meeting.id, MeetingStatus.COMPLETED, notes="Good progress"))
        assert completed.find_participant(people.owner.user_id).status == ParticipantStatus.ATTENDED
        assert completed.find_participant(people.member.user_id).status == ParticipantStatus.INVITED
        assert completed.notes == "Good progress"

    def test_students_cannot_change_status(self, workflow, people, meeting):
        err(workflow.meetings.update_status(people.owner, meeting.id, MeetingStatus.CANCELLED), ErrorCode.FORBIDDEN)

    def test_only_creator_deletes(self, workflow, people, meeting):
        err(workflow.meetings.delete_meeting(people.owner, meeting.id), ErrorCode.FORBIDDEN)
        ok(workflow.meetings.delete_meeting(people.mentor, meeting.id))
        err(workflow.meetings.get_meeting(people.mentor, meeting.id), ErrorCode.NOT_FOUND)


class TestArchiveAndHistory:
    def test_sweep_completes_elapsed_meetings(self, workflow, clock, people, meeting):
        ok(workflow.meetings.join(people.member, meeting.id))
        clock.advance(hours=2)

        report = ok(workflow.sweep())

        assert report.archived_meetings == 1
        archived = ok(workflow.meetings_repo.get(meeting.id))
        assert archived.status == MeetingStatus.COMPLETED
        assert archived.find_participant(people.member.user_id).status == ParticipantStatus.ATTENDED

    def test_upcoming_meeting_is_left_alone(self, workflow, meeting):
        assert ok(workflow.sweep()).archived_meetings == 0

    def test_history_lists_invitations(self, workflow, people, meeting):
        assert [m.id for m in workflow.meetings.history(people.member)] == [meeting.id]
        assert workflow.meetings.history(people.outsider) == []

    def test_outsider_cannot_view(self, workflow, people, meeting):
        err(workflow.meetings.get_meeting(people.outsider, meeting.id), ErrorCode.FORBIDDEN)
