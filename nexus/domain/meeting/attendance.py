"""Meeting invitation and attendance rules.

Pure functions: invitation lists are derived from a project snapshot, and
joins return updated copies of the meeting.
"""

from datetime import datetime

from nexus.domain.meeting.models import Meeting, MeetingStatus, Participant, ParticipantStatus
from nexus.domain.project.models import Project
from nexus.domain.user.models import User


def build_invitations(project: Project, accounts: dict[str, User]) -> list[Participant]:
    """Derive the invite list for a new meeting.

    The student-owner and every joined team member are invited, once each.
    The mentor runs the meeting and is never on the list. The list is a
    snapshot: members who join the team later are not invited retroactively.

    Args:
        project: Project the meeting belongs to.
        accounts: Known accounts by id, used for display names and emails.

    Returns:
        Participants in invitation order, all with status ``invited``.
    """
    invited: list[Participant] = []
    for user_id in project.student_ids():
        if user_id == project.mentor_id:
            continue
        account = accounts.get(user_id)
        member = project.find_member_by_user(user_id)
        name = account.name if account else (member.name if member else "")
        email = account.email if account else (member.email if member else "")
        invited.append(Participant(user_id=user_id, name=name, email=email))
    return invited


def record_join(meeting: Meeting, user_id: str, now: datetime) -> Meeting:
    """Mark an invited participant as joined.

    Joining again after having joined (or attended) leaves the meeting
    unchanged. Unknown users (e.g. the mentor) leave the list unchanged.
    """
    participant = meeting.find_participant(user_id)
    if participant is None or participant.has_joined:
        return meeting

    joined = participant.model_copy(update={"status": ParticipantStatus.JOINED, "joined_at": now})
    participants = [joined if p.user_id == user_id else p for p in meeting.participants]
    return meeting.model_copy(update={"participants": participants})


def should_start(meeting: Meeting) -> bool:
    """A scheduled meeting starts once every invited participant has joined."""
    return meeting.status == MeetingStatus.SCHEDULED and meeting.everyone_joined()


def mark_attendance(meeting: Meeting) -> Meeting:
    """Convert every joined participant into an attendee."""
    participants = [
        p.model_copy(update={"status": ParticipantStatus.ATTENDED})
        if p.status == ParticipantStatus.JOINED
        else p
        for p in meeting.participants
    ]
    return meeting.model_copy(update={"participants": participants})


def has_elapsed(meeting: Meeting, now: datetime) -> bool:
    """Check whether an open meeting's scheduled end time has passed."""
    if meeting.status not in (MeetingStatus.SCHEDULED, MeetingStatus.ONGOING):
        return False
    return meeting.ends_at < now
