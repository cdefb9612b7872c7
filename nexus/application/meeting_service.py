"""Meeting scheduler and attendance tracker.

A meeting is scheduled by the project's mentor and invites the
student-owner plus every joined team member as of that moment. Joins are
serialized per meeting: the join that completes the invite list moves the
meeting from scheduled to ongoing.
"""

import logging
from datetime import datetime

from nexus.application.authorization import Action, authorize
from nexus.application.common import busy, load_authorized_project, meeting_key
from nexus.application.events import EventOutbox
from nexus.application.ports import Clock
from nexus.domain.meeting import (
    Meeting,
    MeetingJoined,
    MeetingScheduled,
    MeetingStarted,
    MeetingStatus,
    MeetingStatusChanged,
    build_invitations,
    has_elapsed,
    mark_attendance,
    record_join,
    should_start,
)
from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.types import Caller
from nexus.infrastructure.storage import KeyedLocks, MeetingRepository, ProjectRepository, UserRepository

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (MeetingStatus.COMPLETED, MeetingStatus.CANCELLED)


class MeetingService:
    def __init__(
        self,
        meetings: MeetingRepository,
        projects: ProjectRepository,
        users: UserRepository,
        locks: KeyedLocks,
        outbox: EventOutbox,
        clock: Clock,
    ) -> None:
        self._meetings = meetings
        self._projects = projects
        self._users = users
        self._locks = locks
        self._outbox = outbox
        self._clock = clock

    def create_meeting(
        self,
        caller: Caller,
        project_id: str,
        title: str,
        call_link: str,
        scheduled_at: datetime,
        duration_minutes: int = 60,
        description: str = "",
        call_id: str | None = None,
    ) -> Result[Meeting, DomainError]:
        """Schedule a meeting for a project.

        Returns:
            Ok(Meeting) with its invite list, Err(forbidden) unless the
            caller is the project's mentor, or Err(validation) for a missing
            title or call link or a non-positive duration.
        """
        project = load_authorized_project(self._projects, caller, Action.CREATE_MEETING, project_id)
        if isinstance(project, Err):
            return project

        if not title.strip():
            return Err(DomainError.validation("meeting.title_required", "Meeting title is required"))
        if not call_link.strip():
            return Err(DomainError.validation("meeting.call_link_required", "A call link is required"))
        if duration_minutes < 1:
            return Err(DomainError.validation("meeting.bad_duration", "Duration must be at least one minute"))

        accounts = {u.id: u for u in self._users.all()}
        meeting = Meeting(
            project_id=project_id,
            title=title.strip(),
            description=description.strip(),
            call_link=call_link.strip(),
            call_id=call_id,
            created_by=caller.user_id,
            created_by_role=caller.role,
            mentor_id=project.value.mentor_id,
            participants=build_invitations(project.value, accounts),
            scheduled_at=scheduled_at,
            duration_minutes=duration_minutes,
        )
        result = self._meetings.add(meeting)
        if isinstance(result, Err):
            return result

        organizer = accounts.get(caller.user_id)
        logger.info(f"Scheduled meeting {meeting.id} with {len(meeting.participants)} invitee(s)")
        self._outbox.publish(
            MeetingScheduled(
                project_id=project_id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                meeting_id=meeting.id,
                title=meeting.title,
                scheduled_at=meeting.scheduled_at,
                organizer_name=organizer.name if organizer else "",
                invitee_ids=[p.user_id for p in meeting.participants],
            )
        )
        return result

    def join(self, caller: Caller, meeting_id: str) -> Result[Meeting, DomainError]:
        """Join a meeting as the mentor or an invited participant.

        Joining again is a no-op. When the last invited participant joins a
        scheduled meeting it becomes ongoing.
        """
        key = meeting_key(meeting_id)
        with self._locks.hold(key) as held:
            if not held:
                return Err(busy(key))

            loaded = self._meetings.get(meeting_id)
            if isinstance(loaded, Err):
                return loaded
            meeting = loaded.value

            allowed = authorize(caller, Action.JOIN_MEETING, meeting)
            if isinstance(allowed, Err):
                return allowed
            if meeting.status in CLOSED_STATUSES:
                return Err(DomainError.validation("meeting.closed", f"Meeting '{meeting.title}' is {meeting.status.value}"))

            now = self._clock()
            updated = record_join(meeting, caller.user_id, now)
            newly_joined = updated is not meeting
            starting = should_start(updated)
            if starting:
                updated = updated.model_copy(update={"status": MeetingStatus.ONGOING})
            if not newly_joined and not starting:
                return Ok(meeting)

            committed = self._meetings.replace(updated, meeting.version)
            if isinstance(committed, Err):
                return committed

        saved = committed.value
        events = []
        if newly_joined:
            participant = saved.find_participant(caller.user_id)
            events.append(
                MeetingJoined(
                    project_id=saved.project_id,
                    actor_id=caller.user_id,
                    occurred_at=now,
                    meeting_id=saved.id,
                    title=saved.title,
                    participant_id=caller.user_id,
                    participant_name=participant.name if participant else "",
                    mentor_id=saved.mentor_id,
                )
            )
        if starting:
            logger.info(f"Meeting {meeting_id} started: every participant joined")
            events.append(
                MeetingStarted(
                    project_id=saved.project_id,
                    actor_id=caller.user_id,
                    occurred_at=now,
                    meeting_id=saved.id,
                    title=saved.title,
                    audience_ids=saved.audience(),
                )
            )
        self._outbox.publish(*events)
        return committed

    def update_status(
        self,
        caller: Caller,
        meeting_id: str,
        status: MeetingStatus,
        notes: str | None = None,
        recording_link: str | None = None,
    ) -> Result[Meeting, DomainError]:
        """Set a meeting's status. Completing it marks joined participants attended."""
        key = meeting_key(meeting_id)
        with self._locks.hold(key) as held:
            if not held:
                return Err(busy(key))

            loaded = self._meetings.get(meeting_id)
            if isinstance(loaded, Err):
                return loaded
            meeting = loaded.value

            allowed = authorize(caller, Action.UPDATE_MEETING, meeting)
            if isinstance(allowed, Err):
                return allowed

            update: dict = {"status": status}
            if notes is not None:
                update["notes"] = notes
            if recording_link is not None:
                update["recording_link"] = recording_link
            updated = meeting.model_copy(update=update)
            if status == MeetingStatus.COMPLETED:
                updated = mark_attendance(updated)

            committed = self._meetings.replace(updated, meeting.version)
            if isinstance(committed, Err):
                return committed

        if meeting.status != status:
            logger.info(f"Meeting {meeting_id}: {meeting.status.value} -> {status.value}")
            self._outbox.publish(
                MeetingStatusChanged(
                    project_id=meeting.project_id,
                    actor_id=caller.user_id,
                    occurred_at=self._clock(),
                    meeting_id=meeting.id,
                    previous=meeting.status,
                    current=status,
                )
            )
        return committed

    def delete_meeting(self, caller: Caller, meeting_id: str) -> Result[None, DomainError]:
        loaded = self._meetings.get(meeting_id)
        if isinstance(loaded, Err):
            return loaded
        allowed = authorize(caller, Action.DELETE_MEETING, loaded.value)
        if isinstance(allowed, Err):
            return allowed
        result = self._meetings.remove(meeting_id)
        if isinstance(result, Ok):
            logger.info(f"Deleted meeting {meeting_id}")
        return result

    def get_meeting(self, caller: Caller, meeting_id: str) -> Result[Meeting, DomainError]:
        loaded = self._meetings.get(meeting_id)
        if isinstance(loaded, Err):
            return loaded
        meeting = loaded.value
        if isinstance(authorize(caller, Action.JOIN_MEETING, meeting), Ok):
            return loaded
        project = load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, meeting.project_id)
        if isinstance(project, Err):
            return project
        return loaded

    def list_meetings(self, caller: Caller, project_id: str) -> Result[list[Meeting], DomainError]:
        project = load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, project_id)
        if isinstance(project, Err):
            return project
        return Ok(self._meetings.for_project(project_id))

    def history(self, caller: Caller) -> list[Meeting]:
        """Meetings the caller organized, mentors or was invited to, newest first."""
        return self._meetings.for_user(caller.user_id)

    def archive_elapsed(self) -> Result[list[Meeting], DomainError]:
        """Complete every scheduled or ongoing meeting whose end time has passed."""
        now = self._clock()
        archived: list[Meeting] = []
        for meeting in self._meetings.find(lambda m: has_elapsed(m, now)):
            key = meeting_key(meeting.id)
            with self._locks.hold(key) as held:
                if not held:
                    logger.warning(f"Skipped archiving meeting {meeting.id}: {busy(key)}")
                    continue
                completed = mark_attendance(meeting.model_copy(update={"status": MeetingStatus.COMPLETED}))
                result = self._meetings.replace(completed, meeting.version)
            if isinstance(result, Err):
                logger.warning(f"Skipped archiving meeting {meeting.id}: {result.error}")
                continue
            archived.append(result.value)

        if archived:
            logger.info(f"Archived {len(archived)} elapsed meeting(s)")
        return Ok(archived)
