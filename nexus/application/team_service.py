"""Team membership resolver.

Team members are invited by email. An invitation is bound to an account
either when it is made (the email already belongs to a registered user),
when the matching account registers later, or when the invitee claims it
explicitly. Every change to a project's member list runs inside that
project's exclusive section, so two concurrent invitations of one email
cannot both succeed.
"""

import logging

from nexus.application.authorization import Action, authorize
from nexus.application.common import load_authorized_project, mutate_project
from nexus.application.events import EventOutbox
from nexus.application.ports import Clock
from nexus.domain.project.events import MemberAdded, MemberJoined, MemberRemoved
from nexus.domain.project.models import MemberStatus, Project, TeamMember
from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.types import Caller, is_valid_email, normalize_email
from nexus.domain.user.models import User
from nexus.infrastructure.storage import KeyedLocks, ProjectRepository, UserRepository

logger = logging.getLogger(__name__)


class TeamMembershipResolver:
    def __init__(
        self,
        projects: ProjectRepository,
        users: UserRepository,
        locks: KeyedLocks,
        outbox: EventOutbox,
        clock: Clock,
    ) -> None:
        self._projects = projects
        self._users = users
        self._locks = locks
        self._outbox = outbox
        self._clock = clock

    def add_member(
        self,
        caller: Caller,
        project_id: str,
        email: str,
        name: str = "",
        role: str = "",
    ) -> Result[TeamMember, DomainError]:
        """Invite someone to a project's team.

        The member is created joined when ``email`` belongs to a registered
        account and pending otherwise.

        Returns:
            Ok(TeamMember), Err(validation) for a malformed email,
            Err(forbidden) unless the caller may manage the team, or
            Err(conflict) when the email is already on the team.
        """
        key = normalize_email(email)
        if not is_valid_email(key):
            return Err(DomainError.validation("team.invalid_email", f"Invalid email address: {email!r}"))

        account = self._users.get_by_email(key)
        now = self._clock()

        def add(project: Project) -> Result[Project, DomainError]:
            allowed = authorize(caller, Action.MANAGE_TEAM, project)
            if isinstance(allowed, Err):
                return allowed
            if project.find_member(key) is not None:
                return Err(DomainError.conflict("team.duplicate_email", f"{key} is already on the team"))

            member = TeamMember(name=name.strip(), email=key, role=role.strip())
            if isinstance(account, Ok):
                member = member.bind(account.value.id, now)
                if not member.name:
                    member = member.model_copy(update={"name": account.value.name})
            return Ok(project.model_copy(update={"team_members": [*project.team_members, member]}))

        result = mutate_project(self._projects, self._locks, project_id, add)
        if isinstance(result, Err):
            return result

        project = result.value
        member = project.find_member(key)
        if member is None:
            return Err(DomainError.not_found("team.member_not_found", f"{key} is not on the team"))
        logger.info(f"Added {key} to project {project_id} ({member.status.value})")
        self._outbox.publish(
            MemberAdded(
                project_id=project_id,
                actor_id=caller.user_id,
                occurred_at=now,
                title=project.title,
                email=key,
                user_id=member.user_id,
            )
        )
        return Ok(member)

    def _bind(self, project_id: str, email: str, user_id: str) -> Result[tuple[Project, bool], DomainError]:
        """Flip the pending member ``email`` to joined.

        Returns:
            Ok((project, changed)); ``changed`` is False when the member was
            already joined. Err(not_found) when the email is not on the team.
        """
        now = self._clock()
        flipped = False

        def bind(project: Project) -> Result[Project, DomainError]:
            nonlocal flipped
            member = project.find_member(email)
            if member is None:
                return Err(DomainError.not_found("team.not_invited", f"{email} is not on the team of this project"))
            if member.is_joined:
                return Ok(project)
            flipped = True
            return Ok(project.replace_member(member.bind(user_id, now)))

        result = mutate_project(self._projects, self._locks, project_id, bind)
        if isinstance(result, Err):
            return result
        return Ok((result.value, flipped))

    def reconcile_on_registration(self, user: User) -> Result[list[str], DomainError]:
        """Bind every pending invitation addressed to a newly registered user.

        Idempotent: joined entries are left untouched, so running it twice
        changes nothing the second time.

        Returns:
            Ok(project ids whose entry was flipped to joined).
        """
        joined: list[str] = []
        for candidate in self._projects.with_pending_email(user.email):
            result = self._bind(candidate.id, user.email, user.id)
            if isinstance(result, Err):
                # The entry stays pending and can still be claimed.
                logger.warning(f"Could not bind {user.email} in project {candidate.id}: {result.error}")
                continue

            project, changed = result.value
            if not changed:
                continue
            joined.append(project.id)
            self._outbox.publish(
                MemberJoined(
                    project_id=project.id,
                    actor_id=user.id,
                    occurred_at=self._clock(),
                    title=project.title,
                    email=user.email,
                    user_id=user.id,
                    via="registration",
                    mentor_id=project.mentor_id,
                    owner_id=project.owner_id,
                )
            )

        if joined:
            logger.info(f"Reconciled {user.email} into {len(joined)} project(s)")
        return Ok(joined)

    def claim_membership(self, caller: Caller, project_id: str) -> Result[TeamMember, DomainError]:
        """Bind the caller's pending invitation on one project.

        Returns:
            Ok(TeamMember), Err(not_found) if the caller's email is not on the
            team, or Err(conflict) if the entry is already joined.
        """
        email = caller.email
        if not email:
            account = self._users.get(caller.user_id)
            if isinstance(account, Err):
                return account
            email = account.value.email
        key = normalize_email(email)

        current = self._projects.get(project_id)
        if isinstance(current, Err):
            return current
        existing = current.value.find_member(key)
        if existing is not None and existing.is_joined:
            return Err(DomainError.conflict("team.already_joined", f"{key} has already joined this project"))

        result = self._bind(project_id, key, caller.user_id)
        if isinstance(result, Err):
            return result

        project, changed = result.value
        if not changed:
            # Bound concurrently between the lookup and the exclusive section.
            return Err(DomainError.conflict("team.already_joined", f"{key} has already joined this project"))

        member = project.find_member(key)
        if member is None:
            return Err(DomainError.not_found("team.member_not_found", f"{key} is not on the team"))
        logger.info(f"{key} claimed membership of project {project_id}")
        self._outbox.publish(
            MemberJoined(
                project_id=project_id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                title=project.title,
                email=key,
                user_id=caller.user_id,
                via="claim",
                mentor_id=project.mentor_id,
                owner_id=project.owner_id,
            )
        )
        return Ok(member)

    def remove_member(self, caller: Caller, project_id: str, email: str) -> Result[TeamMember, DomainError]:
        """Remove a team member.

        Task assignments are not cascaded; readers treat an assignee who is
        no longer a participant as unassigned.
        """
        key = normalize_email(email)
        removed: TeamMember | None = None

        def remove(project: Project) -> Result[Project, DomainError]:
            nonlocal removed
            allowed = authorize(caller, Action.MANAGE_TEAM, project)
            if isinstance(allowed, Err):
                return allowed
            removed = project.find_member(key)
            if removed is None:
                return Err(DomainError.not_found("team.member_not_found", f"{key} is not on the team"))
            members = [m for m in project.team_members if m.email != key]
            return Ok(project.model_copy(update={"team_members": members}))

        result = mutate_project(self._projects, self._locks, project_id, remove)
        if isinstance(result, Err):
            return result

        if removed is None:
            return Err(DomainError.not_found("team.member_not_found", f"{key} is not on the team"))
        logger.info(f"Removed {key} from project {project_id}")
        self._outbox.publish(
            MemberRemoved(
                project_id=project_id,
                actor_id=caller.user_id,
                occurred_at=self._clock(),
                email=key,
                user_id=removed.user_id,
            )
        )
        return Ok(removed)

    def list_members(
        self,
        caller: Caller,
        project_id: str,
        status: MemberStatus | None = None,
    ) -> Result[list[TeamMember], DomainError]:
        result = load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, project_id)
        if isinstance(result, Err):
            return result
        members = result.value.team_members
        if status is not None:
            members = [m for m in members if m.status == status]
        return Ok(members)
