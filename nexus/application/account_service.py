"""Account directory service.

Accounts are fed by the identity provider. Registering an account also
binds every pending team invitation addressed to its email.
"""

import logging

from nexus.application.team_service import TeamMembershipResolver
from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.types import Role, is_valid_email, normalize_email
from nexus.domain.user.models import User
from nexus.infrastructure.storage import UserRepository

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, users: UserRepository, team: TeamMembershipResolver) -> None:
        self._users = users
        self._team = team

    def register(self, name: str, email: str, role: Role) -> Result[User, DomainError]:
        """Create an account and reconcile pending invitations.

        Returns:
            Ok(User), Err(validation) for a blank name or malformed email, or
            Err(conflict) when the email is already registered.
        """
        key = normalize_email(email)
        if not name.strip():
            return Err(DomainError.validation("user.name_required", "Name is required"))
        if not is_valid_email(key):
            return Err(DomainError.validation("user.invalid_email", f"Invalid email address: {email!r}"))

        result = self._users.add(User(name=name.strip(), email=key, role=role))
        if isinstance(result, Err):
            return result

        user = result.value
        logger.info(f"Registered {role.value} account {user.id} for {key}")
        self._team.reconcile_on_registration(user)
        return Ok(user)

    def get_user(self, user_id: str) -> Result[User, DomainError]:
        return self._users.get(user_id)

    def find_by_email(self, email: str) -> Result[User, DomainError]:
        return self._users.get_by_email(email)

    def list_users(self, role: Role | None = None) -> list[User]:
        users = self._users.all()
        if role is not None:
            users = [u for u in users if u.role == role]
        return sorted(users, key=lambda u: u.email)
