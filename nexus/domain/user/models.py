"""User account models.

Accounts are issued by the identity provider; the core keeps a directory of
them so invitations by email can be resolved to user ids.
"""

from pydantic import field_validator

from nexus.domain.shared.entity import Entity
from nexus.domain.types import Role, normalize_email


class User(Entity):
    """A registered account."""

    name: str
    email: str
    role: Role

    @field_validator("email")
    @classmethod
    def _canonical_email(cls, value: str) -> str:
        return normalize_email(value)
