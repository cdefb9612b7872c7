"""User domain package."""

from nexus.domain.user.models import User

__all__ = ["User"]
