"""Collaborator interfaces the application layer depends on."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

from nexus.domain.shared import DomainError, Result

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current UTC time."""
    return datetime.now(UTC)


class FileStore(Protocol):
    """Blob storage for uploaded screenshots."""

    def put(self, filename: str, content_type: str, data: bytes) -> Result[str, DomainError]: ...

    def delete(self, reference: str) -> Result[None, DomainError]: ...
