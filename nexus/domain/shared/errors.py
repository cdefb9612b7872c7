"""Error taxonomy shared by every workflow component.

A DomainError is the payload of every ``Err`` returned by the core. The
``code`` is one of five taxonomy values; ``reason`` is a stable slug that
clients can branch on; ``message`` is for humans.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Taxonomy of workflow failures."""

    VALIDATION = "validation"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class DomainError:
    """A failed workflow operation.

    Attributes:
        code: Taxonomy value.
        reason: Stable machine-readable reason, e.g. ``milestone.not_submitted``.
        message: Human-readable explanation.
    """

    code: ErrorCode
    reason: str
    message: str

    @classmethod
    def validation(cls, reason: str, message: str) -> "DomainError":
        return cls(ErrorCode.VALIDATION, reason, message)

    @classmethod
    def forbidden(cls, reason: str, message: str) -> "DomainError":
        return cls(ErrorCode.FORBIDDEN, reason, message)

    @classmethod
    def not_found(cls, reason: str, message: str) -> "DomainError":
        return cls(ErrorCode.NOT_FOUND, reason, message)

    @classmethod
    def conflict(cls, reason: str, message: str) -> "DomainError":
        return cls(ErrorCode.CONFLICT, reason, message)

    @classmethod
    def unavailable(cls, reason: str, message: str) -> "DomainError":
        return cls(ErrorCode.UNAVAILABLE, reason, message)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message} ({self.reason})"
