"""Domain value objects for Nexus.

Immutable value objects representing core domain concepts.
These provide type safety and domain-specific operations.
"""

import re
from dataclasses import dataclass
from enum import Enum

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class Role(str, Enum):
    """Account role supplied by the identity provider."""

    STUDENT = "Student"
    MENTOR = "Mentor"
    ADMIN = "Admin"


class Priority(str, Enum):
    """Priority of a milestone or task."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def normalize_email(email: str) -> str:
    """Return the canonical (trimmed, lowercased) form of an email address."""
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    """Check that an email looks like ``local@domain.tld``."""
    return bool(_EMAIL_RE.match(email))


@dataclass(frozen=True)
class Caller:
    """Identity of the user performing an operation.

    Handed to the core by the identity gateway on every request. The core
    never sees or validates the underlying token.

    Attributes:
        user_id: Account identifier.
        role: Account role.
        email: Optional email, resolved from the account directory when absent.
    """

    user_id: str
    role: Role
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_mentor(self) -> bool:
        return self.role == Role.MENTOR

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT


@dataclass(frozen=True)
class RepositoryLink:
    """A source-code repository URL compared in canonical form.

    Two links are the same repository when they are equal ignoring case,
    surrounding whitespace and trailing slashes.

    Example:
        RepositoryLink("https://github.com/t/p/").matches("https://GitHub.com/t/p")
        # -> True
    """

    value: str

    @property
    def canonical(self) -> str:
        return self.value.strip().rstrip("/").lower()

    def matches(self, other: "str | RepositoryLink") -> bool:
        """Check whether another link points at the same repository."""
        other_link = other if isinstance(other, RepositoryLink) else RepositoryLink(other)
        return self.canonical == other_link.canonical

    def owner_and_name(self) -> tuple[str, str] | None:
        """Split a hosting URL into ``(owner, repo)``.

        Returns:
            The last two path segments (``.git`` suffix removed), or None if
            the link does not have at least two path segments.
        """
        path = re.sub(r"^[a-z]+://[^/]+/", "", self.canonical)
        segments = [s for s in path.split("/") if s]
        if len(segments) < 2:
            return None
        owner, name = segments[0], segments[1]
        if name.endswith(".git"):
            name = name[: -len(".git")]
        return owner, name

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ScreenshotUpload:
    """An uploaded screenshot awaiting validation and storage.

    Attributes:
        filename: Original client filename.
        content_type: MIME type reported by the client.
        data: Raw file bytes.
    """

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        _, _, ext = self.filename.rpartition(".")
        return ext.lower() if ext != self.filename else ""
