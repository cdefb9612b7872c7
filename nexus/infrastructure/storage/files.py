"""Screenshot file stores.

A store accepts already-validated bytes and returns an opaque reference
that is saved on the task submission.
"""

import logging
import re
import threading
from pathlib import Path

from nexus.domain.shared import DomainError, Err, Ok, Result, new_id

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_name(filename: str) -> str:
    name = _UNSAFE_CHARS.sub("_", Path(filename).name).strip("._")
    return name or "upload"


class LocalFileStore:
    """Writes uploads under a directory on local disk."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def put(self, filename: str, content_type: str, data: bytes) -> Result[str, DomainError]:
        """Store one file.

        Args:
            filename: Client-supplied name, sanitized before use.
            content_type: MIME type, logged only.
            data: File content.

        Returns:
            Ok(reference) relative to the store root, or Err(unavailable).
        """
        reference = f"{new_id()}-{_safe_name(filename)}"
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            (self._root / reference).write_bytes(data)
        except OSError as e:
            return Err(DomainError.unavailable("storage.upload_failed", f"Could not store {filename}: {e}"))
        logger.debug(f"Stored {content_type} upload {reference} ({len(data)} bytes)")
        return Ok(reference)

    def delete(self, reference: str) -> Result[None, DomainError]:
        path = self._root / reference
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            return Err(DomainError.unavailable("storage.delete_failed", f"Could not delete {reference}: {e}"))
        return Ok(None)


class MemoryFileStore:
    """Keeps uploads in memory. Used when no data directory is configured."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.files: dict[str, bytes] = {}

    def put(self, filename: str, content_type: str, data: bytes) -> Result[str, DomainError]:
        reference = f"{new_id()}-{_safe_name(filename)}"
        with self._lock:
            self.files[reference] = data
        return Ok(reference)

    def delete(self, reference: str) -> Result[None, DomainError]:
        with self._lock:
            self.files.pop(reference, None)
        return Ok(None)
