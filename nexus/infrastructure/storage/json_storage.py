"""JSON file storage with Result-based error handling.

Provides a thin wrapper around file I/O operations for JSON data,
returning Result types instead of raising exceptions.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from nexus.domain.shared import DomainError, Err, Ok, Result


class JsonStorage:
    """Low-level JSON file I/O with Result-based error handling.

    This class wraps basic JSON operations (load/save) and returns
    Result types for explicit error handling. It does not contain
    any domain logic - just file I/O.

    Example:
        storage = JsonStorage()
        result = storage.load_json(Path("projects.json"))
        if isinstance(result, Ok):
            data = result.value
        else:
            print(f"Error: {result.error.message}")
    """

    def load_json(self, path: Path) -> Result[dict[str, Any], DomainError]:
        """Load JSON data from a file.

        Args:
            path: Path to the JSON file to read.

        Returns:
            Ok(dict) if successful, Err(DomainError) if the file is missing,
            unreadable or not valid JSON.
        """
        try:
            if not path.exists():
                return Err(DomainError.not_found("storage.missing", f"File not found: {path}"))

            content = path.read_text(encoding="utf-8")
            return Ok(json.loads(content))

        except json.JSONDecodeError as e:
            return Err(DomainError.unavailable("storage.corrupt", f"Invalid JSON in {path}: {e}"))
        except PermissionError:
            return Err(DomainError.unavailable("storage.denied", f"Permission denied reading {path}"))
        except OSError as e:
            return Err(DomainError.unavailable("storage.io", f"Error reading {path}: {e}"))

    def save_json(
        self,
        path: Path,
        data: dict[str, Any],
        indent: int = 2,
    ) -> Result[None, DomainError]:
        """Save JSON data to a file atomically.

        The content is written to a temporary file in the same directory and
        then moved over the target, so readers never observe a partial file.

        Args:
            path: Path to the JSON file to write.
            data: Dictionary to serialize as JSON.
            indent: JSON indentation level (default 2).

        Returns:
            Ok(None) if successful, Err(DomainError) if the write failed.
        """
        try:
            content = json.dumps(data, indent=indent)
        except TypeError as e:
            return Err(DomainError.unavailable("storage.encode", f"Data not JSON serializable: {e}"))

        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_name, path)
            return Ok(None)

        except PermissionError:
            return Err(DomainError.unavailable("storage.denied", f"Permission denied writing {path}"))
        except OSError as e:
            return Err(DomainError.unavailable("storage.io", f"Error writing {path}: {e}"))
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
