"""Shared domain utilities.

This package provides common building blocks used across domain modules:

- Result monad for explicit error handling
- DomainError taxonomy carried by every Err
- Base domain event and entity models

Example usage:
    >>> from nexus.domain.shared import DomainError, Err, Ok, Result
    >>>
    >>> def find_sprint(sprint_id: str) -> Result[dict, DomainError]:
    ...     if sprint_id == "missing":
    ...         return Err(DomainError.not_found("sprint.not_found", "Sprint not found"))
    ...     return Ok({"id": sprint_id})
"""

from nexus.domain.shared.entity import Entity, new_id
from nexus.domain.shared.errors import DomainError, ErrorCode
from nexus.domain.shared.events import DomainEvent
from nexus.domain.shared.result import (
    Err,
    Ok,
    Result,
    flat_map,
    is_err,
    is_ok,
    map_result,
)

__all__ = [
    # Result monad
    "Ok",
    "Err",
    "Result",
    "is_ok",
    "is_err",
    "map_result",
    "flat_map",
    # Errors
    "DomainError",
    "ErrorCode",
    # Base models
    "DomainEvent",
    "Entity",
    "new_id",
]
