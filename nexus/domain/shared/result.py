"""Result monad for explicit error handling in workflow operations.

Every repository call and every application-service operation returns a
Result: either ``Ok(value)`` or ``Err(DomainError)``. Expected failures such as
a denied permission or a stale version are values, not exceptions, so the
caller decides how to surface them.

Example usage:
    >>> def require_notes(notes: str) -> Result[str, str]:
    ...     if not notes.strip():
    ...         return Err("Rejection notes are required")
    ...     return Ok(notes.strip())
    ...
    >>> result = require_notes("  Add tests  ")
    >>> if is_ok(result):
    ...     print(result.value)
    Add tests
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Represents a successful result containing a value.

    Attributes:
        value: The success value of type T.
    """

    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Represents a failed result containing an error.

    Attributes:
        error: The error value of type E.
    """

    error: E


# Using Union here as TypeVar aliases don't work with | syntax at runtime
Result = Union[Ok[T], Err[E]]  # noqa: UP007


def is_ok(result: Ok[T] | Err[E]) -> bool:
    """Check if a result is successful."""
    return isinstance(result, Ok)


def is_err(result: Ok[T] | Err[E]) -> bool:
    """Check if a result is an error."""
    return isinstance(result, Err)


def map_result(result: Ok[T] | Err[E], fn: Callable[[T], U]) -> Ok[U] | Err[E]:
    """Apply a function to the value inside an Ok result.

    Args:
        result: The result to transform.
        fn: Function to apply to the Ok value.

    Returns:
        A new Result with the transformed value, or the original Err.
    """
    if isinstance(result, Ok):
        return Ok(fn(result.value))
    return result


def flat_map(result: Ok[T] | Err[E], fn: Callable[[T], Ok[U] | Err[E]]) -> Ok[U] | Err[E]:
    """Chain operations that return Results.

    Used to sequence lookups that may each fail, e.g. loading a milestone
    and then its owning project.

    Args:
        result: The result to chain from.
        fn: Function that takes the Ok value and returns a new Result.

    Returns:
        The Result from applying fn, or the original Err.
    """
    if isinstance(result, Ok):
        return fn(result.value)
    return result
