"""Base model for persisted, independently addressable entities."""

from uuid import uuid4

from pydantic import BaseModel, Field


def new_id() -> str:
    """Generate a new entity identifier."""
    return uuid4().hex


class Entity(BaseModel):
    """An addressable record with an optimistic-concurrency version.

    ``version`` is owned by the repository: it starts at 0 on insert and is
    incremented by every successful compare-and-swap replace.
    """

    id: str = Field(default_factory=new_id)
    version: int = 0
