"""Evaluation domain models.

A rubric is a named list of weighted criteria, either scoped to one project
or global. An evaluation records one evaluator's per-criterion scores against
a rubric together with the weighted total. Feedback is a rated message from
a mentor or admin to one project participant.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from nexus.domain.shared.entity import Entity


class Criterion(BaseModel):
    """One scored aspect of a rubric."""

    name: str
    description: str = ""
    weight: float = Field(default=1.0, gt=0)
    max_score: float = Field(default=10.0, gt=0)

    @field_validator("name")
    @classmethod
    def _stripped_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("criterion name is required")
        return value


class Rubric(Entity):
    """A reusable scoring sheet.

    A global rubric is available to every project; otherwise ``project_id``
    names the only project it applies to.
    """

    name: str
    project_id: str | None = None
    is_global: bool = False
    criteria: list[Criterion] = Field(min_length=1)
    created_by: str
    created_at: datetime

    @model_validator(mode="after")
    def _scoped(self) -> "Rubric":
        if self.is_global == (self.project_id is not None):
            raise ValueError("a rubric is either global or scoped to exactly one project")
        names = [c.name.lower() for c in self.criteria]
        if len(names) != len(set(names)):
            raise ValueError("criterion names must be unique within a rubric")
        return self

    @property
    def max_total(self) -> float:
        return sum(c.max_score * c.weight for c in self.criteria)

    def applies_to(self, project_id: str) -> bool:
        return self.is_global or self.project_id == project_id

    def find_criterion(self, name: str) -> Criterion | None:
        key = name.strip().lower()
        for criterion in self.criteria:
            if criterion.name.lower() == key:
                return criterion
        return None


class Evaluation(Entity):
    """A scored assessment of a project against one rubric."""

    project_id: str
    rubric_id: str
    rubric_name: str
    evaluator_id: str
    scores: dict[str, float] = Field(default_factory=dict)
    total_score: float
    max_score: float
    comments: str = ""
    feedback: str = ""
    created_at: datetime

    @property
    def percent(self) -> int:
        if self.max_score <= 0:
            return 0
        return round(self.total_score * 100 / self.max_score)


class Feedback(Entity):
    """A rated message to one project participant."""

    project_id: str
    from_id: str
    to_id: str
    message: str
    rating: int = Field(ge=1, le=5)
    created_at: datetime
