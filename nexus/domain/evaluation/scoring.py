"""Rubric definition and weighted scoring.

Pure functions only; callers supply the clock reading.
"""

from datetime import datetime

from pydantic import ValidationError

from nexus.domain.evaluation.models import Criterion, Rubric
from nexus.domain.shared import DomainError, Err, Ok, Result

MIN_RATING = 1
MAX_RATING = 5


def define_rubric(
    name: str,
    criteria: list[Criterion],
    *,
    created_by: str,
    now: datetime,
    project_id: str | None = None,
) -> Result[Rubric, DomainError]:
    """Build a rubric, global when ``project_id`` is None.

    Returns:
        Ok(Rubric), or Err(validation) for a blank name, no criteria or
        duplicate criterion names.
    """
    if not name.strip():
        return Err(DomainError.validation("rubric.name_required", "Rubric name is required"))
    if not criteria:
        return Err(DomainError.validation("rubric.no_criteria", "A rubric needs at least one criterion"))

    try:
        rubric = Rubric(
            name=name.strip(),
            project_id=project_id,
            is_global=project_id is None,
            criteria=criteria,
            created_by=created_by,
            created_at=now,
        )
    except ValidationError as e:
        return Err(DomainError.validation("rubric.invalid", f"Invalid rubric: {e.errors()[0]['msg']}"))
    return Ok(rubric)


def score_evaluation(rubric: Rubric, scores: dict[str, float]) -> Result[tuple[dict[str, float], float], DomainError]:
    """Weight raw criterion scores into a total.

    Criteria without a score count as zero. Each score must lie between 0
    and its criterion's ``max_score``.

    Args:
        rubric: Rubric the scores were given against.
        scores: Raw score per criterion name (case-insensitive).

    Returns:
        Ok((scores keyed by criterion name, weighted total)), or
        Err(validation) for an unknown criterion or an out-of-range score.
    """
    given: dict[str, float] = {}
    for name, value in scores.items():
        criterion = rubric.find_criterion(name)
        if criterion is None:
            return Err(
                DomainError.validation(
                    "evaluation.unknown_criterion",
                    f"'{name}' is not a criterion of rubric '{rubric.name}'",
                )
            )
        if value < 0 or value > criterion.max_score:
            return Err(
                DomainError.validation(
                    "evaluation.score_out_of_range",
                    f"Score for '{criterion.name}' must be between 0 and {criterion.max_score:g} (got {value:g})",
                )
            )
        given[criterion.name] = value

    normalized = {c.name: given.get(c.name, 0.0) for c in rubric.criteria}
    total = sum(normalized[c.name] * c.weight for c in rubric.criteria)
    return Ok((normalized, total))


def check_feedback(message: str, rating: int) -> Result[None, DomainError]:
    """Check a feedback message and its 1-5 rating."""
    if not message.strip():
        return Err(DomainError.validation("feedback.message_required", "Feedback message is required"))
    if rating < MIN_RATING or rating > MAX_RATING:
        return Err(
            DomainError.validation(
                "feedback.bad_rating",
                f"Rating must be between {MIN_RATING} and {MAX_RATING} (got {rating})",
            )
        )
    return Ok(None)
