"""Evaluation domain package: rubrics, weighted evaluations and feedback."""

from nexus.domain.evaluation.events import FeedbackGiven, ProjectEvaluated
from nexus.domain.evaluation.models import Criterion, Evaluation, Feedback, Rubric
from nexus.domain.evaluation.scoring import (
    MAX_RATING,
    MIN_RATING,
    check_feedback,
    define_rubric,
    score_evaluation,
)

__all__ = [
    # Models
    "Criterion",
    "Rubric",
    "Evaluation",
    "Feedback",
    # Rules
    "define_rubric",
    "score_evaluation",
    "check_feedback",
    "MIN_RATING",
    "MAX_RATING",
    # Events
    "ProjectEvaluated",
    "FeedbackGiven",
]
