"""Evaluation application service.

Mentors and admins score projects against rubrics and leave rated feedback
for participants. Project rubrics are managed by the project's reviewers;
global rubrics, offered to every project, by admins only.
"""

import logging

from nexus.application.authorization import Action
from nexus.application.common import load_authorized_project
from nexus.application.events import EventOutbox
from nexus.application.ports import Clock
from nexus.domain.evaluation import (
    Criterion,
    Evaluation,
    Feedback,
    FeedbackGiven,
    ProjectEvaluated,
    Rubric,
    check_feedback,
    define_rubric,
    score_evaluation,
)
from nexus.domain.project.models import Project
from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.types import Caller
from nexus.infrastructure.storage import (
    EvaluationRepository,
    FeedbackRepository,
    ProjectRepository,
    RubricRepository,
)

logger = logging.getLogger(__name__)


class EvaluationService:
    def __init__(
        self,
        rubrics: RubricRepository,
        evaluations: EvaluationRepository,
        feedback: FeedbackRepository,
        projects: ProjectRepository,
        outbox: EventOutbox,
        clock: Clock,
    ) -> None:
        self._rubrics = rubrics
        self._evaluations = evaluations
        self._feedback = feedback
        self._projects = projects
        self._outbox = outbox
        self._clock = clock

    # Rubrics

    def create_rubric(
        self,
        caller: Caller,
        name: str,
        criteria: list[Criterion],
        project_id: str | None = None,
    ) -> Result[Rubric, DomainError]:
        """Create a rubric scoped to ``project_id``, or a global one when it is None.

        Returns:
            Ok(Rubric), Err(forbidden) when a non-admin defines a global
            rubric or a non-reviewer a project rubric, Err(validation) for
            a malformed rubric.
        """
        if project_id is None:
            if not caller.is_admin:
                return Err(DomainError.forbidden("auth.global_rubric", "Only an admin can define global rubrics"))
        else:
            project = load_authorized_project(self._projects, caller, Action.EVALUATE_PROJECT, project_id)
            if isinstance(project, Err):
                return project

        rubric = define_rubric(name, criteria, created_by=caller.user_id, now=self._clock(), project_id=project_id)
        if isinstance(rubric, Err):
            return rubric

        result = self._rubrics.add(rubric.value)
        if isinstance(result, Err):
            return result
        scope = f"project {project_id}" if project_id else "all projects"
        logger.info(f"Created rubric '{rubric.value.name}' ({len(rubric.value.criteria)} criteria) for {scope}")
        return result

    def list_rubrics(self, caller: Caller, project_id: str) -> Result[list[Rubric], DomainError]:
        """Global rubrics plus the ones scoped to the project."""
        project = load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, project_id)
        if isinstance(project, Err):
            return project
        return Ok(self._rubrics.available_to(project_id))

    # Evaluations

    def evaluate(
        self,
        caller: Caller,
        project_id: str,
        rubric_id: str,
        scores: dict[str, float],
        comments: str = "",
        feedback: str = "",
    ) -> Result[Evaluation, DomainError]:
        """Score a project against a rubric and notify its students.

        The total is the sum of score times weight over the rubric's
        criteria; unscored criteria count as zero.
        """
        project = load_authorized_project(self._projects, caller, Action.EVALUATE_PROJECT, project_id)
        if isinstance(project, Err):
            return project

        rubric = self._rubrics.get(rubric_id)
        if isinstance(rubric, Err):
            return rubric
        if not rubric.value.applies_to(project_id):
            return Err(
                DomainError.validation(
                    "evaluation.foreign_rubric",
                    f"Rubric '{rubric.value.name}' belongs to another project",
                )
            )

        scored = score_evaluation(rubric.value, scores)
        if isinstance(scored, Err):
            return scored
        normalized, total = scored.value

        evaluation = Evaluation(
            project_id=project_id,
            rubric_id=rubric_id,
            rubric_name=rubric.value.name,
            evaluator_id=caller.user_id,
            scores=normalized,
            total_score=total,
            max_score=rubric.value.max_total,
            comments=comments.strip(),
            feedback=feedback.strip(),
            created_at=self._clock(),
        )
        result = self._evaluations.add(evaluation)
        if isinstance(result, Err):
            return result

        logger.info(f"Project {project_id} scored {total:g}/{evaluation.max_score:g} on '{rubric.value.name}'")
        self._outbox.publish(
            ProjectEvaluated(
                project_id=project_id,
                actor_id=caller.user_id,
                occurred_at=evaluation.created_at,
                evaluation_id=evaluation.id,
                title=project.value.title,
                rubric_name=rubric.value.name,
                total_score=total,
                max_score=evaluation.max_score,
                student_ids=project.value.student_ids(),
            )
        )
        return result

    def list_evaluations(self, caller: Caller, project_id: str) -> Result[list[Evaluation], DomainError]:
        """A project's evaluations, newest first."""
        project = load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, project_id)
        if isinstance(project, Err):
            return project
        return Ok(self._evaluations.for_project(project_id))

    # Feedback

    def _recipients(self, caller: Caller, project: Project, recipient_id: str | None) -> Result[list[str], DomainError]:
        if recipient_id is not None:
            if recipient_id == caller.user_id:
                return Err(DomainError.validation("feedback.self", "You cannot give feedback to yourself"))
            if not project.is_participant(recipient_id):
                return Err(
                    DomainError.validation(
                        "feedback.recipient_not_participant",
                        f"Recipient is not a participant of '{project.title}'",
                    )
                )
            return Ok([recipient_id])

        recipients: list[str] = []
        for user_id in [project.creator_id, *project.student_ids()]:
            if user_id != caller.user_id and user_id not in recipients:
                recipients.append(user_id)
        if not recipients:
            return Err(
                DomainError.validation("feedback.no_recipients", f"'{project.title}' has nobody to receive feedback")
            )
        return Ok(recipients)

    def give_feedback(
        self,
        caller: Caller,
        project_id: str,
        message: str,
        rating: int = 5,
        recipient_id: str | None = None,
    ) -> Result[list[Feedback], DomainError]:
        """Leave rated feedback for one participant, or for the whole team.

        With ``recipient_id`` omitted, the creator, owner and joined members
        each receive a copy (the sender excluded).

        Returns:
            Ok(list of stored feedback), Err(validation) for an empty
            message, a rating outside 1-5 or an invalid recipient,
            Err(forbidden) unless the caller reviews this project.
        """
        checked = check_feedback(message, rating)
        if isinstance(checked, Err):
            return checked

        project = load_authorized_project(self._projects, caller, Action.GIVE_FEEDBACK, project_id)
        if isinstance(project, Err):
            return project

        recipients = self._recipients(caller, project.value, recipient_id)
        if isinstance(recipients, Err):
            return recipients

        now = self._clock()
        stored: list[Feedback] = []
        for to_id in recipients.value:
            entry = Feedback(
                project_id=project_id,
                from_id=caller.user_id,
                to_id=to_id,
                message=message.strip(),
                rating=rating,
                created_at=now,
            )
            added = self._feedback.add(entry)
            if isinstance(added, Err):
                for written in stored:
                    self._feedback.remove(written.id)
                return added
            stored.append(added.value)

        logger.info(f"{caller.user_id} left feedback for {len(stored)} participant(s) of project {project_id}")
        for entry in stored:
            self._outbox.publish(
                FeedbackGiven(
                    project_id=project_id,
                    actor_id=caller.user_id,
                    occurred_at=now,
                    feedback_id=entry.id,
                    title=project.value.title,
                    to_id=entry.to_id,
                    rating=entry.rating,
                )
            )
        return Ok(stored)

    def feedback_for_project(self, caller: Caller, project_id: str) -> Result[list[Feedback], DomainError]:
        project = load_authorized_project(self._projects, caller, Action.VIEW_PROJECT, project_id)
        if isinstance(project, Err):
            return project
        return Ok(self._feedback.for_project(project_id))

    def feedback_for_user(self, caller: Caller, user_id: str) -> Result[list[Feedback], DomainError]:
        """Feedback received by ``user_id``. Visible to that user and admins."""
        if caller.user_id != user_id and not caller.is_admin:
            return Err(DomainError.forbidden("feedback.not_yours", "You can only read your own feedback"))
        return Ok(self._feedback.for_recipient(user_id))
