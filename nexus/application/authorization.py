"""Authorization gate.

Every write is checked here before it reaches a lifecycle function. A
check resolves the caller's relationship to the target (creator, mentor,
student-owner, joined team member, admin) and answers with ``Ok(None)`` or a
single ``Err(forbidden)``. Expected denials never raise.

Example:
    >>> result = authorize(caller, Action.REVIEW_MILESTONE, project)
    >>> if is_err(result):
    ...     print(result.error.reason)
    auth.review_milestone
"""

from collections.abc import Callable
from enum import Enum
from typing import Any

from nexus.domain.meeting.models import Meeting
from nexus.domain.project.models import Project
from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.types import Caller


class Action(str, Enum):
    """Guarded workflow actions."""

    CREATE_MEETING = "create_meeting"
    JOIN_MEETING = "join_meeting"
    UPDATE_MEETING = "update_meeting"
    DELETE_MEETING = "delete_meeting"
    REVIEW_MILESTONE = "review_milestone"
    REVIEW_TASK = "review_task"
    MANAGE_MILESTONES = "manage_milestones"
    SUBMIT_MILESTONE = "submit_milestone"
    SUBMIT_TASK = "submit_task"
    MANAGE_TEAM = "manage_team"
    CONTRIBUTE = "contribute"
    UPDATE_PROJECT = "update_project"
    ASSIGN_MENTOR = "assign_mentor"
    VIEW_PROJECT = "view_project"
    EVALUATE_PROJECT = "evaluate_project"
    GIVE_FEEDBACK = "give_feedback"


MEETING_ACTIONS = frozenset({Action.JOIN_MEETING, Action.UPDATE_MEETING, Action.DELETE_MEETING})


def _is_reviewer(caller: Caller, project: Project) -> bool:
    return caller.is_admin or (caller.is_mentor and project.is_mentor(caller.user_id))


def _is_student_contributor(caller: Caller, project: Project) -> bool:
    return caller.is_student and (project.is_owner(caller.user_id) or project.is_member(caller.user_id))


def _is_participant(caller: Caller, project: Project) -> bool:
    return caller.is_admin or project.is_participant(caller.user_id)


_RULES: dict[Action, tuple[Callable[[Caller, Any], bool], str]] = {
    Action.CREATE_MEETING: (
        lambda c, p: c.is_mentor and p.is_mentor(c.user_id),
        "Only the project's mentor can schedule meetings",
    ),
    Action.JOIN_MEETING: (
        lambda c, m: m.is_mentor(c.user_id) or m.is_invited(c.user_id),
        "Only the mentor and invited participants can join this meeting",
    ),
    Action.UPDATE_MEETING: (
        lambda c, m: m.created_by == c.user_id or m.is_mentor(c.user_id),
        "Only the meeting creator or mentor can change its status",
    ),
    Action.DELETE_MEETING: (
        lambda c, m: m.created_by == c.user_id,
        "Only the meeting creator can delete it",
    ),
    Action.REVIEW_MILESTONE: (_is_reviewer, "Only the project's mentor or an admin can review milestones"),
    Action.REVIEW_TASK: (_is_reviewer, "Only the project's mentor or an admin can review tasks"),
    Action.MANAGE_MILESTONES: (_is_reviewer, "Only the project's mentor or an admin can manage milestones"),
    Action.SUBMIT_MILESTONE: (
        _is_student_contributor,
        "Only the student-owner or a joined team member can submit milestones",
    ),
    Action.SUBMIT_TASK: (
        _is_student_contributor,
        "Only the student-owner or a joined team member can submit tasks",
    ),
    Action.MANAGE_TEAM: (
        lambda c, p: c.is_admin or p.is_mentor(c.user_id) or p.is_owner(c.user_id),
        "Only the mentor, student-owner or an admin can manage the team",
    ),
    Action.CONTRIBUTE: (_is_participant, "Only project participants can do this"),
    Action.UPDATE_PROJECT: (
        lambda c, p: c.is_admin or p.is_creator(c.user_id) or p.is_owner(c.user_id) or p.is_mentor(c.user_id),
        "Only the creator, owner, mentor or an admin can update the project",
    ),
    Action.ASSIGN_MENTOR: (
        lambda c, p: c.is_admin or p.is_creator(c.user_id),
        "Only an admin or the project creator can assign a mentor",
    ),
    Action.VIEW_PROJECT: (_is_participant, "You are not a participant of this project"),
    Action.EVALUATE_PROJECT: (_is_reviewer, "Only the project's mentor or an admin can evaluate the project"),
    Action.GIVE_FEEDBACK: (_is_reviewer, "Only the project's mentor or an admin can give feedback"),
}


def authorize(caller: Caller, action: Action, target: Project | Meeting) -> Result[None, DomainError]:
    """Allow or deny ``action`` on ``target`` for ``caller``.

    Args:
        caller: Identity of the requesting user.
        action: The guarded action.
        target: The project, or the meeting for meeting-scoped actions.

    Returns:
        Ok(None) if allowed, Err(forbidden) with reason ``auth.<action>``.

    Raises:
        TypeError: If the target type does not match the action.
    """
    expected = Meeting if action in MEETING_ACTIONS else Project
    if not isinstance(target, expected):
        raise TypeError(f"{action.value} expects a {expected.__name__}, got {type(target).__name__}")

    rule, message = _RULES[action]
    if rule(caller, target):
        return Ok(None)
    return Err(DomainError.forbidden(f"auth.{action.value}", message))


def authorize_any(caller: Caller, actions: list[Action], target: Project | Meeting) -> Result[None, DomainError]:
    """Allow if any of ``actions`` is allowed; otherwise return the first denial."""
    if not actions:
        raise ValueError("authorize_any needs at least one action")

    first = authorize(caller, actions[0], target)
    if isinstance(first, Ok):
        return first
    for action in actions[1:]:
        result = authorize(caller, action, target)
        if isinstance(result, Ok):
            return result
    return first


def is_privileged(caller: Caller, project: Project) -> bool:
    """Mentor of the project or an admin."""
    return _is_reviewer(caller, project)
