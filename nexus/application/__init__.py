"""Application service layer for Nexus.

This package contains the services that orchestrate domain operations.
Each service receives its repositories, lock registry, event outbox and
clock at construction (see ``nexus.bootstrap``), checks the caller through
the authorization gate, applies a pure domain transition, commits it, and
publishes the resulting events.

Services:
    authorization - Authorization gate (authorize, Action)
    team_service - Team membership resolver
    account_service - Account registration
    project_service - Project lifecycle and summary
    milestone_service - Milestone submit/review lifecycle
    task_service - Task lifecycle, submissions and escalation
    sprint_service - Sprints, burndown and statistics
    meeting_service - Meeting scheduling and attendance
    evaluation_service - Rubrics, project evaluations and feedback
    housekeeping - Expiry sweep, meeting archival, deadline escalation
    notifications - Notification dispatcher (event subscriber)
    notification_service - Recipient-side notification operations

Example usage:
    >>> from nexus.bootstrap import build_workflow
    >>> from nexus.domain.shared import is_ok
    >>>
    >>> workflow = build_workflow()
    >>> result = workflow.milestones.approve(mentor, milestone_id, notes="Great work")
    >>> if is_ok(result):
    ...     print(result.value.status)
"""

from nexus.application.account_service import AccountService
from nexus.application.authorization import Action, authorize, authorize_any, is_privileged
from nexus.application.evaluation_service import EvaluationService
from nexus.application.events import EventOutbox
from nexus.application.housekeeping import SweepReport, run_sweep
from nexus.application.meeting_service import MeetingService
from nexus.application.milestone_service import MilestoneService
from nexus.application.notification_service import NotificationService
from nexus.application.notifications import NotificationDispatcher
from nexus.application.ports import Clock, FileStore, system_clock
from nexus.application.project_service import ProjectService, build_summary
from nexus.application.sprint_service import SprintService
from nexus.application.task_service import TaskChanges, TaskService
from nexus.application.team_service import TeamMembershipResolver

__all__ = [
    # Authorization
    "Action",
    "authorize",
    "authorize_any",
    "is_privileged",
    # Events and notifications
    "EventOutbox",
    "NotificationDispatcher",
    "NotificationService",
    # Services
    "AccountService",
    "TeamMembershipResolver",
    "ProjectService",
    "build_summary",
    "MilestoneService",
    "TaskService",
    "TaskChanges",
    "SprintService",
    "MeetingService",
    "EvaluationService",
    # Housekeeping
    "SweepReport",
    "run_sweep",
    # Ports
    "Clock",
    "FileStore",
    "system_clock",
]
