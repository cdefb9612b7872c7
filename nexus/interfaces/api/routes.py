"""FastAPI routes for Nexus.

Every route resolves the caller from the identity gateway's headers
(``X-User-Id``, ``X-User-Role`` and optionally ``X-User-Email``), calls one
application service, and turns an ``Err`` into an HTTP error whose status
follows the error code.
"""

from typing import TypeVar

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from nexus import __version__
from nexus.application import TaskChanges
from nexus.bootstrap import Workflow, build_workflow
from nexus.config import get_global_config
from nexus.domain.evaluation.models import Evaluation, Feedback, Rubric
from nexus.domain.meeting.models import Meeting
from nexus.domain.milestone.models import Milestone, MilestoneChecklist
from nexus.domain.notification.models import Notification, NotificationFeed
from nexus.domain.project.models import MemberStatus, Project, ProjectSummary, TeamMember
from nexus.domain.shared import DomainError, Err, ErrorCode, Result
from nexus.domain.sprint.models import Burndown, Sprint, SprintStats
from nexus.domain.task.models import Task, TaskStatus
from nexus.domain.types import Caller, Role
from nexus.domain.user.models import User
from nexus.infrastructure.github import RepositoryActivity
from nexus.interfaces.api.schemas import (
    AddMemberRequest,
    AssignMentorRequest,
    CountResponse,
    CreateMeetingRequest,
    CreateMilestoneRequest,
    CreateProjectRequest,
    CreateRubricRequest,
    CreateSprintRequest,
    CreateTaskRequest,
    EvaluateRequest,
    FeedbackRequest,
    MeetingStatusRequest,
    MilestoneStatusRequest,
    ProjectStatusRequest,
    RegisterRequest,
    RepositoryRequest,
    ReviewRequest,
    SprintStatusRequest,
    SubmitMilestoneRequest,
    SubmitTaskRequest,
    SweepResponse,
    TaskReviewRequest,
    TaskStatusRequest,
    VersionRequest,
)

T = TypeVar("T")

HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(error: DomainError) -> HTTPException:
    return HTTPException(
        status_code=HTTP_STATUS[error.code],
        detail={"code": error.code.value, "reason": error.reason, "message": error.message},
    )


def unwrap(result: Result[T, DomainError]) -> T:
    """Return the Ok value or raise the matching HTTP error."""
    if isinstance(result, Err):
        raise error_response(result.error)
    return result.value


# =============================================================================
# Dependencies
# =============================================================================


def get_workflow(request: Request) -> Workflow:
    return request.app.state.workflow


def get_caller(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> Caller:
    """Identity supplied by the gateway in front of this service."""
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "unauthenticated", "reason": "auth.missing_identity", "message": "Caller identity missing"},
        )
    try:
        role = Role(x_user_role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "unauthenticated", "reason": "auth.bad_role", "message": f"Unknown role: {x_user_role}"},
        ) from None
    return Caller(user_id=x_user_id, role=role, email=x_user_email)


router = APIRouter(prefix="/api")


# =============================================================================
# Accounts
# =============================================================================


@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED)
def register_user(req: RegisterRequest, wf: Workflow = Depends(get_workflow)):
    """Register an account (called by the identity provider) and bind pending invitations."""
    return unwrap(wf.accounts.register(req.name, req.email, req.role))


@router.get("/users/me", response_model=User)
def get_me(caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.accounts.get_user(caller.user_id))


# =============================================================================
# Projects
# =============================================================================


@router.post("/projects", response_model=Project, status_code=status.HTTP_201_CREATED)
def create_project(
    req: CreateProjectRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.projects.create_project(caller, req.title, req.description, req.repository_url))


@router.get("/projects", response_model=list[Project])
def list_projects(caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return wf.projects.list_projects(caller)


@router.get("/projects/{project_id}", response_model=Project)
def get_project(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.projects.get_project(caller, project_id))


@router.get("/projects/{project_id}/summary", response_model=ProjectSummary)
def get_summary(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.projects.get_summary(caller, project_id))


@router.post("/projects/{project_id}/adopt", response_model=Project)
def adopt_project(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.projects.adopt_project(caller, project_id))


@router.put("/projects/{project_id}/mentor", response_model=Project)
def assign_mentor(
    project_id: str,
    req: AssignMentorRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.projects.assign_mentor(caller, project_id, req.mentor_id))


@router.patch("/projects/{project_id}/status", response_model=Project)
def update_project_status(
    project_id: str,
    req: ProjectStatusRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.projects.update_status(caller, project_id, req.status))


@router.put("/projects/{project_id}/repository", response_model=Project)
def set_repository(
    project_id: str,
    req: RepositoryRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.projects.set_repository(caller, project_id, req.repository_url))


@router.get("/projects/{project_id}/repository/activity", response_model=RepositoryActivity)
def repository_activity(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.projects.repository_activity(caller, project_id))


@router.put("/projects/{project_id}/task-review", response_model=Project)
def set_task_review(
    project_id: str,
    req: TaskReviewRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.projects.set_task_review(caller, project_id, req.enforce))


@router.post("/projects/{project_id}/sos", response_model=Project)
def toggle_sos(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.projects.toggle_sos(caller, project_id))


# =============================================================================
# Team
# =============================================================================


@router.get("/projects/{project_id}/members", response_model=list[TeamMember])
def list_members(
    project_id: str,
    member_status: MemberStatus | None = None,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.team.list_members(caller, project_id, member_status))


@router.post("/projects/{project_id}/members", response_model=TeamMember, status_code=status.HTTP_201_CREATED)
def add_member(
    project_id: str,
    req: AddMemberRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.team.add_member(caller, project_id, req.email, req.name, req.role))


@router.post("/projects/{project_id}/members/claim", response_model=TeamMember)
def claim_membership(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.team.claim_membership(caller, project_id))


@router.delete("/projects/{project_id}/members/{email}", response_model=TeamMember)
def remove_member(
    project_id: str,
    email: str,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.team.remove_member(caller, project_id, email))


# =============================================================================
# Milestones
# =============================================================================


@router.post("/projects/{project_id}/milestones", response_model=Milestone, status_code=status.HTTP_201_CREATED)
def create_milestone(
    project_id: str,
    req: CreateMilestoneRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(
        wf.milestones.create_milestone(
            caller,
            project_id,
            req.title,
            description=req.description,
            due_date=req.due_date,
            priority=req.priority,
            submilestones=req.submilestones,
        )
    )


@router.get("/projects/{project_id}/milestones", response_model=list[Milestone])
def list_milestones(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.milestones.list_milestones(caller, project_id))


@router.get("/projects/{project_id}/milestones/pending", response_model=list[Milestone])
def pending_milestones(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.milestones.pending_submissions(caller, project_id))


@router.get("/milestones/{milestone_id}", response_model=Milestone)
def get_milestone(milestone_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.milestones.get_milestone(caller, milestone_id))


@router.get("/milestones/{milestone_id}/checklist", response_model=MilestoneChecklist)
def milestone_checklist(milestone_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.milestones.checklist(caller, milestone_id))


@router.post("/milestones/{milestone_id}/submit", response_model=Milestone)
def submit_milestone(
    milestone_id: str,
    req: SubmitMilestoneRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(
        wf.milestones.submit(caller, milestone_id, req.github_link, req.description, req.expected_version)
    )


@router.post("/milestones/{milestone_id}/approve", response_model=Milestone)
def approve_milestone(
    milestone_id: str,
    req: ReviewRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.milestones.approve(caller, milestone_id, req.notes, req.expected_version))


@router.post("/milestones/{milestone_id}/reject", response_model=Milestone)
def reject_milestone(
    milestone_id: str,
    req: ReviewRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.milestones.reject(caller, milestone_id, req.notes, req.expected_version))


@router.patch("/milestones/{milestone_id}/status", response_model=Milestone)
def set_milestone_status(
    milestone_id: str,
    req: MilestoneStatusRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.milestones.set_status(caller, milestone_id, req.status, req.expected_version))


@router.delete("/milestones/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_milestone(milestone_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    unwrap(wf.milestones.delete_milestone(caller, milestone_id))


# =============================================================================
# Tasks
# =============================================================================


@router.post("/projects/{project_id}/tasks", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    project_id: str,
    req: CreateTaskRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.tasks.create_task(caller, project_id, **req.model_dump()))


@router.get("/projects/{project_id}/tasks", response_model=list[Task])
def list_tasks(
    project_id: str,
    sprint_id: str | None = None,
    task_status: TaskStatus | None = None,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.tasks.list_tasks(caller, project_id, sprint_id=sprint_id, status=task_status))


@router.get("/tasks/{task_id}", response_model=Task)
def get_task(task_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.tasks.get_task(caller, task_id))


@router.patch("/tasks/{task_id}", response_model=Task)
def update_task(
    task_id: str,
    changes: TaskChanges,
    expected_version: int | None = None,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.tasks.update_task(caller, task_id, changes, expected_version))


@router.post("/tasks/{task_id}/start", response_model=Task)
def start_task(
    task_id: str,
    req: VersionRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.tasks.start(caller, task_id, req.expected_version))


@router.patch("/tasks/{task_id}/status", response_model=Task)
def update_task_status(
    task_id: str,
    req: TaskStatusRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.tasks.update_status(caller, task_id, req.status, req.expected_version))


@router.post("/tasks/{task_id}/submit", response_model=Task)
def submit_task(
    task_id: str,
    req: SubmitTaskRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    shots = [s.to_upload() for s in req.screenshots]
    return unwrap(wf.tasks.submit(caller, task_id, req.github_link, shots, req.expected_version))


@router.post("/tasks/{task_id}/approve", response_model=Task)
def approve_task(
    task_id: str,
    req: VersionRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.tasks.approve(caller, task_id, req.expected_version))


@router.post("/tasks/{task_id}/reject", response_model=Task)
def reject_task(
    task_id: str,
    req: ReviewRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.tasks.reject(caller, task_id, req.notes, req.expected_version))


# =============================================================================
# Sprints
# =============================================================================


@router.post("/projects/{project_id}/sprints", response_model=Sprint, status_code=status.HTTP_201_CREATED)
def create_sprint(
    project_id: str,
    req: CreateSprintRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.sprints.create_sprint(caller, project_id, req.name, req.start_date, req.end_date, req.goal))


@router.get("/projects/{project_id}/sprints", response_model=list[Sprint])
def list_sprints(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.sprints.list_sprints(caller, project_id))


@router.get("/sprints/{sprint_id}", response_model=Sprint)
def get_sprint(sprint_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.sprints.get_sprint(caller, sprint_id))


@router.patch("/sprints/{sprint_id}/status", response_model=Sprint)
def update_sprint_status(
    sprint_id: str,
    req: SprintStatusRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.sprints.update_status(caller, sprint_id, req.status, req.expected_version))


@router.get("/sprints/{sprint_id}/burndown", response_model=Burndown)
def sprint_burndown(sprint_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.sprints.burndown(caller, sprint_id))


@router.get("/sprints/{sprint_id}/stats", response_model=SprintStats)
def sprint_stats(sprint_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.sprints.stats(caller, sprint_id))


# =============================================================================
# Meetings
# =============================================================================


@router.post("/projects/{project_id}/meetings", response_model=Meeting, status_code=status.HTTP_201_CREATED)
def create_meeting(
    project_id: str,
    req: CreateMeetingRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.meetings.create_meeting(caller, project_id, **req.model_dump()))


@router.get("/projects/{project_id}/meetings", response_model=list[Meeting])
def list_meetings(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.meetings.list_meetings(caller, project_id))


@router.get("/meetings", response_model=list[Meeting])
def meeting_history(caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return wf.meetings.history(caller)


@router.get("/meetings/{meeting_id}", response_model=Meeting)
def get_meeting(meeting_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.meetings.get_meeting(caller, meeting_id))


@router.post("/meetings/{meeting_id}/join", response_model=Meeting)
def join_meeting(meeting_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.meetings.join(caller, meeting_id))


@router.patch("/meetings/{meeting_id}/status", response_model=Meeting)
def update_meeting_status(
    meeting_id: str,
    req: MeetingStatusRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.meetings.update_status(caller, meeting_id, req.status, req.notes, req.recording_link))


@router.delete("/meetings/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_meeting(meeting_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    unwrap(wf.meetings.delete_meeting(caller, meeting_id))


# =============================================================================
# Notifications
# =============================================================================


@router.get("/notifications", response_model=NotificationFeed)
def list_notifications(
    limit: int | None = None,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return wf.notifications.feed(caller, limit)


@router.get("/notifications/unread-count", response_model=CountResponse)
def unread_count(caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return CountResponse(count=wf.notifications.unread_count(caller))


@router.post("/notifications/read-all", response_model=CountResponse)
def mark_all_read(caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return CountResponse(count=unwrap(wf.notifications.mark_all_read(caller)))


@router.post("/notifications/{notification_id}/read", response_model=Notification)
def mark_read(notification_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.notifications.mark_read(caller, notification_id))


@router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    unwrap(wf.notifications.delete(caller, notification_id))


# =============================================================================
# Evaluations
# =============================================================================


@router.post("/rubrics", response_model=Rubric, status_code=status.HTTP_201_CREATED)
def create_global_rubric(
    req: CreateRubricRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    """Define a rubric offered to every project. Admin only."""
    return unwrap(wf.evaluations.create_rubric(caller, req.name, req.criteria))


@router.post("/projects/{project_id}/rubrics", response_model=Rubric, status_code=status.HTTP_201_CREATED)
def create_project_rubric(
    project_id: str,
    req: CreateRubricRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.evaluations.create_rubric(caller, req.name, req.criteria, project_id))


@router.get("/projects/{project_id}/rubrics", response_model=list[Rubric])
def list_rubrics(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.evaluations.list_rubrics(caller, project_id))


@router.post("/projects/{project_id}/evaluations", response_model=Evaluation, status_code=status.HTTP_201_CREATED)
def evaluate_project(
    project_id: str,
    req: EvaluateRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.evaluations.evaluate(caller, project_id, req.rubric_id, req.scores, req.comments, req.feedback))


@router.get("/projects/{project_id}/evaluations", response_model=list[Evaluation])
def list_evaluations(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.evaluations.list_evaluations(caller, project_id))


@router.post("/projects/{project_id}/feedback", response_model=list[Feedback], status_code=status.HTTP_201_CREATED)
def give_feedback(
    project_id: str,
    req: FeedbackRequest,
    caller: Caller = Depends(get_caller),
    wf: Workflow = Depends(get_workflow),
):
    return unwrap(wf.evaluations.give_feedback(caller, project_id, req.message, req.rating, req.recipient_id))


@router.get("/projects/{project_id}/feedback", response_model=list[Feedback])
def project_feedback(project_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.evaluations.feedback_for_project(caller, project_id))


@router.get("/users/{user_id}/feedback", response_model=list[Feedback])
def user_feedback(user_id: str, caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    return unwrap(wf.evaluations.feedback_for_user(caller, user_id))


# =============================================================================
# Maintenance
# =============================================================================


@router.post("/maintenance/sweep", response_model=SweepResponse)
def sweep(caller: Caller = Depends(get_caller), wf: Workflow = Depends(get_workflow)):
    """Run housekeeping now. Admin only."""
    if not caller.is_admin:
        raise error_response(DomainError.forbidden("auth.maintenance", "Only admins can run maintenance"))
    report = unwrap(wf.sweep())
    return SweepResponse(**report.model_dump())


# =============================================================================
# App Factory
# =============================================================================


def create_app(workflow: Workflow | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        workflow: A wired workflow engine. Built from the global config when omitted.
    """
    app = FastAPI(
        title="Nexus",
        description="Workflow engine for collaborative student projects",
        version=__version__,
    )
    app.state.workflow = workflow or build_workflow(get_global_config())

    # CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/")
    def root():
        return {"name": "Nexus", "version": __version__}

    return app
