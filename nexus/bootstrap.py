"""Composition root.

``build_workflow`` wires repositories, the lock registry, the event outbox,
the notification dispatcher and every application service around one
configuration and one clock.
"""

import logging
from dataclasses import dataclass

from nexus.application import (
    AccountService,
    Clock,
    EvaluationService,
    EventOutbox,
    FileStore,
    MeetingService,
    MilestoneService,
    NotificationDispatcher,
    NotificationService,
    ProjectService,
    SprintService,
    SweepReport,
    TaskService,
    TeamMembershipResolver,
    run_sweep,
    system_clock,
)
from nexus.config import WorkflowConfig
from nexus.domain.shared import DomainError, Err, Result
from nexus.infrastructure import (
    Collection,
    EvaluationRepository,
    FeedbackRepository,
    GitHubClient,
    JsonStorage,
    KeyedLocks,
    LocalFileStore,
    MeetingRepository,
    MemoryFileStore,
    MilestoneRepository,
    NotificationRepository,
    ProjectRepository,
    RubricRepository,
    SprintRepository,
    TaskRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


class StorageLoadError(RuntimeError):
    """Persisted state could not be loaded at startup."""


@dataclass
class Workflow:
    """Every wired component of one workflow engine instance."""

    config: WorkflowConfig
    clock: Clock
    outbox: EventOutbox
    locks: KeyedLocks
    # Repositories
    users_repo: UserRepository
    projects_repo: ProjectRepository
    milestones_repo: MilestoneRepository
    tasks_repo: TaskRepository
    sprints_repo: SprintRepository
    meetings_repo: MeetingRepository
    notifications_repo: NotificationRepository
    rubrics_repo: RubricRepository
    evaluations_repo: EvaluationRepository
    feedback_repo: FeedbackRepository
    # Services
    dispatcher: NotificationDispatcher
    accounts: AccountService
    team: TeamMembershipResolver
    projects: ProjectService
    milestones: MilestoneService
    tasks: TaskService
    sprints: SprintService
    meetings: MeetingService
    notifications: NotificationService
    evaluations: EvaluationService

    def sweep(self) -> Result[SweepReport, DomainError]:
        """Purge expired notifications, archive elapsed meetings and escalate due tasks."""
        return run_sweep(self.notifications, self.meetings, self.tasks)


def build_workflow(
    config: WorkflowConfig | None = None,
    clock: Clock | None = None,
    files: FileStore | None = None,
    github: GitHubClient | None = None,
) -> Workflow:
    """Build a workflow engine.

    Args:
        config: Settings; defaults keep everything in memory.
        clock: Time source; defaults to the system UTC clock.
        files: Screenshot store; defaults to disk under ``data_dir`` or memory.
        github: Source-hosting client; built from the config when omitted.

    Raises:
        StorageLoadError: If a persisted collection cannot be read.
    """
    config = config or WorkflowConfig()
    clock = clock or system_clock
    storage = JsonStorage()
    data_dir = config.data_dir

    users = UserRepository(data_dir, storage)
    projects = ProjectRepository(data_dir, storage)
    milestones = MilestoneRepository(data_dir, storage)
    tasks = TaskRepository(data_dir, storage)
    sprints = SprintRepository(data_dir, storage)
    meetings = MeetingRepository(data_dir, storage)
    notifications = NotificationRepository(data_dir, storage)
    rubrics = RubricRepository(data_dir, storage)
    evaluations = EvaluationRepository(data_dir, storage)
    feedback = FeedbackRepository(data_dir, storage)

    collections: list[Collection] = [
        users,
        projects,
        milestones,
        tasks,
        sprints,
        meetings,
        notifications,
        rubrics,
        evaluations,
        feedback,
    ]
    for collection in collections:
        loaded = collection.load()
        if isinstance(loaded, Err):
            raise StorageLoadError(str(loaded.error))

    if files is None:
        upload_dir = config.upload_dir
        files = LocalFileStore(upload_dir) if upload_dir is not None else MemoryFileStore()
    if github is None:
        github = GitHubClient(token=config.github_token, base_url=config.github_api_url)

    locks = KeyedLocks()
    outbox = EventOutbox()
    dispatcher = NotificationDispatcher(notifications, clock, config)
    dispatcher.register(outbox)

    team = TeamMembershipResolver(projects, users, locks, outbox, clock)
    workflow = Workflow(
        config=config,
        clock=clock,
        outbox=outbox,
        locks=locks,
        users_repo=users,
        projects_repo=projects,
        milestones_repo=milestones,
        tasks_repo=tasks,
        sprints_repo=sprints,
        meetings_repo=meetings,
        notifications_repo=notifications,
        rubrics_repo=rubrics,
        evaluations_repo=evaluations,
        feedback_repo=feedback,
        dispatcher=dispatcher,
        accounts=AccountService(users, team),
        team=team,
        projects=ProjectService(projects, users, milestones, tasks, locks, outbox, clock, github),
        milestones=MilestoneService(milestones, projects, tasks, locks, outbox, clock, config),
        tasks=TaskService(tasks, projects, users, sprints, milestones, files, outbox, clock, config),
        sprints=SprintService(sprints, projects, tasks, clock),
        meetings=MeetingService(meetings, projects, users, locks, outbox, clock),
        notifications=NotificationService(notifications, clock, config),
        evaluations=EvaluationService(rubrics, evaluations, feedback, projects, outbox, clock),
    )
    logger.debug(f"Workflow built ({'in memory' if data_dir is None else data_dir})")
    return workflow
