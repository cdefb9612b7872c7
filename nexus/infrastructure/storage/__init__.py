"""Storage infrastructure for Nexus.

Provides persistence layer implementations for workflow entities,
using Result monads for explicit error handling.
"""

from nexus.infrastructure.storage.files import LocalFileStore, MemoryFileStore
from nexus.infrastructure.storage.json_storage import JsonStorage
from nexus.infrastructure.storage.locks import KeyedLocks
from nexus.infrastructure.storage.repositories import (
    Collection,
    EvaluationRepository,
    FeedbackRepository,
    MeetingRepository,
    MilestoneRepository,
    NotificationRepository,
    ProjectRepository,
    RubricRepository,
    SprintRepository,
    TaskRepository,
    UserRepository,
)

__all__ = [
    "JsonStorage",
    "KeyedLocks",
    "LocalFileStore",
    "MemoryFileStore",
    # Repositories
    "Collection",
    "UserRepository",
    "ProjectRepository",
    "MilestoneRepository",
    "TaskRepository",
    "SprintRepository",
    "MeetingRepository",
    "NotificationRepository",
    "RubricRepository",
    "EvaluationRepository",
    "FeedbackRepository",
]
