"""Infrastructure layer for Nexus.

This module provides clean interfaces for I/O operations, wrapping
file storage, uploads and the source-hosting API with Result monads for
explicit error handling.

Exports:
    Storage:
        - JsonStorage: Low-level JSON file I/O
        - Collection: Versioned compare-and-swap entity collection
        - *Repository: One collection per workflow entity
        - KeyedLocks: Per-key exclusive sections
        - LocalFileStore / MemoryFileStore: Screenshot stores

    GitHub:
        - GitHubClient: Commits, branches, pull requests, contributors
"""

from nexus.infrastructure.github import GitHubClient, RepositoryActivity
from nexus.infrastructure.storage import (
    Collection,
    EvaluationRepository,
    FeedbackRepository,
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

__all__ = [
    # Storage
    "JsonStorage",
    "Collection",
    "KeyedLocks",
    "LocalFileStore",
    "MemoryFileStore",
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
    # GitHub
    "GitHubClient",
    "RepositoryActivity",
]
