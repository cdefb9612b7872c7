"""Source-hosting integration."""

from nexus.infrastructure.github.client import (
    BranchInfo,
    CommitInfo,
    ContributorInfo,
    GitHubClient,
    PullRequestInfo,
    RepositoryActivity,
)

__all__ = [
    "GitHubClient",
    "RepositoryActivity",
    "CommitInfo",
    "BranchInfo",
    "PullRequestInfo",
    "ContributorInfo",
]
