"""GitHub REST client for repository activity.

Read-only: commits, branches, pull requests and contributors of the
repository a project designates as canonical.
"""

import logging
from datetime import datetime
from typing import Any

import httpx
from pydantic import BaseModel

from nexus.domain.shared import DomainError, Err, Ok, Result
from nexus.domain.types import RepositoryLink

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


class CommitInfo(BaseModel):
    sha: str
    message: str
    author: str
    authored_at: datetime | None = None
    url: str = ""


class BranchInfo(BaseModel):
    name: str
    sha: str
    protected: bool = False


class PullRequestInfo(BaseModel):
    number: int
    title: str
    state: str
    author: str
    url: str = ""
    created_at: datetime | None = None
    merged_at: datetime | None = None


class ContributorInfo(BaseModel):
    login: str
    contributions: int


class RepositoryActivity(BaseModel):
    """Snapshot of a repository's recent activity."""

    repository: str
    commits: list[CommitInfo]
    branches: list[BranchInfo]
    pull_requests: list[PullRequestInfo]
    contributors: list[ContributorInfo]


class GitHubClient:
    """Interact with the GitHub REST API.

    Args:
        token: Optional access token. Anonymous requests are rate limited.
        base_url: API root, overridable for GitHub Enterprise.
        transport: Optional httpx transport, used by tests.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = GITHUB_API_URL,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, headers=headers, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Result[Any, DomainError]:
        try:
            response = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"GitHub request {path} failed: {e}")
            return Err(DomainError.unavailable("github.unreachable", f"Could not reach GitHub: {e}"))

        if response.status_code == 404:
            return Err(DomainError.not_found("github.repository_not_found", f"GitHub returned 404 for {path}"))
        if response.status_code != 200:
            return Err(
                DomainError.unavailable("github.error", f"GitHub returned HTTP {response.status_code} for {path}")
            )
        return Ok(response.json())

    @staticmethod
    def _split(link: RepositoryLink | str) -> Result[tuple[str, str], DomainError]:
        repo = link if isinstance(link, RepositoryLink) else RepositoryLink(link)
        parts = repo.owner_and_name()
        if parts is None:
            return Err(DomainError.validation("github.bad_link", f"Not a repository link: {repo}"))
        return Ok(parts)

    def list_commits(self, link: RepositoryLink | str, limit: int = 30) -> Result[list[CommitInfo], DomainError]:
        split = self._split(link)
        if isinstance(split, Err):
            return split
        owner, name = split.value
        result = self._get(f"/repos/{owner}/{name}/commits", params={"per_page": limit})
        if isinstance(result, Err):
            return result
        commits = []
        for item in result.value:
            commit = item.get("commit", {})
            author = commit.get("author") or {}
            login = (item.get("author") or {}).get("login")
            commits.append(
                CommitInfo(
                    sha=item.get("sha", ""),
                    message=commit.get("message", ""),
                    author=login or author.get("name", ""),
                    authored_at=author.get("date"),
                    url=item.get("html_url", ""),
                )
            )
        return Ok(commits)

    def list_branches(self, link: RepositoryLink | str) -> Result[list[BranchInfo], DomainError]:
        split = self._split(link)
        if isinstance(split, Err):
            return split
        owner, name = split.value
        result = self._get(f"/repos/{owner}/{name}/branches")
        if isinstance(result, Err):
            return result
        return Ok(
            [
                BranchInfo(
                    name=item.get("name", ""),
                    sha=(item.get("commit") or {}).get("sha", ""),
                    protected=bool(item.get("protected", False)),
                )
                for item in result.value
            ]
        )

    def list_pull_requests(
        self, link: RepositoryLink | str, state: str = "all"
    ) -> Result[list[PullRequestInfo], DomainError]:
        split = self._split(link)
        if isinstance(split, Err):
            return split
        owner, name = split.value
        result = self._get(f"/repos/{owner}/{name}/pulls", params={"state": state})
        if isinstance(result, Err):
            return result
        return Ok(
            [
                PullRequestInfo(
                    number=item.get("number", 0),
                    title=item.get("title", ""),
                    state=item.get("state", ""),
                    author=(item.get("user") or {}).get("login", ""),
                    url=item.get("html_url", ""),
                    created_at=item.get("created_at"),
                    merged_at=item.get("merged_at"),
                )
                for item in result.value
            ]
        )

    def list_contributors(self, link: RepositoryLink | str) -> Result[list[ContributorInfo], DomainError]:
        split = self._split(link)
        if isinstance(split, Err):
            return split
        owner, name = split.value
        result = self._get(f"/repos/{owner}/{name}/contributors")
        if isinstance(result, Err):
            return result
        return Ok(
            [
                ContributorInfo(login=item.get("login", ""), contributions=item.get("contributions", 0))
                for item in result.value
            ]
        )

    def activity(self, link: RepositoryLink | str) -> Result[RepositoryActivity, DomainError]:
        """Fetch commits, branches, pull requests and contributors in one go.

        Returns:
            Ok(RepositoryActivity), or the first error encountered.
        """
        commits = self.list_commits(link)
        if isinstance(commits, Err):
            return commits
        branches = self.list_branches(link)
        if isinstance(branches, Err):
            return branches
        pulls = self.list_pull_requests(link)
        if isinstance(pulls, Err):
            return pulls
        contributors = self.list_contributors(link)
        if isinstance(contributors, Err):
            return contributors
        return Ok(
            RepositoryActivity(
                repository=str(link),
                commits=commits.value,
                branches=branches.value,
                pull_requests=pulls.value,
                contributors=contributors.value,
            )
        )
