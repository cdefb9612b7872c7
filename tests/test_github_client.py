"""Tests for the GitHub REST client."""

import httpx
import pytest

from nexus.domain.shared import ErrorCode
from nexus.infrastructure.github import GitHubClient
from tests.helpers import err, ok

REPO = "https://github.com/team/campus-map"

PAYLOADS = {
    "/repos/team/campus-map/commits": [
        {
            "sha": "abc123",
            "html_url": "https://github.com/team/campus-map/commit/abc123",
            "author": {"login": "kim"},
            "commit": {"message": "Add tiles", "author": {"name": "Kim", "date": "2026-03-01T10:00:00Z"}},
        }
    ],
    "/repos/team/campus-map/branches": [{"name": "main", "commit": {"sha": "abc123"}, "protected": True}],
    "/repos/team/campus-map/pulls": [
        {"number": 7, "title": "Legend", "state": "open", "user": {"login": "sam"}, "created_at": "2026-03-01T12:00:00Z"}
    ],
    "/repos/team/campus-map/contributors": [{"login": "kim", "contributions": 12}],
}


def github(handler) -> GitHubClient:
    return GitHubClient(token="secret", transport=httpx.MockTransport(handler))


@pytest.fixture
def seen():
    return []


@pytest.fixture
def client(seen):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        payload = PAYLOADS.get(request.url.path)
        if payload is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json=payload)

    return github(handler)


class TestActivity:
    def test_collects_everything(self, client):
        activity = ok(client.activity(REPO))
        assert activity.commits[0].author == "kim"
        assert activity.commits[0].message == "Add tiles"
        assert activity.branches[0].protected
        assert activity.pull_requests[0].number == 7
        assert activity.contributors[0].contributions == 12

    def test_sends_token_and_accept_header(self, client, seen):
        ok(client.list_branches(REPO))
        assert seen[0].headers["Authorization"] == "Bearer secret"
        assert seen[0].headers["Accept"] == "application/vnd.github+json"

    def test_git_suffix_and_trailing_slash(self, client):
        branches = ok(client.list_branches("https://github.com/Team/Campus-Map.git/"))
        assert [b.name for b in branches] == ["main"]


class TestFailures:
    def test_missing_repository(self, client):
        err(client.list_commits("https://github.com/team/gone"), ErrorCode.NOT_FOUND, "github.repository_not_found")

    def test_server_error(self):
        client = github(lambda request: httpx.Response(500))
        err(client.activity(REPO), ErrorCode.UNAVAILABLE, "github.error")

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        err(github(handler).list_contributors(REPO), ErrorCode.UNAVAILABLE, "github.unreachable")

    def test_bad_link_is_not_requested(self, client, seen):
        err(client.list_commits("https://github.com/only-owner"), ErrorCode.VALIDATION, "github.bad_link")
        assert seen == []
