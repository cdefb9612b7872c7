"""Shared fixtures: a fixed clock, an in-memory workflow and a seeded project."""

from types import SimpleNamespace

import pytest

from nexus.bootstrap import build_workflow
from nexus.config import WorkflowConfig
from nexus.domain.types import Caller, Role
from nexus.infrastructure.storage import MemoryFileStore
from tests.helpers import FixedClock, ok

REPO_URL = "https://github.com/team/campus-map"


def as_caller(user) -> Caller:
    return Caller(user_id=user.id, role=user.role, email=user.email)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def files():
    return MemoryFileStore()


@pytest.fixture
def config():
    return WorkflowConfig()


@pytest.fixture
def workflow(config, clock, files):
    return build_workflow(config, clock=clock, files=files)


@pytest.fixture
def people(workflow):
    """Registered accounts: an admin, two mentors and three students."""

    def register(name: str, email: str, role: Role) -> Caller:
        return as_caller(ok(workflow.accounts.register(name, email, role)))

    return SimpleNamespace(
        admin=register("Ada Admin", "admin@uni.edu", Role.ADMIN),
        mentor=register("Maya Mentor", "maya@uni.edu", Role.MENTOR),
        other_mentor=register("Omar Mentor", "omar@uni.edu", Role.MENTOR),
        owner=register("Sam Owner", "sam@uni.edu", Role.STUDENT),
        member=register("Kim Member", "kim@uni.edu", Role.STUDENT),
        outsider=register("Olu Outsider", "olu@uni.edu", Role.STUDENT),
    )


@pytest.fixture
def project(workflow, people):
    """A project owned by ``people.owner``, mentored by ``people.mentor``, with ``people.member`` joined."""
    created = ok(workflow.projects.create_project(people.owner, "Campus Map", "Indoor navigation", REPO_URL))
    ok(workflow.projects.assign_mentor(people.admin, created.id, people.mentor.user_id))
    ok(workflow.team.add_member(people.owner, created.id, people.member.email))
    return ok(workflow.projects_repo.get(created.id))
