"""Tests for the project aggregate: lifecycle, summary and repository activity."""

import httpx

from nexus.bootstrap import build_workflow
from nexus.domain.notification import NotificationType
from nexus.domain.project import ProjectStatus
from nexus.domain.shared import ErrorCode
from nexus.domain.types import Role
from nexus.infrastructure.github import GitHubClient
from tests.conftest import REPO_URL, as_caller
from tests.helpers import err, ok


class TestCreateAndAdopt:
    def test_student_creator_owns(self, workflow, people):
        project = ok(workflow.projects.create_project(people.owner, "Study Buddy"))
        assert project.owner_id == people.owner.user_id
        assert project.mentor_id is None
        assert project.status == ProjectStatus.PLANNING

    def test_mentor_creator_mentors(self, workflow, people):
        project = ok(workflow.projects.create_project(people.mentor, "Study Buddy"))
        assert project.mentor_id == people.mentor.user_id
        assert project.owner_id is None

    def test_repository_link_must_name_a_repository(self, workflow, people):
        result = workflow.projects.create_project(people.owner, "Study Buddy", repository_url="https://github.com/only")
        err(result, ErrorCode.VALIDATION, "project.invalid_repository")

    def test_adoption_starts_the_project(self, workflow, people):
        project = ok(workflow.projects.create_project(people.mentor, "Study Buddy"))
        adopted = ok(workflow.projects.adopt_project(people.outsider, project.id))
        assert adopted.owner_id == people.outsider.user_id
        assert adopted.status == ProjectStatus.IN_PROGRESS

    def test_owned_project_cannot_be_adopted(self, workflow, people, project):
        err(workflow.projects.adopt_project(people.outsider, project.id), ErrorCode.CONFLICT, "project.already_owned")

    def test_mentors_cannot_adopt(self, workflow, people):
        project = ok(workflow.projects.create_project(people.mentor, "Study Buddy"))
        err(workflow.projects.adopt_project(people.other_mentor, project.id), ErrorCode.FORBIDDEN)


class TestMentorAndSettings:
    def test_assigned_mentor_is_notified(self, workflow, people, project):
        types = [n.type for n in workflow.notifications.feed(people.mentor).items]
        assert NotificationType.TEAM_INVITED in types

    def test_assignee_must_be_a_mentor(self, workflow, people, project):
        result = workflow.projects.assign_mentor(people.admin, project.id, people.outsider.user_id)
        err(result, ErrorCode.VALIDATION, "project.not_a_mentor")

    def test_members_cannot_assign_mentor(self, workflow, people, project):
        result = workflow.projects.assign_mentor(people.member, project.id, people.other_mentor.user_id)
        err(result, ErrorCode.FORBIDDEN, "auth.assign_mentor")

    def test_status_update(self, workflow, people, project):
        updated = ok(workflow.projects.update_status(people.mentor, project.id, ProjectStatus.APP_COMPLETE))
        assert updated.status == ProjectStatus.APP_COMPLETE
        err(workflow.projects.update_status(people.member, project.id, ProjectStatus.COMPLETED), ErrorCode.FORBIDDEN)

    def test_clear_repository(self, workflow, people, project):
        assert ok(workflow.projects.set_repository(people.owner, project.id, None)).repository_url is None

    def test_only_reviewers_toggle_task_review(self, workflow, people, project):
        err(workflow.projects.set_task_review(people.owner, project.id, False), ErrorCode.FORBIDDEN)
        assert not ok(workflow.projects.set_task_review(people.admin, project.id, False)).enforce_task_review


class TestSos:
    def test_raising_sos_alerts_mentor(self, workflow, people, project):
        flagged = ok(workflow.projects.toggle_sos(people.member, project.id))
        assert flagged.is_stuck
        types = [n.type for n in workflow.notifications.feed(people.mentor).items]
        assert NotificationType.PROJECT_SOS in types

    def test_toggle_clears(self, workflow, people, project):
        ok(workflow.projects.toggle_sos(people.member, project.id))
        assert not ok(workflow.projects.toggle_sos(people.owner, project.id)).is_stuck


class TestSummary:
    def test_progress_counts_approved_top_level_milestones(self, workflow, people, project):
        first = ok(workflow.milestones.create_milestone(people.mentor, project.id, "Prototype", submilestones=2))
        ok(workflow.milestones.create_milestone(people.mentor, project.id, "Launch"))
        submitted = ok(workflow.milestones.submit(people.owner, first.id, REPO_URL, "Done"))
        ok(workflow.milestones.approve(people.mentor, submitted.id))
        ok(workflow.team.add_member(people.owner, project.id, "pending@uni.edu"))

        summary = ok(workflow.projects.get_summary(people.member, project.id))

        assert (summary.approved_milestones, summary.total_milestones) == (1, 2)
        assert summary.progress_percent == 50
        assert summary.team_size == 1
        assert summary.pending_invitations == 1

    def test_empty_project(self, workflow, people, project):
        assert ok(workflow.projects.get_summary(people.owner, project.id)).progress_percent == 0

    def test_listing_is_scoped_to_participation(self, workflow, people, project):
        assert [p.id for p in workflow.projects.list_projects(people.member)] == [project.id]
        assert workflow.projects.list_projects(people.outsider) == []
        assert [p.id for p in workflow.projects.list_projects(people.admin)] == [project.id]


class TestRepositoryActivity:
    def test_fetches_from_the_canonical_repository(self, config, clock, files):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json=[])

        github = GitHubClient(transport=httpx.MockTransport(handler))
        workflow = build_workflow(config, clock=clock, files=files, github=github)
        owner = as_caller(ok(workflow.accounts.register("Sam Owner", "sam@uni.edu", Role.STUDENT)))
        project = ok(workflow.projects.create_project(owner, "Campus Map", repository_url=REPO_URL))

        activity = ok(workflow.projects.repository_activity(owner, project.id))

        assert activity.repository == REPO_URL
        assert "/repos/team/campus-map/commits" in paths

    def test_project_without_repository(self, workflow, people):
        project = ok(workflow.projects.create_project(people.owner, "Study Buddy"))
        err(workflow.projects.repository_activity(people.owner, project.id), ErrorCode.VALIDATION, "project.no_repository")
