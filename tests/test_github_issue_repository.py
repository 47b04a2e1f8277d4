"""Tests for the GitHub-backed issue repository."""

import pytest

from meridian.core.enums import Priority, SortDirection, Status
from meridian.core.errors import AuthorizationError, NotFoundError
from meridian.core.issue import IssueCreate, IssueFilter, IssueUpdate
from meridian.core.milestone import MilestoneCreate
from meridian.core.primitives import PaginationParams, SortOptions, Tag
from meridian.github import GitHubIssueRepository, GitHubNumberResolver
from meridian.github.deterministic_id import issue_id


def label_names(github_issue):
    return [label["name"] for label in github_issue["labels"]]


class TestCreate:
    async def test_create_maps_labels_and_identity(self, fake_github, issue_repo):
        issue = await issue_repo.create(
            IssueCreate(
                title="Widget explodes",
                description="Boom",
                priority=Priority.HIGH,
                tags=[Tag(name="bug")],
            )
        )
        assert issue.id == issue_id("acme", "widgets", 1)
        assert issue.priority == Priority.HIGH
        assert [tag.name for tag in issue.tags] == ["bug"]
        assert issue.metadata["github_number"] == 1
        assert label_names(fake_github.issues[1]) == ["priority:high", "bug"]

    async def test_create_closed_follows_up_with_state(self, fake_github, issue_repo):
        issue = await issue_repo.create(IssueCreate(title="Done already", status=Status.CLOSED))
        assert issue.status == Status.CLOSED
        assert fake_github.issues[1]["state"] == "closed"

    async def test_create_with_milestone(self, fake_github, issue_repo, milestone_repo):
        milestone = await milestone_repo.create(MilestoneCreate(name="v1"))
        issue = await issue_repo.create(IssueCreate(title="Planned", milestone_id=milestone.id))
        assert issue.milestone_id == milestone.id
        assert fake_github.issues[1]["milestone"]["number"] == 1

    async def test_create_with_parent_uses_sub_issues(self, fake_github, issue_repo):
        parent = await issue_repo.create(IssueCreate(title="Epic"))
        child = await issue_repo.create(IssueCreate(title="Task", parent_id=parent.id))

        assert child.parent_id == parent.id
        assert fake_github.sub_issues[1] == [2]
        assert fake_github.issues[2]["body"] is None

    async def test_create_with_parent_falls_back_to_marker(self, fake_github, issue_repo):
        fake_github.sub_issues_enabled = False
        parent = await issue_repo.create(IssueCreate(title="Epic"))
        child = await issue_repo.create(IssueCreate(title="Task", description="Do it", parent_id=parent.id))

        assert child.parent_id == parent.id
        assert child.description == "Do it"
        assert fake_github.issues[2]["body"] == "Do it\n<!-- meridian:parent=acme/widgets#1 -->"

        fetched = await issue_repo.get_by_id(child.id)
        assert fetched.parent_id == parent.id

    async def test_create_with_unknown_parent(self, issue_repo):
        with pytest.raises(NotFoundError):
            await issue_repo.create(IssueCreate(title="Orphan", parent_id="nope"))

    async def test_create_maps_auth_failure(self, fake_github, issue_repo):
        fake_github.fail("POST", "/repos/acme/widgets/issues", 401, {"message": "Bad credentials"})
        with pytest.raises(AuthorizationError):
            await issue_repo.create(IssueCreate(title="Nope"))


class TestRead:
    async def test_get_by_id_with_fresh_resolver(self, fake_github, github_client, config):
        fake_github.add_issue("Existing", body="text", labels=["status:in-progress"])
        repo = GitHubIssueRepository(github_client, config)
        issue = await repo.get_by_id(issue_id("acme", "widgets", 1))
        assert issue.title == "Existing"
        assert issue.status == Status.IN_PROGRESS

    async def test_get_native_parent(self, fake_github, issue_repo):
        fake_github.add_issue("Epic")
        fake_github.add_issue("Task")
        fake_github.sub_issues[1] = [2]
        issue = await issue_repo.get_by_id(issue_id("acme", "widgets", 2))
        assert issue.parent_id == issue_id("acme", "widgets", 1)

    async def test_get_unknown_id(self, issue_repo):
        with pytest.raises(NotFoundError):
            await issue_repo.get_by_id("does-not-exist")

    async def test_issue_removed_on_github_is_tombstoned(self, fake_github, issue_repo):
        created = await issue_repo.create(IssueCreate(title="Soon gone"))
        del fake_github.issues[1]
        with pytest.raises(NotFoundError):
            await issue_repo.get_by_id(created.id)
        assert issue_repo.resolver.cache.is_issue_deleted(created.id)


class TestUpdate:
    async def test_update_priority_keeps_tags(self, fake_github, issue_repo):
        created = await issue_repo.create(
            IssueCreate(title="T", priority=Priority.LOW, tags=[Tag(name="bug")])
        )
        updated = await issue_repo.update(created.id, IssueUpdate(priority=Priority.URGENT))
        assert updated.priority == Priority.URGENT
        assert [tag.name for tag in updated.tags] == ["bug"]
        assert sorted(label_names(fake_github.issues[1])) == ["bug", "priority:urgent"]

    async def test_update_status(self, fake_github, issue_repo):
        created = await issue_repo.create(IssueCreate(title="T"))
        in_progress = await issue_repo.update(created.id, IssueUpdate(status=Status.IN_PROGRESS))
        assert in_progress.status == Status.IN_PROGRESS

        closed = await issue_repo.update(created.id, IssueUpdate(status=Status.CLOSED))
        assert closed.status == Status.CLOSED
        assert fake_github.issues[1]["state"] == "closed"
        assert "status:in-progress" not in label_names(fake_github.issues[1])

    async def test_update_description_keeps_markers(self, fake_github, issue_repo):
        fake_github.add_issue("T", body="old\n<!-- meridian:relates-to=acme/widgets#9 -->")
        target = issue_id("acme", "widgets", 1)
        updated = await issue_repo.update(target, IssueUpdate(description="new"))
        assert updated.description == "new"
        assert fake_github.issues[1]["body"] == "new\n<!-- meridian:relates-to=acme/widgets#9 -->"

    async def test_reparent_and_clear_parent(self, fake_github, issue_repo):
        first = await issue_repo.create(IssueCreate(title="Epic A"))
        second = await issue_repo.create(IssueCreate(title="Epic B"))
        child = await issue_repo.create(IssueCreate(title="Task", parent_id=first.id))

        moved = await issue_repo.update(child.id, IssueUpdate(parent_id=second.id))
        assert moved.parent_id == second.id
        assert fake_github.sub_issues[1] == []
        assert fake_github.sub_issues[2] == [3]

        cleared = await issue_repo.update(child.id, IssueUpdate(parent_id=None))
        assert cleared.parent_id is None
        assert fake_github.sub_issues[2] == []

    async def test_clear_marker_parent(self, fake_github, issue_repo):
        fake_github.sub_issues_enabled = False
        parent = await issue_repo.create(IssueCreate(title="Epic"))
        child = await issue_repo.create(IssueCreate(title="Task", description="Do it", parent_id=parent.id))

        cleared = await issue_repo.update(child.id, IssueUpdate(parent_id=None))

        assert cleared.parent_id is None
        assert fake_github.issues[2]["body"] == "Do it"
        assert (await issue_repo.get_by_id(child.id)).parent_id is None

    async def test_reparent_falls_back_to_marker(self, fake_github, issue_repo):
        fake_github.sub_issues_enabled = False
        first = await issue_repo.create(IssueCreate(title="Epic A"))
        second = await issue_repo.create(IssueCreate(title="Epic B"))
        child = await issue_repo.create(IssueCreate(title="Task", description="Do it", parent_id=first.id))

        moved = await issue_repo.update(child.id, IssueUpdate(parent_id=second.id))

        assert moved.parent_id == second.id
        assert fake_github.issues[3]["body"] == "Do it\n<!-- meridian:parent=acme/widgets#2 -->"
        assert (await issue_repo.get_by_id(child.id)).parent_id == second.id

    async def test_reparent_with_description_keeps_other_markers(self, fake_github, issue_repo):
        fake_github.sub_issues_enabled = False
        fake_github.add_issue("Epic")
        fake_github.add_issue(
            "Task",
            body="old\n<!-- meridian:relates-to=acme/widgets#9 -->\n<!-- meridian:parent=acme/widgets#1 -->",
        )

        updated = await issue_repo.update(
            issue_id("acme", "widgets", 2), IssueUpdate(description="new", parent_id=None)
        )

        assert updated.parent_id is None
        assert updated.description == "new"
        assert fake_github.issues[2]["body"] == "new\n<!-- meridian:relates-to=acme/widgets#9 -->"

    async def test_update_unknown(self, issue_repo):
        with pytest.raises(NotFoundError):
            await issue_repo.update("nope", IssueUpdate(title="x"))


class TestDelete:
    async def test_delete_closes_labels_and_hides(self, fake_github, issue_repo):
        created = await issue_repo.create(IssueCreate(title="Bye", tags=[Tag(name="bug")]))
        await issue_repo.delete(created.id)

        assert fake_github.issues[1]["state"] == "closed"
        assert sorted(label_names(fake_github.issues[1])) == ["bug", "deleted"]
        with pytest.raises(NotFoundError):
            await issue_repo.get_by_id(created.id)

        result = await issue_repo.list(IssueFilter(), PaginationParams())
        assert result.items == []

    async def test_deleted_issue_stays_hidden_for_new_sessions(self, fake_github, issue_repo, github_client, config):
        created = await issue_repo.create(IssueCreate(title="Bye"))
        await issue_repo.delete(created.id)

        fresh = GitHubIssueRepository(github_client, config, GitHubNumberResolver(github_client, config))
        with pytest.raises(NotFoundError):
            await fresh.get_by_id(created.id)

    async def test_delete_unknown(self, issue_repo):
        with pytest.raises(NotFoundError):
            await issue_repo.delete("nope")


class TestList:
    @pytest.fixture
    def seeded(self, fake_github):
        fake_github.add_issue("Alpha bug", body="crash on start", labels=["priority:high"])
        fake_github.add_issue("Beta", labels=["status:in-progress"])
        fake_github.add_issue("Gamma", state="closed")
        fake_github.add_issue("A pull request", pull_request=True)
        return fake_github

    async def test_list_all_skips_pull_requests(self, seeded, issue_repo):
        result = await issue_repo.list(IssueFilter(), PaginationParams())
        assert sorted(issue.title for issue in result.items) == ["Alpha bug", "Beta", "Gamma"]

    async def test_status_filters(self, seeded, issue_repo):
        closed = await issue_repo.list(IssueFilter(status=Status.CLOSED), PaginationParams())
        assert [issue.title for issue in closed.items] == ["Gamma"]

        open_ = await issue_repo.list(IssueFilter(status=Status.OPEN), PaginationParams())
        assert [issue.title for issue in open_.items] == ["Alpha bug"]

        in_progress = await issue_repo.list(IssueFilter(status=Status.IN_PROGRESS), PaginationParams())
        assert [issue.title for issue in in_progress.items] == ["Beta"]
        list_call = [c for c in seeded.calls if c[1] == "/repos/acme/widgets/issues"][-1]
        assert list_call[2]["labels"] == "status:in-progress"

    async def test_priority_filter(self, seeded, issue_repo):
        result = await issue_repo.list(IssueFilter(priority=Priority.HIGH), PaginationParams())
        assert [issue.title for issue in result.items] == ["Alpha bug"]

    async def test_search_uses_search_api(self, seeded, issue_repo):
        result = await issue_repo.list(IssueFilter(search="crash"), PaginationParams())
        assert [issue.title for issue in result.items] == ["Alpha bug"]
        assert result.total == 1
        search_call = [c for c in seeded.calls if c[1] == "/search/issues"][0]
        assert "repo:acme/widgets" in search_call[2]["q"]
        assert "is:issue" in search_call[2]["q"]

    async def test_sort_and_pagination(self, seeded, issue_repo):
        first = await issue_repo.list(
            IssueFilter(),
            PaginationParams(page=1, limit=2),
            SortOptions(field="created_at", direction=SortDirection.ASC),
        )
        assert [issue.title for issue in first.items] == ["Alpha bug", "Beta"]
        assert first.has_more
        assert first.total == 4

        list_call = [c for c in seeded.calls if c[1] == "/repos/acme/widgets/issues"][-1]
        assert list_call[2]["sort"] == "created"
        assert list_call[2]["direction"] == "asc"

    async def test_unknown_milestone_yields_empty_page(self, seeded, issue_repo):
        result = await issue_repo.list(IssueFilter(milestone_id="nope"), PaginationParams())
        assert result.items == []
        assert result.total == 0
