"""Tests for the GitHub-backed comment and milestone repositories."""

from datetime import datetime, timezone

import pytest

from meridian.core.comment import CommentCreate, CommentUpdate
from meridian.core.enums import MilestoneStatus, SortDirection
from meridian.core.errors import NotFoundError
from meridian.core.milestone import MilestoneCreate, MilestoneUpdate
from meridian.core.primitives import PaginationParams, SortOptions
from meridian.github import GitHubCommentRepository, GitHubMilestoneRepository
from meridian.github.deterministic_id import issue_id


@pytest.fixture
def one_issue(fake_github):
    fake_github.add_issue("one")
    return issue_id("acme", "widgets", 1)


class TestComments:
    async def test_create_and_list(self, fake_github, comment_repo, one_issue):
        created = await comment_repo.create(
            CommentCreate(body="First!", author_id="someone", issue_id=one_issue)
        )
        await comment_repo.create(CommentCreate(body="Second", author_id="someone", issue_id=one_issue))

        assert created.issue_id == one_issue
        assert created.body == "First!"

        page = await comment_repo.find_by_issue_id(one_issue, PaginationParams(page=1, limit=1))
        assert [c.body for c in page.items] == ["First!"]
        assert page.total == 2
        assert page.has_more

    async def test_get_with_fresh_session(self, fake_github, github_client, config, comment_repo, one_issue):
        created = await comment_repo.create(CommentCreate(body="hello", author_id="x", issue_id=one_issue))

        fresh = GitHubCommentRepository(github_client, config)
        fetched = await fresh.get_by_id(created.id)
        assert fetched.id == created.id
        assert fetched.issue_id == one_issue

    async def test_update_and_delete(self, fake_github, comment_repo, one_issue):
        created = await comment_repo.create(CommentCreate(body="typo", author_id="x", issue_id=one_issue))

        updated = await comment_repo.update(created.id, CommentUpdate(body="fixed"))
        assert updated.body == "fixed"

        await comment_repo.delete(created.id)
        assert fake_github.comments == {}
        with pytest.raises(NotFoundError):
            await comment_repo.get_by_id(created.id)

    async def test_comment_on_unknown_issue(self, comment_repo):
        with pytest.raises(NotFoundError):
            await comment_repo.create(CommentCreate(body="x", author_id="x", issue_id="missing"))

    async def test_comment_removed_on_github(self, fake_github, comment_repo, one_issue):
        created = await comment_repo.create(CommentCreate(body="x", author_id="x", issue_id=one_issue))
        fake_github.comments.clear()
        with pytest.raises(NotFoundError):
            await comment_repo.update(created.id, CommentUpdate(body="y"))


class TestMilestones:
    async def test_create_get_update(self, fake_github, milestone_repo):
        due = datetime(2024, 6, 1, tzinfo=timezone.utc)
        created = await milestone_repo.create(MilestoneCreate(name="v1", description="first", due_date=due))
        assert created.due_date == due
        assert created.metadata["github_milestone_number"] == 1

        fetched = await milestone_repo.get_by_id(created.id)
        assert fetched.name == "v1"

        closed = await milestone_repo.update(created.id, MilestoneUpdate(status=MilestoneStatus.CLOSED))
        assert closed.status == MilestoneStatus.CLOSED
        assert fake_github.milestones[1]["state"] == "closed"

    async def test_delete_tombstones(self, fake_github, milestone_repo):
        created = await milestone_repo.create(MilestoneCreate(name="v1"))
        await milestone_repo.delete(created.id)
        assert fake_github.milestones == {}
        with pytest.raises(NotFoundError) as info:
            await milestone_repo.get_by_id(created.id)
        assert info.value.entity == "Milestone"

    async def test_list_includes_closed_and_sorts_by_due_date(self, fake_github, milestone_repo):
        await milestone_repo.create(MilestoneCreate(name="v1"))
        second = await milestone_repo.create(MilestoneCreate(name="v2"))
        await milestone_repo.update(second.id, MilestoneUpdate(status=MilestoneStatus.CLOSED))

        result = await milestone_repo.list(
            PaginationParams(), SortOptions(field="due_date", direction=SortDirection.ASC)
        )
        assert sorted(m.name for m in result.items) == ["v1", "v2"]
        list_call = [c for c in fake_github.calls if c[0] == "GET" and c[1].endswith("/milestones")][-1]
        assert list_call[2]["state"] == "all"
        assert list_call[2]["sort"] == "due_on"

    async def test_unknown_milestone(self, github_client, config):
        repo = GitHubMilestoneRepository(github_client, config)
        with pytest.raises(NotFoundError):
            await repo.get_by_id("missing")
