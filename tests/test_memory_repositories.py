"""Tests for the in-memory repositories."""

from datetime import datetime, timedelta, timezone

import pytest

from meridian.core.comment import CommentCreate, CommentUpdate
from meridian.core.enums import Priority, SortDirection, Status
from meridian.core.errors import NotFoundError
from meridian.core.issue import IssueCreate, IssueFilter, IssueUpdate
from meridian.core.issue_link import IssueLink
from meridian.core.memory import (
    InMemoryCommentRepository,
    InMemoryIssueLinkRepository,
    InMemoryIssueRepository,
    InMemoryMilestoneRepository,
)
from meridian.core.milestone import MilestoneCreate, MilestoneUpdate
from meridian.core.primitives import PaginationParams, SortOptions


@pytest.fixture
def issues():
    return InMemoryIssueRepository()


class TestIssues:
    async def test_create_get_update_delete(self, issues):
        created = await issues.create(IssueCreate(title="First"))
        assert (await issues.get_by_id(created.id)).title == "First"

        updated = await issues.update(created.id, IssueUpdate(status=Status.IN_PROGRESS))
        assert updated.status == Status.IN_PROGRESS
        assert updated.title == "First"
        assert updated.updated_at >= created.updated_at

        await issues.delete(created.id)
        with pytest.raises(NotFoundError):
            await issues.get_by_id(created.id)
        with pytest.raises(NotFoundError):
            await issues.delete(created.id)

    async def test_explicit_null_clears_parent(self, issues):
        parent = await issues.create(IssueCreate(title="Parent"))
        child = await issues.create(IssueCreate(title="Child", parent_id=parent.id))
        cleared = await issues.update(child.id, IssueUpdate(parent_id=None))
        assert cleared.parent_id is None

        untouched = await issues.update(child.id, IssueUpdate(title="Renamed"))
        assert untouched.parent_id is None
        assert untouched.title == "Renamed"

    async def test_filters(self, issues):
        await issues.create(IssueCreate(title="Crash on save", priority=Priority.HIGH, milestone_id="m1"))
        await issues.create(IssueCreate(title="Typo", description="in the CRASH dialog"))
        await issues.create(IssueCreate(title="Done", status=Status.CLOSED, assignee_ids=["u1"]))

        def titles(result):
            return sorted(issue.title for issue in result.items)

        page = PaginationParams()
        assert titles(await issues.list(IssueFilter(search="crash"), page)) == ["Crash on save", "Typo"]
        assert titles(await issues.list(IssueFilter(priority=Priority.HIGH), page)) == ["Crash on save"]
        assert titles(await issues.list(IssueFilter(status=Status.CLOSED), page)) == ["Done"]
        assert titles(await issues.list(IssueFilter(assignee_id="u1"), page)) == ["Done"]
        assert titles(await issues.list(IssueFilter(milestone_id="m1"), page)) == ["Crash on save"]
        assert titles(await issues.list(IssueFilter(milestone_id=None), page)) == ["Done", "Typo"]

    async def test_sort_and_paginate(self, issues):
        for title, priority in (("b", Priority.LOW), ("a", Priority.URGENT), ("c", Priority.NORMAL)):
            await issues.create(IssueCreate(title=title, priority=priority))

        by_priority = await issues.list(
            IssueFilter(), PaginationParams(), SortOptions(field="priority", direction=SortDirection.DESC)
        )
        assert [issue.title for issue in by_priority.items] == ["a", "c", "b"]

        first = await issues.list(
            IssueFilter(),
            PaginationParams(page=1, limit=2),
            SortOptions(field="title", direction=SortDirection.ASC),
        )
        assert [issue.title for issue in first.items] == ["a", "b"]
        assert first.total == 3
        assert first.has_more

        second = await issues.list(
            IssueFilter(),
            PaginationParams(page=2, limit=2),
            SortOptions(field="title", direction=SortDirection.ASC),
        )
        assert [issue.title for issue in second.items] == ["c"]
        assert not second.has_more

    async def test_due_date_sort_puts_undated_last(self, issues):
        now = datetime.now(timezone.utc)
        await issues.create(IssueCreate(title="undated"))
        await issues.create(IssueCreate(title="later", due_date=now + timedelta(days=2)))
        await issues.create(IssueCreate(title="sooner", due_date=now + timedelta(days=1)))

        result = await issues.list(
            IssueFilter(), PaginationParams(), SortOptions(field="due_date", direction=SortDirection.ASC)
        )
        assert [issue.title for issue in result.items] == ["sooner", "later", "undated"]


class TestComments:
    async def test_oldest_first_per_issue(self):
        comments = InMemoryCommentRepository()
        first = await comments.create(CommentCreate(body="one", author_id="u", issue_id="i1"))
        await comments.create(CommentCreate(body="other", author_id="u", issue_id="i2"))
        await comments.create(CommentCreate(body="two", author_id="u", issue_id="i1"))

        result = await comments.find_by_issue_id("i1", PaginationParams())
        assert [c.body for c in result.items] == ["one", "two"]

        edited = await comments.update(first.id, CommentUpdate(body="uno"))
        assert edited.body == "uno"
        await comments.delete(first.id)
        with pytest.raises(NotFoundError):
            await comments.get_by_id(first.id)


class TestMilestones:
    async def test_crud_and_sort(self):
        milestones = InMemoryMilestoneRepository()
        beta = await milestones.create(MilestoneCreate(name="Beta"))
        await milestones.create(MilestoneCreate(name="alpha"))

        by_name = await milestones.list(
            PaginationParams(), SortOptions(field="title", direction=SortDirection.ASC)
        )
        assert [m.name for m in by_name.items] == ["alpha", "Beta"]

        renamed = await milestones.update(beta.id, MilestoneUpdate(name="Gamma", due_date=None))
        assert renamed.name == "Gamma"
        await milestones.delete(beta.id)
        with pytest.raises(NotFoundError):
            await milestones.get_by_id(beta.id)


class TestLinks:
    async def test_queries_and_cascade(self):
        links = InMemoryIssueLinkRepository()
        blocks = await links.create(IssueLink(source_issue_id="a", target_issue_id="b", type="blocks"))
        await links.create(IssueLink(source_issue_id="c", target_issue_id="a", type="relates-to"))
        await links.create(IssueLink(source_issue_id="b", target_issue_id="c", type="blocks"))

        assert len(await links.find_by_issue_id("a")) == 2
        assert len(await links.find_by_issue_id("a", "blocks")) == 1
        assert await links.find_by_id(blocks.id) == blocks
        assert await links.find_by_source_and_target_and_type("a", "b", "blocks") == blocks
        assert await links.find_by_source_and_target_and_type("b", "a", "blocks") is None

        await links.delete_by_issue_id("a")
        assert await links.find_by_issue_id("a") == []
        assert len(await links.find_by_issue_id("b")) == 1

        with pytest.raises(NotFoundError):
            await links.delete(blocks.id)
