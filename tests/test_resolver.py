"""Tests for resolving internal IDs to GitHub numbers."""

import pytest

from meridian.core.errors import NotFoundError
from meridian.github.deterministic_id import comment_id, issue_id, milestone_id


def list_calls(fake, path_suffix):
    return [call for call in fake.calls if call[0] == "GET" and call[1].endswith(path_suffix)]


async def test_bulk_load_resolves_and_skips_pull_requests(fake_github, resolver):
    fake_github.add_issue("one")
    fake_github.add_issue("a pr", pull_request=True)

    assert await resolver.issue_number(issue_id("acme", "widgets", 1)) == 1
    assert await resolver.issue_number(issue_id("acme", "widgets", 2)) is None


async def test_cached_ids_do_not_rescan(fake_github, resolver):
    fake_github.add_issue("one")
    target = issue_id("acme", "widgets", 1)
    await resolver.issue_number(target)
    await resolver.issue_number(target)
    assert len(list_calls(fake_github, "/repos/acme/widgets/issues")) == 1


async def test_stale_cache_rescans_exactly_once(fake_github, resolver):
    fake_github.add_issue("one")
    await resolver.issue_number(issue_id("acme", "widgets", 1))

    fake_github.add_issue("created elsewhere")
    assert await resolver.issue_number(issue_id("acme", "widgets", 2)) == 2
    assert await resolver.issue_number(issue_id("acme", "widgets", 99)) is None
    assert await resolver.issue_number(issue_id("acme", "widgets", 98)) is None
    assert len(list_calls(fake_github, "/repos/acme/widgets/issues")) == 2


async def test_deleted_issues_are_tombstoned(fake_github, resolver):
    fake_github.add_issue("gone", labels=["deleted"], state="closed")
    target = issue_id("acme", "widgets", 1)
    assert await resolver.issue_number(target) is None
    assert resolver.cache.is_issue_deleted(target)


async def test_require_issue_number_raises(resolver):
    with pytest.raises(NotFoundError):
        await resolver.require_issue_number("missing")


async def test_bulk_load_pages_through_everything(fake_github, resolver):
    for n in range(150):
        fake_github.add_issue(f"issue {n}")
    assert await resolver.issue_number(issue_id("acme", "widgets", 150)) == 150
    assert await resolver.issue_number(issue_id("acme", "widgets", 1)) == 1
    assert len(list_calls(fake_github, "/repos/acme/widgets/issues")) == 2


async def test_global_id_is_fetched_once(fake_github, resolver, config):
    fake_github.add_issue("one")
    assert await resolver.issue_global_id(1, config) == 1001
    assert await resolver.issue_global_id(1, config) == 1001
    assert len(list_calls(fake_github, "/repos/acme/widgets/issues/1")) == 1


async def test_milestones(fake_github, resolver, github_client):
    await github_client.create_milestone(owner="acme", repo="widgets", title="v1")
    assert await resolver.milestone_number(milestone_id("acme", "widgets", 1)) == 1
    assert await resolver.milestone_number(milestone_id("acme", "widgets", 2)) is None


async def test_comments_scan_once(fake_github, resolver, github_client):
    fake_github.add_issue("one")
    created = await github_client.create_comment(
        owner="acme", repo="widgets", issue_number=1, body="hi"
    )
    target = comment_id("acme", "widgets", created["id"])
    assert await resolver.comment_number(target) == created["id"]
    assert await resolver.comment_number("unknown") is None
    assert len(list_calls(fake_github, "/repos/acme/widgets/issues/comments")) == 1
