"""Tests for the GitHub-backed issue link repository."""

import pytest

from meridian.core.errors import NotFoundError, UnknownLinkTypeError
from meridian.core.issue_link import IssueLink, IssueLinkCreate
from meridian.core.services import IssueLinkService
from meridian.github.deterministic_id import issue_id
from meridian.github.issue_link_repository import link_id


def iid(number):
    return issue_id("acme", "widgets", number)


def link(source, target, link_type):
    return IssueLink(source_issue_id=iid(source), target_issue_id=iid(target), type=link_type)


@pytest.fixture
def issues(fake_github):
    for title in ("one", "two", "three"):
        fake_github.add_issue(title)
    return fake_github


class TestNativeLinks:
    async def test_blocks_goes_to_dependency_api(self, issues, link_repo, config):
        created = await link_repo.create(link(1, 2, "blocks"))

        assert created.id == link_id(config, 1, "blocks", 2)
        assert issues.blocked_by[2] == {1}
        assert all(body is None for body in (issues.issues[n]["body"] for n in (1, 2)))

    async def test_blocks_is_visible_from_both_ends(self, issues, link_repo):
        created = await link_repo.create(link(1, 2, "blocks"))

        for number in (1, 2):
            (found,) = await link_repo.find_by_issue_id(iid(number))
            assert found.id == created.id
            assert found.source_issue_id == iid(1)
            assert found.target_issue_id == iid(2)

    async def test_parent_goes_to_sub_issue_api(self, issues, link_repo):
        await link_repo.create(link(1, 3, "parent"))
        assert issues.sub_issues[1] == [3]

        (found,) = await link_repo.find_by_issue_id(iid(3), "parent")
        assert found.source_issue_id == iid(1)
        assert found.target_issue_id == iid(3)

    async def test_delete_native(self, issues, link_repo):
        created = await link_repo.create(link(1, 2, "blocks"))
        await link_repo.delete(created.id)
        assert issues.blocked_by[2] == set()
        assert await link_repo.find_by_issue_id(iid(1)) == []


class TestFallback:
    async def test_blocks_falls_back_to_marker_when_dependencies_disabled(self, issues, link_repo, config):
        issues.dependencies_enabled = False
        created = await link_repo.create(link(1, 2, "blocks"))

        assert created.id == link_id(config, 1, "blocks", 2)
        assert issues.issues[1]["body"] == "<!-- meridian:blocks=acme/widgets#2 -->"

        (found,) = await link_repo.find_by_issue_id(iid(2))
        assert found.id == created.id
        assert found.source_issue_id == iid(1)

    async def test_parent_marker_lives_in_child_body(self, issues, link_repo):
        issues.sub_issues_enabled = False
        created = await link_repo.create(link(1, 3, "parent"))

        assert issues.issues[3]["body"] == "<!-- meridian:parent=acme/widgets#1 -->"
        assert issues.issues[1]["body"] is None

        (found,) = await link_repo.find_by_issue_id(iid(1))
        assert found.id == created.id
        assert found.source_issue_id == iid(1)
        assert found.target_issue_id == iid(3)

        await link_repo.delete(created.id)
        assert issues.issues[3]["body"] == ""


class TestMarkerLinks:
    async def test_relates_to_round_trip(self, issues, link_repo, config):
        created = await link_repo.create(link(1, 2, "relates-to"))
        assert created.id == link_id(config, 1, "relates-to", 2)
        assert issues.issues[1]["body"] == "<!-- meridian:relates-to=acme/widgets#2 -->"

        assert await link_repo.find_by_id(created.id) is not None
        found = await link_repo.find_by_source_and_target_and_type(iid(1), iid(2), "relates-to")
        assert found is not None and found.id == created.id
        assert await link_repo.find_by_source_and_target_and_type(iid(2), iid(1), "relates-to") is None

        await link_repo.delete(created.id)
        assert await link_repo.find_by_id(created.id) is None

    async def test_type_filter(self, issues, link_repo):
        await link_repo.create(link(1, 2, "relates-to"))
        await link_repo.create(link(1, 3, "duplicates"))

        assert len(await link_repo.find_by_issue_id(iid(1))) == 2
        (dup,) = await link_repo.find_by_issue_id(iid(1), "duplicates")
        assert dup.target_issue_id == iid(3)

    async def test_cross_repository_marker_is_reported(self, fake_github, link_repo):
        fake_github.add_issue("one", body="<!-- meridian:relates-to=acme/gadgets#5 -->")
        (found,) = await link_repo.find_by_issue_id(iid(1))
        assert found.target_issue_id == issue_id("acme", "gadgets", 5)


class TestErrors:
    async def test_unknown_type_fails_before_any_write(self, issues, link_repo):
        with pytest.raises(UnknownLinkTypeError):
            await link_repo.create(link(1, 2, "mentions"))
        assert issues.writes() == []

    async def test_unknown_issue(self, issues, link_repo):
        with pytest.raises(NotFoundError):
            await link_repo.create(
                IssueLink(source_issue_id=iid(1), target_issue_id="missing", type="relates-to")
            )

    async def test_delete_unknown_link(self, issues, link_repo):
        with pytest.raises(NotFoundError):
            await link_repo.delete("no-such-link")

    async def test_find_for_unknown_issue_is_empty(self, issues, link_repo):
        assert await link_repo.find_by_issue_id("missing") == []


class TestDeleteByIssue:
    async def test_removes_native_and_marker_links_in_both_directions(self, issues, link_repo):
        issues.issues[1]["body"] = "Keep me"
        await link_repo.create(link(1, 2, "blocks"))
        await link_repo.create(link(1, 3, "relates-to"))
        await link_repo.create(link(2, 1, "duplicates"))
        await link_repo.create(link(1, 3, "parent"))

        await link_repo.delete_by_issue_id(iid(1))

        assert issues.blocked_by[2] == set()
        assert issues.sub_issues[1] == []
        assert issues.issues[1]["body"] == "Keep me"
        assert issues.issues[2]["body"] == ""
        assert await link_repo.find_by_issue_id(iid(1)) == []

    async def test_unknown_issue_is_a_no_op(self, issues, link_repo):
        await link_repo.delete_by_issue_id("missing")
        assert issues.writes() == []


class TestLinkService:
    async def test_delete_scans_the_repository_once(self, issues, link_repo, issue_repo):
        service = IssueLinkService(link_repo, issue_repo)
        created = await service.create(
            IssueLinkCreate(source_issue_id=iid(1), target_issue_id=iid(2), type="relates-to")
        )
        before = len(issues.calls)

        await service.delete(created.id)

        scans = [
            call
            for call in issues.calls[before:]
            if call[0] == "GET" and call[1] == "/repos/acme/widgets/issues"
        ]
        assert len(scans) == 1
        assert await link_repo.find_by_issue_id(iid(1)) == []

    async def test_delete_unknown_link(self, issues, link_repo, issue_repo):
        service = IssueLinkService(link_repo, issue_repo)
        with pytest.raises(NotFoundError):
            await service.delete("no-such-link")
