"""``parent`` relationships through GitHub's sub-issue endpoints."""

from typing import List, Optional

import httpx
import structlog

from ..client import GitHubClient
from ..config import GitHubRepoConfig
from ..mappers.links import ParsedLink
from .base import (
    IssueIdResolver,
    LinkPersistenceStrategy,
    is_duplicate_relationship,
    is_feature_not_enabled,
)

PARENT = "parent"

logger = structlog.get_logger()


class SubIssueApiStrategy(LinkPersistenceStrategy):
    """``source`` is the parent, ``target`` the child (sub-issue)."""

    name = "sub-issue-api"

    def __init__(self, client: GitHubClient, resolve_issue_global_id: IssueIdResolver):
        self.client = client
        self.resolve_issue_global_id = resolve_issue_global_id

    async def create_link(
        self, source_number: int, target_number: int, config: GitHubRepoConfig
    ) -> None:
        child_global_id = await self.resolve_issue_global_id(target_number, config)
        try:
            await self.client.request(
                "POST /repos/{owner}/{repo}/issues/{issue_number}/sub_issues",
                owner=config.owner,
                repo=config.repo,
                issue_number=source_number,
                sub_issue_id=child_global_id,
            )
        except httpx.HTTPStatusError as exc:
            if not is_duplicate_relationship(exc):
                raise
            logger.debug("sub_issue_already_exists", parent=source_number, child=target_number)

    async def delete_link(
        self, source_number: int, target_number: int, config: GitHubRepoConfig
    ) -> None:
        child_global_id = await self.resolve_issue_global_id(target_number, config)
        await self.client.request(
            "DELETE /repos/{owner}/{repo}/issues/{issue_number}/sub_issue",
            owner=config.owner,
            repo=config.repo,
            issue_number=source_number,
            sub_issue_id=child_global_id,
        )

    async def find_links_by_issue(
        self, issue_number: int, config: GitHubRepoConfig
    ) -> List[ParsedLink]:
        links = [
            ParsedLink(PARENT, config.owner, config.repo, child["number"])
            for child in await self._children(issue_number, config)
        ]
        parent_number = await self.find_parent_number(issue_number, config)
        if parent_number is not None:
            links.append(
                ParsedLink(PARENT, config.owner, config.repo, parent_number, reversed=True)
            )
        return links

    async def find_parent_number(
        self, issue_number: int, config: GitHubRepoConfig
    ) -> Optional[int]:
        try:
            data = await self.client.request(
                "GET /repos/{owner}/{repo}/issues/{issue_number}/sub_issues/parent",
                owner=config.owner,
                repo=config.repo,
                issue_number=issue_number,
            )
        except httpx.HTTPStatusError as exc:
            if is_feature_not_enabled(exc):
                return None
            raise
        if isinstance(data, dict) and isinstance(data.get("number"), int):
            return data["number"]
        return None

    async def _children(self, issue_number: int, config: GitHubRepoConfig) -> List[dict]:
        try:
            data = await self.client.request(
                "GET /repos/{owner}/{repo}/issues/{issue_number}/sub_issues",
                owner=config.owner,
                repo=config.repo,
                issue_number=issue_number,
            )
        except httpx.HTTPStatusError as exc:
            if is_feature_not_enabled(exc):
                return []
            raise
        return [item for item in data or [] if isinstance(item, dict) and "number" in item]
