"""``blocks`` relationships through GitHub's issue dependency endpoints."""

from typing import Any, List

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

BLOCKS = "blocks"

logger = structlog.get_logger()


class DependencyApiStrategy(LinkPersistenceStrategy):
    """``A blocks B`` is stored on B as "blocked by A".

    Reads return the blockers of an issue as ``reversed`` links (the number
    is the source) and the issues it blocks as plain links.
    """

    name = "dependency-api"

    def __init__(self, client: GitHubClient, resolve_issue_global_id: IssueIdResolver):
        self.client = client
        self.resolve_issue_global_id = resolve_issue_global_id

    async def create_link(
        self, source_number: int, target_number: int, config: GitHubRepoConfig
    ) -> None:
        source_global_id = await self.resolve_issue_global_id(source_number, config)
        try:
            await self.client.request(
                "POST /repos/{owner}/{repo}/issues/{issue_number}/dependencies/blocked_by",
                owner=config.owner,
                repo=config.repo,
                issue_number=target_number,
                issue_id=source_global_id,
            )
        except httpx.HTTPStatusError as exc:
            if not is_duplicate_relationship(exc):
                raise
            logger.debug(
                "dependency_already_exists", source=source_number, target=target_number
            )

    async def delete_link(
        self, source_number: int, target_number: int, config: GitHubRepoConfig
    ) -> None:
        source_global_id = await self.resolve_issue_global_id(source_number, config)
        await self.client.request(
            "DELETE /repos/{owner}/{repo}/issues/{issue_number}/dependencies/blocked_by/{issue_id}",
            owner=config.owner,
            repo=config.repo,
            issue_number=target_number,
            issue_id=source_global_id,
        )

    async def find_links_by_issue(
        self, issue_number: int, config: GitHubRepoConfig
    ) -> List[ParsedLink]:
        links = [
            ParsedLink(BLOCKS, config.owner, config.repo, blocker["number"], reversed=True)
            for blocker in await self._list("blocked_by", issue_number, config)
        ]
        links.extend(
            ParsedLink(BLOCKS, config.owner, config.repo, blocked["number"])
            for blocked in await self._list("blocking", issue_number, config)
        )
        return links

    async def _list(
        self, direction: str, issue_number: int, config: GitHubRepoConfig
    ) -> List[Any]:
        try:
            data = await self.client.request(
                "GET /repos/{owner}/{repo}/issues/{issue_number}/dependencies/" + direction,
                owner=config.owner,
                repo=config.repo,
                issue_number=issue_number,
            )
        except httpx.HTTPStatusError as exc:
            if is_feature_not_enabled(exc):
                return []
            raise
        return [item for item in data or [] if isinstance(item, dict) and "number" in item]
