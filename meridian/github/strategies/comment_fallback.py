"""Relationships stored as markers in the source issue's body."""

from typing import List, Optional

import structlog

from ..client import GitHubClient
from ..config import GitHubRepoConfig
from ..mappers.links import ParsedLink, compose_body, parse_issue_links
from .base import LinkPersistenceStrategy

logger = structlog.get_logger()


class CommentFallbackStrategy(LinkPersistenceStrategy):
    """One instance per link type with no native GitHub backing.

    Mutations read the body, edit the marker list and write the body back.
    Human-written text is kept; only marker lines are rewritten.
    """

    name = "comment-fallback"

    def __init__(self, client: GitHubClient, link_type: str):
        self.client = client
        self.link_type = link_type

    async def create_link(
        self, source_number: int, target_number: int, config: GitHubRepoConfig
    ) -> None:
        logger.debug(
            "link_marker_create",
            link_type=self.link_type,
            source=source_number,
            target=target_number,
        )
        body = await self._fetch_body(source_number, config)
        links = parse_issue_links(body)
        marker = ParsedLink(self.link_type, config.owner, config.repo, target_number)
        if marker in links:
            return
        links.append(marker)
        await self._update_body(source_number, compose_body(body, links), config)

    async def delete_link(
        self, source_number: int, target_number: int, config: GitHubRepoConfig
    ) -> None:
        logger.debug(
            "link_marker_delete",
            link_type=self.link_type,
            source=source_number,
            target=target_number,
        )
        body = await self._fetch_body(source_number, config)
        remaining = [
            link
            for link in parse_issue_links(body)
            if not (link.type == self.link_type and link.issue_number == target_number)
        ]
        await self._update_body(source_number, compose_body(body, remaining), config)

    async def find_links_by_issue(
        self, issue_number: int, config: GitHubRepoConfig
    ) -> List[ParsedLink]:
        body = await self._fetch_body(issue_number, config)
        return [link for link in parse_issue_links(body) if link.type == self.link_type]

    async def _fetch_body(self, issue_number: int, config: GitHubRepoConfig) -> Optional[str]:
        issue = await self.client.get_issue(
            owner=config.owner, repo=config.repo, issue_number=issue_number
        )
        return issue.get("body")

    async def _update_body(self, issue_number: int, body: str, config: GitHubRepoConfig) -> None:
        await self.client.update_issue(
            owner=config.owner, repo=config.repo, issue_number=issue_number, body=body
        )
