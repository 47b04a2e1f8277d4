"""
GitHub-backed issue link repository.

Writes go through the ``StrategyRouter``: ``blocks`` to the dependency API,
``parent`` to the sub-issue API, everything else to body markers. When a
native API call fails (feature disabled, insufficient token scope, ...) the
link is stored as a marker instead so no relationship is lost.

Link IDs are deterministic over
``"{owner}/{repo}#{source}:{type}:{owner}/{repo}#{target}"``, so the same
relationship read through any backing mechanism has the same ID.

Marker placement: a link lives in its source's body, except ``parent``
markers which live in the child's body and name the parent.
"""

import dataclasses
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import httpx
import structlog

from ..core.errors import NotFoundError
from ..core.issue_link import DEFAULT_RELATIONSHIP_TYPES, IssueLink, RelationshipType
from ..core.ports import IssueLinkRepository
from ..core.primitives import utc_now
from .client import GitHubClient
from .config import GitHubRepoConfig
from .deterministic_id import ISSUE_LINK_ID_NAMESPACE, generate_deterministic_id, issue_id
from .mappers.errors import github_errors, map_github_error
from .mappers.issues import PARENT_LINK_TYPE, is_deleted, is_pull_request
from .mappers.links import ParsedLink, compose_body, parse_issue_links
from .mappers.types import GitHubIssue
from .resolver import PER_PAGE, GitHubNumberResolver
from .strategies import (
    CommentFallbackStrategy,
    DependencyApiStrategy,
    LinkPersistenceStrategy,
    StrategyRouter,
    SubIssueApiStrategy,
)
from .strategies.router import DEPENDENCY_API_TYPES, SUB_ISSUE_API_TYPE


def build_strategy_router(
    client: GitHubClient,
    resolver: GitHubNumberResolver,
    catalogue: Sequence[RelationshipType] = DEFAULT_RELATIONSHIP_TYPES,
) -> StrategyRouter:
    """Native strategies plus one marker strategy per remaining catalogue type."""
    comment_strategies = {
        relationship_type.name: CommentFallbackStrategy(client, relationship_type.name)
        for relationship_type in catalogue
        if relationship_type.name not in DEPENDENCY_API_TYPES
        and relationship_type.name != SUB_ISSUE_API_TYPE
    }
    return StrategyRouter(
        DependencyApiStrategy(client, resolver.issue_global_id),
        SubIssueApiStrategy(client, resolver.issue_global_id),
        comment_strategies,
    )


def link_id(config: GitHubRepoConfig, source_number: int, link_type: str, target_number: int) -> str:
    """Deterministic ID of a same-repository link."""
    return generate_deterministic_id(
        ISSUE_LINK_ID_NAMESPACE,
        f"{config.issue_key(source_number)}:{link_type}:{config.issue_key(target_number)}",
    )


class GitHubIssueLinkRepository(IssueLinkRepository):
    """IssueLinkRepository over one GitHub repository."""

    def __init__(
        self,
        client: GitHubClient,
        config: GitHubRepoConfig,
        resolver: Optional[GitHubNumberResolver] = None,
        router: Optional[StrategyRouter] = None,
    ):
        self.client = client
        self.config = config
        self.resolver = resolver or GitHubNumberResolver(client, config)
        self.router = router or build_strategy_router(client, self.resolver)
        self._marker_strategies: Dict[str, CommentFallbackStrategy] = {}
        self.logger = structlog.get_logger().bind(
            adapter="github", owner=config.owner, repo=config.repo, repository="issue_link"
        )

    # ------------------------------------------------------------------
    # Port
    # ------------------------------------------------------------------

    async def create(self, link: IssueLink) -> IssueLink:
        # Unknown types fail here, before any write and without fallback.
        strategy = self.router.resolve_strategy(link.type)
        source = await self.resolver.require_issue_number(link.source_issue_id)
        target = await self.resolver.require_issue_number(link.target_issue_id)

        await self._write(strategy, "create", link.type, source, target)
        self.logger.info(
            "github_link_created", link_type=link.type, source=source, target=target
        )
        return link.model_copy(update={"id": link_id(self.config, source, link.type, target)})

    async def delete(self, link_id_: str) -> None:
        link = await self.find_by_id(link_id_)
        if link is None:
            raise NotFoundError("IssueLink", link_id_)

        strategy = self.router.resolve_strategy(link.type)
        source = await self.resolver.require_issue_number(link.source_issue_id)
        target = await self.resolver.require_issue_number(link.target_issue_id)
        await self._write(strategy, "delete", link.type, source, target)
        self.logger.info("github_link_deleted", link_type=link.type, source=source, target=target)

    async def find_by_id(self, link_id_: str) -> Optional[IssueLink]:
        issues = await self._all_issues()
        for link in self._marker_links(issues):
            if link.id == link_id_:
                return link
        for github_issue in issues:
            for link in await self._native_links(github_issue["number"]):
                if link.id == link_id_:
                    return link
        return None

    async def find_by_issue_id(
        self, issue_id_: str, link_type: Optional[str] = None
    ) -> List[IssueLink]:
        number = await self.resolver.issue_number(issue_id_)
        if number is None:
            return []

        candidates = list(await self._native_links(number))
        candidates.extend(self._marker_links(await self._all_issues()))
        return [
            link
            for link in _unique(candidates)
            if issue_id_ in (link.source_issue_id, link.target_issue_id)
            and (link_type is None or link.type == link_type)
        ]

    async def find_by_source_and_target_and_type(
        self, source_issue_id: str, target_issue_id: str, link_type: str
    ) -> Optional[IssueLink]:
        strategy = self.router.resolve_strategy(link_type)
        source = await self.resolver.issue_number(source_issue_id)
        target = await self.resolver.issue_number(target_issue_id)
        if source is None or target is None:
            return None

        candidates: List[IssueLink] = []
        try:
            parsed = await strategy.find_links_by_issue(source, self.config)
            candidates.extend(self._to_links(source, parsed))
        except httpx.HTTPError as exc:
            if not self.router.is_native(strategy):
                raise map_github_error(exc) from exc
            self.logger.warning(
                "link_native_lookup_failed",
                operation="find_by_source_and_target_and_type",
                link_type=link_type,
                source=source,
                error=str(exc),
            )

        holder = _marker_holder(link_type, source, target)
        candidates.extend(self._to_links(holder, self._body_links(await self._fetch(holder))))

        for link in candidates:
            if (
                link.type == link_type
                and link.source_issue_id == source_issue_id
                and link.target_issue_id == target_issue_id
            ):
                return link
        return None

    async def delete_by_issue_id(self, issue_id_: str) -> None:
        number = await self.resolver.issue_number(issue_id_)
        if number is None:
            return

        for strategy in self.router.all_strategies():
            try:
                parsed_links = await strategy.find_links_by_issue(number, self.config)
            except httpx.HTTPError as exc:
                self.logger.warning(
                    "link_cleanup_lookup_failed", strategy=strategy.name, issue_number=number, error=str(exc)
                )
                continue
            for parsed in parsed_links:
                source, target = _endpoints(number, parsed)
                try:
                    await strategy.delete_link(source, target, self.config)
                except httpx.HTTPError as exc:
                    self.logger.warning(
                        "link_cleanup_delete_failed",
                        strategy=strategy.name,
                        source=source,
                        target=target,
                        error=str(exc),
                    )

        own = await self._fetch(number)
        if parse_issue_links(own.get("body")):
            await self._update_body(number, compose_body(own.get("body"), []))

        for github_issue in await self._all_issues():
            if github_issue["number"] == number:
                continue
            markers = parse_issue_links(github_issue.get("body"))
            remaining = [marker for marker in markers if marker.issue_number != number]
            if len(remaining) != len(markers):
                await self._update_body(
                    github_issue["number"], compose_body(github_issue.get("body"), remaining)
                )
        self.logger.info("github_links_cleared", issue_number=number)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _write(
        self,
        strategy: LinkPersistenceStrategy,
        action: str,
        link_type: str,
        source: int,
        target: int,
    ) -> None:
        """Run ``action`` through ``strategy``; native failures fall back to markers."""
        try:
            await getattr(strategy, f"{action}_link")(source, target, self.config)
            return
        except httpx.HTTPError as exc:
            if not self.router.is_native(strategy):
                raise map_github_error(exc) from exc
            self.logger.warning(
                "link_native_fallback",
                operation=action,
                link_type=link_type,
                source=source,
                target=target,
                error=str(exc),
            )

        fallback = self._marker_strategy(link_type)
        holder = _marker_holder(link_type, source, target)
        other = target if holder == source else source
        with github_errors():
            await getattr(fallback, f"{action}_link")(holder, other, self.config)

    def _marker_strategy(self, link_type: str) -> CommentFallbackStrategy:
        if link_type not in self._marker_strategies:
            self._marker_strategies[link_type] = CommentFallbackStrategy(self.client, link_type)
        return self._marker_strategies[link_type]

    async def _update_body(self, number: int, body: str) -> None:
        with github_errors():
            await self.client.update_issue(
                owner=self.config.owner, repo=self.config.repo, issue_number=number, body=body
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _fetch(self, number: int) -> GitHubIssue:
        with github_errors():
            github_issue = await self.client.get_issue(
                owner=self.config.owner, repo=self.config.repo, issue_number=number
            )
        self.resolver.remember_issue(github_issue)
        return github_issue

    async def _all_issues(self) -> List[GitHubIssue]:
        issues: List[GitHubIssue] = []
        page = 1
        with github_errors():
            while True:
                items, _ = await self.client.list_issues(
                    owner=self.config.owner,
                    repo=self.config.repo,
                    state="all",
                    per_page=PER_PAGE,
                    page=page,
                )
                for item in items:
                    if is_pull_request(item):
                        continue
                    self.resolver.remember_issue(item)
                    if not is_deleted(item):
                        issues.append(item)
                if len(items) < PER_PAGE:
                    break
                page += 1
        return issues

    async def _native_links(self, number: int) -> List[IssueLink]:
        links: List[IssueLink] = []
        for strategy in self.router.native_strategies():
            try:
                parsed = await strategy.find_links_by_issue(number, self.config)
            except httpx.HTTPError as exc:
                self.logger.warning(
                    "link_native_lookup_failed", strategy=strategy.name, issue_number=number, error=str(exc)
                )
                continue
            links.extend(self._to_links(number, parsed))
        return links

    def _marker_links(self, issues: Iterable[GitHubIssue]) -> List[IssueLink]:
        links: List[IssueLink] = []
        for github_issue in issues:
            links.extend(self._to_links(github_issue["number"], self._body_links(github_issue)))
        return links

    @staticmethod
    def _body_links(github_issue: GitHubIssue) -> List[ParsedLink]:
        return [
            dataclasses.replace(parsed, reversed=True) if parsed.type == PARENT_LINK_TYPE else parsed
            for parsed in parse_issue_links(github_issue.get("body"))
        ]

    def _to_links(self, anchor: int, parsed_links: Iterable[ParsedLink]) -> List[IssueLink]:
        links = []
        here = (self.config.owner, self.config.repo, anchor)
        for parsed in parsed_links:
            there = (parsed.owner, parsed.repo, parsed.issue_number)
            source, target = (there, here) if parsed.reversed else (here, there)
            links.append(
                IssueLink(
                    id=generate_deterministic_id(
                        ISSUE_LINK_ID_NAMESPACE,
                        f"{_key(*source)}:{parsed.type}:{_key(*target)}",
                    ),
                    source_issue_id=issue_id(*source),
                    target_issue_id=issue_id(*target),
                    type=parsed.type,
                    created_at=utc_now(),
                )
            )
        return links


def _endpoints(anchor: int, parsed: ParsedLink) -> Tuple[int, int]:
    """(source, target) numbers of a link read while looking at ``anchor``."""
    if parsed.reversed:
        return parsed.issue_number, anchor
    return anchor, parsed.issue_number


def _marker_holder(link_type: str, source: int, target: int) -> int:
    return target if link_type == PARENT_LINK_TYPE else source


def _unique(links: Iterable[IssueLink]) -> List[IssueLink]:
    seen: Dict[str, IssueLink] = {}
    for link in links:
        seen.setdefault(link.id, link)
    return list(seen.values())


def _key(owner: str, repo: str, number: int) -> str:
    return f"{owner}/{repo}#{number}"
