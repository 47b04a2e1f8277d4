"""
Backend wiring.

``create_services`` builds the four repositories for the configured backend
and the services on top of them. Front-ends share one ``Services`` instance
per process.
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

import structlog

from .config import Settings, get_settings
from .core.memory import (
    InMemoryCommentRepository,
    InMemoryIssueLinkRepository,
    InMemoryIssueRepository,
    InMemoryMilestoneRepository,
)
from .core.services import CommentService, IssueLinkService, IssueService, MilestoneService
from .github import (
    GitHubClient,
    GitHubCommentRepository,
    GitHubIssueLinkRepository,
    GitHubIssueRepository,
    GitHubMilestoneRepository,
    GitHubNumberResolver,
    GitHubRepoConfig,
)

logger = structlog.get_logger()


@dataclass
class Services:
    """Use cases for one backend, plus the hooks to release its resources."""

    adapter: str
    issues: IssueService
    comments: CommentService
    milestones: MilestoneService
    links: IssueLinkService
    closers: List[Callable[[], Awaitable[None]]] = field(default_factory=list)

    async def close(self) -> None:
        for close in self.closers:
            await close()


def create_services(settings: Optional[Settings] = None) -> Services:
    settings = settings or get_settings()
    settings.validate_adapter()

    if settings.meridian_adapter == "github":
        config = GitHubRepoConfig(
            owner=settings.github_owner,
            repo=settings.github_repo,
            milestone_id=settings.github_milestone_id,
        )
        client = GitHubClient(
            token=settings.github_token,
            base_url=settings.github_api_url,
            timeout=settings.github_timeout_seconds,
        )
        resolver = GitHubNumberResolver(client, config)
        issue_repo = GitHubIssueRepository(client, config, resolver)
        comment_repo = GitHubCommentRepository(client, config, resolver)
        milestone_repo = GitHubMilestoneRepository(client, config, resolver)
        link_repo = GitHubIssueLinkRepository(client, config, resolver)
        closers = [client.close]
        logger.info("adapter_configured", adapter="github", owner=config.owner, repo=config.repo)
    else:
        issue_repo = InMemoryIssueRepository()
        comment_repo = InMemoryCommentRepository()
        milestone_repo = InMemoryMilestoneRepository()
        link_repo = InMemoryIssueLinkRepository()
        closers = []
        logger.info("adapter_configured", adapter="memory")

    return Services(
        adapter=settings.meridian_adapter,
        issues=IssueService(issue_repo, link_repo, milestone_repo),
        comments=CommentService(comment_repo, issue_repo),
        milestones=MilestoneService(milestone_repo, issue_repo),
        links=IssueLinkService(link_repo, issue_repo),
        closers=closers,
    )


# ---------------------------------------------------------------------------
# Lazy-initialized singleton
# ---------------------------------------------------------------------------

_services: Optional[Services] = None


def get_services() -> Services:
    """Return the process-wide services, building them on first use."""
    global _services
    if _services is None:
        _services = create_services()
    return _services


def set_services(services: Optional[Services]) -> None:
    """Install (or clear, with None) the process-wide services."""
    global _services
    _services = services
