"""
GitHub Issues backend.

Maps GitHub issues, comments, milestones and relationships onto the
Meridian domain. Entry points:

- ``GitHubClient``: async REST client
- ``GitHub*Repository``: implementations of the core repository ports
- ``mappers``: pure payload <-> entity translation
- ``strategies``: link persistence and the router choosing between them
"""

from .client import GitHubClient
from .comment_repository import GitHubCommentRepository
from .config import GitHubRepoConfig
from .deterministic_id import NAMESPACES, generate_deterministic_id
from .issue_link_repository import GitHubIssueLinkRepository, build_strategy_router
from .issue_repository import GitHubIssueRepository
from .milestone_repository import GitHubMilestoneRepository
from .number_cache import GitHubNumberCache
from .resolver import GitHubNumberResolver

__all__ = [
    "GitHubClient",
    "GitHubCommentRepository",
    "GitHubIssueLinkRepository",
    "GitHubIssueRepository",
    "GitHubMilestoneRepository",
    "GitHubNumberCache",
    "GitHubNumberResolver",
    "GitHubRepoConfig",
    "NAMESPACES",
    "build_strategy_router",
    "generate_deterministic_id",
]
