"""
Link persistence contract.

A strategy stores one family of relationship types between two issues of
the same repository, addressed by GitHub issue number. Strategies do not
classify failures: ``httpx.HTTPStatusError`` propagates to the caller,
which hands it to ``map_github_error``.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List

import httpx

from ..config import GitHubRepoConfig
from ..mappers.links import ParsedLink

# Resolves an issue number to GitHub's global numeric issue id.
IssueIdResolver = Callable[[int, GitHubRepoConfig], Awaitable[int]]


class LinkPersistenceStrategy(ABC):
    """Create, delete and enumerate relationships for one backing mechanism."""

    name = "abstract"

    @abstractmethod
    async def create_link(
        self, source_number: int, target_number: int, config: GitHubRepoConfig
    ) -> None:
        """Persist ``source --type--> target``. Idempotent."""

    @abstractmethod
    async def delete_link(
        self, source_number: int, target_number: int, config: GitHubRepoConfig
    ) -> None:
        """Remove ``source --type--> target``."""

    @abstractmethod
    async def find_links_by_issue(
        self, issue_number: int, config: GitHubRepoConfig
    ) -> List[ParsedLink]:
        """Links touching ``issue_number``; ``reversed`` marks incoming ones."""


def has_status(error: Exception, status: int) -> bool:
    return (
        isinstance(error, httpx.HTTPStatusError)
        and error.response.status_code == status
    )


def is_duplicate_relationship(error: Exception) -> bool:
    """GitHub answers 422 when the relationship already exists."""
    return has_status(error, 422)


def is_feature_not_enabled(error: Exception) -> bool:
    """GitHub answers 404 when a repository lacks dependencies/sub-issues."""
    return has_status(error, 404)
