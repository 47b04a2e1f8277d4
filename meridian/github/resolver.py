"""
Resolution of internal IDs to GitHub numbers.

Deterministic IDs are one-way, so an unknown ID can only be resolved by
scanning the repository and hashing what comes back. The scan is paged once
per session (see ``GitHubNumberCache``); a miss after a completed scan
triggers exactly one re-scan in case the repository changed underneath us.
"""

from typing import Dict, Optional

import structlog

from ..core.errors import NotFoundError
from .client import GitHubClient
from .config import GitHubRepoConfig
from .deterministic_id import comment_id, issue_id, milestone_id
from .mappers.errors import github_errors
from .mappers.issues import is_deleted, is_pull_request
from .mappers.types import GitHubComment, GitHubIssue
from .number_cache import GitHubNumberCache

PER_PAGE = 100


class GitHubNumberResolver:
    """Shared by the GitHub repositories of one adapter instance."""

    def __init__(
        self,
        client: GitHubClient,
        config: GitHubRepoConfig,
        cache: Optional[GitHubNumberCache] = None,
    ):
        self.client = client
        self.config = config
        self.cache = cache if cache is not None else GitHubNumberCache()
        self._global_ids: Dict[int, int] = {}
        self._comments: Dict[str, int] = {}
        self._comments_loaded = False
        self._issue_stale_retry_done = False
        self._milestone_stale_retry_done = False
        self.logger = structlog.get_logger().bind(
            adapter="github", owner=config.owner, repo=config.repo
        )

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    def remember_issue(self, github_issue: GitHubIssue) -> str:
        """Cache number and global id of a fetched issue; returns its ID."""
        number = github_issue["number"]
        internal_id = issue_id(self.config.owner, self.config.repo, number)
        if isinstance(github_issue.get("id"), int):
            self._global_ids[number] = github_issue["id"]
        if is_deleted(github_issue):
            self.cache.delete_issue(internal_id)
        else:
            self.cache.set_issue(internal_id, number)
        return internal_id

    async def issue_number(self, internal_id: str) -> Optional[int]:
        if self.cache.is_issue_deleted(internal_id):
            return None

        number = self.cache.get_issue(internal_id)
        if number is not None:
            return number

        if self.cache.issues_bulk_loaded:
            if self._issue_stale_retry_done:
                return None
            self._issue_stale_retry_done = True
            self.cache.reset_issues_bulk_loaded()
            self.logger.info("issue_cache_stale_rescan", issue_id=internal_id)

        await self.bulk_load_issues()
        return self.cache.get_issue(internal_id)

    async def require_issue_number(self, internal_id: str) -> int:
        number = await self.issue_number(internal_id)
        if number is None:
            raise NotFoundError("Issue", internal_id)
        return number

    async def bulk_load_issues(self) -> None:
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
                    if not is_pull_request(item):
                        self.remember_issue(item)
                if len(items) < PER_PAGE:
                    break
                page += 1
        self.cache.mark_issues_bulk_loaded()
        self.logger.debug("issues_bulk_loaded", pages=page)

    async def issue_global_id(self, number: int, config: GitHubRepoConfig) -> int:
        """GitHub's numeric ``id`` for an issue number, used by native link APIs."""
        if number not in self._global_ids:
            github_issue = await self.client.get_issue(
                owner=config.owner, repo=config.repo, issue_number=number
            )
            self._global_ids[number] = github_issue["id"]
        return self._global_ids[number]

    # ------------------------------------------------------------------
    # Milestones
    # ------------------------------------------------------------------

    def remember_milestone(self, number: int) -> str:
        internal_id = milestone_id(self.config.owner, self.config.repo, number)
        self.cache.set_milestone(internal_id, number)
        return internal_id

    async def milestone_number(self, internal_id: str) -> Optional[int]:
        if self.cache.is_milestone_deleted(internal_id):
            return None

        number = self.cache.get_milestone(internal_id)
        if number is not None:
            return number

        if self.cache.milestones_bulk_loaded:
            if self._milestone_stale_retry_done:
                return None
            self._milestone_stale_retry_done = True
            self.cache.reset_milestones_bulk_loaded()

        await self.bulk_load_milestones()
        return self.cache.get_milestone(internal_id)

    async def bulk_load_milestones(self) -> None:
        page = 1
        with github_errors():
            while True:
                items, _ = await self.client.list_milestones(
                    owner=self.config.owner,
                    repo=self.config.repo,
                    state="all",
                    per_page=PER_PAGE,
                    page=page,
                )
                for item in items:
                    self.remember_milestone(item["number"])
                if len(items) < PER_PAGE:
                    break
                page += 1
        self.cache.mark_milestones_bulk_loaded()

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def remember_comment(self, github_comment: GitHubComment) -> str:
        internal_id = comment_id(self.config.owner, self.config.repo, github_comment["id"])
        self._comments[internal_id] = github_comment["id"]
        return internal_id

    def forget_comment(self, internal_id: str) -> None:
        self._comments.pop(internal_id, None)

    async def comment_number(self, internal_id: str) -> Optional[int]:
        """GitHub comment id for an internal comment ID (one repo scan per session)."""
        if internal_id not in self._comments and not self._comments_loaded:
            page = 1
            with github_errors():
                while True:
                    items, _ = await self.client.list_repo_comments(
                        owner=self.config.owner,
                        repo=self.config.repo,
                        per_page=PER_PAGE,
                        page=page,
                    )
                    for item in items:
                        self.remember_comment(item)
                    if len(items) < PER_PAGE:
                        break
                    page += 1
            self._comments_loaded = True
        return self._comments.get(internal_id)
