"""GitHub-backed comment repository."""

import re
from typing import Optional

import httpx
import structlog

from ..core.comment import Comment, CommentCreate, CommentUpdate
from ..core.errors import NotFoundError
from ..core.ports import CommentRepository
from ..core.primitives import PaginatedResult, PaginationParams
from .client import GitHubClient
from .config import GitHubRepoConfig
from .deterministic_id import issue_id
from .mappers import comments as comment_mapper
from .mappers.errors import github_errors, map_github_error
from .mappers.pagination import parse_total_from_link_header
from .mappers.types import GitHubComment
from .resolver import GitHubNumberResolver

_ISSUE_URL_NUMBER = re.compile(r"/issues/(\d+)$")


class GitHubCommentRepository(CommentRepository):
    """CommentRepository over one GitHub repository's issue comments.

    ``author_id`` on create is informational: GitHub attributes the comment
    to the token's user.
    """

    def __init__(
        self,
        client: GitHubClient,
        config: GitHubRepoConfig,
        resolver: Optional[GitHubNumberResolver] = None,
    ):
        self.client = client
        self.config = config
        self.resolver = resolver or GitHubNumberResolver(client, config)
        self.logger = structlog.get_logger().bind(
            adapter="github", owner=config.owner, repo=config.repo, repository="comment"
        )

    async def create(self, data: CommentCreate) -> Comment:
        number = await self.resolver.require_issue_number(data.issue_id)
        self.logger.info("github_comment_create", operation="create", issue_number=number)
        with github_errors():
            created = await self.client.create_comment(
                **comment_mapper.to_create_params(data, number, self.config)
            )
        self.resolver.remember_comment(created)
        return comment_mapper.to_domain(created, data.issue_id, self.config)

    async def get_by_id(self, comment_id: str) -> Comment:
        github_comment = await self._fetch(comment_id, await self._require_number(comment_id))
        return self._to_domain(github_comment)

    async def update(self, comment_id: str, data: CommentUpdate) -> Comment:
        github_comment_id = await self._require_number(comment_id)
        params = comment_mapper.to_update_params(data, github_comment_id, self.config)
        try:
            updated = await self.client.update_comment(**params)
        except httpx.HTTPStatusError as exc:
            raise self._not_found_or_mapped(comment_id, exc) from exc
        return self._to_domain(updated)

    async def delete(self, comment_id: str) -> None:
        github_comment_id = await self._require_number(comment_id)
        self.logger.info("github_comment_delete", operation="delete", comment_id=comment_id)
        try:
            await self.client.delete_comment(
                owner=self.config.owner, repo=self.config.repo, comment_id=github_comment_id
            )
        except httpx.HTTPStatusError as exc:
            raise self._not_found_or_mapped(comment_id, exc) from exc
        self.resolver.forget_comment(comment_id)

    async def find_by_issue_id(
        self, issue_id_: str, pagination: PaginationParams
    ) -> PaginatedResult[Comment]:
        number = await self.resolver.require_issue_number(issue_id_)
        with github_errors():
            items, link_header = await self.client.list_issue_comments(
                owner=self.config.owner,
                repo=self.config.repo,
                issue_number=number,
                per_page=pagination.limit,
                page=pagination.page,
            )
        comments = []
        for item in items:
            self.resolver.remember_comment(item)
            comments.append(comment_mapper.to_domain(item, issue_id_, self.config))
        return PaginatedResult(
            items=comments,
            total=parse_total_from_link_header(link_header, len(items), pagination),
            page=pagination.page,
            limit=pagination.limit,
            has_more=len(items) == pagination.limit,
        )

    def _to_domain(self, github_comment: GitHubComment) -> Comment:
        match = _ISSUE_URL_NUMBER.search(github_comment.get("issue_url") or "")
        owning_issue = (
            issue_id(self.config.owner, self.config.repo, int(match.group(1))) if match else ""
        )
        return comment_mapper.to_domain(github_comment, owning_issue, self.config)

    async def _require_number(self, comment_id: str) -> int:
        number = await self.resolver.comment_number(comment_id)
        if number is None:
            raise NotFoundError("Comment", comment_id)
        return number

    async def _fetch(self, comment_id: str, github_comment_id: int) -> GitHubComment:
        try:
            return await self.client.get_comment(
                owner=self.config.owner, repo=self.config.repo, comment_id=github_comment_id
            )
        except httpx.HTTPStatusError as exc:
            raise self._not_found_or_mapped(comment_id, exc) from exc

    def _not_found_or_mapped(self, comment_id: str, exc: httpx.HTTPStatusError) -> Exception:
        if exc.response.status_code == 404:
            self.resolver.forget_comment(comment_id)
            return NotFoundError("Comment", comment_id)
        return map_github_error(exc)
