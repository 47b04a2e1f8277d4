"""GitHub-backed milestone repository."""

from typing import Optional

import httpx
import structlog

from ..core.enums import SortDirection
from ..core.errors import NotFoundError
from ..core.milestone import Milestone, MilestoneCreate, MilestoneUpdate
from ..core.ports import MilestoneRepository
from ..core.primitives import PaginatedResult, PaginationParams, SortOptions
from .client import GitHubClient
from .config import GitHubRepoConfig
from .mappers import milestones as milestone_mapper
from .mappers.errors import github_errors, map_github_error
from .mappers.pagination import parse_total_from_link_header
from .mappers.types import GitHubMilestone
from .resolver import GitHubNumberResolver


class GitHubMilestoneRepository(MilestoneRepository):
    """MilestoneRepository over one GitHub repository's milestones."""

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
            adapter="github", owner=config.owner, repo=config.repo, repository="milestone"
        )

    async def create(self, data: MilestoneCreate) -> Milestone:
        self.logger.info("github_milestone_create", operation="create", name=data.name)
        with github_errors():
            created = await self.client.create_milestone(
                **milestone_mapper.to_create_params(data, self.config)
            )
        self.resolver.remember_milestone(created["number"])
        return milestone_mapper.to_domain(created, self.config)

    async def get_by_id(self, milestone_id: str) -> Milestone:
        number = await self._require_number(milestone_id)
        return milestone_mapper.to_domain(await self._fetch(milestone_id, number), self.config)

    async def update(self, milestone_id: str, data: MilestoneUpdate) -> Milestone:
        number = await self._require_number(milestone_id)
        params = milestone_mapper.to_update_params(data, number, self.config)
        self.logger.info("github_milestone_update", operation="update", milestone_number=number)
        try:
            updated = await self.client.update_milestone(**params)
        except httpx.HTTPStatusError as exc:
            raise self._not_found_or_mapped(milestone_id, exc) from exc
        return milestone_mapper.to_domain(updated, self.config)

    async def delete(self, milestone_id: str) -> None:
        number = await self._require_number(milestone_id)
        self.logger.info("github_milestone_delete", operation="delete", milestone_number=number)
        try:
            await self.client.delete_milestone(
                owner=self.config.owner, repo=self.config.repo, milestone_number=number
            )
        except httpx.HTTPStatusError as exc:
            raise self._not_found_or_mapped(milestone_id, exc) from exc
        self.resolver.cache.delete_milestone(milestone_id)

    async def list(
        self, pagination: PaginationParams, sort: Optional[SortOptions] = None
    ) -> PaginatedResult[Milestone]:
        params = {
            "owner": self.config.owner,
            "repo": self.config.repo,
            "state": "all",
            "per_page": pagination.limit,
            "page": pagination.page,
        }
        if sort is not None and sort.field == "due_date":
            params["sort"] = "due_on"
            params["direction"] = SortDirection(sort.direction).value

        with github_errors():
            items, link_header = await self.client.list_milestones(**params)

        milestones = []
        for item in items:
            self.resolver.remember_milestone(item["number"])
            milestones.append(milestone_mapper.to_domain(item, self.config))
        return PaginatedResult(
            items=milestones,
            total=parse_total_from_link_header(link_header, len(items), pagination),
            page=pagination.page,
            limit=pagination.limit,
            has_more=len(items) == pagination.limit,
        )

    async def _require_number(self, milestone_id: str) -> int:
        number = await self.resolver.milestone_number(milestone_id)
        if number is None:
            raise NotFoundError("Milestone", milestone_id)
        return number

    async def _fetch(self, milestone_id: str, number: int) -> GitHubMilestone:
        try:
            return await self.client.get_milestone(
                owner=self.config.owner, repo=self.config.repo, milestone_number=number
            )
        except httpx.HTTPStatusError as exc:
            raise self._not_found_or_mapped(milestone_id, exc) from exc

    def _not_found_or_mapped(self, milestone_id: str, exc: httpx.HTTPStatusError) -> Exception:
        if exc.response.status_code == 404:
            self.resolver.cache.delete_milestone(milestone_id)
            return NotFoundError("Milestone", milestone_id)
        return map_github_error(exc)
