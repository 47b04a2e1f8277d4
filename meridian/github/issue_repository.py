"""
GitHub-backed issue repository.

Issues are addressed by deterministic IDs; the resolver maps them back to
issue numbers. GitHub cannot delete issues through the REST API, so
``delete`` closes the issue and labels it ``deleted``; such issues are
invisible to every read path.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from ..core.enums import Priority, Status
from ..core.errors import NotFoundError
from ..core.issue import Issue, IssueCreate, IssueFilter, IssueUpdate
from ..core.ports import IssueRepository
from ..core.primitives import PaginatedResult, PaginationParams, SortOptions
from .client import GitHubClient
from .config import GitHubRepoConfig
from .mappers import issues as issue_mapper
from .mappers.errors import github_errors, map_github_error
from .mappers.labels import IN_PROGRESS_LABEL, to_priority_label
from .mappers.links import compose_body, parse_issue_links
from .mappers.pagination import parse_total_from_link_header
from .mappers.types import GitHubIssue, label_name, normalize_labels
from .resolver import GitHubNumberResolver

SORT_FIELDS = {"created_at": "created", "updated_at": "updated"}

SUB_ISSUES_ROUTE = "POST /repos/{owner}/{repo}/issues/{issue_number}/sub_issues"
REMOVE_SUB_ISSUE_ROUTE = "DELETE /repos/{owner}/{repo}/issues/{issue_number}/sub_issue"
PARENT_ROUTE = "GET /repos/{owner}/{repo}/issues/{issue_number}/sub_issues/parent"


class GitHubIssueRepository(IssueRepository):
    """IssueRepository over one GitHub repository."""

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
            adapter="github", owner=config.owner, repo=config.repo, repository="issue"
        )

    async def create(self, data: IssueCreate) -> Issue:
        parent_number = None
        if data.parent_id:
            parent_number = await self.resolver.require_issue_number(data.parent_id)
        milestone_number = None
        if data.milestone_id:
            milestone_number = await self.resolver.milestone_number(data.milestone_id)

        params = issue_mapper.to_create_params(
            data, self.config, milestone_number=milestone_number
        )
        self.logger.info("github_issue_create", operation="create", title=data.title)
        with github_errors():
            created = await self.client.create_issue(**params)
            if data.status == Status.CLOSED:
                created = await self.client.update_issue(
                    owner=self.config.owner,
                    repo=self.config.repo,
                    issue_number=created["number"],
                    state="closed",
                )
        self.resolver.remember_issue(created)

        if parent_number is not None:
            created = await self._attach_parent(created, parent_number)

        issue = issue_mapper.to_domain(created, self.config, parent_issue_number=parent_number)
        self.logger.info(
            "github_issue_created",
            operation="create",
            issue_id=issue.id,
            issue_number=created["number"],
        )
        return issue

    async def get_by_id(self, issue_id: str) -> Issue:
        number = await self.resolver.issue_number(issue_id)
        if number is None:
            raise NotFoundError("Issue", issue_id)

        github_issue = await self._fetch(issue_id, number)
        parent_number = await self._fetch_parent_number(number)
        return issue_mapper.to_domain(github_issue, self.config, parent_issue_number=parent_number)

    async def update(self, issue_id: str, data: IssueUpdate) -> Issue:
        number = await self.resolver.issue_number(issue_id)
        if number is None:
            raise NotFoundError("Issue", issue_id)

        current = await self._fetch(issue_id, number)
        milestone_number = None
        if data.has("milestone_id") and data.milestone_id is not None:
            milestone_number = await self.resolver.milestone_number(data.milestone_id)

        params = issue_mapper.to_update_params(
            data,
            number,
            self.config,
            current_labels=current.get("labels"),
            current_body=current.get("body"),
            milestone_number=milestone_number,
        )

        parent_number = None
        native_parent = False
        if data.has("parent_id"):
            new_parent = None
            if data.parent_id is not None:
                new_parent = await self.resolver.require_issue_number(data.parent_id)
            native_parent = await self._replace_native_parent(current, new_parent)
            body = self._body_with_parent(current, data, new_parent, native_parent)
            if body is not None:
                params["body"] = body
            if native_parent:
                parent_number = new_parent

        self.logger.info(
            "github_issue_update",
            operation="update",
            issue_id=issue_id,
            issue_number=number,
            fields=sorted(data.model_fields_set),
        )
        with github_errors():
            updated = await self.client.update_issue(**params)
        if not native_parent:
            parent_number = await self._fetch_parent_number(number)
        return issue_mapper.to_domain(updated, self.config, parent_issue_number=parent_number)

    async def delete(self, issue_id: str) -> None:
        number = await self.resolver.issue_number(issue_id)
        if number is None:
            raise NotFoundError("Issue", issue_id)

        current = await self._fetch(issue_id, number)
        names = [label_name(label) for label in normalize_labels(current.get("labels"))]
        if issue_mapper.DELETED_LABEL not in names:
            names.append(issue_mapper.DELETED_LABEL)

        self.logger.info("github_issue_delete", operation="delete", issue_id=issue_id, issue_number=number)
        with github_errors():
            await self.client.update_issue(
                owner=self.config.owner,
                repo=self.config.repo,
                issue_number=number,
                state="closed",
                labels=names,
            )
        self.resolver.cache.delete_issue(issue_id)

    async def list(
        self,
        filters: IssueFilter,
        pagination: PaginationParams,
        sort: Optional[SortOptions] = None,
    ) -> PaginatedResult[Issue]:
        if filters.search and filters.search.strip():
            return await self._search(filters, pagination, sort)

        params = self._list_params(filters, pagination, sort)
        if "milestone_id" in filters.model_fields_set and filters.milestone_id is not None:
            milestone_number = await self.resolver.milestone_number(filters.milestone_id)
            if milestone_number is None:
                return PaginatedResult(items=[], total=0, page=pagination.page, limit=pagination.limit)
            params["milestone"] = milestone_number

        self.logger.debug("github_issue_list", operation="list", page=pagination.page, limit=pagination.limit)
        with github_errors():
            items, link_header = await self.client.list_issues(**params)

        issues = self._to_visible_issues(items, filters)
        return PaginatedResult(
            items=issues,
            total=parse_total_from_link_header(link_header, len(items), pagination),
            page=pagination.page,
            limit=pagination.limit,
            has_more=len(items) == pagination.limit,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _fetch(self, issue_id: str, number: int) -> GitHubIssue:
        try:
            github_issue = await self.client.get_issue(
                owner=self.config.owner, repo=self.config.repo, issue_number=number
            )
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code in (404, 410):
                self.resolver.cache.delete_issue(issue_id)
                raise NotFoundError("Issue", issue_id) from exc
            raise map_github_error(exc) from exc
        self.resolver.remember_issue(github_issue)
        if issue_mapper.is_deleted(github_issue):
            raise NotFoundError("Issue", issue_id)
        return github_issue

    def _to_visible_issues(self, items: List[GitHubIssue], filters: IssueFilter) -> List[Issue]:
        issues = []
        for item in items:
            if issue_mapper.is_pull_request(item) or issue_mapper.is_deleted(item):
                continue
            self.resolver.remember_issue(item)
            issue = issue_mapper.to_domain(item, self.config)
            if _matches(issue, filters):
                issues.append(issue)
        return issues

    def _list_params(
        self, filters: IssueFilter, pagination: PaginationParams, sort: Optional[SortOptions]
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "owner": self.config.owner,
            "repo": self.config.repo,
            "per_page": pagination.limit,
            "page": pagination.page,
            "state": _state_filter(filters.status),
        }
        labels = _label_filter(filters)
        if labels:
            params["labels"] = ",".join(labels)
        if sort is not None and sort.field in SORT_FIELDS:
            params["sort"] = SORT_FIELDS[sort.field]
            params["direction"] = sort.direction.value
        return params

    async def _search(
        self, filters: IssueFilter, pagination: PaginationParams, sort: Optional[SortOptions]
    ) -> PaginatedResult[Issue]:
        qualifiers = [f"repo:{self.config.slug}", "is:issue", filters.search.strip()]
        if filters.status == Status.CLOSED:
            qualifiers.append("is:closed")
        elif filters.status is not None:
            qualifiers.append("is:open")
        qualifiers.extend(f'label:"{label}"' for label in _label_filter(filters))

        params: Dict[str, Any] = {
            "q": " ".join(qualifiers),
            "per_page": pagination.limit,
            "page": pagination.page,
        }
        if sort is not None and sort.field in SORT_FIELDS:
            params["sort"] = SORT_FIELDS[sort.field]
            params["order"] = sort.direction.value

        self.logger.debug("github_issue_search", operation="search", query=params["q"])
        with github_errors():
            response = await self.client.search_issues(**params)

        items = response.get("items") or []
        return PaginatedResult(
            items=self._to_visible_issues(items, filters),
            total=response.get("total_count", 0),
            page=pagination.page,
            limit=pagination.limit,
            has_more=len(items) == pagination.limit,
        )

    async def _attach_parent(self, created: GitHubIssue, parent_number: int) -> GitHubIssue:
        """Attach natively; fall back to a parent marker in the child's body."""
        try:
            await self.client.request(
                SUB_ISSUES_ROUTE,
                owner=self.config.owner,
                repo=self.config.repo,
                issue_number=parent_number,
                sub_issue_id=created["id"],
            )
            return created
        except httpx.HTTPError as exc:
            self.logger.warning(
                "sub_issue_attach_failed",
                operation="create",
                parent_number=parent_number,
                error=str(exc),
            )

        markers = parse_issue_links(created.get("body"))
        markers.append(issue_mapper.parent_marker(parent_number, self.config))
        with github_errors():
            return await self.client.update_issue(
                owner=self.config.owner,
                repo=self.config.repo,
                issue_number=created["number"],
                body=compose_body(created.get("body"), markers),
            )

    async def _replace_native_parent(self, current: GitHubIssue, new_parent: Optional[int]) -> bool:
        """Move the issue under ``new_parent`` with the sub-issue API.

        Returns False when GitHub did not record the change; the caller then
        keeps the parent as a body marker.
        """
        number = current["number"]
        old_parent = await self._fetch_parent_number(number)
        if old_parent == new_parent:
            return True

        try:
            if old_parent is not None:
                await self.client.request(
                    REMOVE_SUB_ISSUE_ROUTE,
                    owner=self.config.owner,
                    repo=self.config.repo,
                    issue_number=old_parent,
                    sub_issue_id=current["id"],
                )
            if new_parent is not None:
                await self.client.request(
                    SUB_ISSUES_ROUTE,
                    owner=self.config.owner,
                    repo=self.config.repo,
                    issue_number=new_parent,
                    sub_issue_id=current["id"],
                )
        except httpx.HTTPError as exc:
            self.logger.warning(
                "sub_issue_reparent_failed",
                operation="update",
                issue_number=number,
                error=str(exc),
            )
            return False
        return True

    def _body_with_parent(
        self,
        current: GitHubIssue,
        data: IssueUpdate,
        new_parent: Optional[int],
        native_parent: bool,
    ) -> Optional[str]:
        """Child body with its parent marker replaced, or None if unchanged."""
        existing = parse_issue_links(current.get("body"))
        markers = [marker for marker in existing if marker.type != issue_mapper.PARENT_LINK_TYPE]
        if new_parent is not None and not native_parent:
            markers.append(issue_mapper.parent_marker(new_parent, self.config))
        if markers == existing and not data.has("description"):
            return None
        text = data.description if data.has("description") else current.get("body")
        return compose_body(text or "", markers)

    async def _fetch_parent_number(self, number: int) -> Optional[int]:
        try:
            data = await self.client.request(
                PARENT_ROUTE, owner=self.config.owner, repo=self.config.repo, issue_number=number
            )
        except httpx.HTTPError:
            self.logger.debug("parent_lookup_unavailable", issue_number=number)
            return None
        if isinstance(data, dict) and isinstance(data.get("number"), int):
            return data["number"]
        return None


def _state_filter(status: Optional[Status]) -> str:
    if status is None:
        return "all"
    return "closed" if status == Status.CLOSED else "open"


def _label_filter(filters: IssueFilter) -> List[str]:
    labels = []
    if filters.priority is not None and filters.priority != Priority.NORMAL:
        labels.append(to_priority_label(filters.priority))
    if filters.status == Status.IN_PROGRESS:
        labels.append(IN_PROGRESS_LABEL)
    return labels


def _matches(issue: Issue, filters: IssueFilter) -> bool:
    """Filters GitHub cannot express as query parameters, applied per page."""
    if filters.status is not None and issue.status != filters.status:
        return False
    if filters.priority is not None and issue.priority != filters.priority:
        return False
    if filters.assignee_id is not None and filters.assignee_id not in issue.assignee_ids:
        return False
    if "parent_id" in filters.model_fields_set and issue.parent_id != filters.parent_id:
        return False
    return True
