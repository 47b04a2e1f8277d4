"""
In-memory repositories.

Dict-backed implementations of the repository ports, used by the ``memory``
backend and throughout the test-suite. State lives for the lifetime of the
instance; ``seed()`` and ``reset()`` exist for fixtures.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

from .comment import Comment, CommentCreate, CommentUpdate
from .enums import PRIORITY_RANK, SortDirection
from .errors import NotFoundError
from .issue import Issue, IssueCreate, IssueFilter, IssueUpdate
from .issue_link import IssueLink
from .milestone import Milestone, MilestoneCreate, MilestoneUpdate
from .ports import (
    CommentRepository,
    IssueLinkRepository,
    IssueRepository,
    MilestoneRepository,
)
from .primitives import (
    PaginatedResult,
    PaginationParams,
    SortOptions,
    new_id,
    paginate,
    utc_now,
)

def _sort_key(field: str) -> Callable[[Any], Any]:
    if field == "priority":
        return lambda item: PRIORITY_RANK[item.priority]
    if field == "title":
        return lambda item: item.title.lower()
    if field == "due_date":
        # Undated items sort after dated ones in ascending order.
        return lambda item: (item.due_date is None, item.due_date or item.created_at)
    return lambda item: getattr(item, field)


def _name_key(milestone: Milestone) -> str:
    return milestone.name.lower()


def _apply_sort(items: List[Any], sort: Optional[SortOptions]) -> List[Any]:
    sort = sort or SortOptions()
    return sorted(
        items,
        key=_sort_key(sort.field),
        reverse=sort.direction == SortDirection.DESC,
    )


def _matches(issue: Issue, filters: IssueFilter) -> bool:
    provided = filters.model_fields_set
    if "milestone_id" in provided and issue.milestone_id != filters.milestone_id:
        return False
    if "parent_id" in provided and issue.parent_id != filters.parent_id:
        return False
    if filters.status is not None and issue.status != filters.status:
        return False
    if filters.priority is not None and issue.priority != filters.priority:
        return False
    if filters.assignee_id is not None and filters.assignee_id not in issue.assignee_ids:
        return False
    if filters.search:
        needle = filters.search.strip().lower()
        haystack = f"{issue.title}\n{issue.description}".lower()
        if needle not in haystack:
            return False
    return True


class _Store:
    """Shared seed/reset helpers."""

    _store: Dict[str, Any]

    def seed(self, items: Iterable[Any]) -> None:
        for item in items:
            self._store[item.id] = item

    def reset(self) -> None:
        self._store.clear()


class InMemoryIssueRepository(_Store, IssueRepository):
    def __init__(self) -> None:
        self._store: Dict[str, Issue] = {}

    async def create(self, data: IssueCreate) -> Issue:
        now = utc_now()
        issue = Issue(id=new_id(), created_at=now, updated_at=now, **data.model_dump())
        self._store[issue.id] = issue
        return issue

    async def get_by_id(self, issue_id: str) -> Issue:
        issue = self._store.get(issue_id)
        if issue is None:
            raise NotFoundError("Issue", issue_id)
        return issue

    async def update(self, issue_id: str, data: IssueUpdate) -> Issue:
        current = await self.get_by_id(issue_id)
        changes = data.provided()
        changes["updated_at"] = utc_now()
        updated = current.model_copy(update=changes)
        # model_copy skips validation; round-trip to keep enum/tag types
        updated = Issue.model_validate(updated.model_dump())
        self._store[issue_id] = updated
        return updated

    async def delete(self, issue_id: str) -> None:
        if issue_id not in self._store:
            raise NotFoundError("Issue", issue_id)
        del self._store[issue_id]

    async def list(
        self,
        filters: IssueFilter,
        pagination: PaginationParams,
        sort: Optional[SortOptions] = None,
    ) -> PaginatedResult[Issue]:
        matching = [issue for issue in self._store.values() if _matches(issue, filters)]
        return paginate(_apply_sort(matching, sort), pagination)


class InMemoryCommentRepository(_Store, CommentRepository):
    def __init__(self) -> None:
        self._store: Dict[str, Comment] = {}

    async def create(self, data: CommentCreate) -> Comment:
        now = utc_now()
        comment = Comment(id=new_id(), created_at=now, updated_at=now, **data.model_dump())
        self._store[comment.id] = comment
        return comment

    async def get_by_id(self, comment_id: str) -> Comment:
        comment = self._store.get(comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        return comment

    async def update(self, comment_id: str, data: CommentUpdate) -> Comment:
        current = await self.get_by_id(comment_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        changes["updated_at"] = utc_now()
        updated = current.model_copy(update=changes)
        self._store[comment_id] = updated
        return updated

    async def delete(self, comment_id: str) -> None:
        if comment_id not in self._store:
            raise NotFoundError("Comment", comment_id)
        del self._store[comment_id]

    async def find_by_issue_id(
        self, issue_id: str, pagination: PaginationParams
    ) -> PaginatedResult[Comment]:
        comments = sorted(
            (c for c in self._store.values() if c.issue_id == issue_id),
            key=lambda c: c.created_at,
        )
        return paginate(comments, pagination)


class InMemoryMilestoneRepository(_Store, MilestoneRepository):
    def __init__(self) -> None:
        self._store: Dict[str, Milestone] = {}

    async def create(self, data: MilestoneCreate) -> Milestone:
        now = utc_now()
        milestone = Milestone(
            id=new_id(), created_at=now, updated_at=now, **data.model_dump()
        )
        self._store[milestone.id] = milestone
        return milestone

    async def get_by_id(self, milestone_id: str) -> Milestone:
        milestone = self._store.get(milestone_id)
        if milestone is None:
            raise NotFoundError("Milestone", milestone_id)
        return milestone

    async def update(self, milestone_id: str, data: MilestoneUpdate) -> Milestone:
        current = await self.get_by_id(milestone_id)
        changes = data.provided()
        changes["updated_at"] = utc_now()
        updated = Milestone.model_validate(
            current.model_copy(update=changes).model_dump()
        )
        self._store[milestone_id] = updated
        return updated

    async def delete(self, milestone_id: str) -> None:
        if milestone_id not in self._store:
            raise NotFoundError("Milestone", milestone_id)
        del self._store[milestone_id]

    async def list(
        self, pagination: PaginationParams, sort: Optional[SortOptions] = None
    ) -> PaginatedResult[Milestone]:
        sort = sort or SortOptions(field="created_at", direction=SortDirection.ASC)
        if sort.field in ("priority", "title"):
            key = _name_key
        else:
            key = _sort_key(sort.field)
        milestones = sorted(
            self._store.values(), key=key, reverse=sort.direction == SortDirection.DESC
        )
        return paginate(milestones, pagination)


class InMemoryIssueLinkRepository(_Store, IssueLinkRepository):
    def __init__(self) -> None:
        self._store: Dict[str, IssueLink] = {}

    async def create(self, link: IssueLink) -> IssueLink:
        self._store[link.id] = link
        return link

    async def delete(self, link_id: str) -> None:
        if link_id not in self._store:
            raise NotFoundError("IssueLink", link_id)
        del self._store[link_id]

    async def find_by_id(self, link_id: str) -> Optional[IssueLink]:
        return self._store.get(link_id)

    async def find_by_issue_id(
        self, issue_id: str, link_type: Optional[str] = None
    ) -> List[IssueLink]:
        return [
            link
            for link in self._store.values()
            if issue_id in (link.source_issue_id, link.target_issue_id)
            and (link_type is None or link.type == link_type)
        ]

    async def find_by_source_and_target_and_type(
        self, source_issue_id: str, target_issue_id: str, link_type: str
    ) -> Optional[IssueLink]:
        for link in self._store.values():
            if (
                link.source_issue_id == source_issue_id
                and link.target_issue_id == target_issue_id
                and link.type == link_type
            ):
                return link
        return None

    async def delete_by_issue_id(self, issue_id: str) -> None:
        doomed = [
            link_id
            for link_id, link in self._store.items()
            if issue_id in (link.source_issue_id, link.target_issue_id)
        ]
        for link_id in doomed:
            del self._store[link_id]
