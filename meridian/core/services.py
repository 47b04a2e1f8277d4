"""
Service Layer.

Use cases over the repository ports. Services validate cross-entity rules
(existence of referenced issues, link normalisation, duplicate detection)
and leave persistence to whichever backend the repositories wrap.

State-changing operations are logged as structured events.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import structlog

from .comment import Comment, CommentCreate, CommentUpdate
from .enums import PRIORITY_RANK, Status
from .errors import ConflictError, NotFoundError, ValidationError
from .issue import Issue, IssueCreate, IssueFilter, IssueUpdate
from .issue_link import (
    DEFAULT_RELATIONSHIP_TYPES,
    IssueLink,
    IssueLinkCreate,
    RelationshipType,
    ResolvedIssueLink,
    find_relationship_type,
    resolve_links,
)
from .milestone import Milestone, MilestoneCreate, MilestoneOverview, MilestoneUpdate
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
    Tag,
    new_id,
    utc_now,
)

logger = structlog.get_logger()

PAGE_SIZE = 100
MAX_NESTING_DEPTH = 3


async def fetch_all_issues(issues: IssueRepository, filters: IssueFilter) -> List[Issue]:
    """Page through every issue matching ``filters``."""
    collected: List[Issue] = []
    page = 1
    while True:
        result = await issues.list(filters, PaginationParams(page=page, limit=PAGE_SIZE))
        collected.extend(result.items)
        if not result.has_more:
            return collected
        page += 1


class IssueService:
    """Service for managing issues."""

    def __init__(
        self,
        issues: IssueRepository,
        links: Optional[IssueLinkRepository] = None,
        milestones: Optional[MilestoneRepository] = None,
    ):
        self.issues = issues
        self.links = links
        self.milestones = milestones
        self.logger = logger.bind(service="issue")

    async def create(self, data: IssueCreate) -> Issue:
        """Create an issue after checking its parent and milestone exist."""
        if data.parent_id is not None:
            await self._require_issue(data.parent_id, field="parent_id")
        if data.milestone_id is not None and self.milestones is not None:
            await self.milestones.get_by_id(data.milestone_id)

        issue = await self.issues.create(data)
        self.logger.info("issue_created", issue_id=issue.id, title=issue.title)
        return issue

    async def get(self, issue_id: str) -> Issue:
        return await self.issues.get_by_id(issue_id)

    async def list(
        self,
        filters: Optional[IssueFilter] = None,
        pagination: Optional[PaginationParams] = None,
        sort: Optional[SortOptions] = None,
    ) -> PaginatedResult[Issue]:
        return await self.issues.list(
            filters or IssueFilter(), pagination or PaginationParams(), sort
        )

    async def update(self, issue_id: str, data: IssueUpdate) -> Issue:
        """Apply a partial update."""
        if data.has("parent_id") and data.parent_id is not None:
            if data.parent_id == issue_id:
                raise ValidationError("parent_id", "an issue cannot be its own parent")
            await self._require_issue(data.parent_id, field="parent_id")

        issue = await self.issues.update(issue_id, data)
        self.logger.info(
            "issue_updated", issue_id=issue_id, fields=sorted(data.model_fields_set)
        )
        return issue

    async def update_status(self, issue_id: str, status: Status) -> Issue:
        return await self.update(issue_id, IssueUpdate(status=status))

    async def delete(self, issue_id: str) -> None:
        """Delete an issue, removing its links first."""
        await self.issues.get_by_id(issue_id)
        if self.links is not None:
            await self.links.delete_by_issue_id(issue_id)
        await self.issues.delete(issue_id)
        self.logger.info("issue_deleted", issue_id=issue_id)

    async def reparent(self, issue_id: str, parent_id: Optional[str]) -> Issue:
        """Move an issue under ``parent_id``, or to the top level when it is None.

        Both issues must exist. The move is rejected when the new parent is
        the issue itself or one of its descendants, or when the resulting
        hierarchy would be deeper than ``MAX_NESTING_DEPTH`` levels.
        """
        if parent_id is not None:
            if parent_id == issue_id:
                raise ValidationError("parent_id", "an issue cannot be its own parent")
            await self.issues.get_by_id(issue_id)
            await self.issues.get_by_id(parent_id)

            if parent_id in await self._descendant_ids(issue_id):
                raise ValidationError(
                    "parent_id", "circular reference: the new parent is a descendant"
                )

            depth = (
                await self._depth(parent_id) + 1 + await self._subtree_height(issue_id)
            )
            if depth > MAX_NESTING_DEPTH:
                raise ValidationError(
                    "parent_id",
                    f"maximum nesting depth of {MAX_NESTING_DEPTH} would be exceeded",
                )

        issue = await self.issues.update(issue_id, IssueUpdate(parent_id=parent_id))
        self.logger.info("issue_reparented", issue_id=issue_id, parent_id=parent_id)
        return issue

    async def suggest_next(
        self, filters: Optional[IssueFilter] = None, limit: int = 3
    ) -> PaginatedResult[Issue]:
        """Rank candidate issues by priority, oldest first within a priority.

        Closed issues are skipped unless the filter asks for a status.
        ``total`` counts every candidate, ``items`` holds the top ``limit``.
        """
        filters = filters or IssueFilter()
        candidates = await fetch_all_issues(self.issues, filters)
        if filters.status is None:
            candidates = [issue for issue in candidates if issue.status != Status.CLOSED]
        candidates.sort(key=lambda issue: (-PRIORITY_RANK[issue.priority], issue.created_at))
        return PaginatedResult(
            items=candidates[:limit],
            total=len(candidates),
            page=1,
            limit=limit,
            has_more=len(candidates) > limit,
        )

    async def list_tags(self, milestone_id: Optional[str] = None) -> List[Tag]:
        """Distinct tags across all issues, in first-seen order."""
        # An explicit milestone_id=None would select issues without a milestone
        filters = IssueFilter(milestone_id=milestone_id) if milestone_id else IssueFilter()
        tags = {}
        for issue in await fetch_all_issues(self.issues, filters):
            for tag in issue.tags:
                tags.setdefault(tag.id, tag)
        return list(tags.values())

    async def _children(self, issue_id: str) -> List[Issue]:
        return await fetch_all_issues(self.issues, IssueFilter(parent_id=issue_id))

    async def _descendant_ids(self, issue_id: str) -> set:
        found = set()
        queue = [issue_id]
        while queue:
            for child in await self._children(queue.pop(0)):
                if child.id not in found:
                    found.add(child.id)
                    queue.append(child.id)
        return found

    async def _depth(self, issue_id: str) -> int:
        """Level of an issue in its hierarchy; top-level issues are at 1."""
        depth = 0
        seen = set()
        current: Optional[str] = issue_id
        while current is not None and current not in seen:
            seen.add(current)
            depth += 1
            current = (await self.issues.get_by_id(current)).parent_id
        return depth

    async def _subtree_height(self, issue_id: str) -> int:
        """Number of levels below an issue; 0 for a leaf."""
        height = 0
        level = [issue_id]
        seen = {issue_id}
        while True:
            next_level = []
            for parent in level:
                for child in await self._children(parent):
                    if child.id not in seen:
                        seen.add(child.id)
                        next_level.append(child.id)
            if not next_level:
                return height
            height += 1
            level = next_level

    async def _require_issue(self, issue_id: str, field: str) -> Issue:
        try:
            return await self.issues.get_by_id(issue_id)
        except NotFoundError:
            raise ValidationError(field, f"issue '{issue_id}' does not exist")


class CommentService:
    """Service for managing comments on issues."""

    def __init__(self, comments: CommentRepository, issues: IssueRepository):
        self.comments = comments
        self.issues = issues
        self.logger = logger.bind(service="comment")

    async def create(self, data: CommentCreate) -> Comment:
        await self.issues.get_by_id(data.issue_id)
        comment = await self.comments.create(data)
        self.logger.info("comment_created", comment_id=comment.id, issue_id=data.issue_id)
        return comment

    async def list_for_issue(
        self, issue_id: str, pagination: Optional[PaginationParams] = None
    ) -> PaginatedResult[Comment]:
        await self.issues.get_by_id(issue_id)
        return await self.comments.find_by_issue_id(
            issue_id, pagination or PaginationParams()
        )

    async def update(self, comment_id: str, data: CommentUpdate) -> Comment:
        comment = await self.comments.update(comment_id, data)
        self.logger.info("comment_updated", comment_id=comment_id)
        return comment

    async def delete(self, comment_id: str) -> None:
        await self.comments.delete(comment_id)
        self.logger.info("comment_deleted", comment_id=comment_id)


class MilestoneService:
    """Service for managing milestones."""

    def __init__(self, milestones: MilestoneRepository, issues: IssueRepository):
        self.milestones = milestones
        self.issues = issues
        self.logger = logger.bind(service="milestone")

    async def create(self, data: MilestoneCreate) -> Milestone:
        milestone = await self.milestones.create(data)
        self.logger.info("milestone_created", milestone_id=milestone.id, name=milestone.name)
        return milestone

    async def get(self, milestone_id: str) -> Milestone:
        return await self.milestones.get_by_id(milestone_id)

    async def list(
        self,
        pagination: Optional[PaginationParams] = None,
        sort: Optional[SortOptions] = None,
    ) -> PaginatedResult[Milestone]:
        return await self.milestones.list(pagination or PaginationParams(), sort)

    async def overview(self, milestone_id: str) -> MilestoneOverview:
        """Count the milestone's issues per status; every status is present."""
        milestone = await self.milestones.get_by_id(milestone_id)
        issues = await fetch_all_issues(self.issues, IssueFilter(milestone_id=milestone_id))
        breakdown = {status.value: 0 for status in Status}
        for issue in issues:
            breakdown[issue.status.value] += 1
        return MilestoneOverview(
            milestone=milestone, total_issues=len(issues), status_breakdown=breakdown
        )

    async def update(self, milestone_id: str, data: MilestoneUpdate) -> Milestone:
        milestone = await self.milestones.update(milestone_id, data)
        self.logger.info("milestone_updated", milestone_id=milestone_id)
        return milestone

    async def delete(self, milestone_id: str) -> None:
        await self.milestones.delete(milestone_id)
        self.logger.info("milestone_deleted", milestone_id=milestone_id)


class IssueLinkService:
    """Service for linking issues.

    Rules:
    - The relationship type must be in the catalogue.
    - An issue cannot be linked to itself.
    - Both issues must exist.
    - Symmetric types are stored with ``source_issue_id < target_issue_id``.
    - An identical link may exist only once.
    """

    def __init__(
        self,
        links: IssueLinkRepository,
        issues: IssueRepository,
        relationship_types: Sequence[RelationshipType] = DEFAULT_RELATIONSHIP_TYPES,
    ):
        self.links = links
        self.issues = issues
        self.relationship_types = tuple(relationship_types)
        self.logger = logger.bind(service="issue_link")

    async def create(self, data: IssueLinkCreate) -> IssueLink:
        relationship_type = find_relationship_type(data.type, self.relationship_types)
        if relationship_type is None:
            raise ValidationError("type", f"unknown relationship type '{data.type}'")

        if data.source_issue_id == data.target_issue_id:
            raise ValidationError("target_issue_id", "cannot link issue to itself")

        await self.issues.get_by_id(data.source_issue_id)
        await self.issues.get_by_id(data.target_issue_id)

        source_id, target_id = normalize_link_endpoints(
            data.source_issue_id, data.target_issue_id, relationship_type
        )

        existing = await self.links.find_by_source_and_target_and_type(
            source_id, target_id, data.type
        )
        if existing is not None:
            raise ConflictError("IssueLink", source_id, "link already exists")

        link = IssueLink(
            id=new_id(),
            source_issue_id=source_id,
            target_issue_id=target_id,
            type=data.type,
            created_at=utc_now(),
        )
        created = await self.links.create(link)
        self.logger.info(
            "issue_link_created",
            link_id=created.id,
            link_type=created.type,
            source_issue_id=source_id,
            target_issue_id=target_id,
        )
        return created

    async def list_for_issue(
        self, issue_id: str, link_type: Optional[str] = None
    ) -> List[ResolvedIssueLink]:
        links = await self.links.find_by_issue_id(issue_id, link_type)
        return resolve_links(issue_id, links, self.relationship_types)

    async def delete(self, link_id: str) -> None:
        """Remove a link; the repository raises ``NotFoundError`` for unknown IDs."""
        await self.links.delete(link_id)
        self.logger.info("issue_link_deleted", link_id=link_id)


def normalize_link_endpoints(
    source_issue_id: str, target_issue_id: str, relationship_type: RelationshipType
) -> tuple:
    """Order the endpoints canonically for symmetric relationship types."""
    if relationship_type.symmetric and source_issue_id > target_issue_id:
        return target_issue_id, source_issue_id
    return source_issue_id, target_issue_id
