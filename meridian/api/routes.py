"""
REST endpoints.

Thin translation between HTTP and the services; domain errors propagate to
the handler registered in ``app``.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, ConfigDict, constr

from ..adapters import Services, get_services
from ..core.comment import Comment, CommentCreate, CommentUpdate
from ..core.enums import Priority, SortDirection, Status
from ..core.issue import Issue, IssueCreate, IssueFilter, IssueUpdate
from ..core.issue_link import IssueLink, IssueLinkCreate, ResolvedIssueLink
from ..core.milestone import Milestone, MilestoneCreate, MilestoneOverview, MilestoneUpdate
from ..core.primitives import PaginatedResult, PaginationParams, SortOptions, Tag

router = APIRouter()


class NewComment(BaseModel):
    """Comment payload; the issue comes from the path."""

    model_config = ConfigDict(extra="forbid")

    body: constr(min_length=1)
    author_id: constr(min_length=1)


class NewParent(BaseModel):
    """Target of a reparent; null moves the issue to the top level."""

    model_config = ConfigDict(extra="forbid")

    parent_id: Optional[str] = None


def _pagination(
    page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=100)
) -> PaginationParams:
    return PaginationParams(page=page, limit=limit)


def _sort(sort: Optional[str], direction: SortDirection) -> Optional[SortOptions]:
    if sort is None:
        return None
    return SortOptions(field=sort, direction=direction)


# =============================================================================
# Issues
# =============================================================================


@router.post("/issues", status_code=201, tags=["issues"])
async def create_issue(
    data: IssueCreate, services: Services = Depends(get_services)
) -> Issue:
    """Create a new issue."""
    return await services.issues.create(data)


@router.get("/issues", tags=["issues"])
async def list_issues(
    status: Optional[Status] = None,
    priority: Optional[Priority] = None,
    milestone_id: Optional[str] = None,
    parent_id: Optional[str] = None,
    assignee_id: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = Query(
        None, pattern="^(created_at|updated_at|priority|title|due_date)$"
    ),
    direction: SortDirection = SortDirection.DESC,
    pagination: PaginationParams = Depends(_pagination),
    services: Services = Depends(get_services),
) -> PaginatedResult[Issue]:
    """List issues with optional filtering, sorting and pagination."""
    criteria: Dict[str, Any] = {
        "status": status,
        "priority": priority,
        "milestone_id": milestone_id,
        "parent_id": parent_id,
        "assignee_id": assignee_id,
        "search": search,
    }
    filters = IssueFilter(**{k: v for k, v in criteria.items() if v is not None})
    return await services.issues.list(filters, pagination, _sort(sort, direction))


@router.get("/issues/{issue_id}", tags=["issues"])
async def get_issue(issue_id: str, services: Services = Depends(get_services)) -> Issue:
    """Get an issue by ID."""
    return await services.issues.get(issue_id)


@router.patch("/issues/{issue_id}", tags=["issues"])
async def update_issue(
    issue_id: str, data: IssueUpdate, services: Services = Depends(get_services)
) -> Issue:
    """Apply a partial update to an issue."""
    return await services.issues.update(issue_id, data)


@router.delete("/issues/{issue_id}", status_code=204, tags=["issues"])
async def delete_issue(issue_id: str, services: Services = Depends(get_services)) -> Response:
    """Delete an issue and its links."""
    await services.issues.delete(issue_id)
    return Response(status_code=204)


@router.put("/issues/{issue_id}/parent", tags=["issues"])
async def reparent_issue(
    issue_id: str, data: NewParent, services: Services = Depends(get_services)
) -> Issue:
    """Move an issue under another one, or to the top level."""
    return await services.issues.reparent(issue_id, data.parent_id)


@router.get("/tags", tags=["issues"])
async def list_tags(
    milestone_id: Optional[str] = None, services: Services = Depends(get_services)
) -> List[Tag]:
    """List the distinct tags used by issues, optionally within one milestone."""
    return await services.issues.list_tags(milestone_id)


# =============================================================================
# Comments
# =============================================================================


@router.post("/issues/{issue_id}/comments", status_code=201, tags=["comments"])
async def add_comment(
    issue_id: str, data: NewComment, services: Services = Depends(get_services)
) -> Comment:
    """Add a comment to an issue."""
    return await services.comments.create(
        CommentCreate(body=data.body, author_id=data.author_id, issue_id=issue_id)
    )


@router.get("/issues/{issue_id}/comments", tags=["comments"])
async def list_comments(
    issue_id: str,
    pagination: PaginationParams = Depends(_pagination),
    services: Services = Depends(get_services),
) -> PaginatedResult[Comment]:
    """List an issue's comments, oldest first."""
    return await services.comments.list_for_issue(issue_id, pagination)


@router.patch("/comments/{comment_id}", tags=["comments"])
async def update_comment(
    comment_id: str, data: CommentUpdate, services: Services = Depends(get_services)
) -> Comment:
    """Edit a comment."""
    return await services.comments.update(comment_id, data)


@router.delete("/comments/{comment_id}", status_code=204, tags=["comments"])
async def delete_comment(comment_id: str, services: Services = Depends(get_services)) -> Response:
    """Delete a comment."""
    await services.comments.delete(comment_id)
    return Response(status_code=204)


# =============================================================================
# Links
# =============================================================================


@router.get("/issues/{issue_id}/links", tags=["links"])
async def list_issue_links(
    issue_id: str,
    type: Optional[str] = None,
    services: Services = Depends(get_services),
) -> List[ResolvedIssueLink]:
    """List an issue's links, labelled from its point of view."""
    await services.issues.get(issue_id)
    return await services.links.list_for_issue(issue_id, type)


@router.post("/links", status_code=201, tags=["links"])
async def create_link(
    data: IssueLinkCreate, services: Services = Depends(get_services)
) -> IssueLink:
    """Link two issues."""
    return await services.links.create(data)


@router.delete("/links/{link_id}", status_code=204, tags=["links"])
async def delete_link(link_id: str, services: Services = Depends(get_services)) -> Response:
    """Remove a link."""
    await services.links.delete(link_id)
    return Response(status_code=204)


# =============================================================================
# Milestones
# =============================================================================


@router.post("/milestones", status_code=201, tags=["milestones"])
async def create_milestone(
    data: MilestoneCreate, services: Services = Depends(get_services)
) -> Milestone:
    """Create a milestone."""
    return await services.milestones.create(data)


@router.get("/milestones", tags=["milestones"])
async def list_milestones(
    sort: Optional[str] = Query(None, pattern="^(created_at|updated_at|title|due_date)$"),
    direction: SortDirection = SortDirection.ASC,
    pagination: PaginationParams = Depends(_pagination),
    services: Services = Depends(get_services),
) -> PaginatedResult[Milestone]:
    """List milestones."""
    return await services.milestones.list(pagination, _sort(sort, direction))


@router.get("/milestones/{milestone_id}", tags=["milestones"])
async def get_milestone(
    milestone_id: str, services: Services = Depends(get_services)
) -> Milestone:
    """Get a milestone by ID."""
    return await services.milestones.get(milestone_id)


@router.get("/milestones/{milestone_id}/overview", tags=["milestones"])
async def milestone_overview(
    milestone_id: str, services: Services = Depends(get_services)
) -> MilestoneOverview:
    """Count a milestone's issues per status."""
    return await services.milestones.overview(milestone_id)


@router.patch("/milestones/{milestone_id}", tags=["milestones"])
async def update_milestone(
    milestone_id: str, data: MilestoneUpdate, services: Services = Depends(get_services)
) -> Milestone:
    """Apply a partial update to a milestone."""
    return await services.milestones.update(milestone_id, data)


@router.delete("/milestones/{milestone_id}", status_code=204, tags=["milestones"])
async def delete_milestone(
    milestone_id: str, services: Services = Depends(get_services)
) -> Response:
    """Delete a milestone."""
    await services.milestones.delete(milestone_id)
    return Response(status_code=204)
