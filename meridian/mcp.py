"""
Meridian MCP Server: exposes issue tracking operations as MCP tools.

Usage:
    python -m meridian.mcp          # stdio transport
    meridian-mcp                    # via pyproject.toml entry point

MCP client configuration:
    {
      "mcpServers": {
        "meridian": {
          "command": "meridian-mcp",
          "env": {"MERIDIAN_ADAPTER": "github", "GITHUB_TOKEN": "...",
                  "GITHUB_OWNER": "acme", "GITHUB_REPO": "widgets"}
        }
      }
    }
"""
import json
from typing import Any, Dict, List, Optional

import structlog
from mcp.server.fastmcp import FastMCP

from .adapters import get_services
from .core.comment import CommentCreate, CommentUpdate
from .core.enums import Priority, Status
from .core.errors import DomainError
from .core.issue import IssueCreate, IssueFilter, IssueUpdate
from .core.issue_link import IssueLinkCreate
from .core.milestone import MilestoneCreate
from .core.primitives import PaginationParams, Tag

logger = structlog.get_logger()

# Order in which meridian_list_my_issues groups an assignee's work
STATUS_GROUP_ORDER = (Status.IN_PROGRESS, Status.OPEN, Status.CLOSED)

server = FastMCP(
    name="meridian",
    instructions=(
        "Meridian: a uniform issue tracker. Create, search and update issues, "
        "comment on them, group them into milestones and link them with typed "
        "relationships (blocks, duplicates, relates-to, parent)."
    ),
)


def _success(**kwargs: Any) -> str:
    """Format a success response."""
    return json.dumps({"success": True, **kwargs}, default=str)


def _error(code: str, message: str, suggestion: str = "") -> str:
    """Format an error response."""
    err: Dict[str, str] = {"code": code, "message": message}
    if suggestion:
        err["suggestion"] = suggestion
    return json.dumps({"success": False, "error": err})


def _failure(exc: Exception, tool: str) -> str:
    """Turn an exception raised by a service into an error payload."""
    if isinstance(exc, DomainError):
        suggestion = ""
        if exc.code == "NOT_FOUND":
            suggestion = "Check the ID with meridian_search_issues"
        elif exc.code == "RATE_LIMITED":
            suggestion = "Retry after the reset time"
        return _error(exc.code, exc.message, suggestion)
    if isinstance(exc, ValueError):
        return _error("VALIDATION_ERROR", str(exc))
    logger.exception("mcp_tool_failed", tool=tool)
    return _error("INTERNAL_ERROR", str(exc))


def _dump(model: Any) -> Dict[str, Any]:
    return model.model_dump(mode="json")


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


@server.tool(
    name="meridian_health",
    description="Check that the server is up and report which backend it uses.",
)
async def meridian_health() -> str:
    """Report server health."""
    try:
        return _success(status="ok", adapter=get_services().adapter)
    except Exception as exc:
        return _failure(exc, "meridian_health")


# ---------------------------------------------------------------------------
# Issues
# ---------------------------------------------------------------------------


@server.tool(
    name="meridian_create_issue",
    description=(
        "Create an issue. Priority is one of low, normal, high, urgent; status "
        "one of open, in_progress, closed. Tags are plain names."
    ),
)
async def meridian_create_issue(
    title: str,
    description: str = "",
    priority: str = "normal",
    status: str = "open",
    milestone_id: Optional[str] = None,
    parent_id: Optional[str] = None,
    assignee_ids: Optional[List[str]] = None,
    tags: Optional[List[str]] = None,
) -> str:
    """Create a new issue."""
    try:
        data = IssueCreate(
            title=title,
            description=description,
            priority=Priority(priority),
            status=Status(status),
            milestone_id=milestone_id,
            parent_id=parent_id,
            assignee_ids=assignee_ids or [],
            tags=[Tag(name=name) for name in tags or []],
        )
        issue = await get_services().issues.create(data)
        return _success(issue=_dump(issue))
    except Exception as exc:
        return _failure(exc, "meridian_create_issue")


@server.tool(
    name="meridian_get_issue",
    description="Get one issue by ID, including its metadata.",
)
async def meridian_get_issue(issue_id: str) -> str:
    """Get an issue."""
    try:
        issue = await get_services().issues.get(issue_id)
        return _success(issue=_dump(issue))
    except Exception as exc:
        return _failure(exc, "meridian_get_issue")


@server.tool(
    name="meridian_search_issues",
    description=(
        "Search and filter issues. 'query' matches title and description. "
        "Results are paginated (page starts at 1, limit up to 100)."
    ),
)
async def meridian_search_issues(
    query: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    milestone_id: Optional[str] = None,
    assignee_id: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> str:
    """Search issues."""
    try:
        criteria = {
            "search": query,
            "status": Status(status) if status else None,
            "priority": Priority(priority) if priority else None,
            "milestone_id": milestone_id,
            "assignee_id": assignee_id,
        }
        filters = IssueFilter(**{k: v for k, v in criteria.items() if v is not None})
        result = await get_services().issues.list(
            filters, PaginationParams(page=page, limit=limit)
        )
        return _success(
            issues=[_dump(issue) for issue in result.items],
            total=result.total,
            page=result.page,
            has_more=result.has_more,
        )
    except Exception as exc:
        return _failure(exc, "meridian_search_issues")


@server.tool(
    name="meridian_update_issue",
    description=(
        "Update fields of an issue. Only the arguments you pass are changed; "
        "pass clear_parent=true to detach it from its parent."
    ),
)
async def meridian_update_issue(
    issue_id: str,
    title: Optional[str] = None,
    description: Optional[str] = None,
    priority: Optional[str] = None,
    status: Optional[str] = None,
    milestone_id: Optional[str] = None,
    parent_id: Optional[str] = None,
    clear_parent: bool = False,
    assignee_ids: Optional[List[str]] = None,
    tags: Optional[List[str]] = None,
) -> str:
    """Partially update an issue."""
    try:
        changes: Dict[str, Any] = {
            "title": title,
            "description": description,
            "priority": Priority(priority) if priority else None,
            "status": Status(status) if status else None,
            "milestone_id": milestone_id,
            "parent_id": parent_id,
            "assignee_ids": assignee_ids,
            "tags": [Tag(name=name) for name in tags] if tags is not None else None,
        }
        update = {k: v for k, v in changes.items() if v is not None}
        if clear_parent:
            update["parent_id"] = None
        if not update:
            return _error("VALIDATION_ERROR", "No fields to update")
        issue = await get_services().issues.update(issue_id, IssueUpdate(**update))
        return _success(issue=_dump(issue))
    except Exception as exc:
        return _failure(exc, "meridian_update_issue")


@server.tool(
    name="meridian_update_status",
    description="Move an issue to open, in_progress or closed.",
)
async def meridian_update_status(issue_id: str, status: str) -> str:
    """Change an issue's workflow status."""
    try:
        target = Status(status)
    except ValueError:
        return _error(
            "VALIDATION_ERROR",
            f"Invalid status '{status}'",
            "Use one of: open, in_progress, closed",
        )
    try:
        issue = await get_services().issues.update_status(issue_id, target)
        return _success(issue=_dump(issue))
    except Exception as exc:
        return _failure(exc, "meridian_update_status")


@server.tool(
    name="meridian_delete_issue",
    description="Delete an issue and every link that involves it.",
)
async def meridian_delete_issue(issue_id: str) -> str:
    """Delete an issue."""
    try:
        await get_services().issues.delete(issue_id)
        return _success(deleted=issue_id)
    except Exception as exc:
        return _failure(exc, "meridian_delete_issue")


@server.tool(
    name="meridian_reparent_issue",
    description=(
        "Move an issue under a new parent, or omit parent_id to make it a "
        "top-level issue. Cycles and hierarchies deeper than three levels are "
        "rejected."
    ),
)
async def meridian_reparent_issue(issue_id: str, parent_id: Optional[str] = None) -> str:
    """Change an issue's parent."""
    try:
        issue = await get_services().issues.reparent(issue_id, parent_id)
        return _success(issue=_dump(issue))
    except Exception as exc:
        return _failure(exc, "meridian_reparent_issue")


@server.tool(
    name="meridian_view_issue_detail",
    description="Get an issue together with its comments and relationships.",
)
async def meridian_view_issue_detail(issue_id: str) -> str:
    """Show an issue with its comments and links."""
    try:
        services = get_services()
        issue = await services.issues.get(issue_id)
        comments = await services.comments.list_for_issue(
            issue_id, PaginationParams(page=1, limit=50)
        )
        links = await services.links.list_for_issue(issue_id)
        return _success(
            issue=_dump(issue),
            comments=[_dump(comment) for comment in comments.items],
            comment_count=comments.total,
            links=[_dump(link) for link in links],
        )
    except Exception as exc:
        return _failure(exc, "meridian_view_issue_detail")


@server.tool(
    name="meridian_pick_next_task",
    description=(
        "Suggest what to work on next: the highest-priority issues, oldest "
        "first within a priority. Closed issues are skipped unless status is "
        "given. limit is 1 to 10 (default 3)."
    ),
)
async def meridian_pick_next_task(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    assignee_id: Optional[str] = None,
    limit: int = 3,
) -> str:
    """Rank open work by priority."""
    if not 1 <= limit <= 10:
        return _error("VALIDATION_ERROR", "limit must be between 1 and 10")
    try:
        criteria = {
            "status": Status(status) if status else None,
            "priority": Priority(priority) if priority else None,
            "assignee_id": assignee_id,
        }
        filters = IssueFilter(**{k: v for k, v in criteria.items() if v is not None})
        result = await get_services().issues.suggest_next(filters, limit)
        suggestions = [
            {
                "rank": rank,
                "id": issue.id,
                "title": issue.title,
                "status": issue.status.value,
                "priority": issue.priority.value,
                "assignee_ids": issue.assignee_ids,
            }
            for rank, issue in enumerate(result.items, start=1)
        ]
        return _success(suggestions=suggestions, total=result.total)
    except Exception as exc:
        return _failure(exc, "meridian_pick_next_task")


@server.tool(
    name="meridian_list_my_issues",
    description=(
        "List the issues assigned to someone, grouped by status "
        "(in_progress, open, closed). limit is 1 to 50 (default 20)."
    ),
)
async def meridian_list_my_issues(
    assignee_id: str,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> str:
    """List an assignee's issues by status."""
    if not 1 <= limit <= 50:
        return _error("VALIDATION_ERROR", "limit must be between 1 and 50")
    try:
        criteria = {"assignee_id": assignee_id, "status": Status(status) if status else None}
        filters = IssueFilter(**{k: v for k, v in criteria.items() if v is not None})
        result = await get_services().issues.list(
            filters, PaginationParams(page=page, limit=limit)
        )
        groups = []
        for group_status in STATUS_GROUP_ORDER:
            members = [i for i in result.items if i.status == group_status]
            if members:
                groups.append(
                    {"status": group_status.value, "issues": [_dump(i) for i in members]}
                )
        return _success(
            groups=groups,
            total=result.total,
            page=result.page,
            limit=result.limit,
            has_more=result.has_more,
        )
    except Exception as exc:
        return _failure(exc, "meridian_list_my_issues")


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@server.tool(
    name="meridian_add_comment",
    description="Add a markdown comment to an issue.",
)
async def meridian_add_comment(issue_id: str, body: str, author_id: str = "mcp") -> str:
    """Comment on an issue."""
    try:
        comment = await get_services().comments.create(
            CommentCreate(issue_id=issue_id, body=body, author_id=author_id)
        )
        return _success(comment=_dump(comment))
    except Exception as exc:
        return _failure(exc, "meridian_add_comment")


@server.tool(
    name="meridian_list_comments",
    description="List the comments of an issue, oldest first.",
)
async def meridian_list_comments(issue_id: str, page: int = 1, limit: int = 20) -> str:
    """List comments on an issue."""
    try:
        result = await get_services().comments.list_for_issue(
            issue_id, PaginationParams(page=page, limit=limit)
        )
        return _success(
            comments=[_dump(comment) for comment in result.items],
            total=result.total,
            has_more=result.has_more,
        )
    except Exception as exc:
        return _failure(exc, "meridian_list_comments")


@server.tool(
    name="meridian_update_comment",
    description="Replace the body of a comment.",
)
async def meridian_update_comment(comment_id: str, body: str) -> str:
    """Edit a comment."""
    try:
        comment = await get_services().comments.update(comment_id, CommentUpdate(body=body))
        return _success(comment=_dump(comment))
    except Exception as exc:
        return _failure(exc, "meridian_update_comment")


@server.tool(
    name="meridian_delete_comment",
    description="Delete a comment by ID.",
)
async def meridian_delete_comment(comment_id: str) -> str:
    """Delete a comment."""
    try:
        await get_services().comments.delete(comment_id)
        return _success(deleted=comment_id)
    except Exception as exc:
        return _failure(exc, "meridian_delete_comment")


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------


@server.tool(
    name="meridian_link_issues",
    description=(
        "Create a typed relationship source -> target. Types: blocks, "
        "duplicates, relates-to (symmetric), parent (source is the parent)."
    ),
)
async def meridian_link_issues(source_issue_id: str, target_issue_id: str, type: str) -> str:
    """Link two issues."""
    try:
        link = await get_services().links.create(
            IssueLinkCreate(
                source_issue_id=source_issue_id, target_issue_id=target_issue_id, type=type
            )
        )
        return _success(link=_dump(link))
    except Exception as exc:
        return _failure(exc, "meridian_link_issues")


@server.tool(
    name="meridian_unlink_issues",
    description="Remove a relationship by its link ID.",
)
async def meridian_unlink_issues(link_id: str) -> str:
    """Delete a link."""
    try:
        await get_services().links.delete(link_id)
        return _success(deleted=link_id)
    except Exception as exc:
        return _failure(exc, "meridian_unlink_issues")


@server.tool(
    name="meridian_list_issue_links",
    description=(
        "List the relationships of an issue, each labelled from the issue's "
        "point of view (e.g. 'blocks' vs 'is blocked by')."
    ),
)
async def meridian_list_issue_links(issue_id: str, type: Optional[str] = None) -> str:
    """List an issue's links."""
    try:
        services = get_services()
        await services.issues.get(issue_id)
        links = await services.links.list_for_issue(issue_id, type)
        return _success(links=[_dump(link) for link in links], count=len(links))
    except Exception as exc:
        return _failure(exc, "meridian_list_issue_links")


# ---------------------------------------------------------------------------
# Milestones
# ---------------------------------------------------------------------------


@server.tool(
    name="meridian_create_milestone",
    description="Create a milestone. due_date is an ISO-8601 timestamp.",
)
async def meridian_create_milestone(
    name: str, description: str = "", due_date: Optional[str] = None
) -> str:
    """Create a milestone."""
    try:
        data = MilestoneCreate(name=name, description=description, due_date=due_date)
        milestone = await get_services().milestones.create(data)
        return _success(milestone=_dump(milestone))
    except Exception as exc:
        return _failure(exc, "meridian_create_milestone")


@server.tool(
    name="meridian_list_milestones",
    description="List milestones.",
)
async def meridian_list_milestones(page: int = 1, limit: int = 20) -> str:
    """List milestones."""
    try:
        result = await get_services().milestones.list(PaginationParams(page=page, limit=limit))
        return _success(
            milestones=[_dump(milestone) for milestone in result.items],
            total=result.total,
            has_more=result.has_more,
        )
    except Exception as exc:
        return _failure(exc, "meridian_list_milestones")


@server.tool(
    name="meridian_milestone_overview",
    description="Count a milestone's issues per status.",
)
async def meridian_milestone_overview(milestone_id: str) -> str:
    """Summarize a milestone."""
    try:
        overview = await get_services().milestones.overview(milestone_id)
        return _success(
            milestone=_dump(overview.milestone),
            total_issues=overview.total_issues,
            status_breakdown=overview.status_breakdown,
        )
    except Exception as exc:
        return _failure(exc, "meridian_milestone_overview")


@server.tool(
    name="meridian_view_roadmap",
    description="Show a milestone's progress: percentage of closed issues plus the per-status counts.",
)
async def meridian_view_roadmap(milestone_id: str) -> str:
    """Report milestone progress."""
    try:
        overview = await get_services().milestones.overview(milestone_id)
        return _success(
            milestone=_dump(overview.milestone),
            completion_percentage=overview.completion_percentage(),
            total_issues=overview.total_issues,
            status_breakdown=overview.status_breakdown,
        )
    except Exception as exc:
        return _failure(exc, "meridian_view_roadmap")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(transport: Optional[str] = None):
    """Run the Meridian MCP server."""
    from .config import reset_settings
    from .log import configure_logging

    # Re-read settings from current process env (MCP config sets env vars)
    settings = reset_settings()
    configure_logging(settings.log_level, settings.log_format)
    server.run(transport=transport or settings.mcp_transport)


if __name__ == "__main__":
    main()
