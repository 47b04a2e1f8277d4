"""
Meridian core domain.

Backend-agnostic model of an issue tracker:

- Issue: unit of work, with priority, status, tags and an optional parent
- Comment: remark left on an issue
- Milestone: named group of issues
- IssueLink: typed relationship between two issues
- RelationshipType: catalogue entry controlling link labels and symmetry

Repositories are ports (abstract classes); services implement the use cases
on top of them.
"""

from .comment import Comment, CommentCreate, CommentUpdate
from .enums import LinkDirection, MilestoneStatus, Priority, SortDirection, Status
from .errors import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    DomainError,
    NotFoundError,
    UnknownLinkTypeError,
    ValidationError,
)
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
from .primitives import (
    PaginatedResult,
    PaginationParams,
    SortOptions,
    Tag,
    User,
    new_id,
    utc_now,
)

__all__ = [
    "AuthorizationError",
    "Comment",
    "CommentCreate",
    "CommentUpdate",
    "ConfigurationError",
    "ConflictError",
    "DEFAULT_RELATIONSHIP_TYPES",
    "DomainError",
    "Issue",
    "IssueCreate",
    "IssueFilter",
    "IssueLink",
    "IssueLinkCreate",
    "IssueUpdate",
    "LinkDirection",
    "Milestone",
    "MilestoneCreate",
    "MilestoneOverview",
    "MilestoneStatus",
    "MilestoneUpdate",
    "NotFoundError",
    "PaginatedResult",
    "PaginationParams",
    "Priority",
    "RelationshipType",
    "ResolvedIssueLink",
    "SortDirection",
    "SortOptions",
    "Status",
    "Tag",
    "UnknownLinkTypeError",
    "User",
    "ValidationError",
    "find_relationship_type",
    "new_id",
    "resolve_links",
    "utc_now",
]
