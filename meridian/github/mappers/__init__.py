"""Pure translation between GitHub payloads and domain entities."""

from . import comments, issues, labels, milestones, users
from .errors import github_errors, map_github_error
from .links import (
    ParsedLink,
    compose_body,
    parse_issue_links,
    serialize_issue_link,
    serialize_issue_links,
    strip_issue_link_comments,
)
from .pagination import parse_total_from_link_header
from .types import normalize_labels

__all__ = [
    "comments",
    "issues",
    "labels",
    "milestones",
    "users",
    "github_errors",
    "map_github_error",
    "ParsedLink",
    "compose_body",
    "parse_issue_links",
    "serialize_issue_link",
    "serialize_issue_links",
    "strip_issue_link_comments",
    "parse_total_from_link_header",
    "normalize_labels",
]
