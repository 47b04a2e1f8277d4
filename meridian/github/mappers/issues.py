"""
GitHub issue <-> domain Issue.

Priority, status and tags ride on labels (see ``labels``). Relationship
markers in the body are metadata: ``to_domain`` strips them from the
description and ``to_update_params`` puts them back when the description
changes.
"""

import re
from typing import Any, Dict, List, Optional

from ...core.enums import Priority, Status
from ...core.issue import Issue, IssueCreate, IssueUpdate
from ..config import GitHubRepoConfig
from ..deterministic_id import issue_id, milestone_id
from . import labels as label_mapper
from .links import ParsedLink, compose_body, parse_issue_links, strip_issue_link_comments
from .types import GitHubIssue, GitHubLabel, label_name, normalize_labels
from .users import user_id_from_login
from .util import parse_timestamp

PARENT_LINK_TYPE = "parent"
_PARENT_MARKER = re.compile(r"<!-- meridian:parent=(.+?)#(\d+) -->")


def parent_marker(number: int, config: GitHubRepoConfig) -> ParsedLink:
    """Marker stored in a child's body that names its parent issue."""
    return ParsedLink(
        type=PARENT_LINK_TYPE, owner=config.owner, repo=config.repo, issue_number=number
    )


def extract_parent_id(body: Optional[str]) -> Optional[str]:
    if not body:
        return None
    match = _PARENT_MARKER.search(body)
    if match is None:
        return None
    owner, _, repo = match.group(1).partition("/")
    if not owner or not repo:
        return None
    return issue_id(owner, repo, int(match.group(2)))


def _assignee_ids(assignees: Optional[List[Dict[str, Any]]], config: GitHubRepoConfig) -> List[str]:
    return [
        user_id_from_login(assignee["login"], config)
        for assignee in assignees or []
        if assignee.get("login")
    ]


def to_domain(
    github_issue: GitHubIssue,
    config: GitHubRepoConfig,
    parent_issue_number: Optional[int] = None,
) -> Issue:
    """Map an issue payload.

    ``parent_issue_number`` is the native sub-issue parent when the caller
    looked it up; otherwise the legacy parent marker in the body is used.
    """
    labels = normalize_labels(github_issue.get("labels"))
    body = github_issue.get("body") or ""
    github_milestone = github_issue.get("milestone") or None

    if parent_issue_number is not None:
        parent_id = issue_id(config.owner, config.repo, parent_issue_number)
    else:
        parent_id = extract_parent_id(body)

    if github_milestone and github_milestone.get("number") is not None:
        owning_milestone = milestone_id(config.owner, config.repo, github_milestone["number"])
    else:
        owning_milestone = config.milestone_id

    reactions = github_issue.get("reactions") or {}

    return Issue(
        id=issue_id(config.owner, config.repo, github_issue["number"]),
        milestone_id=owning_milestone,
        title=github_issue["title"],
        description=strip_issue_link_comments(body),
        status=label_mapper.extract_status(github_issue.get("state", "open"), labels),
        priority=label_mapper.extract_priority(labels),
        parent_id=parent_id,
        assignee_ids=_assignee_ids(github_issue.get("assignees"), config),
        tags=label_mapper.extract_tags(labels),
        due_date=None,
        metadata={
            "github_number": github_issue["number"],
            "github_url": github_issue.get("html_url"),
            "github_reactions": reactions.get("total_count", 0),
            "github_locked": bool(github_issue.get("locked", False)),
            "github_milestone": github_milestone.get("title") if github_milestone else None,
        },
        created_at=parse_timestamp(github_issue["created_at"]),
        updated_at=parse_timestamp(github_issue["updated_at"]),
    )


def _state_for(status: Status) -> str:
    return "closed" if Status(status) == Status.CLOSED else "open"


def to_create_params(
    data: IssueCreate,
    config: GitHubRepoConfig,
    parent_number: Optional[int] = None,
    milestone_number: Optional[int] = None,
) -> Dict[str, Any]:
    """Build ``POST /issues`` params.

    GitHub cannot create an issue closed; callers follow up with
    ``state=closed`` when ``data.status`` is closed.
    """
    new_labels: List[str] = []
    if data.priority != Priority.NORMAL:
        new_labels.append(label_mapper.to_priority_label(data.priority))
    new_labels.extend(label_mapper.to_status_labels(data.status))
    new_labels.extend(tag.name for tag in data.tags)

    params: Dict[str, Any] = {
        "owner": config.owner,
        "repo": config.repo,
        "title": data.title,
    }

    markers = [parent_marker(parent_number, config)] if parent_number is not None else []
    body = compose_body(data.description, markers)
    if body:
        params["body"] = body
    if new_labels:
        params["labels"] = new_labels
    if milestone_number is not None:
        params["milestone"] = milestone_number
    return params


def _names(labels: List[GitHubLabel], prefix: Optional[str] = None) -> List[str]:
    names = [label_name(label) for label in labels]
    if prefix is None:
        return [name for name in names if name and not label_mapper.is_managed_label(name)]
    return [name for name in names if name.lower().startswith(prefix)]


def to_update_params(
    data: IssueUpdate,
    issue_number: int,
    config: GitHubRepoConfig,
    current_labels: Optional[List[Any]] = None,
    current_body: Optional[str] = None,
    milestone_number: Optional[int] = None,
) -> Dict[str, Any]:
    """Build ``PATCH /issues/{n}`` params from the fields the update sets.

    Labels are recomputed only when priority, status or tags change; any
    label group the update leaves alone is carried over from
    ``current_labels``.
    """
    current = normalize_labels(current_labels)
    params: Dict[str, Any] = {
        "owner": config.owner,
        "repo": config.repo,
        "issue_number": issue_number,
    }

    if data.has("title") and data.title is not None:
        params["title"] = data.title

    if data.has("description"):
        params["body"] = compose_body(data.description or "", parse_issue_links(current_body))

    if data.has("status") and data.status is not None:
        params["state"] = _state_for(data.status)

    if data.has("milestone_id"):
        params["milestone"] = milestone_number

    if any(data.has(name) for name in ("priority", "status", "tags")):
        new_labels: List[str] = []

        if data.has("tags") and data.tags is not None:
            new_labels.extend(tag.name for tag in data.tags)
        else:
            new_labels.extend(_names(current))

        if data.has("priority") and data.priority is not None:
            if data.priority != Priority.NORMAL:
                new_labels.append(label_mapper.to_priority_label(data.priority))
        else:
            new_labels.extend(_names(current, label_mapper.PRIORITY_PREFIX))

        if data.has("status") and data.status is not None:
            new_labels.extend(label_mapper.to_status_labels(data.status))
        else:
            new_labels.extend(_names(current, label_mapper.STATUS_PREFIX))

        params["labels"] = new_labels

    return params


def extract_issue_number(issue: Issue) -> Optional[int]:
    number = issue.metadata.get("github_number")
    return number if isinstance(number, int) else None


DELETED_LABEL = "deleted"


def is_deleted(github_issue: GitHubIssue) -> bool:
    """Issues closed by ``delete`` carry the ``deleted`` label and are hidden."""
    return any(
        label_name(label).lower() == DELETED_LABEL
        for label in normalize_labels(github_issue.get("labels"))
    )


def is_pull_request(github_issue: GitHubIssue) -> bool:
    return "pull_request" in github_issue
