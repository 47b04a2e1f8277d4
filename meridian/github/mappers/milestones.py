"""GitHub milestone <-> domain Milestone."""

from typing import Any, Dict, Optional

from ...core.enums import MilestoneStatus
from ...core.milestone import Milestone, MilestoneCreate, MilestoneUpdate
from ..config import GitHubRepoConfig
from ..deterministic_id import milestone_id
from .types import GitHubMilestone
from .util import format_timestamp, parse_optional_timestamp, parse_timestamp


def to_domain(github_milestone: GitHubMilestone, config: GitHubRepoConfig) -> Milestone:
    state = github_milestone.get("state", "open")
    return Milestone(
        id=milestone_id(config.owner, config.repo, github_milestone["number"]),
        name=github_milestone["title"],
        description=github_milestone.get("description") or "",
        status=MilestoneStatus.CLOSED if state == "closed" else MilestoneStatus.OPEN,
        due_date=parse_optional_timestamp(github_milestone.get("due_on")),
        metadata={
            "github_milestone_number": github_milestone["number"],
            "github_url": github_milestone.get("html_url"),
            "github_state": state,
            "github_open_issues": github_milestone.get("open_issues", 0),
            "github_closed_issues": github_milestone.get("closed_issues", 0),
        },
        created_at=parse_timestamp(github_milestone["created_at"]),
        updated_at=parse_timestamp(github_milestone["updated_at"]),
    )


def to_create_params(data: MilestoneCreate, config: GitHubRepoConfig) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "owner": config.owner,
        "repo": config.repo,
        "title": data.name,
    }
    if data.description:
        params["description"] = data.description
    if data.due_date is not None:
        params["due_on"] = format_timestamp(data.due_date)
    return params


def to_update_params(
    data: MilestoneUpdate, milestone_number: int, config: GitHubRepoConfig
) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "owner": config.owner,
        "repo": config.repo,
        "milestone_number": milestone_number,
    }
    if data.has("name") and data.name is not None:
        params["title"] = data.name
    if data.has("description") and data.description is not None:
        params["description"] = data.description
    if data.has("status") and data.status is not None:
        params["state"] = MilestoneStatus(data.status).value
    if data.has("due_date"):
        params["due_on"] = format_timestamp(data.due_date) if data.due_date else None
    return params


def extract_milestone_number(milestone: Milestone) -> Optional[int]:
    number = milestone.metadata.get("github_milestone_number")
    return number if isinstance(number, int) else None
