"""
Label vocabulary.

Priority and status live in GitHub labels (``priority:high``,
``status:in-progress``); every other label is a tag. Writers and readers
here are inverses of each other.
"""

import re
from typing import Dict, List, Optional

from ...core.enums import Priority, Status
from ...core.primitives import Tag
from .types import GitHubLabel, label_name

PRIORITY_PREFIX = "priority:"
STATUS_PREFIX = "status:"

PRIORITY_LABELS: Dict[str, Priority] = {
    f"{PRIORITY_PREFIX}{priority.value}": priority for priority in Priority
}
IN_PROGRESS_LABELS = ("status:in-progress", "status:in_progress")
IN_PROGRESS_LABEL = IN_PROGRESS_LABELS[0]

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def is_managed_label(name: str) -> bool:
    """True for labels owned by priority/status extraction rather than tags."""
    lowered = name.lower()
    return lowered.startswith(PRIORITY_PREFIX) or lowered.startswith(STATUS_PREFIX)


def extract_priority(labels: List[GitHubLabel]) -> Priority:
    """First ``priority:<level>`` label wins; ``normal`` when none match."""
    for label in labels:
        priority = PRIORITY_LABELS.get(label_name(label).lower())
        if priority is not None:
            return priority
    return Priority.NORMAL


def extract_status(github_state: str, labels: List[GitHubLabel]) -> Status:
    if github_state == "closed":
        return Status.CLOSED
    for label in labels:
        if label_name(label).lower() in IN_PROGRESS_LABELS:
            return Status.IN_PROGRESS
    return Status.OPEN


def extract_tags(labels: List[GitHubLabel]) -> List[Tag]:
    tags = []
    for label in labels:
        name = label_name(label)
        if not name or is_managed_label(name):
            continue
        label_id = label.get("id")
        tags.append(
            Tag(
                id=tag_id(label_id if isinstance(label_id, int) else 0),
                name=name,
                color=normalize_color(label.get("color")),
            )
        )
    return tags


def to_priority_label(priority: Priority) -> str:
    return f"{PRIORITY_PREFIX}{Priority(priority).value}"


def to_status_labels(status: Status) -> List[str]:
    """Only ``in_progress`` needs a label; open/closed map to the issue state."""
    if Status(status) == Status.IN_PROGRESS:
        return [IN_PROGRESS_LABEL]
    return []


def tag_id(github_label_id: int) -> str:
    """Tag IDs embed the GitHub label id directly instead of hashing it."""
    return f"00000000-0000-5000-a000-{github_label_id:012x}"


def normalize_color(color: Optional[object]) -> Optional[str]:
    if not isinstance(color, str):
        return None
    cleaned = color if color.startswith("#") else f"#{color}"
    if not _HEX_COLOR.match(cleaned):
        return None
    return cleaned.lower()
