"""
Canonical Enums.

These enums define the allowed values for issue and milestone fields.
Backend adapters MUST map tool-specific values into these canonical sets.
"""

from enum import Enum


class Priority(str, Enum):
    """Priority levels."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Status(str, Enum):
    """Issue workflow status."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class MilestoneStatus(str, Enum):
    """Milestone lifecycle status."""

    OPEN = "open"
    CLOSED = "closed"


class LinkDirection(str, Enum):
    """Direction of a link relative to the issue it was resolved for."""

    OUTGOING = "outgoing"
    INCOMING = "incoming"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


# Ordering used wherever issues are ranked by priority.
PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.NORMAL: 1,
    Priority.HIGH: 2,
    Priority.URGENT: 3,
}
