"""
Milestone Schema.

A milestone groups issues toward a shared goal. On GitHub it is backed by a
repository milestone.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, constr

from .enums import MilestoneStatus, Status
from .primitives import new_id, utc_now


class Milestone(BaseModel):
    """A named group of issues."""

    model_config = ConfigDict(extra="forbid")

    id: constr(min_length=1, max_length=128) = Field(default_factory=new_id)
    name: constr(min_length=1, max_length=200) = Field(..., description="Milestone name")
    description: str = Field("", description="Milestone description")
    status: MilestoneStatus = Field(MilestoneStatus.OPEN)
    due_date: Optional[datetime] = Field(None, description="Due date (UTC)")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class MilestoneCreate(BaseModel):
    """Schema for creating a new Milestone."""

    model_config = ConfigDict(extra="forbid")

    name: constr(min_length=1, max_length=200)
    description: str = ""
    due_date: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class MilestoneUpdate(BaseModel):
    """Partial update of a Milestone. An explicit null ``due_date`` clears it."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[constr(min_length=1, max_length=200)] = None
    description: Optional[str] = None
    status: Optional[MilestoneStatus] = None
    due_date: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None

    def provided(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}

    def has(self, name: str) -> bool:
        return name in self.model_fields_set


class MilestoneOverview(BaseModel):
    """A milestone with its issues counted per status."""

    milestone: Milestone
    total_issues: int = Field(0, ge=0)
    status_breakdown: Dict[str, int] = Field(
        default_factory=dict, description="Issue count per status value"
    )

    def completion_percentage(self) -> int:
        """Share of closed issues, rounded half up; 0 for an empty milestone."""
        if not self.total_issues:
            return 0
        closed = self.status_breakdown.get(Status.CLOSED.value, 0)
        return int(closed * 100 / self.total_issues + 0.5)
