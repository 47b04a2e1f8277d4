"""
Issue Schema.

Represents a unit of work tracked by a backend.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, constr

from .enums import Priority, Status
from .primitives import Tag, new_id, utc_now


class Issue(BaseModel):
    """A unit of work.

    Invariants:
    - ``status`` is ``closed`` exactly when the backend considers the issue closed.
    - ``parent_id`` never equals ``id``.
    """

    model_config = ConfigDict(extra="forbid")

    id: constr(min_length=1, max_length=128) = Field(
        default_factory=new_id, description="Issue identifier"
    )
    milestone_id: Optional[str] = Field(None, description="Owning milestone")
    title: constr(min_length=1, max_length=500) = Field(..., description="Issue title")
    description: str = Field("", description="Issue body (markdown)")
    status: Status = Field(Status.OPEN, description="Workflow status")
    priority: Priority = Field(Priority.NORMAL, description="Priority level")
    parent_id: Optional[str] = Field(None, description="Parent issue, if any")
    assignee_ids: List[str] = Field(default_factory=list, description="Assigned users")
    tags: List[Tag] = Field(default_factory=list, description="Categorization tags")
    due_date: Optional[datetime] = Field(None, description="Due date (UTC)")
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Backend-specific metadata"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class IssueCreate(BaseModel):
    """Schema for creating a new Issue."""

    model_config = ConfigDict(extra="forbid")

    title: constr(min_length=1, max_length=500)
    description: str = ""
    milestone_id: Optional[str] = None
    status: Status = Status.OPEN
    priority: Priority = Priority.NORMAL
    parent_id: Optional[str] = None
    assignee_ids: List[str] = Field(default_factory=list)
    tags: List[Tag] = Field(default_factory=list)
    due_date: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class IssueUpdate(BaseModel):
    """Partial update of an Issue.

    Only fields explicitly provided are applied; an explicit ``None`` for
    ``parent_id``, ``milestone_id`` or ``due_date`` clears the field.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[constr(min_length=1, max_length=500)] = None
    description: Optional[str] = None
    milestone_id: Optional[str] = None
    status: Optional[Status] = None
    priority: Optional[Priority] = None
    parent_id: Optional[str] = None
    assignee_ids: Optional[List[str]] = None
    tags: Optional[List[Tag]] = None
    due_date: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None

    def provided(self) -> Dict[str, Any]:
        """Return only the fields the caller set, keeping explicit nulls."""
        return {name: getattr(self, name) for name in self.model_fields_set}

    def has(self, name: str) -> bool:
        return name in self.model_fields_set


class IssueFilter(BaseModel):
    """Filter criteria for listing issues. All fields combine with AND."""

    model_config = ConfigDict(extra="forbid")

    milestone_id: Optional[str] = None
    status: Optional[Status] = None
    priority: Optional[Priority] = None
    parent_id: Optional[str] = None
    assignee_id: Optional[str] = None
    search: Optional[str] = None
