"""
Common Primitives.

Building blocks shared by the issue, comment, milestone and link models.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, constr

from .enums import SortDirection

T = TypeVar("T")

HEX_COLOR_PATTERN = r"^#[0-9a-f]{6}$"


def new_id() -> str:
    """Generate a random UUID4 string for entities created in-process."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class Tag(BaseModel):
    """A free-form categorisation label attached to an issue."""

    model_config = ConfigDict(extra="forbid")

    id: constr(min_length=1, max_length=128) = Field(
        default_factory=new_id, description="Tag identifier"
    )
    name: constr(min_length=1, max_length=100) = Field(..., description="Tag name")
    color: Optional[constr(pattern=HEX_COLOR_PATTERN)] = Field(
        None, description="Lowercase #rrggbb color, or null"
    )


class User(BaseModel):
    """A person (or bot account) known to a backend."""

    model_config = ConfigDict(extra="forbid")

    id: constr(min_length=1, max_length=128) = Field(..., description="User id")
    name: constr(min_length=1, max_length=200) = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Email address, if known")
    avatar_url: Optional[str] = Field(None, description="Avatar URL, if known")


class PaginationParams(BaseModel):
    """Page selection for list operations."""

    model_config = ConfigDict(extra="forbid")

    page: int = Field(1, ge=1, description="1-based page number")
    limit: int = Field(20, ge=1, le=100, description="Page size")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PaginatedResult(BaseModel, Generic[T]):
    """One page of results plus the information needed to fetch the next."""

    items: List[T] = Field(default_factory=list)
    total: int = Field(0, ge=0)
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1)
    has_more: bool = False


class SortOptions(BaseModel):
    """Sort field and direction for list operations."""

    model_config = ConfigDict(extra="forbid")

    field: Literal["created_at", "updated_at", "priority", "title", "due_date"] = (
        "created_at"
    )
    direction: SortDirection = SortDirection.DESC


def paginate(items: List[T], pagination: PaginationParams) -> PaginatedResult[T]:
    """Slice an already-filtered, already-sorted list into one page."""
    start = pagination.offset
    page_items = items[start : start + pagination.limit]
    return PaginatedResult(
        items=page_items,
        total=len(items),
        page=pagination.page,
        limit=pagination.limit,
        has_more=start + len(page_items) < len(items),
    )
