"""Comment Schema."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, constr

from .primitives import new_id, utc_now


class Comment(BaseModel):
    """A remark left on an issue."""

    model_config = ConfigDict(extra="forbid")

    id: constr(min_length=1, max_length=128) = Field(default_factory=new_id)
    body: constr(min_length=1) = Field(..., description="Comment text (markdown)")
    author_id: str = Field(..., description="Authoring user")
    issue_id: str = Field(..., description="Issue the comment belongs to")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class CommentCreate(BaseModel):
    """Schema for creating a new Comment."""

    model_config = ConfigDict(extra="forbid")

    body: constr(min_length=1)
    author_id: str
    issue_id: str


class CommentUpdate(BaseModel):
    """Schema for editing a Comment."""

    model_config = ConfigDict(extra="forbid")

    body: Optional[constr(min_length=1)] = None
