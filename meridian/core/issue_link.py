"""
Issue Link Schema and the relationship type catalogue.

A link is a directed edge ``source --type--> target``. For symmetric
relationship types the edge is stored once with ``source_issue_id <
target_issue_id`` so the pair has a single canonical row.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, constr

from .enums import LinkDirection
from .primitives import new_id, utc_now


class RelationshipType(BaseModel):
    """Static catalogue entry controlling label rendering and normalisation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: constr(min_length=1)
    forward_label: constr(min_length=1)
    inverse_label: constr(min_length=1)
    symmetric: bool = False


DEFAULT_RELATIONSHIP_TYPES: Tuple[RelationshipType, ...] = (
    RelationshipType(
        name="blocks",
        forward_label="blocks",
        inverse_label="is blocked by",
        symmetric=False,
    ),
    RelationshipType(
        name="duplicates",
        forward_label="duplicates",
        inverse_label="is duplicated by",
        symmetric=False,
    ),
    RelationshipType(
        name="relates-to",
        forward_label="relates to",
        inverse_label="relates to",
        symmetric=True,
    ),
    RelationshipType(
        name="parent",
        forward_label="is parent of",
        inverse_label="is child of",
        symmetric=False,
    ),
)


def find_relationship_type(
    name: str, catalogue: Sequence[RelationshipType] = DEFAULT_RELATIONSHIP_TYPES
) -> Optional[RelationshipType]:
    for relationship_type in catalogue:
        if relationship_type.name == name:
            return relationship_type
    return None


class IssueLink(BaseModel):
    """A typed relationship between two issues."""

    model_config = ConfigDict(extra="forbid")

    id: constr(min_length=1, max_length=128) = Field(default_factory=new_id)
    source_issue_id: str = Field(..., description="Issue the relationship starts at")
    target_issue_id: str = Field(..., description="Issue the relationship points to")
    type: constr(min_length=1) = Field(..., description="Relationship type name")
    created_at: datetime = Field(default_factory=utc_now)


class IssueLinkCreate(BaseModel):
    """Schema for linking two issues."""

    model_config = ConfigDict(extra="forbid")

    source_issue_id: constr(min_length=1)
    target_issue_id: constr(min_length=1)
    type: constr(min_length=1)


class ResolvedIssueLink(BaseModel):
    """A link as seen from one of its two issues."""

    id: str
    linked_issue_id: str
    type: str
    label: str
    direction: LinkDirection
    created_at: datetime


def resolve_links(
    issue_id: str,
    links: List[IssueLink],
    catalogue: Sequence[RelationshipType] = DEFAULT_RELATIONSHIP_TYPES,
) -> List[ResolvedIssueLink]:
    """Render links relative to ``issue_id`` with forward/inverse labels."""
    resolved = []
    for link in links:
        relationship_type = find_relationship_type(link.type, catalogue)
        is_source = link.source_issue_id == issue_id
        if relationship_type is None:
            label = link.type
        elif is_source:
            label = relationship_type.forward_label
        else:
            label = relationship_type.inverse_label
        resolved.append(
            ResolvedIssueLink(
                id=link.id,
                linked_issue_id=link.target_issue_id if is_source else link.source_issue_id,
                type=link.type,
                label=label,
                direction=LinkDirection.OUTGOING if is_source else LinkDirection.INCOMING,
                created_at=link.created_at,
            )
        )
    return resolved
