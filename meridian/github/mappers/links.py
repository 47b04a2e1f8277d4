"""
Relationship markers embedded in issue bodies.

Backends without a native relationship API store links as invisible HTML
comments, one per line::

    <!-- meridian:relates-to=acme/widgets#42 -->

The text format is persisted state and must stay bit-exact.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

MARKER_PATTERN = re.compile(r"<!-- meridian:([^\s=]+)=([^\s/]+)/([^\s#]+)#(\d+) -->")
MARKER_LINE_PATTERN = re.compile(
    r"^[ \t]*<!-- meridian:[^\s=]+=[^\s/]+/[^\s#]+#\d+ -->[ \t]*\r?\n?",
    re.MULTILINE,
)


@dataclass(frozen=True)
class ParsedLink:
    """A relationship recovered from a marker or a native API payload.

    ``reversed`` means ``issue_number`` is the *source* of the relationship,
    not its target, so the consumer must swap the two when building an
    ``IssueLink``.
    """

    type: str
    owner: str
    repo: str
    issue_number: int
    reversed: bool = False


def parse_issue_links(body: Optional[str]) -> List[ParsedLink]:
    """Return every marker in ``body`` in order; empty or missing body yields []."""
    if not body:
        return []
    return [
        ParsedLink(
            type=match.group(1),
            owner=match.group(2),
            repo=match.group(3),
            issue_number=int(match.group(4)),
        )
        for match in MARKER_PATTERN.finditer(body)
    ]


def serialize_issue_link(link: ParsedLink) -> str:
    return f"<!-- meridian:{link.type}={link.owner}/{link.repo}#{link.issue_number} -->"


def serialize_issue_links(links: List[ParsedLink]) -> str:
    """One marker per line, input order, no dedup."""
    return "\n".join(serialize_issue_link(link) for link in links)


def strip_issue_link_comments(body: Optional[str]) -> str:
    """Remove whole marker lines and trim what is left."""
    if not body:
        return ""
    return MARKER_LINE_PATTERN.sub("", body).strip()


def compose_body(text: Optional[str], links: List[ParsedLink]) -> str:
    """Human text followed by the marker block (either part may be empty)."""
    stripped = strip_issue_link_comments(text)
    markers = serialize_issue_links(links)
    if stripped and markers:
        return f"{stripped}\n{markers}"
    return stripped or markers
