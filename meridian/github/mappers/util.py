"""Small parsing helpers shared by the mappers."""

from datetime import datetime, timezone
from typing import Optional


def parse_timestamp(value: str) -> datetime:
    """Parse GitHub's ISO-8601 timestamps (``2024-01-02T03:04:05Z``)."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_optional_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Like ``parse_timestamp`` but maps missing or malformed input to None."""
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        return None


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
