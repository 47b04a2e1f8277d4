"""
Translate GitHub HTTP failures into the domain error taxonomy.

``map_github_error`` is the single point where transport errors become
``DomainError`` instances. It accepts ``httpx.HTTPStatusError`` as raised by
``GitHubClient`` and, more loosely, any object exposing ``status`` and
``message`` attributes.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Mapping, Optional

import httpx

from ...core.errors import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)

UNKNOWN_MESSAGE = "Unknown GitHub API error"


def _status(error: Any) -> Optional[int]:
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(response, "status", None)
    if status is None:
        status = getattr(error, "status", None)
    return status if isinstance(status, int) else None


def _payload(error: Any) -> Dict[str, Any]:
    response = getattr(error, "response", None)
    if response is None:
        return {}
    try:
        data = response.json()
    except Exception:
        # Non-JSON error bodies (HTML error pages, empty bodies)
        return {}
    return data if isinstance(data, dict) else {}


def _headers(error: Any) -> Mapping[str, str]:
    headers = getattr(getattr(error, "response", None), "headers", None)
    return headers if headers is not None else {}


def _message(error: Any, payload: Dict[str, Any]) -> str:
    message = payload.get("message")
    if isinstance(message, str) and message:
        return message
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error) or UNKNOWN_MESSAGE


def _rate_limit_message(reset: Optional[str]) -> str:
    if reset:
        try:
            resets_at = datetime.fromtimestamp(int(reset), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            return "Rate limited by GitHub API"
        stamp = resets_at.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return f"Rate limited by GitHub API. Resets at {stamp}"
    return "Rate limited by GitHub API"


def map_github_error(error: Any) -> DomainError:
    """Classify ``error`` by HTTP status. Never raises."""
    status = _status(error)
    payload = _payload(error)
    message = _message(error, payload)
    headers = _headers(error)

    if status == 404:
        return NotFoundError("Issue", message)

    if status == 401:
        return AuthorizationError(
            "access GitHub resource",
            f"token is invalid or expired ({message})",
        )

    if status == 403:
        scopes = headers.get("x-accepted-oauth-scopes")
        if scopes:
            reason = f"token lacks required scopes: {scopes} ({message})"
        else:
            reason = f"token may lack the required scopes or permissions ({message})"
        return AuthorizationError("access GitHub resource", reason)

    if status == 422:
        errors = payload.get("errors")
        first = errors[0] if isinstance(errors, list) and errors else None
        if isinstance(first, dict):
            return ValidationError(
                first.get("field") or "unknown", first.get("message") or message
            )
        return ValidationError("unknown", message)

    if status == 409:
        return ConflictError("Issue", "unknown", message)

    if status == 429:
        return DomainError(
            _rate_limit_message(headers.get("x-ratelimit-reset")), "RATE_LIMITED"
        )

    if status is not None and status >= 500:
        return DomainError(
            f"GitHub server error ({status}): {message}", "GITHUB_SERVER_ERROR"
        )

    return DomainError(f"GitHub API error: {message}", "GITHUB_ERROR")


@contextmanager
def github_errors() -> Iterator[None]:
    """Re-raise ``httpx.HTTPStatusError`` raised in the block as a domain error."""
    try:
        yield
    except httpx.HTTPStatusError as exc:
        raise map_github_error(exc) from exc
