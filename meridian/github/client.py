"""
Async GitHub REST client.

A thin layer over ``httpx.AsyncClient``. Routes are written the way GitHub
documents them (``"GET /repos/{owner}/{repo}/issues/{issue_number}"``):
placeholders are filled from keyword arguments, the remaining arguments are
sent as query parameters for GET requests and as a JSON body otherwise.

Non-2xx responses raise ``httpx.HTTPStatusError``. This module never
classifies errors; callers hand them to ``map_github_error``.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

import httpx
import structlog

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"

_PLACEHOLDER = re.compile(r"\{(\w+)\}")

logger = structlog.get_logger()

Page = Tuple[List[Dict[str, Any]], Optional[str]]


def expand_route(route: str, params: Dict[str, Any]) -> Tuple[str, str, Dict[str, Any]]:
    """Split ``"METHOD /path/{x}"`` into method, concrete path and leftover params."""
    method, _, template = route.partition(" ")
    if not template:
        raise ValueError(f"Route '{route}' must look like 'METHOD /path'")

    remaining = dict(params)

    def substitute(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in remaining:
            raise ValueError(f"Missing path parameter '{name}' for route '{route}'")
        return str(remaining.pop(name))

    path = _PLACEHOLDER.sub(substitute, template)
    return method.upper(), path, remaining


class GitHubClient:
    """Client for the subset of the GitHub REST API the adapter uses."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": "meridian-tracker",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Generic request mechanism
    # ------------------------------------------------------------------

    async def send(self, route: str, **params: Any) -> httpx.Response:
        """Send a request and return the raw response (raises on non-2xx)."""
        method, path, remaining = expand_route(route, params)
        if method == "GET":
            query = {k: v for k, v in remaining.items() if v is not None}
            response = await self.client.request(method, path, params=query)
        elif remaining:
            response = await self.client.request(method, path, json=remaining)
        else:
            response = await self.client.request(method, path)

        logger.debug(
            "github_request",
            method=method,
            path=path,
            status=response.status_code,
        )
        response.raise_for_status()
        return response

    async def request(self, route: str, **params: Any) -> Any:
        """Send a request and return the decoded JSON body, or None if empty."""
        response = await self.send(route, **params)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _page(self, route: str, **params: Any) -> Page:
        response = await self.send(route, **params)
        data = response.json() if response.content else []
        return (data if isinstance(data, list) else []), response.headers.get("link")

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def get_issue(self, **params: Any) -> Dict[str, Any]:
        return await self.request("GET /repos/{owner}/{repo}/issues/{issue_number}", **params)

    async def create_issue(self, **params: Any) -> Dict[str, Any]:
        return await self.request("POST /repos/{owner}/{repo}/issues", **params)

    async def update_issue(self, **params: Any) -> Dict[str, Any]:
        return await self.request(
            "PATCH /repos/{owner}/{repo}/issues/{issue_number}", **params
        )

    async def list_issues(self, **params: Any) -> Page:
        return await self._page("GET /repos/{owner}/{repo}/issues", **params)

    async def search_issues(self, **params: Any) -> Dict[str, Any]:
        return await self.request("GET /search/issues", **params)

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def list_issue_comments(self, **params: Any) -> Page:
        return await self._page(
            "GET /repos/{owner}/{repo}/issues/{issue_number}/comments", **params
        )

    async def list_repo_comments(self, **params: Any) -> Page:
        return await self._page("GET /repos/{owner}/{repo}/issues/comments", **params)

    async def get_comment(self, **params: Any) -> Dict[str, Any]:
        return await self.request(
            "GET /repos/{owner}/{repo}/issues/comments/{comment_id}", **params
        )

    async def create_comment(self, **params: Any) -> Dict[str, Any]:
        return await self.request(
            "POST /repos/{owner}/{repo}/issues/{issue_number}/comments", **params
        )

    async def update_comment(self, **params: Any) -> Dict[str, Any]:
        return await self.request(
            "PATCH /repos/{owner}/{repo}/issues/comments/{comment_id}", **params
        )

    async def delete_comment(self, **params: Any) -> None:
        await self.request(
            "DELETE /repos/{owner}/{repo}/issues/comments/{comment_id}", **params
        )

    # ------------------------------------------------------------------
    # Milestones
    # ------------------------------------------------------------------

    async def get_milestone(self, **params: Any) -> Dict[str, Any]:
        return await self.request(
            "GET /repos/{owner}/{repo}/milestones/{milestone_number}", **params
        )

    async def create_milestone(self, **params: Any) -> Dict[str, Any]:
        return await self.request("POST /repos/{owner}/{repo}/milestones", **params)

    async def update_milestone(self, **params: Any) -> Dict[str, Any]:
        return await self.request(
            "PATCH /repos/{owner}/{repo}/milestones/{milestone_number}", **params
        )

    async def delete_milestone(self, **params: Any) -> None:
        await self.request(
            "DELETE /repos/{owner}/{repo}/milestones/{milestone_number}", **params
        )

    async def list_milestones(self, **params: Any) -> Page:
        return await self._page("GET /repos/{owner}/{repo}/milestones", **params)
