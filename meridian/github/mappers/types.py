"""Shapes of GitHub payloads and the normalisation they need before mapping."""

from typing import Any, Dict, List, Optional

# GitHub payloads are plain decoded JSON; these aliases document intent.
GitHubIssue = Dict[str, Any]
GitHubComment = Dict[str, Any]
GitHubMilestone = Dict[str, Any]
GitHubUser = Dict[str, Any]
GitHubLabel = Dict[str, Any]


def normalize_labels(labels: Optional[List[Any]]) -> List[GitHubLabel]:
    """Turn a mixed list of label names and label objects into objects.

    GitHub returns label objects, but issue payloads built by hand (and some
    endpoints) use bare strings. Anything else is dropped.
    """
    normalized: List[GitHubLabel] = []
    for label in labels or []:
        if isinstance(label, str):
            normalized.append({"name": label})
        elif isinstance(label, dict):
            normalized.append(label)
    return normalized


def label_name(label: GitHubLabel) -> str:
    name = label.get("name")
    return name if isinstance(name, str) else ""
