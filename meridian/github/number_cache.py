"""
In-process map from internal IDs to GitHub issue and milestone numbers.

Scoped to one request or sync cycle and not synchronised: share an instance
between the repositories of one session, never between concurrent workers.
"""

from typing import Dict, Optional, Set


class GitHubNumberCache:
    """ID -> number lookups plus tombstones and bulk-load flags per kind.

    ``delete_*`` removes the forward mapping and records a tombstone in the
    same call. Looking up a deleted ID with ``get_*`` is a caller bug; check
    ``is_*_deleted`` first.
    """

    def __init__(self) -> None:
        self._issues: Dict[str, int] = {}
        self._milestones: Dict[str, int] = {}
        self._deleted_issue_ids: Set[str] = set()
        self._deleted_milestone_ids: Set[str] = set()
        self._issues_bulk_loaded = False
        self._milestones_bulk_loaded = False

    # Issues

    def set_issue(self, issue_id: str, number: int) -> None:
        self._issues[issue_id] = number

    def get_issue(self, issue_id: str) -> Optional[int]:
        return self._issues.get(issue_id)

    def delete_issue(self, issue_id: str) -> None:
        self._issues.pop(issue_id, None)
        self._deleted_issue_ids.add(issue_id)

    def is_issue_deleted(self, issue_id: str) -> bool:
        return issue_id in self._deleted_issue_ids

    @property
    def issues_bulk_loaded(self) -> bool:
        return self._issues_bulk_loaded

    def mark_issues_bulk_loaded(self) -> None:
        self._issues_bulk_loaded = True

    def reset_issues_bulk_loaded(self) -> None:
        self._issues_bulk_loaded = False

    # Milestones

    def set_milestone(self, milestone_id: str, number: int) -> None:
        self._milestones[milestone_id] = number

    def get_milestone(self, milestone_id: str) -> Optional[int]:
        return self._milestones.get(milestone_id)

    def delete_milestone(self, milestone_id: str) -> None:
        self._milestones.pop(milestone_id, None)
        self._deleted_milestone_ids.add(milestone_id)

    def is_milestone_deleted(self, milestone_id: str) -> bool:
        return milestone_id in self._deleted_milestone_ids

    @property
    def milestones_bulk_loaded(self) -> bool:
        return self._milestones_bulk_loaded

    def mark_milestones_bulk_loaded(self) -> None:
        self._milestones_bulk_loaded = True

    def reset_milestones_bulk_loaded(self) -> None:
        self._milestones_bulk_loaded = False
