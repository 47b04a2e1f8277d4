"""
Repository ports.

Each backend (in-memory, GitHub, ...) implements these abstract classes.
All methods are async so network-backed adapters fit the same contract.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .comment import Comment, CommentCreate, CommentUpdate
from .issue import Issue, IssueCreate, IssueFilter, IssueUpdate
from .issue_link import IssueLink
from .milestone import Milestone, MilestoneCreate, MilestoneUpdate
from .primitives import PaginatedResult, PaginationParams, SortOptions


class IssueRepository(ABC):
    """Port for issue persistence and retrieval."""

    @abstractmethod
    async def create(self, data: IssueCreate) -> Issue:
        """Create an issue and return it with its identifier and timestamps."""

    @abstractmethod
    async def get_by_id(self, issue_id: str) -> Issue:
        """Return the issue or raise ``NotFoundError``."""

    @abstractmethod
    async def update(self, issue_id: str, data: IssueUpdate) -> Issue:
        """Apply a partial update or raise ``NotFoundError``."""

    @abstractmethod
    async def delete(self, issue_id: str) -> None:
        """Delete the issue or raise ``NotFoundError``."""

    @abstractmethod
    async def list(
        self,
        filters: IssueFilter,
        pagination: PaginationParams,
        sort: Optional[SortOptions] = None,
    ) -> PaginatedResult[Issue]:
        """Return one page of matching issues. No match is an empty page."""


class CommentRepository(ABC):
    """Port for comment persistence and retrieval."""

    @abstractmethod
    async def create(self, data: CommentCreate) -> Comment: ...

    @abstractmethod
    async def get_by_id(self, comment_id: str) -> Comment: ...

    @abstractmethod
    async def update(self, comment_id: str, data: CommentUpdate) -> Comment: ...

    @abstractmethod
    async def delete(self, comment_id: str) -> None: ...

    @abstractmethod
    async def find_by_issue_id(
        self, issue_id: str, pagination: PaginationParams
    ) -> PaginatedResult[Comment]: ...


class MilestoneRepository(ABC):
    """Port for milestone persistence and retrieval."""

    @abstractmethod
    async def create(self, data: MilestoneCreate) -> Milestone: ...

    @abstractmethod
    async def get_by_id(self, milestone_id: str) -> Milestone: ...

    @abstractmethod
    async def update(self, milestone_id: str, data: MilestoneUpdate) -> Milestone: ...

    @abstractmethod
    async def delete(self, milestone_id: str) -> None: ...

    @abstractmethod
    async def list(
        self, pagination: PaginationParams, sort: Optional[SortOptions] = None
    ) -> PaginatedResult[Milestone]: ...


class IssueLinkRepository(ABC):
    """Port for issue link persistence and retrieval."""

    @abstractmethod
    async def create(self, link: IssueLink) -> IssueLink:
        """Persist a fully-formed link and return the stored version."""

    @abstractmethod
    async def delete(self, link_id: str) -> None:
        """Delete a link or raise ``NotFoundError``."""

    @abstractmethod
    async def find_by_id(self, link_id: str) -> Optional[IssueLink]: ...

    @abstractmethod
    async def find_by_issue_id(
        self, issue_id: str, link_type: Optional[str] = None
    ) -> List[IssueLink]:
        """Return links where the issue is either source or target."""

    @abstractmethod
    async def find_by_source_and_target_and_type(
        self, source_issue_id: str, target_issue_id: str, link_type: str
    ) -> Optional[IssueLink]:
        """Used for duplicate detection before creating a link."""

    @abstractmethod
    async def delete_by_issue_id(self, issue_id: str) -> None:
        """Remove every link involving the issue (cascade on issue delete)."""
