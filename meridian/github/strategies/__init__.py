"""Link persistence strategies and the router that picks between them."""

from .base import LinkPersistenceStrategy
from .comment_fallback import CommentFallbackStrategy
from .dependency_api import DependencyApiStrategy
from .router import DEPENDENCY_API_TYPES, SUB_ISSUE_API_TYPE, StrategyRouter
from .sub_issue_api import SubIssueApiStrategy

__all__ = [
    "LinkPersistenceStrategy",
    "CommentFallbackStrategy",
    "DependencyApiStrategy",
    "SubIssueApiStrategy",
    "StrategyRouter",
    "DEPENDENCY_API_TYPES",
    "SUB_ISSUE_API_TYPE",
]
