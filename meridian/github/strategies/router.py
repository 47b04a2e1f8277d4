"""Relationship type -> persistence strategy dispatch."""

from typing import Dict, List, Mapping

from ...core.errors import UnknownLinkTypeError
from .base import LinkPersistenceStrategy

DEPENDENCY_API_TYPES = frozenset({"blocks", "blocked_by"})
SUB_ISSUE_API_TYPE = "parent"


class StrategyRouter:
    """Fixed at construction; lookup order is dependency, sub-issue, markers."""

    def __init__(
        self,
        dependency_strategy: LinkPersistenceStrategy,
        sub_issue_strategy: LinkPersistenceStrategy,
        comment_strategies: Mapping[str, LinkPersistenceStrategy],
    ):
        self._dependency = dependency_strategy
        self._sub_issue = sub_issue_strategy
        self._comment: Dict[str, LinkPersistenceStrategy] = dict(comment_strategies)

    def resolve_strategy(self, link_type: str) -> LinkPersistenceStrategy:
        """Raises ``UnknownLinkTypeError`` for unregistered types."""
        if link_type in DEPENDENCY_API_TYPES:
            return self._dependency
        if link_type == SUB_ISSUE_API_TYPE:
            return self._sub_issue
        strategy = self._comment.get(link_type)
        if strategy is None:
            raise UnknownLinkTypeError(link_type)
        return strategy

    def native_strategies(self) -> List[LinkPersistenceStrategy]:
        return [self._dependency, self._sub_issue]

    def all_strategies(self) -> List[LinkPersistenceStrategy]:
        unique: List[LinkPersistenceStrategy] = []
        for strategy in [self._dependency, self._sub_issue, *self._comment.values()]:
            if not any(strategy is seen for seen in unique):
                unique.append(strategy)
        return unique

    def is_native(self, strategy: LinkPersistenceStrategy) -> bool:
        return any(strategy is native for native in self.native_strategies())
