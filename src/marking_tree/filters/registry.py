"""
Filter registry keyed by (source, dimension, role).

Lookups try the filter a content source registered for itself first and
fall back to the generic one. A dimension with neither is not supported for
that source, which makes the request's path invalid.
"""

from typing import TYPE_CHECKING, Dict, Optional, Tuple, Union
import logging

from marking_tree.exceptions import InvalidPath, SourceContractError
from marking_tree.filters.activity import ActivityAncestorFilter, ActivityCurrentFilter
from marking_tree.filters.base import (
    AncestorFilter,
    ConfigCurrentFilter,
    CurrentFilter,
    FilterRole,
)
from marking_tree.filters.cohort import CohortAncestorFilter, CohortCurrentFilter
from marking_tree.filters.config import (
    ConfigActivityCurrentFilter,
    ConfigCourseAncestorFilter,
    ConfigCourseCurrentFilter,
)
from marking_tree.filters.course import CourseAncestorFilter, CourseCurrentFilter
from marking_tree.filters.group import GroupAncestorFilter, GroupCurrentFilter
from marking_tree.filters.student import StudentCurrentFilter
from marking_types.navigation import Dimension

if TYPE_CHECKING:
    from marking_tree.sources.registry import SourceRegistry

logger = logging.getLogger(__name__)

Strategy = Union[AncestorFilter, CurrentFilter, ConfigCurrentFilter]
FilterKey = Tuple[Optional[str], Dimension, FilterRole]


class FilterRegistry:

    def __init__(self):
        self._filters: Dict[FilterKey, Strategy] = {}

    def register(self, strategy: Strategy, source: Optional[str] = None) -> None:
        """Register ``strategy`` generically, or for one content source."""
        key = (source, strategy.dimension, strategy.role)
        if key in self._filters:
            raise SourceContractError(
                detail=f"A {strategy.role.value} filter for '{strategy.dimension.value}' is already registered",
                context={"source": source, "dimension": strategy.dimension.value},
            )
        self._filters[key] = strategy

    def find(self, dimension: Dimension, role: FilterRole, source: Optional[str] = None) -> Optional[Strategy]:
        if source is not None:
            strategy = self._filters.get((source, dimension, role))
            if strategy is not None:
                return strategy
        return self._filters.get((None, dimension, role))

    def supports(self, dimension: Dimension, role: FilterRole, source: Optional[str] = None) -> bool:
        return self.find(dimension, role, source) is not None

    def resolve(self, dimension: Dimension, role: FilterRole, source: Optional[str] = None) -> Strategy:
        """
        Raises:
            InvalidPath: if neither the source nor the engine handles the dimension
        """
        strategy = self.find(dimension, role, source)
        if strategy is None:
            where = f" for source '{source}'" if source else ""
            raise InvalidPath(
                detail=f"Dimension '{dimension.value}' has no {role.value} filter{where}",
                context={"dimension": dimension.value, "role": role.value, "source": source},
            )
        logger.debug(f"Resolved {role.value} filter for {dimension.value}: {type(strategy).__name__}")
        return strategy


def build_default_registry(sources: "SourceRegistry") -> FilterRegistry:
    """Generic filters plus every filter the registered sources provide."""
    registry = FilterRegistry()
    for strategy in (
        CohortAncestorFilter(),
        CohortCurrentFilter(),
        CourseAncestorFilter(),
        CourseCurrentFilter(),
        ActivityAncestorFilter(),
        ActivityCurrentFilter(),
        GroupAncestorFilter(),
        GroupCurrentFilter(),
        StudentCurrentFilter(),
        ConfigCourseAncestorFilter(),
        ConfigCourseCurrentFilter(),
        ConfigActivityCurrentFilter(),
    ):
        registry.register(strategy)

    for source in sources.all():
        for (dimension, role), strategy in source.dimension_filters().items():
            if strategy.dimension != dimension or strategy.role != role:
                raise SourceContractError(
                    detail=f"Source '{source.name}' registered {type(strategy).__name__} "
                           f"as {role.value} filter for '{dimension.value}'",
                    context={"source": source.name},
                )
            registry.register(strategy, source=source.name)
    return registry
