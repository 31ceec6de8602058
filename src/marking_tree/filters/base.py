"""
Strategy interfaces for the navigation filter chain.

A filter changes a QueryPlan for one dimension. Which method runs depends on
the dimension's role in the request:

- ancestor: the dimension is already resolved; constrain each item plan.
- current: the dimension is being enumerated; set the count layer's identity
  column, then join descriptive data onto the display layer.
- config ancestor / config current: the same roles on the settings tree,
  which enumerates courses and activities directly rather than items.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from marking_tree.business_logic.context import EngineContext
from marking_tree.query import QueryPlan
from marking_types.navigation import Dimension, NavigationPath

if TYPE_CHECKING:
    from marking_tree.permissions.access import AccessProvider
    from marking_tree.sources.registry import SourceRegistry

# Alias of the UNION ALL of item plans inside the count layer
UNION_ALIAS = "moduleunion"
# Alias of the count layer inside the display layer
COUNT_ALIAS = "countwrapperquery"


class FilterRole(str, Enum):
    ANCESTOR = "ancestor"
    CURRENT = "current"
    CONFIG_ANCESTOR = "config_ancestor"
    CONFIG_CURRENT = "config_current"


@dataclass
class FilterRequest:
    """What a filter may consult besides the plan it is changing."""
    context: EngineContext
    path: NavigationPath
    access: "AccessProvider"
    sources: "SourceRegistry"


class AncestorFilter(ABC):
    dimension: Dimension
    role = FilterRole.ANCESTOR

    @abstractmethod
    def apply(self, plan: QueryPlan, value: int, request: FilterRequest) -> None:
        """Constrain ``plan`` to rows under the resolved ``value``."""


class CurrentFilter(ABC):
    dimension: Dimension
    role = FilterRole.CURRENT

    @abstractmethod
    def apply_count(self, plan: QueryPlan, request: FilterRequest) -> None:
        """Add the identity column (``id``) the count layer groups by."""

    @abstractmethod
    def apply_display(self, plan: QueryPlan, request: FilterRequest) -> None:
        """Join descriptive data for ``COUNT_ALIAS.id`` and set the ordering."""


class ConfigAncestorFilter(AncestorFilter):
    role = FilterRole.CONFIG_ANCESTOR


class ConfigCurrentFilter(ABC):
    dimension: Dimension
    role = FilterRole.CONFIG_CURRENT

    # Expression of the enumerated id inside the plan from base_plan()
    id_expression: str

    @abstractmethod
    def base_plan(self, request: FilterRequest) -> QueryPlan:
        """Plan over every course or activity the user may configure."""

    @abstractmethod
    def apply_display(self, plan: QueryPlan, request: FilterRequest) -> None:
        """Add name, tooltip and ordering."""
