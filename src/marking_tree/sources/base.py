"""
Content-source adapter contract.

Each content type (assignment, forum, quiz, ...) knows how to find its own
unmarked work. The engine only relies on the fixed item columns below and
never looks inside an adapter's schema.
"""

from abc import ABC, abstractmethod
from typing import Dict, Tuple, Union

from marking_tree.business_logic.context import EngineContext
from marking_tree.filters.base import AncestorFilter, CurrentFilter, FilterRole
from marking_tree.query import QueryPlan
from marking_types.navigation import Dimension

# Column contract of every item plan, in select order
ITEM_COLUMNS = ("student_id", "item_id", "activity_id", "course_id", "type_label")

# Alias of the activity's own table inside every item plan
ACTIVITY_ALIAS = "moduletable"
# Alias of course_modules inside every item plan
COURSE_MODULE_ALIAS = "cm"

SourceFilter = Union[AncestorFilter, CurrentFilter]


class ContentSource(ABC):
    """
    Adapter for one content type.

    Subclasses set ``name`` (the module name in the ``modules`` table, also
    used as the type label), ``capability`` and ``activity_table``, and
    build the item plan.
    """

    name: str
    capability: str
    activity_table: str
    activity_name_column = "name"
    activity_description_column = "intro"

    def capability_name(self) -> str:
        return self.capability

    @abstractmethod
    def unmarked_items_plan(self, context: EngineContext) -> QueryPlan:
        """One row per unmarked (student, item, activity) tuple, with ITEM_COLUMNS."""

    def dimension_filters(self) -> Dict[Tuple[Dimension, FilterRole], SourceFilter]:
        """Filters this source provides for its own sub-dimensions."""
        return {}

    def base_plan(self, context: EngineContext, student_column: str, item_column: str) -> QueryPlan:
        """
        Item plan skeleton: the activity table joined to its course module,
        selecting the contract columns. Subclasses join their item tables and
        add the "unmarked" predicates.
        """
        module_param = context.param_name(f"{self.name}_moduleid")

        plan = QueryPlan(self.name)
        plan.add_select(student_column, alias="student_id")
        plan.add_select(item_column, alias="item_id")
        plan.add_select("id", table=COURSE_MODULE_ALIAS, alias="activity_id")
        plan.add_select("course", table=COURSE_MODULE_ALIAS, alias="course_id")
        plan.add_select(f"'{self.name}'", alias="type_label")

        plan.add_from(self.activity_table, alias=ACTIVITY_ALIAS)
        plan.add_from(
            "course_modules",
            alias=COURSE_MODULE_ALIAS,
            on=f"{COURSE_MODULE_ALIAS}.instance = {ACTIVITY_ALIAS}.id "
               f"AND {COURSE_MODULE_ALIAS}.module = :{module_param}",
        )
        plan.add_param(module_param, context.module_id(self.name))
        return plan

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"

