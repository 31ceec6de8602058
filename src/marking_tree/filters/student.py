"""Student level of the marking tree. Leaf nodes: clicking one opens grading."""

from marking_tree.filters.base import COUNT_ALIAS, UNION_ALIAS, CurrentFilter, FilterRequest
from marking_tree.query import QueryPlan
from marking_types.navigation import Dimension


class StudentCurrentFilter(CurrentFilter):
    dimension = Dimension.STUDENT

    def apply_count(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_select("student_id", table=UNION_ALIAS, alias="id", group_identity=True)

    def apply_display(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_from("users", alias="outeruser", on=f"outeruser.id = {COUNT_ALIAS}.id")
        plan.add_select("outeruser.firstname || ' ' || outeruser.lastname", alias="name")
        plan.add_select("firstname", table="outeruser", alias="firstname")
        plan.add_select("lastname", table="outeruser", alias="lastname")
        plan.add_order_by("outeruser.lastname")
        plan.add_order_by("outeruser.firstname")
