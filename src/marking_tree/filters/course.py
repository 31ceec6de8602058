"""Course level of the marking tree."""

from marking_tree.filters.base import (
    COUNT_ALIAS,
    UNION_ALIAS,
    AncestorFilter,
    CurrentFilter,
    FilterRequest,
)
from marking_tree.query import QueryPlan
from marking_types.navigation import Dimension


class CourseAncestorFilter(AncestorFilter):
    dimension = Dimension.COURSE

    def apply(self, plan: QueryPlan, value: int, request: FilterRequest) -> None:
        name = request.context.param_name("courseid")
        plan.add_where(f"{plan.expression_for('course_id')} = :{name}")
        plan.add_param(name, value)


class CourseCurrentFilter(CurrentFilter):
    dimension = Dimension.COURSE

    def apply_count(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_select("course_id", table=UNION_ALIAS, alias="id", group_identity=True)

    def apply_display(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_from("course", alias="outercourse", on=f"outercourse.id = {COUNT_ALIAS}.id")
        plan.add_select("shortname", table="outercourse", alias="name")
        plan.add_select("fullname", table="outercourse", alias="tooltip")
        plan.add_order_by("outercourse.shortname")
