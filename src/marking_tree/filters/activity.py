"""Activity (course module) level of the marking tree."""

from marking_tree.filters.base import (
    COUNT_ALIAS,
    UNION_ALIAS,
    AncestorFilter,
    CurrentFilter,
    FilterRequest,
)
from marking_tree.query import LEFT_JOIN, QueryPlan, coalesce
from marking_types.navigation import Dimension


def join_activity_names(plan: QueryPlan, cm_alias: str, request: FilterRequest) -> str:
    """
    LEFT JOIN the own table of every enabled content source onto a
    course_modules alias and select the activity's name and intro.

    Returns:
        The name expression, for ordering.
    """
    names = []
    descriptions = []
    for source in request.sources.enabled(request.context):
        alias = f"act_{source.name}"
        module = request.context.param_name(f"{source.name}_module")
        plan.add_from(
            source.activity_table,
            alias=alias,
            join=LEFT_JOIN,
            on=f"{alias}.id = {cm_alias}.instance AND {cm_alias}.module = :{module}",
        )
        plan.add_param(module, request.context.module_id(source.name))
        names.append(f"{alias}.{source.activity_name_column}")
        descriptions.append(f"{alias}.{source.activity_description_column}")

    name_expression = coalesce(*names, "''")
    plan.add_select(name_expression, alias="name")
    plan.add_select(coalesce(*descriptions, "NULL"), alias="tooltip")
    return name_expression


class ActivityAncestorFilter(AncestorFilter):
    dimension = Dimension.ACTIVITY

    def apply(self, plan: QueryPlan, value: int, request: FilterRequest) -> None:
        name = request.context.param_name("coursemoduleid")
        plan.add_where(f"{plan.expression_for('activity_id')} = :{name}")
        plan.add_param(name, value)


class ActivityCurrentFilter(CurrentFilter):
    dimension = Dimension.ACTIVITY

    def apply_count(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_select("activity_id", table=UNION_ALIAS, alias="id", group_identity=True)

    def apply_display(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_from("course_modules", alias="cm", on=f"cm.id = {COUNT_ALIAS}.id")
        name_expression = join_activity_names(plan, "cm", request)
        plan.add_order_by(name_expression)
