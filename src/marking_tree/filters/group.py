"""
Group level of the marking tree.

Each (student, activity) pair is attributed to at most one visible group by
the resolver. Students with no group in the course land in group 0, "not in a
group"; students whose groups are all hidden appear under no group at all.
"""

from marking_tree.business_logic.group_visibility import MAX_GROUP_ALIAS, GroupVisibilityResolver
from marking_tree.filters.base import (
    COUNT_ALIAS,
    UNION_ALIAS,
    AncestorFilter,
    CurrentFilter,
    FilterRequest,
)
from marking_tree.query import LEFT_JOIN, QueryPlan, coalesce
from marking_types.navigation import Dimension

NOT_IN_GROUP_ID = 0

ATTRIBUTED_GROUP = coalesce(f"{MAX_GROUP_ALIAS}.group_id", str(NOT_IN_GROUP_ID))


def attach_max_group(plan: QueryPlan, student: str, activity: str, request: FilterRequest) -> None:
    """LEFT JOIN the attribution subquery unless the plan already has it."""
    if plan.has_join_table(MAX_GROUP_ALIAS):
        return
    resolver = GroupVisibilityResolver(request.context, request.access)
    plan.add_from(
        resolver.max_group_plan(request.path.get(Dimension.ACTIVITY)),
        alias=MAX_GROUP_ALIAS,
        join=LEFT_JOIN,
        on=f"{MAX_GROUP_ALIAS}.student_id = {student} AND {MAX_GROUP_ALIAS}.activity_id = {activity}",
    )


def has_no_memberships(student: str, course: str) -> str:
    """Condition true when the student belongs to no group of the course."""
    return (
        "NOT EXISTS (SELECT 1"
        "              FROM groups_members nogm"
        "        INNER JOIN groups nog ON nog.id = nogm.groupid"
        f"            WHERE nogm.userid = {student}"
        f"              AND nog.courseid = {course})"
    )


def attributable(student: str, course: str) -> str:
    """Condition true when the student has a visible group or no group at all."""
    return f"{MAX_GROUP_ALIAS}.group_id IS NOT NULL OR {has_no_memberships(student, course)}"


class GroupAncestorFilter(AncestorFilter):
    dimension = Dimension.GROUP

    def apply(self, plan: QueryPlan, value: int, request: FilterRequest) -> None:
        student = plan.expression_for("student_id")
        attach_max_group(plan, student, plan.expression_for("activity_id"), request)
        plan.add_where(attributable(student, plan.expression_for("course_id")))
        name = request.context.param_name("groupid")
        plan.add_where(f"{ATTRIBUTED_GROUP} = :{name}")
        plan.add_param(name, value)


class GroupCurrentFilter(CurrentFilter):
    dimension = Dimension.GROUP

    def apply_count(self, plan: QueryPlan, request: FilterRequest) -> None:
        attach_max_group(plan, f"{UNION_ALIAS}.student_id", f"{UNION_ALIAS}.activity_id", request)
        plan.add_where(attributable(f"{UNION_ALIAS}.student_id", f"{UNION_ALIAS}.course_id"))
        plan.add_select(ATTRIBUTED_GROUP, alias="id", group_identity=True)

    def apply_display(self, plan: QueryPlan, request: FilterRequest) -> None:
        config = request.context.settings
        name = request.context.param_name("notingroup_name")
        description = request.context.param_name("notingroup_description")

        plan.add_from("groups", alias="outergroup", join=LEFT_JOIN, on=f"outergroup.id = {COUNT_ALIAS}.id")
        plan.add_select(coalesce("outergroup.name", f":{name}"), alias="name")
        plan.add_select(coalesce("outergroup.description", f":{description}"), alias="tooltip")
        plan.add_params({
            name: config.NOT_IN_GROUP_NAME,
            description: config.NOT_IN_GROUP_DESCRIPTION,
        })
        # "Not in a group" goes last
        plan.add_order_by(f"CASE WHEN {COUNT_ALIAS}.id = {NOT_IN_GROUP_ID} THEN 1 ELSE 0 END")
        plan.add_order_by("outergroup.name")
