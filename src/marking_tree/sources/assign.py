"""Assignments: submitted work with no grade newer than the submission."""

from marking_tree.business_logic.context import EngineContext
from marking_tree.query import LEFT_JOIN, QueryPlan
from marking_tree.sources.base import ACTIVITY_ALIAS, ContentSource


class AssignSource(ContentSource):
    name = "assign"
    capability = "mod/assign:grade"
    activity_table = "assign"

    def unmarked_items_plan(self, context: EngineContext) -> QueryPlan:
        plan = self.base_plan(context, student_column="sub.userid", item_column="sub.id")
        status = context.param_name("assign_status")

        plan.add_from("assign_submission", alias="sub", on=f"sub.assignment = {ACTIVITY_ALIAS}.id")
        plan.add_from(
            "assign_grades",
            alias="gr",
            join=LEFT_JOIN,
            on="gr.assignment = sub.assignment "
               "AND gr.userid = sub.userid "
               "AND gr.timemodified >= sub.timemodified "
               "AND gr.grade IS NOT NULL",
        )
        plan.add_where(f"sub.status = :{status}")
        plan.add_where(f"{ACTIVITY_ALIAS}.grade <> 0")
        plan.add_where("gr.id IS NULL")
        plan.add_param(status, "submitted")
        return plan
