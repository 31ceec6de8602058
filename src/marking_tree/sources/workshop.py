"""Workshops: real (non-example) submissions the user has not assessed yet."""

from marking_tree.business_logic.context import EngineContext
from marking_tree.query import LEFT_JOIN, QueryPlan
from marking_tree.sources.base import ACTIVITY_ALIAS, ContentSource


class WorkshopSource(ContentSource):
    name = "workshop"
    capability = "mod/workshop:editdimensions"
    activity_table = "workshop"

    def unmarked_items_plan(self, context: EngineContext) -> QueryPlan:
        plan = self.base_plan(context, student_column="sub.authorid", item_column="sub.id")
        reviewer = context.param_name("workshop_reviewer")

        plan.add_from("workshop_submissions", alias="sub", on=f"sub.workshopid = {ACTIVITY_ALIAS}.id")
        plan.add_from(
            "workshop_assessments",
            alias="assessment",
            join=LEFT_JOIN,
            on=f"assessment.submissionid = sub.id "
               f"AND assessment.reviewerid = :{reviewer} "
               f"AND assessment.grade IS NOT NULL",
        )
        plan.add_where("sub.example = 0")
        plan.add_where("assessment.id IS NULL")
        plan.add_param(reviewer, context.user_id)
        return plan
