"""
Cohort level of the marking tree.

Cohorts sit above courses: a student counts once for every cohort they
belong to, and only work from cohort enrolments is counted while a cohort
is on the path.
"""

from marking_tree.filters.base import (
    COUNT_ALIAS,
    UNION_ALIAS,
    AncestorFilter,
    CurrentFilter,
    FilterRequest,
)
from marking_tree.query import QueryPlan
from marking_types.navigation import Dimension

COHORT_ENROL_PLUGIN = "cohort"


class CohortAncestorFilter(AncestorFilter):
    dimension = Dimension.COHORT

    def apply(self, plan: QueryPlan, value: int, request: FilterRequest) -> None:
        name = request.context.param_name("cohortid")
        plan.add_where(
            "EXISTS (SELECT 1"
            "          FROM cohort_members cohortfilter"
            f"        WHERE cohortfilter.cohortid = :{name}"
            f"          AND cohortfilter.userid = {plan.expression_for('student_id')})"
        )
        plan.add_param(name, value)


class CohortCurrentFilter(CurrentFilter):
    dimension = Dimension.COHORT

    def apply_count(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_from("cohort_members", alias="countcohort", on=f"countcohort.userid = {UNION_ALIAS}.student_id")
        plan.add_select("cohortid", table="countcohort", alias="id", group_identity=True)

    def apply_display(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_from("cohort", alias="outercohort", on=f"outercohort.id = {COUNT_ALIAS}.id")
        plan.add_select("name", table="outercohort", alias="name")
        plan.add_select("description", table="outercohort", alias="tooltip")
        plan.add_order_by("outercohort.name")
