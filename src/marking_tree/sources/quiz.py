"""Quizzes: finished attempts with manually graded questions still waiting."""

from typing import Dict, Tuple

from marking_tree.business_logic.context import EngineContext
from marking_tree.filters.base import (
    COUNT_ALIAS,
    UNION_ALIAS,
    AncestorFilter,
    CurrentFilter,
    FilterRequest,
    FilterRole,
)
from marking_tree.query import QueryPlan
from marking_tree.sources.base import ACTIVITY_ALIAS, ContentSource, SourceFilter
from marking_types.navigation import Dimension


class QuestionAncestorFilter(AncestorFilter):
    dimension = Dimension.QUESTION

    def apply(self, plan: QueryPlan, value: int, request: FilterRequest) -> None:
        name = request.context.param_name("questionid")
        plan.add_where(f"qa.questionid = :{name}")
        plan.add_param(name, value)


class QuestionCurrentFilter(CurrentFilter):
    dimension = Dimension.QUESTION

    def apply_count(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_from("question_attempts", alias="qattempt", on=f"qattempt.id = {UNION_ALIAS}.item_id")
        plan.add_select("questionid", table="qattempt", alias="id", group_identity=True)

    def apply_display(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_from("question", on=f"question.id = {COUNT_ALIAS}.id")
        plan.add_select("name", table="question", alias="name")
        plan.add_select("questiontext", table="question", alias="tooltip")
        plan.add_order_by("question.name")


class QuizSource(ContentSource):
    name = "quiz"
    capability = "mod/quiz:grade"
    activity_table = "quiz"

    def unmarked_items_plan(self, context: EngineContext) -> QueryPlan:
        plan = self.base_plan(context, student_column="quizattempt.userid", item_column="qa.id")
        attempt_state = context.param_name("quiz_attempt_state")
        question_state = context.param_name("quiz_question_state")

        plan.add_from("quiz_attempts", alias="quizattempt", on=f"quizattempt.quiz = {ACTIVITY_ALIAS}.id")
        plan.add_from("question_attempts", alias="qa", on="qa.quizattemptid = quizattempt.id")
        plan.add_where(f"quizattempt.state = :{attempt_state}")
        plan.add_where(f"qa.state = :{question_state}")
        plan.add_params({
            attempt_state: "finished",
            question_state: "needsgrading",
        })
        return plan

    def dimension_filters(self) -> Dict[Tuple[Dimension, FilterRole], SourceFilter]:
        return {
            (Dimension.QUESTION, FilterRole.ANCESTOR): QuestionAncestorFilter(),
            (Dimension.QUESTION, FilterRole.CURRENT): QuestionCurrentFilter(),
        }
