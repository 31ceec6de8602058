"""
Forums: rated posts by other people that the user has not rated yet.

Forums add a discussion level between the activity and the students.
"""

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
from marking_tree.query import LEFT_JOIN, QueryPlan
from marking_tree.sources.base import ACTIVITY_ALIAS, ContentSource, SourceFilter
from marking_types.navigation import Dimension


class DiscussionAncestorFilter(AncestorFilter):
    dimension = Dimension.DISCUSSION

    def apply(self, plan: QueryPlan, value: int, request: FilterRequest) -> None:
        name = request.context.param_name("discussionid")
        plan.add_where(f"discussion.id = :{name}")
        plan.add_param(name, value)


class DiscussionCurrentFilter(CurrentFilter):
    """
    Discussion nodes. The UNION can only carry the shared item columns, so
    the count layer joins back from the post id to find its discussion.
    """
    dimension = Dimension.DISCUSSION

    def apply_count(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_from("forum_posts", alias="post", on=f"post.id = {UNION_ALIAS}.item_id")
        plan.add_from("forum_discussions", alias="discussion", on="discussion.id = post.discussion")
        plan.add_select("id", table="discussion", alias="id", group_identity=True)

    def apply_display(self, plan: QueryPlan, request: FilterRequest) -> None:
        eachuser = request.context.param_name("forum_eachuser")

        plan.add_from("forum_discussions", alias="outerdiscussions",
                      on=f"outerdiscussions.id = {COUNT_ALIAS}.id")
        plan.add_from("forum_posts", alias="firstpost", on="firstpost.id = outerdiscussions.firstpost")
        plan.add_from("forum", alias="outerforum", on="outerforum.id = outerdiscussions.forum")
        plan.add_from("users", alias="author", join=LEFT_JOIN, on="author.id = firstpost.userid")

        # Single-discussion-per-user forums are labelled by who started them
        plan.add_select(
            f"CASE WHEN outerforum.type = :{eachuser} "
            f"THEN author.firstname || ' ' || author.lastname "
            f"ELSE firstpost.subject END",
            alias="name",
        )
        plan.add_select("message", table="firstpost", alias="tooltip")
        plan.add_select("subject", table="firstpost", alias="description")
        plan.add_select("created", table="firstpost", alias="timestamp")
        plan.add_order_by("firstpost.created ASC")
        plan.add_param(eachuser, "eachuser")


class ForumSource(ContentSource):
    name = "forum"
    capability = "mod/forum:rate"
    activity_table = "forum"

    def unmarked_items_plan(self, context: EngineContext) -> QueryPlan:
        plan = self.base_plan(context, student_column="post.userid", item_column="post.id")
        rater = context.param_name("forum_rater")
        author = context.param_name("forum_author")
        component = context.param_name("forum_component")

        plan.add_from("forum_discussions", alias="discussion", on=f"discussion.forum = {ACTIVITY_ALIAS}.id")
        plan.add_from("forum_posts", alias="post", on="post.discussion = discussion.id")
        plan.add_from(
            "rating",
            alias="r",
            join=LEFT_JOIN,
            on=f"r.itemid = post.id AND r.component = :{component} AND r.userid = :{rater}",
        )
        plan.add_where(f"{ACTIVITY_ALIAS}.assessed > 0")
        plan.add_where(f"post.userid <> :{author}")
        plan.add_where("r.id IS NULL")
        plan.add_params({
            rater: context.user_id,
            author: context.user_id,
            component: "mod_forum",
        })
        return plan

    def dimension_filters(self) -> Dict[Tuple[Dimension, FilterRole], SourceFilter]:
        return {
            (Dimension.DISCUSSION, FilterRole.ANCESTOR): DiscussionAncestorFilter(),
            (Dimension.DISCUSSION, FilterRole.CURRENT): DiscussionCurrentFilter(),
        }
