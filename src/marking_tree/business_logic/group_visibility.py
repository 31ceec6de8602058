"""
Group & visibility resolver.

Two steps, both plain SQL without window functions:

1. Visibility map: for every (activity, group) pair in the courses the user
   teaches, the group's display flag, taken from the activity-level group
   setting, else the course-level one, else the site default. Groups the
   user may not see because the activity runs in separate groups mode are
   hidden whatever the settings say.
2. Attribution: for every (student, activity), the highest-id group among the
   student's memberships whose display flag is not 0. A student whose groups
   are all hidden gets no row, so one submission is never counted under two
   groups.
"""

from typing import Optional
import logging

from marking_tree.business_logic.context import EngineContext
from marking_tree.exceptions import NoAccessibleCourses
from marking_tree.model import SEPARATEGROUPS
from marking_tree.permissions.access import AccessProvider
from marking_tree.query import LEFT_JOIN, QueryPlan, coalesce
from marking_types.settings import ScopeType

logger = logging.getLogger(__name__)

# Tie-break among several visible groups; "MAX" keeps the highest group id
ATTRIBUTION_POLICY = "MAX"

VISIBILITY_ALIAS = "vis"
MAX_GROUP_ALIAS = "maxgroup"


class GroupVisibilityResolver:

    def __init__(self, context: EngineContext, access: AccessProvider):
        self.context = context
        self.access = access

    def _teaching_courses(self):
        courses = self.access.teaching_courses()
        if not courses:
            raise NoAccessibleCourses(user_id=self.context.user_id)
        return sorted(courses)

    def separate_groups_hidden(self, plan: QueryPlan, user: str) -> str:
        """
        Condition true for groups of a separate-groups activity the user is
        not a member of, outside courses where they can access all groups.
        """
        name = self.context.param_name
        separate = name("vis_separate")
        plan.add_param(separate, SEPARATEGROUPS)

        condition = (
            f"((gvcourse.groupmodeforce = 1 AND gvcourse.groupmode = :{separate})"
            f"  OR (gvcourse.groupmodeforce = 0 AND gvcm.groupmode = :{separate}))"
            " AND NOT EXISTS (SELECT 1"
            "                   FROM groups_members gvteacher"
            "                  WHERE gvteacher.groupid = gvgroup.id"
            f"                   AND gvteacher.userid = :{user})"
        )
        all_groups = self.access.all_groups_courses()
        if all_groups:
            allowed = name("vis_allgroups")
            condition += f" AND gvcm.course NOT IN :{allowed}"
            plan.add_param(allowed, all_groups)
        return condition

    def visibility_plan(self, activity_id: Optional[int] = None) -> QueryPlan:
        """(activity_id, group_id, display) for every group of every activity the user teaches."""
        name = self.context.param_name
        user = name("vis_user")
        cm_table = name("vis_cmtable")
        course_table = name("vis_coursetable")
        default = name("vis_default")
        courses = name("vis_courses")

        plan = QueryPlan("group_visibility")
        configured = coalesce("gvcmgroup.display", "gvcoursegroup.display", f":{default}")
        hidden = self.separate_groups_hidden(plan, user)
        plan.add_select("id", table="gvcm", alias="activity_id")
        plan.add_select("id", table="gvgroup", alias="group_id")
        plan.add_select(f"CASE WHEN {hidden} THEN 0 ELSE {configured} END", alias="display")

        plan.add_from("course_modules", alias="gvcm")
        plan.add_from("course", alias="gvcourse", on="gvcourse.id = gvcm.course")
        plan.add_from("groups", alias="gvgroup", on="gvgroup.courseid = gvcm.course")
        plan.add_from("marking_settings", alias="gvcmset", join=LEFT_JOIN,
                      on=f"gvcmset.tablename = :{cm_table} "
                         f"AND gvcmset.instanceid = gvcm.id "
                         f"AND gvcmset.userid = :{user}")
        plan.add_from("marking_group_settings", alias="gvcmgroup", join=LEFT_JOIN,
                      on="gvcmgroup.configid = gvcmset.id AND gvcmgroup.groupid = gvgroup.id")
        plan.add_from("marking_settings", alias="gvcourseset", join=LEFT_JOIN,
                      on=f"gvcourseset.tablename = :{course_table} "
                         f"AND gvcourseset.instanceid = gvcm.course "
                         f"AND gvcourseset.userid = :{user}")
        plan.add_from("marking_group_settings", alias="gvcoursegroup", join=LEFT_JOIN,
                      on="gvcoursegroup.configid = gvcourseset.id AND gvcoursegroup.groupid = gvgroup.id")

        plan.add_where(f"gvcm.course IN :{courses}")
        plan.add_params({
            user: self.context.user_id,
            cm_table: ScopeType.ACTIVITY.value,
            course_table: ScopeType.COURSE.value,
            default: self.context.settings.DEFAULT_GROUP_VISIBILITY,
            courses: self._teaching_courses(),
        })

        if activity_id is not None:
            activity = name("vis_activity")
            plan.add_where(f"gvcm.id = :{activity}")
            plan.add_param(activity, activity_id)
        return plan

    def max_group_plan(self, activity_id: Optional[int] = None) -> QueryPlan:
        """(student_id, activity_id, group_id) with one winning visible group per pair."""
        plan = QueryPlan("max_group")
        plan.add_select("userid", table="gm", alias="student_id")
        plan.add_select("activity_id", table=VISIBILITY_ALIAS, alias="activity_id")
        plan.add_select("group_id", table=VISIBILITY_ALIAS, function=ATTRIBUTION_POLICY, alias="group_id")
        plan.add_from("groups_members", alias="gm")
        plan.add_from(self.visibility_plan(activity_id), alias=VISIBILITY_ALIAS,
                      on=f"{VISIBILITY_ALIAS}.group_id = gm.groupid")
        plan.add_where(f"{VISIBILITY_ALIAS}.display <> 0")
        return plan
