"""
Mandatory filters applied to the count layer of every marking-tree request:
ownership, enrolment, visibility and the user's display settings.

All of them work on the UNION's item columns, so they apply the same way to
every content source.
"""

import logging

from marking_tree.exceptions import NoAccessibleCourses
from marking_tree.filters.base import UNION_ALIAS, FilterRequest
from marking_tree.filters.cohort import COHORT_ENROL_PLUGIN
from marking_tree.filters.group import attach_max_group, has_no_memberships
from marking_tree.business_logic.group_visibility import MAX_GROUP_ALIAS
from marking_tree.query import LEFT_JOIN, QueryPlan, coalesce
from marking_types.navigation import Dimension
from marking_types.settings import ScopeType

logger = logging.getLogger(__name__)


class OwnershipFilter:
    """Only courses where the user holds a teacher role, directly or via a category."""

    def apply(self, plan: QueryPlan, request: FilterRequest) -> None:
        courses = request.access.teaching_courses()
        if not courses:
            raise NoAccessibleCourses(user_id=request.context.user_id)
        name = request.context.param_name("owned_courses")
        plan.add_where(f"{UNION_ALIAS}.course_id IN :{name}")
        plan.add_param(name, courses)


class EnrolmentFilter:
    """
    The student must hold an active enrolment, inside its time window, in an
    enabled instance of an enabled enrolment plugin in the item's course.
    While cohorts are on the path only cohort enrolments count.
    The user's own work is never counted.
    """

    def apply(self, plan: QueryPlan, request: FilterRequest) -> None:
        context = request.context
        plugins = context.settings.ENROL_PLUGINS_ENABLED
        path = request.path
        if Dimension.COHORT in path.values or path.next_dimension == Dimension.COHORT:
            plugins = [COHORT_ENROL_PLUGIN]
        me = context.param_name("enrol_me")
        plan.add_where(f"{UNION_ALIAS}.student_id <> :{me}")
        plan.add_param(me, context.user_id)

        if not plugins:
            logger.debug("No enrolment plugins enabled, no student is validly enrolled")
            plan.add_where("1 = 0")
            return

        plugin_names = context.param_name("enrol_plugins")
        now = context.param_name("enrol_now")
        plan.add_where(
            "EXISTS (SELECT 1"
            "          FROM enrol e"
            "    INNER JOIN user_enrolments ue ON ue.enrolid = e.id"
            f"        WHERE e.courseid = {UNION_ALIAS}.course_id"
            f"          AND ue.userid = {UNION_ALIAS}.student_id"
            f"          AND e.enrol IN :{plugin_names}"
            "           AND e.status = 0"
            "           AND ue.status = 0"
            f"          AND ue.timestart <= :{now}"
            f"          AND (ue.timeend = 0 OR ue.timeend > :{now}))"
        )
        plan.add_params({
            plugin_names: list(plugins),
            now: context.now,
        })


class VisibilityFilter:
    """
    The activity's module must be enabled, the activity and its course
    visible, and the user able to grade it in the activity's context.
    """

    def apply(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_from("course_modules", alias="viscm", on=f"viscm.id = {UNION_ALIAS}.activity_id")
        plan.add_from("modules", alias="vismodule", on="vismodule.id = viscm.module")
        plan.add_from("course", alias="viscourse", on=f"viscourse.id = {UNION_ALIAS}.course_id")
        plan.add_where("vismodule.visible = 1")
        plan.add_where("viscm.visible = 1")
        plan.add_where("viscourse.visible = 1")

        ungradable = request.access.ungradable_activities(
            request.sources.capabilities_by_module(request.context)
        )
        if ungradable:
            name = request.context.param_name("ungradable")
            plan.add_where(f"{UNION_ALIAS}.activity_id NOT IN :{name}")
            plan.add_param(name, ungradable)


class DisplaySettingsFilter:
    """
    Drop hidden courses and activities. When the effective setting is
    show-by-group, keep only students attributed to a visible group, plus
    students in no group at all if the scope shows those.
    """

    def apply(self, plan: QueryPlan, request: FilterRequest) -> None:
        name = request.context.param_name
        config = request.context.settings
        user = name("display_user")
        cm_table = name("display_cmtable")
        course_table = name("display_coursetable")
        site_display = name("display_default")
        site_groups = name("display_groups_default")
        orphans = name("display_orphans_default")

        plan.add_from("marking_settings", alias="setcm", join=LEFT_JOIN,
                      on=f"setcm.tablename = :{cm_table} "
                         f"AND setcm.instanceid = {UNION_ALIAS}.activity_id "
                         f"AND setcm.userid = :{user}")
        plan.add_from("marking_settings", alias="setcourse", join=LEFT_JOIN,
                      on=f"setcourse.tablename = :{course_table} "
                         f"AND setcourse.instanceid = {UNION_ALIAS}.course_id "
                         f"AND setcourse.userid = :{user}")
        attach_max_group(plan, f"{UNION_ALIAS}.student_id", f"{UNION_ALIAS}.activity_id", request)

        plan.add_where(f"{coalesce('setcm.display', 'setcourse.display', ':' + site_display)} = 1")
        plan.add_where(
            f"{coalesce('setcm.groupsdisplay', 'setcourse.groupsdisplay', ':' + site_groups)} = 0"
            f" OR {MAX_GROUP_ALIAS}.group_id IS NOT NULL"
            f" OR ({coalesce('setcm.showorphans', 'setcourse.showorphans', ':' + orphans)} = 1"
            f"     AND {has_no_memberships(f'{UNION_ALIAS}.student_id', f'{UNION_ALIAS}.course_id')})"
        )
        plan.add_params({
            user: request.context.user_id,
            cm_table: ScopeType.ACTIVITY.value,
            course_table: ScopeType.COURSE.value,
            site_display: config.SITE_DEFAULT_DISPLAY,
            site_groups: config.SITE_DEFAULT_GROUPS_DISPLAY,
            orphans: config.NO_GROUP_DEFAULT,
        })


# Applied in this order to the count layer
CROSS_CUTTING_FILTERS = (
    OwnershipFilter(),
    EnrolmentFilter(),
    VisibilityFilter(),
    DisplaySettingsFilter(),
)
