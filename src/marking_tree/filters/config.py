"""
Filters for the settings tree, plus the passthrough that adds the stored
display settings to nodes of either tree.

The settings tree lists every course and activity the user may configure,
with or without unmarked work, and includes hidden activities so they can
be shown again.
"""

import logging

from marking_tree.exceptions import NoAccessibleCourses
from marking_tree.filters.activity import join_activity_names
from marking_tree.filters.base import ConfigAncestorFilter, ConfigCurrentFilter, FilterRequest
from marking_tree.query import LEFT_JOIN, QueryPlan, coalesce
from marking_types.navigation import Dimension
from marking_types.settings import ScopeType

logger = logging.getLogger(__name__)


def _teaching_courses(request: FilterRequest):
    courses = request.access.teaching_courses()
    if not courses:
        raise NoAccessibleCourses(user_id=request.context.user_id)
    return sorted(courses)


class ConfigCourseAncestorFilter(ConfigAncestorFilter):
    dimension = Dimension.COURSE

    def apply(self, plan: QueryPlan, value: int, request: FilterRequest) -> None:
        name = request.context.param_name("config_courseid")
        plan.add_where(f"cm.course = :{name}")
        plan.add_param(name, value)


class ConfigCourseCurrentFilter(ConfigCurrentFilter):
    dimension = Dimension.COURSE
    id_expression = "course.id"

    def base_plan(self, request: FilterRequest) -> QueryPlan:
        courses = request.context.param_name("config_courses")

        plan = QueryPlan("config_courses")
        plan.add_select("id", table="course", alias="id")
        plan.add_from("course")
        plan.add_where(f"course.id IN :{courses}")
        plan.add_param(courses, _teaching_courses(request))
        return plan

    def apply_display(self, plan: QueryPlan, request: FilterRequest) -> None:
        plan.add_select("shortname", table="course", alias="name")
        plan.add_select("fullname", table="course", alias="tooltip")
        plan.add_order_by("course.shortname")


class ConfigActivityCurrentFilter(ConfigCurrentFilter):
    dimension = Dimension.ACTIVITY
    id_expression = "cm.id"

    def base_plan(self, request: FilterRequest) -> QueryPlan:
        name = request.context.param_name
        courses = name("config_courses")
        sources = name("config_sources")

        plan = QueryPlan("config_activities")
        plan.add_select("id", table="cm", alias="id")
        plan.add_select("name", table="configmodule", alias="type_label")
        plan.add_from("course_modules", alias="cm")
        plan.add_from("modules", alias="configmodule", on="configmodule.id = cm.module")
        plan.add_where(f"cm.course IN :{courses}")
        plan.add_where("configmodule.visible = 1")
        plan.add_where(f"configmodule.name IN :{sources}")
        plan.add_params({
            courses: _teaching_courses(request),
            sources: [source.name for source in request.sources.enabled(request.context)],
        })

        ungradable = request.access.ungradable_activities(
            request.sources.capabilities_by_module(request.context)
        )
        if ungradable:
            excluded = name("config_ungradable")
            plan.add_where(f"cm.id NOT IN :{excluded}")
            plan.add_param(excluded, ungradable)
        return plan

    def apply_display(self, plan: QueryPlan, request: FilterRequest) -> None:
        name_expression = join_activity_names(plan, "cm", request)
        plan.add_order_by(name_expression)


class ConfigPassthroughFilter:
    """
    Select the effective ``display`` and ``groupsdisplay`` flags for course
    and activity nodes. Activity settings fall back to the course's, then to
    the site default.
    """

    def apply(self, plan: QueryPlan, dimension: Dimension, id_expression: str, request: FilterRequest) -> None:
        if dimension not in (Dimension.COURSE, Dimension.ACTIVITY):
            return

        name = request.context.param_name
        config = request.context.settings
        user = name("passthrough_user")
        course_table = name("passthrough_coursetable")
        site_display = name("passthrough_display")
        site_groups = name("passthrough_groupsdisplay")

        if dimension == Dimension.ACTIVITY:
            cm_table = name("passthrough_cmtable")
            plan.add_from("marking_settings", alias="cfgcm", join=LEFT_JOIN,
                          on=f"cfgcm.tablename = :{cm_table} "
                             f"AND cfgcm.instanceid = {id_expression} "
                             f"AND cfgcm.userid = :{user}")
            plan.add_from("marking_settings", alias="cfgcourse", join=LEFT_JOIN,
                          on=f"cfgcourse.tablename = :{course_table} "
                             f"AND cfgcourse.instanceid = cm.course "
                             f"AND cfgcourse.userid = :{user}")
            plan.add_param(cm_table, ScopeType.ACTIVITY.value)
            levels = ["cfgcm", "cfgcourse"]
        else:
            plan.add_from("marking_settings", alias="cfgcourse", join=LEFT_JOIN,
                          on=f"cfgcourse.tablename = :{course_table} "
                             f"AND cfgcourse.instanceid = {id_expression} "
                             f"AND cfgcourse.userid = :{user}")
            levels = ["cfgcourse"]

        plan.add_select(coalesce(*[f"{level}.display" for level in levels], f":{site_display}"),
                        alias="display")
        plan.add_select(coalesce(*[f"{level}.groupsdisplay" for level in levels], f":{site_groups}"),
                        alias="groupsdisplay")
        plan.add_params({
            user: request.context.user_id,
            course_table: ScopeType.COURSE.value,
            site_display: config.SITE_DEFAULT_DISPLAY,
            site_groups: config.SITE_DEFAULT_GROUPS_DISPLAY,
        })
