"""
Access/Role provider.

Answers which courses the requesting user teaches and whether they may grade
a given activity. Role grants made at category level count for every course
below that category, at any depth, and capability grants are found by walking
the activity's context path up to the site root.
"""

from typing import Dict, Iterable, List, Optional, Set
import logging

from sqlalchemy import func, select

from marking_tree.business_logic.context import EngineContext
from marking_tree.model import (
    CONTEXT_COURSE,
    CONTEXT_COURSECAT,
    CONTEXT_MODULE,
    Context,
    CourseCategory,
    CourseModule,
    RoleAssignment,
    RoleCapability,
)
from marking_tree.query import QueryPlan

logger = logging.getLogger(__name__)

# Lets a teacher see every group of a course regardless of group mode
ACCESS_ALL_GROUPS = "moodle/site:accessallgroups"


class AccessProvider:
    """
    Per-request access lookups. Results are memoized on the EngineContext,
    keyed by user, so repeated calls during one request hit the store once.
    """

    def __init__(self, context: EngineContext, capabilities: Iterable[str]):
        self.context = context
        self.capabilities = sorted(set(capabilities))

    @property
    def db(self):
        return self.context.db

    def teacher_role_ids(self) -> List[int]:
        """Roles allowing at least one of the registered grading capabilities."""
        def load():
            if not self.capabilities:
                return []
            rows = self.db.execute(
                select(RoleCapability.roleid)
                .where(
                    RoleCapability.capability.in_(self.capabilities),
                    RoleCapability.permission == 1,
                )
                .distinct()
            ).scalars().all()
            return sorted(rows)

        return self.context.memoize("teacher_role_ids", load)

    def category_levels(self) -> int:
        """Depth of the deepest category branch on the site."""
        def load():
            depth = self.db.execute(select(func.max(CourseCategory.depth))).scalar()
            return int(depth or 0)

        return self.context.memoize("category_levels", load)

    def teaching_courses_plan(self, user_id: int, role_ids: List[int]) -> QueryPlan:
        """
        Visible courses where the user holds a teacher role, directly in the
        course context or in the context of any category above the course.
        """
        direct = QueryPlan("teaching_direct")
        direct.add_select("id", table="course", alias="course_id")
        direct.add_from("course")
        direct.add_from("context", alias="cx",
                        on="cx.instanceid = course.id AND cx.contextlevel = :tc_courselevel")
        direct.add_from("role_assignments", alias="ra", on="ra.contextid = cx.id")
        direct.add_where("course.visible = 1")
        direct.add_where("ra.userid = :tc_userid")
        direct.add_where("ra.roleid IN :tc_roleids")
        direct.add_params({
            "tc_courselevel": CONTEXT_COURSE,
            "tc_userid": user_id,
            "tc_roleids": role_ids,
        })
        members = [direct]

        levels = self.category_levels()
        if levels:
            inherited = QueryPlan("teaching_inherited")
            inherited.add_select("id", table="course", alias="course_id")
            inherited.add_from("course")
            inherited.add_from("course_categories", alias="cat1", join="LEFT JOIN",
                               on="course.category = cat1.id")
            for level in range(2, levels + 1):
                inherited.add_from("course_categories", alias=f"cat{level}", join="LEFT JOIN",
                                   on=f"cat{level - 1}.parent = cat{level}.id")
            chain = " OR ".join(f"catcx.instanceid = cat{level}.id" for level in range(1, levels + 1))
            inherited.add_where("course.visible = 1")
            inherited.add_where(
                "EXISTS (SELECT 1"
                "          FROM context catcx"
                "    INNER JOIN role_assignments catra ON catra.contextid = catcx.id"
                "         WHERE catcx.contextlevel = :tc_catlevel"
                "           AND catra.userid = :tc_userid"
                "           AND catra.roleid IN :tc_catroleids"
                f"          AND ({chain}))"
            )
            inherited.add_params({
                "tc_catlevel": CONTEXT_COURSECAT,
                "tc_userid": user_id,
                "tc_catroleids": role_ids,
            })
            members.append(inherited)

        plan = QueryPlan("teaching_courses")
        plan.add_select("course_id", table="teaching", distinct=True)
        plan.add_from(members, alias="teaching")
        return plan

    def teaching_courses(self, user_id: Optional[int] = None) -> Set[int]:
        user_id = self.context.user_id if user_id is None else user_id

        def load():
            role_ids = self.teacher_role_ids()
            if not role_ids:
                logger.debug("No teacher roles defined for the registered capabilities")
                return set()
            rendered = self.teaching_courses_plan(user_id, role_ids).render()
            rows = self.db.execute(rendered.statement(), rendered.params).scalars().all()
            return set(rows)

        if user_id != self.context.user_id:
            return load()
        return self.context.memoize("teaching_courses", load)

    def _roles_by_context(self, user_id: int) -> Dict[int, Set[int]]:
        def load():
            rows = self.db.execute(
                select(RoleAssignment.contextid, RoleAssignment.roleid)
                .where(RoleAssignment.userid == user_id)
            ).all()
            assignments: Dict[int, Set[int]] = {}
            for context_id, role_id in rows:
                assignments.setdefault(context_id, set()).add(role_id)
            return assignments

        return self.context.memoize(f"role_assignments:{user_id}", load)

    def _roles_allowing(self, capability: str) -> Set[int]:
        def load():
            rows = self.db.execute(
                select(RoleCapability.roleid).where(
                    RoleCapability.capability == capability,
                    RoleCapability.permission == 1,
                )
            ).scalars().all()
            return set(rows)

        return self.context.memoize(f"capability_roles:{capability}", load)

    def _holds(self, context: Context, capability: str, user_id: int) -> bool:
        allowing = self._roles_allowing(capability)
        if not allowing:
            return False

        assignments = self._roles_by_context(user_id)
        for context_id in context.ancestor_ids:
            if assignments.get(context_id, set()) & allowing:
                return True
        return False

    def _context_for(self, contextlevel: int, instance_id: int) -> Optional[Context]:
        return self.db.execute(
            select(Context).where(
                Context.contextlevel == contextlevel,
                Context.instanceid == instance_id,
            )
        ).scalar_one_or_none()

    def can_grade(self, activity_id: int, capability: str, user_id: Optional[int] = None) -> bool:
        """
        True when the user holds a role allowing ``capability`` anywhere on the
        activity context's path (activity, course, categories, site).
        """
        user_id = self.context.user_id if user_id is None else user_id

        activity_context = self._context_for(CONTEXT_MODULE, activity_id)
        if activity_context is None:
            logger.warning(f"Activity {activity_id} has no context row, treating as not gradable")
            return False
        return self._holds(activity_context, capability, user_id)

    def has_course_capability(self, course_id: int, capability: str, user_id: Optional[int] = None) -> bool:
        user_id = self.context.user_id if user_id is None else user_id

        course_context = self._context_for(CONTEXT_COURSE, course_id)
        if course_context is None:
            logger.warning(f"Course {course_id} has no context row")
            return False
        return self._holds(course_context, capability, user_id)

    def all_groups_courses(self) -> Set[int]:
        """Teaching courses where the user may see every group."""
        def load():
            return {
                course_id for course_id in self.teaching_courses()
                if self.has_course_capability(course_id, ACCESS_ALL_GROUPS)
            }

        return self.context.memoize("all_groups_courses", load)

    def ungradable_activities(self, capabilities_by_module: Dict[int, str]) -> Set[int]:
        """
        Activities in the user's teaching courses they cannot grade, e.g. because
        a role override removed the capability for one activity.

        Args:
            capabilities_by_module: module id -> grading capability of its source
        """
        def load():
            courses = self.teaching_courses()
            if not courses or not capabilities_by_module:
                return set()

            rows = self.db.execute(
                select(CourseModule.id, CourseModule.module).where(
                    CourseModule.course.in_(sorted(courses)),
                    CourseModule.module.in_(sorted(capabilities_by_module)),
                )
            ).all()
            return {
                activity_id for activity_id, module_id in rows
                if not self.can_grade(activity_id, capabilities_by_module[module_id])
            }

        return self.context.memoize("ungradable_activities", load)
