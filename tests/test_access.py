"""Tests for the access/role provider."""

import pytest

from marking_tree.business_logic.context import EngineContext
from marking_tree.model import CONTEXT_COURSECAT, CONTEXT_MODULE
from marking_tree.permissions import ACCESS_ALL_GROUPS, AccessProvider
from marking_tree.sources import default_source_registry

from conftest import GRADING_CAPABILITIES, NOW


def access_for(db, user) -> AccessProvider:
    context = EngineContext(db, user.id, now=NOW)
    return AccessProvider(context, default_source_registry().capabilities())


@pytest.mark.integration
class TestTeachingCourses:
    """Courses reached through course or category role assignments."""

    def test_direct_assignment(self, db, classroom):
        access = access_for(db, classroom.teacher)

        assert access.teaching_courses() == {classroom.course.id}

    def test_student_teaches_nothing(self, db, classroom):
        access = access_for(db, classroom.students[0])

        assert access.teaching_courses() == set()

    def test_inherited_from_nested_category(self, db, seed):
        role = seed.teacher_role()
        head = seed.user("head")
        faculty = seed.category("Faculty")
        department = seed.category("Department", parent=faculty)
        programme = seed.category("Programme", parent=department)
        nested = seed.course("NESTED", category=programme)
        elsewhere = seed.course("ELSEWHERE", category=seed.category("Other"))
        seed.assign_role(head, role, seed.context_of(CONTEXT_COURSECAT, faculty.id))

        access = access_for(db, head)

        assert access.category_levels() == 3
        assert access.teaching_courses() == {nested.id}
        assert elsewhere.id not in access.teaching_courses()

    def test_hidden_course_excluded(self, db, seed):
        role = seed.teacher_role()
        teacher = seed.user("teacher")
        hidden = seed.course("HIDDEN", visible=0)
        seed.teach(teacher, role, hidden)

        assert access_for(db, teacher).teaching_courses() == set()

    def test_role_without_grading_capability(self, db, seed):
        role = seed.teacher_role("viewer", capabilities=["moodle/course:view"])
        viewer = seed.user("viewer")
        course = seed.course("C1")
        seed.teach(viewer, role, course)

        assert access_for(db, viewer).teaching_courses() == set()

    def test_memoized_until_invalidated(self, db, classroom, seed):
        access = access_for(db, classroom.teacher)
        assert access.teaching_courses() == {classroom.course.id}

        second = seed.course("C2")
        seed.teach(classroom.teacher, classroom.role, second)

        assert access.teaching_courses() == {classroom.course.id}
        access.context.invalidate()
        assert access.teaching_courses() == {classroom.course.id, second.id}


@pytest.mark.integration
class TestCanGrade:
    """Capability checks along the activity's context path."""

    def test_course_role_grants_activity(self, db, classroom, seed):
        cm = seed.activity("assign", classroom.course, "Essay")

        assert access_for(db, classroom.teacher).can_grade(cm.id, "mod/assign:grade")

    def test_capability_not_held(self, db, seed, classroom):
        limited = seed.teacher_role("marker", capabilities=["mod/assign:grade"])
        marker = seed.user("marker")
        seed.teach(marker, limited, classroom.course)
        forum = seed.activity("forum", classroom.course, "Debate")

        access = access_for(db, marker)

        assert not access.can_grade(forum.id, "mod/forum:rate")
        assert access.ungradable_activities({seed.modules["forum"].id: "mod/forum:rate"}) == {forum.id}

    def test_activity_level_assignment(self, db, seed, classroom):
        role = seed.teacher_role("activitymarker", capabilities=GRADING_CAPABILITIES)
        helper = seed.user("helper")
        first = seed.activity("assign", classroom.course, "First")
        second = seed.activity("assign", classroom.course, "Second")
        seed.assign_role(helper, role, seed.context_of(CONTEXT_MODULE, first.id))

        access = access_for(db, helper)

        assert access.can_grade(first.id, "mod/assign:grade")
        assert not access.can_grade(second.id, "mod/assign:grade")

    def test_activity_without_context(self, db, classroom):
        assert not access_for(db, classroom.teacher).can_grade(9999, "mod/assign:grade")


@pytest.mark.integration
class TestAllGroups:
    """Courses where every group is visible to the user."""

    def test_without_capability(self, db, classroom):
        access = access_for(db, classroom.teacher)

        assert not access.has_course_capability(classroom.course.id, ACCESS_ALL_GROUPS)
        assert access.all_groups_courses() == set()

    def test_granted_at_category(self, db, classroom, seed):
        manager = seed.teacher_role("manager", capabilities=[ACCESS_ALL_GROUPS])
        seed.assign_role(classroom.teacher, manager, seed.context_of(CONTEXT_COURSECAT, classroom.category.id))

        access = access_for(db, classroom.teacher)

        assert access.has_course_capability(classroom.course.id, ACCESS_ALL_GROUPS)
        assert access.all_groups_courses() == {classroom.course.id}

    def test_only_teaching_courses(self, db, classroom, seed):
        manager = seed.teacher_role("manager", capabilities=[ACCESS_ALL_GROUPS])
        other = seed.course("OTHER")
        seed.teach(classroom.teacher, manager, other)

        access = access_for(db, classroom.teacher)

        assert access.has_course_capability(other.id, ACCESS_ALL_GROUPS)
        assert access.all_groups_courses() == set()
