"""Tests for group attribution and show-by-group display."""

from types import SimpleNamespace

import pytest

from marking_tree.business_logic.context import EngineContext
from marking_tree.business_logic.group_visibility import GroupVisibilityResolver
from marking_tree.model import SEPARATEGROUPS, VISIBLEGROUPS
from marking_tree.permissions import ACCESS_ALL_GROUPS, AccessProvider
from marking_tree.repositories import SettingsRepository
from marking_types.navigation import Dimension
from marking_types.settings import ScopeType

from conftest import NOW


@pytest.fixture
def grouped(classroom):
    """
    One assignment with four submissions. Anna is in group A, Bert in B,
    Cleo in both and Dora in none.
    """
    seed = classroom.seed
    course = classroom.course
    anna, bert, cleo = classroom.students
    dora = seed.user("dora", "Dora", "Dunn")
    seed.enrol(dora, course)

    cm = seed.activity("assign", course, "Essay")
    group_a = seed.group(course, "Group A", description="<p>Morning</p>")
    group_b = seed.group(course, "Group B")
    seed.member(group_a, anna)
    seed.member(group_b, bert)
    seed.member(group_a, cleo)
    seed.member(group_b, cleo)
    for student in (anna, bert, cleo, dora):
        seed.submit(cm, student)

    return SimpleNamespace(
        seed=seed,
        teacher=classroom.teacher,
        course=course,
        cm=cm,
        group_a=group_a,
        group_b=group_b,
        anna=anna,
        bert=bert,
        cleo=cleo,
        dora=dora,
    )


def group_nodes(nodes_for, grouped):
    return nodes_for(grouped.teacher, Dimension.GROUP, courseid=grouped.course.id, coursemoduleid=grouped.cm.id)


def student_ids(nodes_for, grouped, group_id):
    nodes = nodes_for(grouped.teacher, Dimension.STUDENT,
                      courseid=grouped.course.id, coursemoduleid=grouped.cm.id, groupid=group_id)
    return [node.id for node in nodes]


@pytest.mark.integration
class TestShowAll:
    """Without group settings every group is visible."""

    def test_group_level(self, grouped, nodes_for):
        nodes = group_nodes(nodes_for, grouped)

        assert [(node.id, node.name, node.count) for node in nodes] == [
            (grouped.group_a.id, "Group A", 1),
            (grouped.group_b.id, "Group B", 2),
            (0, "Not in a group", 1),
        ]
        assert nodes[0].tooltip == "Morning"
        assert nodes[0].type == "assign"

    def test_each_submission_counted_once(self, grouped, nodes_for):
        activity = nodes_for(grouped.teacher, Dimension.ACTIVITY, courseid=grouped.course.id)
        groups = group_nodes(nodes_for, grouped)

        assert sum(node.count for node in groups) == activity[0].count == 4

    def test_highest_group_wins(self, grouped, nodes_for):
        assert student_ids(nodes_for, grouped, grouped.group_b.id) == [grouped.bert.id, grouped.cleo.id]
        assert student_ids(nodes_for, grouped, grouped.group_a.id) == [grouped.anna.id]

    def test_not_in_a_group(self, grouped, nodes_for):
        assert student_ids(nodes_for, grouped, 0) == [grouped.dora.id]


@pytest.mark.integration
class TestShowByGroup:
    """Course set to show-by-group with group A hidden."""

    @pytest.fixture(autouse=True)
    def hide_group_a(self, grouped):
        setting = grouped.seed.setting(grouped.teacher, ScopeType.COURSE, grouped.course.id, groupsdisplay=1)
        grouped.seed.group_setting(setting, grouped.group_a, display=0)
        self.setting = setting

    def test_hidden_group_left_out(self, grouped, nodes_for):
        nodes = group_nodes(nodes_for, grouped)

        assert [(node.id, node.count) for node in nodes] == [(grouped.group_b.id, 2), (0, 1)]

    def test_member_of_hidden_group_only(self, grouped, nodes_for):
        activity = nodes_for(grouped.teacher, Dimension.ACTIVITY, courseid=grouped.course.id)

        # Anna is only in the hidden group
        assert activity[0].count == 3
        assert student_ids(nodes_for, grouped, grouped.group_a.id) == []

    def test_falls_back_to_visible_group(self, grouped, nodes_for):
        assert student_ids(nodes_for, grouped, grouped.group_b.id) == [grouped.bert.id, grouped.cleo.id]

    def test_orphans_hidden(self, grouped, nodes_for):
        self.setting.showorphans = 0
        grouped.seed.db.flush()

        nodes = group_nodes(nodes_for, grouped)

        assert [(node.id, node.count) for node in nodes] == [(grouped.group_b.id, 2)]

    def test_activity_group_setting_overrides(self, grouped, nodes_for):
        seed = grouped.seed
        activity_setting = seed.setting(grouped.teacher, ScopeType.ACTIVITY, grouped.cm.id, groupsdisplay=1)
        seed.group_setting(activity_setting, grouped.group_a, display=1)
        seed.group_setting(activity_setting, grouped.group_b, display=0)

        nodes = group_nodes(nodes_for, grouped)

        assert [(node.id, node.count) for node in nodes] == [(grouped.group_a.id, 2), (0, 1)]
        assert student_ids(nodes_for, grouped, grouped.group_a.id) == [grouped.anna.id, grouped.cleo.id]


@pytest.mark.integration
class TestHiddenGroupsInShowAll:
    """Course left in show-all mode while one group is switched off."""

    @pytest.fixture(autouse=True)
    def hide_group_b(self, grouped, db):
        SettingsRepository(db).save_group_setting(
            grouped.teacher.id, ScopeType.COURSE, grouped.course.id, grouped.group_b.id, 0
        )

    def test_hidden_group_left_out(self, grouped, nodes_for):
        nodes = group_nodes(nodes_for, grouped)

        assert [(node.id, node.count) for node in nodes] == [(grouped.group_a.id, 2), (0, 1)]

    def test_hidden_members_are_not_orphans(self, grouped, nodes_for):
        # Bert is only in the hidden group
        assert student_ids(nodes_for, grouped, 0) == [grouped.dora.id]
        assert student_ids(nodes_for, grouped, grouped.group_b.id) == []

    def test_activity_count_unchanged(self, grouped, nodes_for):
        activity = nodes_for(grouped.teacher, Dimension.ACTIVITY, courseid=grouped.course.id)

        assert activity[0].count == 4


@pytest.mark.integration
class TestHiddenGroupsOnly:
    """Both of a student's groups switched off, the other group left alone."""

    def test_no_group_node_for_hidden_only_student(self, classroom, db, nodes_for):
        seed = classroom.seed
        anna, bert, _ = classroom.students
        cm = seed.activity("assign", classroom.course, "Report")
        first = seed.group(classroom.course, "First")
        second = seed.group(classroom.course, "Second")
        seed.member(first, anna)
        seed.member(first, bert)
        seed.member(second, anna)
        seed.submit(cm, anna)
        seed.submit(cm, bert)

        SettingsRepository(db).save_group_setting(classroom.teacher.id, ScopeType.ACTIVITY, cm.id, first.id, 0)

        nodes = nodes_for(classroom.teacher, Dimension.GROUP, courseid=classroom.course.id, coursemoduleid=cm.id)
        orphans = nodes_for(classroom.teacher, Dimension.STUDENT,
                            courseid=classroom.course.id, coursemoduleid=cm.id, groupid=0)

        assert [(node.id, node.count) for node in nodes] == [(second.id, 1)]
        assert orphans == []


@pytest.mark.integration
class TestSeparateGroups:
    """Groups of a separate-groups activity are only shown to their members."""

    def test_groups_hidden_from_non_member(self, grouped, nodes_for):
        grouped.cm.groupmode = SEPARATEGROUPS
        grouped.seed.db.flush()

        nodes = group_nodes(nodes_for, grouped)

        assert [(node.id, node.count) for node in nodes] == [(0, 1)]

    def test_member_sees_own_group(self, grouped, nodes_for):
        grouped.cm.groupmode = SEPARATEGROUPS
        grouped.seed.member(grouped.group_a, grouped.teacher)

        nodes = group_nodes(nodes_for, grouped)

        assert [(node.id, node.count) for node in nodes] == [(grouped.group_a.id, 2), (0, 1)]

    def test_access_all_groups(self, grouped, nodes_for):
        grouped.cm.groupmode = SEPARATEGROUPS
        manager = grouped.seed.teacher_role("manager", capabilities=[ACCESS_ALL_GROUPS])
        grouped.seed.teach(grouped.teacher, manager, grouped.course)

        nodes = group_nodes(nodes_for, grouped)

        assert [node.id for node in nodes] == [grouped.group_a.id, grouped.group_b.id, 0]

    def test_course_forced_mode(self, grouped, nodes_for):
        grouped.course.groupmode = SEPARATEGROUPS
        grouped.course.groupmodeforce = 1
        grouped.seed.member(grouped.group_b, grouped.teacher)

        nodes = group_nodes(nodes_for, grouped)

        assert [(node.id, node.count) for node in nodes] == [(grouped.group_b.id, 2), (0, 1)]

    def test_forced_course_mode_overrides_activity(self, grouped, nodes_for):
        grouped.cm.groupmode = SEPARATEGROUPS
        grouped.course.groupmode = VISIBLEGROUPS
        grouped.course.groupmodeforce = 1
        grouped.seed.db.flush()

        nodes = group_nodes(nodes_for, grouped)

        assert [node.id for node in nodes] == [grouped.group_a.id, grouped.group_b.id, 0]


@pytest.mark.integration
class TestResolver:
    """Visibility and attribution plans run straight on the store."""

    def resolver(self, db, grouped):
        context = EngineContext(db, grouped.teacher.id, now=NOW)
        access = AccessProvider(context, ["mod/assign:grade"])
        return GroupVisibilityResolver(context, access)

    def run(self, db, plan):
        rendered = plan.render()
        return db.execute(rendered.statement(), rendered.params).mappings().all()

    def test_visibility_plan(self, db, grouped):
        setting = grouped.seed.setting(grouped.teacher, ScopeType.COURSE, grouped.course.id, groupsdisplay=1)
        grouped.seed.group_setting(setting, grouped.group_b, display=0)

        rows = self.run(db, self.resolver(db, grouped).visibility_plan(grouped.cm.id))

        assert sorted((row["activity_id"], row["group_id"], row["display"]) for row in rows) == [
            (grouped.cm.id, grouped.group_a.id, 1),
            (grouped.cm.id, grouped.group_b.id, 0),
        ]

    def test_separate_groups_display_zero(self, db, grouped):
        grouped.cm.groupmode = SEPARATEGROUPS
        grouped.seed.db.flush()

        rows = self.run(db, self.resolver(db, grouped).visibility_plan(grouped.cm.id))

        assert {row["display"] for row in rows} == {0}

    def test_max_group_plan(self, db, grouped):
        rows = self.run(db, self.resolver(db, grouped).max_group_plan(grouped.cm.id))

        assert sorted((row["student_id"], row["group_id"]) for row in rows) == [
            (grouped.anna.id, grouped.group_a.id),
            (grouped.bert.id, grouped.group_b.id),
            (grouped.cleo.id, grouped.group_b.id),
        ]
