"""Tests for the marking settings repository."""

import pytest

from marking_tree.model import MarkingGroupSetting, MarkingSetting
from marking_tree.repositories import SettingsRepository
from marking_types.settings import DisplayMode, GroupSettingUpdate, ScopeType, SettingUpdate


class StaleReadRepository(SettingsRepository):
    """Misses the row on its first lookup, as if another request inserted it meanwhile."""

    def __init__(self, db):
        super().__init__(db)
        self.stale_setting_reads = 1
        self.stale_group_reads = 1

    def get_setting(self, *args, **kwargs):
        if self.stale_setting_reads:
            self.stale_setting_reads -= 1
            return None
        return super().get_setting(*args, **kwargs)

    def _locked_group_setting(self, config_id, group_id):
        if self.stale_group_reads:
            self.stale_group_reads -= 1
            return None
        return super()._locked_group_setting(config_id, group_id)


@pytest.mark.integration
class TestEffectiveSetting:
    """Activity settings override course settings, which override the site default."""

    def test_site_default(self, db, classroom):
        cm = classroom.seed.activity("assign", classroom.course, "Essay")

        effective = SettingsRepository(db).effective_setting(classroom.teacher.id, ScopeType.ACTIVITY, cm.id)

        assert effective.display == DisplayMode.SHOW_ALL
        assert effective.source is None
        assert effective.show_orphans is True
        assert effective.group_ids == []

    def test_course_setting_inherited(self, db, classroom):
        seed = classroom.seed
        cm = seed.activity("assign", classroom.course, "Essay")
        seed.setting(classroom.teacher, ScopeType.COURSE, classroom.course.id, display=0)

        effective = SettingsRepository(db).effective_setting(classroom.teacher.id, ScopeType.ACTIVITY, cm.id)

        assert effective.display == DisplayMode.HIDDEN
        assert effective.source == ScopeType.COURSE

    def test_activity_overrides_course(self, db, classroom):
        seed = classroom.seed
        cm = seed.activity("assign", classroom.course, "Essay")
        seed.setting(classroom.teacher, ScopeType.COURSE, classroom.course.id, display=1, showorphans=0)
        seed.setting(classroom.teacher, ScopeType.ACTIVITY, cm.id, display=0)

        repo = SettingsRepository(db)
        activity = repo.effective_setting(classroom.teacher.id, ScopeType.ACTIVITY, cm.id)
        course = repo.effective_setting(classroom.teacher.id, ScopeType.COURSE, classroom.course.id)

        assert activity.display == DisplayMode.HIDDEN
        assert activity.source == ScopeType.ACTIVITY
        # the activity row leaves showorphans unset, so the course's applies
        assert activity.show_orphans is False
        assert course.display == DisplayMode.SHOW_ALL

    def test_settings_are_per_user(self, db, classroom):
        seed = classroom.seed
        other = seed.user("other")
        seed.setting(other, ScopeType.COURSE, classroom.course.id, display=0)

        effective = SettingsRepository(db).effective_setting(
            classroom.teacher.id, ScopeType.COURSE, classroom.course.id
        )

        assert effective.display == DisplayMode.SHOW_ALL

    def test_show_by_group_lists_visible_groups(self, db, classroom):
        seed = classroom.seed
        first = seed.group(classroom.course, "Group A")
        second = seed.group(classroom.course, "Group B")
        setting = seed.setting(classroom.teacher, ScopeType.COURSE, classroom.course.id, groupsdisplay=1)
        seed.group_setting(setting, first, display=0)

        repo = SettingsRepository(db)
        effective = repo.effective_setting(classroom.teacher.id, ScopeType.COURSE, classroom.course.id)

        assert effective.display == DisplayMode.SHOW_BY_GROUP
        assert effective.group_ids == [second.id]
        assert [(g.name, g.display) for g in repo.available_groups(
            classroom.teacher.id, ScopeType.COURSE, classroom.course.id
        )] == [("Group A", 0), ("Group B", 1)]

    def test_activity_group_setting_overrides_course(self, db, classroom):
        seed = classroom.seed
        cm = seed.activity("assign", classroom.course, "Essay")
        group = seed.group(classroom.course, "Group A")
        course_setting = seed.setting(classroom.teacher, ScopeType.COURSE, classroom.course.id)
        seed.group_setting(course_setting, group, display=0)
        activity_setting = seed.setting(classroom.teacher, ScopeType.ACTIVITY, cm.id)
        seed.group_setting(activity_setting, group, display=1)

        repo = SettingsRepository(db)

        assert repo.group_displays(classroom.teacher.id, ScopeType.ACTIVITY, cm.id) == {group.id: 1}
        assert repo.group_displays(classroom.teacher.id, ScopeType.COURSE, classroom.course.id) == {group.id: 0}


@pytest.mark.integration
class TestSettingWrites:
    """Upserts of settings rows."""

    def test_save_creates_then_updates(self, db, classroom):
        repo = SettingsRepository(db)
        course_id = classroom.course.id

        created = repo.save_setting(classroom.teacher.id, ScopeType.COURSE, course_id, SettingUpdate(display=0))
        updated = repo.save_setting(classroom.teacher.id, ScopeType.COURSE, course_id,
                                    SettingUpdate(groupsdisplay=1))

        assert created.id == updated.id
        assert updated.display == 0
        assert updated.groupsdisplay == 1

    def test_save_group_setting_creates_scope(self, db, classroom):
        seed = classroom.seed
        group = seed.group(classroom.course, "Group A")
        repo = SettingsRepository(db)

        repo.save_group_setting(classroom.teacher.id, ScopeType.COURSE, classroom.course.id, group.id, 0)
        repo.save_group_setting(classroom.teacher.id, ScopeType.COURSE, classroom.course.id, group.id, 1)

        setting = repo.get_setting(classroom.teacher.id, ScopeType.COURSE, classroom.course.id)
        assert setting is not None
        assert [(g.groupid, g.display) for g in setting.groups] == [(group.id, 1)]

    def test_concurrent_insert_updates_existing_row(self, db, classroom):
        teacher_id, course_id = classroom.teacher.id, classroom.course.id
        classroom.seed.setting(classroom.teacher, ScopeType.COURSE, course_id, display=1, groupsdisplay=1)
        db.commit()

        saved = StaleReadRepository(db).save_setting(teacher_id, ScopeType.COURSE, course_id,
                                                     SettingUpdate(display=0))

        assert saved.display == 0
        assert saved.groupsdisplay == 1
        assert db.query(MarkingSetting).count() == 1

    def test_concurrent_group_insert_updates_existing_row(self, db, classroom):
        seed = classroom.seed
        teacher_id, course_id = classroom.teacher.id, classroom.course.id
        group = seed.group(classroom.course, "Group A")
        group_id = group.id
        setting = seed.setting(classroom.teacher, ScopeType.COURSE, course_id)
        seed.group_setting(setting, group, display=1)
        db.commit()

        saved = StaleReadRepository(db).save_group_setting(teacher_id, ScopeType.COURSE, course_id, group_id, 0)

        assert saved.display == 0
        assert db.query(MarkingGroupSetting).count() == 1

    def test_update_validation(self):
        with pytest.raises(ValueError):
            SettingUpdate(display=2)
        with pytest.raises(ValueError):
            GroupSettingUpdate(display=-1)
