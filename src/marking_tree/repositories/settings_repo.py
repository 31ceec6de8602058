"""
Settings repository for per-user marking display settings.

Reads resolve the override hierarchy (activity -> course -> site default).
Writes lock the existing row before changing it, so concurrent toggles on
the same (user, scope) are serialized by the store.
"""

from typing import Dict, List, Optional, Tuple
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marking_tree.exceptions import StoreExecutionError
from marking_tree.model import CourseModule, Group, MarkingGroupSetting, MarkingSetting
from marking_tree.settings import MarkingSettings, settings as default_settings
from marking_types.nodes import NodeGroup
from marking_types.settings import (
    DisplayMode,
    EffectiveSetting,
    ScopeType,
    SettingUpdate,
    display_mode,
)

logger = logging.getLogger(__name__)


class SettingsRepository:
    """
    Repository for MarkingSetting and MarkingGroupSetting rows.

    Used read-only by the navigation engine and for writes by the settings
    endpoints.
    """

    def __init__(self, db: Session, config: Optional[MarkingSettings] = None):
        """
        Args:
            db: SQLAlchemy session
            config: Settings carrying the site defaults
        """
        self.db = db
        self.config = config or default_settings

    # ========================================================================
    # Reads
    # ========================================================================

    def get_setting(self, user_id: int, scope_type: ScopeType, scope_id: int,
                    for_update: bool = False) -> Optional[MarkingSetting]:
        stmt = select(MarkingSetting).where(
            MarkingSetting.userid == user_id,
            MarkingSetting.tablename == ScopeType(scope_type).value,
            MarkingSetting.instanceid == scope_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def _scope_chain(self, user_id: int, scope_type: ScopeType,
                     scope_id: int) -> Tuple[List[MarkingSetting], Optional[int]]:
        """Stored settings from most to least specific, plus the scope's course id."""
        scope_type = ScopeType(scope_type)
        chain = []
        if scope_type == ScopeType.ACTIVITY:
            course_id = self.db.execute(
                select(CourseModule.course).where(CourseModule.id == scope_id)
            ).scalar_one_or_none()
            activity_setting = self.get_setting(user_id, ScopeType.ACTIVITY, scope_id)
            if activity_setting is not None:
                chain.append(activity_setting)
        else:
            course_id = scope_id

        if course_id is not None:
            course_setting = self.get_setting(user_id, ScopeType.COURSE, course_id)
            if course_setting is not None:
                chain.append(course_setting)
        return chain, course_id

    def group_displays(self, user_id: int, scope_type: ScopeType, scope_id: int) -> Dict[int, int]:
        """
        Effective visibility of every group in the scope's course, as
        group id -> display (0 hidden, 1 shown).
        """
        chain, course_id = self._scope_chain(user_id, scope_type, scope_id)
        if course_id is None:
            return {}

        group_ids = self.db.execute(
            select(Group.id).where(Group.courseid == course_id).order_by(Group.id)
        ).scalars().all()

        displays = {}
        for group_id in group_ids:
            display = self.config.DEFAULT_GROUP_VISIBILITY
            for setting in chain:
                stored = next((g.display for g in setting.groups if g.groupid == group_id), None)
                if stored is not None:
                    display = stored
                    break
            displays[group_id] = display
        return displays

    def available_groups(self, user_id: int, scope_type: ScopeType, scope_id: int) -> List[NodeGroup]:
        """Groups of the scope's course with their effective display, for the group-display menu."""
        displays = self.group_displays(user_id, scope_type, scope_id)
        if not displays:
            return []
        groups = self.db.execute(
            select(Group).where(Group.id.in_(list(displays))).order_by(Group.name, Group.id)
        ).scalars().all()
        return [NodeGroup(id=group.id, name=group.name, display=displays[group.id]) for group in groups]

    def effective_setting(self, user_id: int, scope_type: ScopeType, scope_id: int) -> EffectiveSetting:
        """
        Resolve the display mode for one scope. The most specific stored row
        wins as a whole; a missing row falls through to the next level.
        """
        scope_type = ScopeType(scope_type)
        chain, _ = self._scope_chain(user_id, scope_type, scope_id)

        if chain:
            winner = chain[0]
            mode = display_mode(winner.display, winner.groupsdisplay)
            show_orphans = next((s.showorphans for s in chain if s.showorphans is not None), None)
            source = ScopeType(winner.tablename)
        else:
            mode = display_mode(self.config.SITE_DEFAULT_DISPLAY, self.config.SITE_DEFAULT_GROUPS_DISPLAY)
            show_orphans = None
            source = None

        if show_orphans is None:
            show_orphans = self.config.NO_GROUP_DEFAULT

        group_ids = []
        if mode == DisplayMode.SHOW_BY_GROUP:
            displays = self.group_displays(user_id, scope_type, scope_id)
            group_ids = [group_id for group_id, display in displays.items() if display]

        return EffectiveSetting(
            scope_type=scope_type,
            scope_id=scope_id,
            display=mode,
            group_ids=group_ids,
            show_orphans=bool(show_orphans),
            source=source,
        )

    # ========================================================================
    # Writes
    # ========================================================================

    def _locked_setting(self, user_id: int, scope_type: ScopeType, scope_id: int) -> MarkingSetting:
        """
        The locked (user, scope) row, inserted with site defaults when missing.

        Raises:
            StoreExecutionError: if the insert conflicts and the row still
                cannot be read back
        """
        setting = self.get_setting(user_id, scope_type, scope_id, for_update=True)
        if setting is not None:
            return setting

        setting = MarkingSetting(
            userid=user_id,
            tablename=ScopeType(scope_type).value,
            instanceid=scope_id,
            display=self.config.SITE_DEFAULT_DISPLAY,
            groupsdisplay=self.config.SITE_DEFAULT_GROUPS_DISPLAY,
        )
        try:
            self.db.add(setting)
            self.db.flush()
            return setting
        except IntegrityError:
            self.db.rollback()
            logger.warning(
                f"Marking setting for user {user_id} on {ScopeType(scope_type).value} {scope_id} "
                "was created concurrently, updating it instead"
            )

        setting = self.get_setting(user_id, scope_type, scope_id, for_update=True)
        if setting is None:
            raise StoreExecutionError(
                detail="Marking setting insert conflicted but the row could not be read back",
                context={"user_id": user_id, "scope": ScopeType(scope_type).value, "scope_id": scope_id},
            )
        return setting

    def _locked_group_setting(self, config_id: int, group_id: int) -> Optional[MarkingGroupSetting]:
        return self.db.execute(
            select(MarkingGroupSetting)
            .where(MarkingGroupSetting.configid == config_id, MarkingGroupSetting.groupid == group_id)
            .with_for_update()
        ).scalar_one_or_none()

    def save_setting(self, user_id: int, scope_type: ScopeType, scope_id: int,
                     update: SettingUpdate) -> MarkingSetting:
        """Create or update the (user, scope) row. Unset fields keep their value."""
        setting = self._locked_setting(user_id, scope_type, scope_id)

        for field, value in update.model_dump(exclude_none=True).items():
            setattr(setting, field, value)

        self.db.commit()
        self.db.refresh(setting)
        logger.info(
            f"Saved marking setting for user {user_id} on {ScopeType(scope_type).value} {scope_id}: "
            f"display={setting.display} groupsdisplay={setting.groupsdisplay}"
        )
        return setting

    def save_group_setting(self, user_id: int, scope_type: ScopeType, scope_id: int,
                           group_id: int, display: int) -> MarkingGroupSetting:
        """Set one group's visibility inside a scope, creating the scope row if needed."""
        setting = self._locked_setting(user_id, scope_type, scope_id)

        group_setting = self._locked_group_setting(setting.id, group_id)

        if group_setting is None:
            group_setting = MarkingGroupSetting(groupid=group_id, display=display)
            setting.groups.append(group_setting)
            try:
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                logger.warning(f"Group {group_id} setting was created concurrently, updating it instead")
                setting = self._locked_setting(user_id, scope_type, scope_id)
                group_setting = self._locked_group_setting(setting.id, group_id)
                if group_setting is None:
                    raise StoreExecutionError(
                        detail="Group setting insert conflicted but the row could not be read back",
                        context={"configid": setting.id, "group_id": group_id},
                    )
                group_setting.display = display
        else:
            group_setting.display = display

        self.db.commit()
        self.db.refresh(group_setting)
        logger.info(
            f"Saved group {group_id} display={display} for user {user_id} "
            f"on {ScopeType(scope_type).value} {scope_id}"
        )
        return group_setting
