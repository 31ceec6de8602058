"""
Display settings DTOs.

A teacher can hide a course or an activity from their marking tree, or show it
split by group. Activity-level settings override course-level ones, which
override the site default.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ScopeType(str, Enum):
    """Values of the settings table's ``tablename`` column."""
    COURSE = "course"
    ACTIVITY = "course_modules"


class DisplayMode(str, Enum):
    SHOW_ALL = "show-all"
    SHOW_BY_GROUP = "show-by-group"
    HIDDEN = "hidden"


def display_mode(display: int, groupsdisplay: int) -> DisplayMode:
    """Maps the stored (display, groupsdisplay) flags onto a display mode."""
    if not display:
        return DisplayMode.HIDDEN
    if groupsdisplay:
        return DisplayMode.SHOW_BY_GROUP
    return DisplayMode.SHOW_ALL


class EffectiveSetting(BaseModel):
    """Resolved setting for one (user, scope)."""
    scope_type: ScopeType
    scope_id: int
    display: DisplayMode
    group_ids: List[int] = Field(
        default_factory=list,
        description="Groups to show; only populated for show-by-group",
    )
    show_orphans: bool = Field(
        True,
        description="Whether students without any group membership are shown",
    )
    source: ScopeType | None = Field(
        None,
        description="Level the setting was inherited from; None means site default",
    )

    model_config = ConfigDict(use_enum_values=True)


class SettingUpdate(BaseModel):
    display: Optional[int] = Field(None, ge=0, le=1)
    groupsdisplay: Optional[int] = Field(None, ge=0, le=1)
    showorphans: Optional[int] = Field(None, ge=0, le=1)


class GroupSettingUpdate(BaseModel):
    display: int = Field(..., ge=0, le=1)
