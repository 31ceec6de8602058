"""API endpoints for reading and changing the user's display settings."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marking_tree.api.dependencies import get_current_user_id
from marking_tree.database import get_db
from marking_tree.repositories.settings_repo import SettingsRepository
from marking_types.settings import EffectiveSetting, GroupSettingUpdate, ScopeType, SettingUpdate

settings_router = APIRouter()


@settings_router.get("/{scope_type}/{scope_id}", response_model=EffectiveSetting)
async def get_effective_setting(
    scope_type: ScopeType,
    scope_id: int,
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Session = Depends(get_db),
) -> EffectiveSetting:
    return SettingsRepository(db).effective_setting(user_id, scope_type, scope_id)


@settings_router.put("/{scope_type}/{scope_id}", response_model=EffectiveSetting)
async def update_setting(
    scope_type: ScopeType,
    scope_id: int,
    update: SettingUpdate,
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Session = Depends(get_db),
) -> EffectiveSetting:
    """Change display, group display or the no-group default for one scope."""
    repo = SettingsRepository(db)
    repo.save_setting(user_id, scope_type, scope_id, update)
    return repo.effective_setting(user_id, scope_type, scope_id)


@settings_router.put("/{scope_type}/{scope_id}/groups/{group_id}", response_model=EffectiveSetting)
async def update_group_setting(
    scope_type: ScopeType,
    scope_id: int,
    group_id: int,
    update: GroupSettingUpdate,
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Session = Depends(get_db),
) -> EffectiveSetting:
    """Show or hide one group within a course or activity."""
    repo = SettingsRepository(db)
    repo.save_group_setting(user_id, scope_type, scope_id, group_id, update.display)
    return repo.effective_setting(user_id, scope_type, scope_id)
