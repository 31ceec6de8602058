"""Marking Types - Pydantic DTOs for the marking navigation engine."""

__version__ = "0.1.0"

from .navigation import (
    Dimension,
    TreeKind,
    DIMENSION_RANK,
    REQUIRED_ANCESTORS,
    CONFIG_DIMENSIONS,
    NavigationPath,
)
from .nodes import NavigationNode, NodeConfig, NodeGroup
from .settings import (
    DisplayMode,
    EffectiveSetting,
    GroupSettingUpdate,
    ScopeType,
    SettingUpdate,
    display_mode,
)

__all__ = [
    "Dimension",
    "TreeKind",
    "DIMENSION_RANK",
    "REQUIRED_ANCESTORS",
    "CONFIG_DIMENSIONS",
    "NavigationPath",
    "NavigationNode",
    "NodeConfig",
    "NodeGroup",
    "DisplayMode",
    "EffectiveSetting",
    "GroupSettingUpdate",
    "ScopeType",
    "SettingUpdate",
    "display_mode",
]
