"""
Navigation node DTOs returned by the marking tree engine.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class NodeGroup(BaseModel):
    """A group the client can offer for show-by-group refinement."""
    id: int
    name: str
    display: int = Field(1, description="Effective group visibility for the node's scope")

    model_config = ConfigDict(from_attributes=True)


class NodeConfig(BaseModel):
    """Display configuration carried by a node (config tree, or on request)."""
    display: Optional[int] = None
    group_display: Optional[int] = None
    groups: List[NodeGroup] = Field(default_factory=list)


class NavigationNode(BaseModel):
    """One child of the expanded navigation path."""
    id: int
    dimension: str = Field(..., description="Dimension this node enumerates")
    type: str = Field(..., description="Content-type label, or the dimension for non-activity nodes")
    count: int = Field(0, ge=0, description="Unmarked items beneath this node")
    name: str = ""
    tooltip: Optional[str] = None
    summary: Optional[str] = None
    config: Optional[NodeConfig] = None

    display_data: Dict[str, Any] = Field(default_factory=dict, exclude=True)
    return_data: Dict[str, Any] = Field(default_factory=dict, exclude=True)
    popup_data: Dict[str, Any] = Field(default_factory=dict, exclude=True)

    model_config = ConfigDict(frozen=True)

    def to_payload(self) -> Dict[str, Any]:
        """Wire shape for the client; ``config`` only when present."""
        payload = self.model_dump(exclude={"config", "dimension"})
        if self.config is not None:
            payload["config"] = self.config.model_dump()
        return payload
