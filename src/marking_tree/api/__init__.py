from marking_tree.api.nodes import nodes_router
from marking_tree.api.settings import settings_router

__all__ = ["nodes_router", "settings_router"]
