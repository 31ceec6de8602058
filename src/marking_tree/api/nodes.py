"""
API endpoints for the marking tree and the settings tree.

The client sends the resolved path as querystring parameters named after the
dimensions (``courseid``, ``coursemoduleid``, ...) plus ``nextnodefilter``,
the dimension to enumerate.
"""

from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Depends, Query, Request

from marking_tree.api.dependencies import get_engine_context, get_source_registry
from marking_tree.business_logic.context import EngineContext
from marking_tree.business_logic.nodes_factory import NodesFactory
from marking_tree.exceptions import InvalidPath
from marking_tree.sources.registry import SourceRegistry
from marking_types.navigation import Dimension, NavigationPath, TreeKind

nodes_router = APIRouter()


def path_from_query(request: Request, next_dimension: Dimension) -> NavigationPath:
    """Collect every dimension present in the querystring into a path."""
    values = {}
    for dimension in Dimension:
        raw = request.query_params.get(dimension.value)
        if raw is None or raw == "":
            continue
        try:
            values[dimension] = int(raw)
        except ValueError:
            raise InvalidPath(
                detail=f"'{dimension.value}' must be an integer id",
                context={"dimension": dimension.value, "value": raw},
            )
    return NavigationPath(values=values, next_dimension=next_dimension)


@nodes_router.get(
    "/nodes",
    response_model=List[Dict[str, Any]],
    summary="Child nodes of the marking tree",
)
async def list_marking_nodes(
    request: Request,
    context: Annotated[EngineContext, Depends(get_engine_context)],
    sources: Annotated[SourceRegistry, Depends(get_source_registry)],
    nextnodefilter: Dimension = Query(..., description="Dimension to enumerate"),
    include_config: bool = Query(False, description="Attach each node's display settings"),
) -> List[Dict[str, Any]]:
    """
    Nodes one level below the given path, each with its count of unmarked
    work. Levels without any unmarked work are left out.
    """
    path = path_from_query(request, nextnodefilter)
    nodes = NodesFactory(context, sources).get_nodes(path, TreeKind.MARKING, include_config)
    return [node.to_payload() for node in nodes]


@nodes_router.get(
    "/config/nodes",
    response_model=List[Dict[str, Any]],
    summary="Child nodes of the settings tree",
)
async def list_config_nodes(
    request: Request,
    context: Annotated[EngineContext, Depends(get_engine_context)],
    sources: Annotated[SourceRegistry, Depends(get_source_registry)],
    nextnodefilter: Dimension = Query(..., description="courseid or coursemoduleid"),
) -> List[Dict[str, Any]]:
    """Every course or activity the user can configure, hidden ones included."""
    path = path_from_query(request, nextnodefilter)
    nodes = NodesFactory(context, sources).get_nodes(path, TreeKind.CONFIG)
    return [node.to_payload() for node in nodes]
