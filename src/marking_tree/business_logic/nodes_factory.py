"""
Aggregation orchestrator.

Builds the nodes for one level of the marking tree or the settings tree:

    item plans (one per content source, ancestors applied)
      -> UNION ALL inside the count layer (current identity, COUNT, mandatory filters)
        -> display layer (names, tooltips, ordering, optional settings)

The count layer only ever groups by ids; all human-readable text is joined
by the display layer around it.
"""

from enum import IntEnum
from typing import List, Mapping, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError

from marking_tree.business_logic.context import EngineContext
from marking_tree.business_logic.node_format import build_node
from marking_tree.exceptions import (
    InvalidPath,
    NoAccessibleCourses,
    PlanCompositionError,
    StoreExecutionError,
)
from marking_tree.filters import (
    COUNT_ALIAS,
    CROSS_CUTTING_FILTERS,
    UNION_ALIAS,
    ConfigPassthroughFilter,
    FilterRegistry,
    FilterRequest,
    FilterRole,
    build_default_registry,
)
from marking_tree.permissions.access import AccessProvider
from marking_tree.query import QueryPlan
from marking_tree.repositories.settings_repo import SettingsRepository
from marking_tree.sources.registry import SourceRegistry
from marking_types.navigation import (
    CONFIG_DIMENSIONS,
    DIMENSION_RANK,
    REQUIRED_ANCESTORS,
    Dimension,
    NavigationPath,
    TreeKind,
)
from marking_types.nodes import NavigationNode
from marking_types.settings import ScopeType

logger = logging.getLogger(__name__)

# Dimensions whose nodes can be refined by group display
_GROUP_SCOPES = {
    Dimension.COURSE: ScopeType.COURSE,
    Dimension.ACTIVITY: ScopeType.ACTIVITY,
}


class BuildState(IntEnum):
    START = 0
    SOURCES_SELECTED = 1
    ANCESTORS_APPLIED = 2
    CURRENT_APPLIED = 3
    CROSS_CUTTING_APPLIED = 4
    DISPLAY_WRAPPED = 5
    EXECUTED = 6
    NODES_BUILT = 7


class _Build:
    """Progress of one get_nodes() call; states only move forward."""

    def __init__(self, path: NavigationPath, tree_kind: TreeKind):
        self.path = path
        self.tree_kind = tree_kind
        self.state = BuildState.START

    def advance(self, state: BuildState) -> None:
        if state <= self.state:
            raise PlanCompositionError(
                detail=f"Cannot move from {self.state.name} to {state.name}",
                context={"tree": self.tree_kind.value},
            )
        logger.debug(f"{self.tree_kind.value} {self.path.next_dimension.value}: {state.name}")
        self.state = state


def validate_path(path: NavigationPath, tree_kind: TreeKind) -> None:
    """
    Check that the path follows the fixed hierarchy.

    Raises:
        InvalidPath: the next dimension is already resolved, a resolved
            dimension is not above the next one, a required ancestor is
            missing, or the settings tree is asked for a dimension it lacks
    """
    next_dimension = path.next_dimension
    resolved = set(path.values)

    if next_dimension in resolved:
        raise InvalidPath(
            detail=f"'{next_dimension.value}' is both resolved and requested",
            context={"dimension": next_dimension.value},
        )

    for dimension in resolved:
        if DIMENSION_RANK[dimension] >= DIMENSION_RANK[next_dimension]:
            raise InvalidPath(
                detail=f"'{dimension.value}' cannot be resolved above '{next_dimension.value}'",
                context={"dimension": dimension.value, "next": next_dimension.value},
            )

    for dimension in resolved | {next_dimension}:
        missing = REQUIRED_ANCESTORS[dimension] - resolved
        if missing:
            raise InvalidPath(
                detail=f"'{dimension.value}' needs {', '.join(sorted(m.value for m in missing))}",
                context={"dimension": dimension.value, "missing": sorted(m.value for m in missing)},
            )

    if tree_kind == TreeKind.CONFIG:
        unsupported = (resolved | {next_dimension}) - CONFIG_DIMENSIONS
        if unsupported:
            raise InvalidPath(
                detail="The settings tree only has course and activity levels",
                context={"dimensions": sorted(d.value for d in unsupported)},
            )


class NodesFactory:
    """
    Entry point of the engine. One instance serves one request: it holds the
    request's EngineContext, and everything it memoizes lives there.
    """

    def __init__(
        self,
        context: EngineContext,
        sources: SourceRegistry,
        filters: Optional[FilterRegistry] = None,
    ):
        self.context = context
        self.sources = sources
        self.filters = filters or build_default_registry(sources)
        self.access = AccessProvider(context, sources.capabilities())
        self.settings_repo = SettingsRepository(context.db, context.settings)

    def get_nodes(
        self,
        path: NavigationPath,
        tree_kind: TreeKind = TreeKind.MARKING,
        include_config: bool = False,
    ) -> List[NavigationNode]:
        """
        Child nodes of ``path`` for the current user.

        Marking-tree nodes all carry at least one unmarked item; settings-tree
        nodes are listed regardless of count and always carry their config.

        Raises:
            InvalidPath: the path breaks the hierarchy or no selected source
                supports the next dimension
            StoreExecutionError: the store failed the statement
        """
        tree_kind = TreeKind(tree_kind)
        validate_path(path, tree_kind)
        build = _Build(path, tree_kind)
        request = FilterRequest(context=self.context, path=path, access=self.access, sources=self.sources)

        try:
            if tree_kind == TreeKind.CONFIG:
                include_config = True
                plan = self._config_plan(build, request)
            else:
                plan = self._marking_plan(build, request, include_config)
            if plan is None:
                return []

            rows = self._execute(plan)
            build.advance(BuildState.EXECUTED)

            nodes = [self._node(row, path.next_dimension, include_config) for row in rows]
            build.advance(BuildState.NODES_BUILT)
            return nodes

        except NoAccessibleCourses:
            logger.debug(f"User {self.context.user_id} teaches no courses, returning no nodes")
            return []
        except SQLAlchemyError as e:
            logger.error(f"Store failed while building {tree_kind.value} nodes: {e}", exc_info=True)
            raise StoreExecutionError(
                detail="The store failed to execute the node query",
                context={"tree": tree_kind.value, "next": path.next_dimension.value},
                user_id=self.context.user_id,
            ) from e

    # ------------------------------------------------------------------
    # Marking tree
    # ------------------------------------------------------------------

    def _marking_plan(self, build: _Build, request: FilterRequest, include_config: bool) -> Optional[QueryPlan]:
        path = build.path
        dimension = path.next_dimension

        if not self.access.teaching_courses():
            raise NoAccessibleCourses(user_id=self.context.user_id)

        activity_id = path.get(Dimension.ACTIVITY)
        if activity_id is not None:
            sources = [self.sources.for_activity(self.context, activity_id)]
        else:
            sources = self.sources.enabled(self.context)
        if not sources:
            logger.debug("No enabled content sources, returning no nodes")
            return None
        logger.debug(f"Selected sources: {[source.name for source in sources]}")
        build.advance(BuildState.SOURCES_SELECTED)

        single_source = sources[0].name if len(sources) == 1 else None
        current = self.filters.resolve(dimension, FilterRole.CURRENT, single_source)

        item_plans = []
        for source in sources:
            plan = source.unmarked_items_plan(self.context)
            for ancestor, value in path.ordered():
                self.filters.resolve(ancestor, FilterRole.ANCESTOR, source.name).apply(plan, value, request)
            item_plans.append(plan)

        count = QueryPlan(COUNT_ALIAS)
        count.add_from(item_plans, alias=UNION_ALIAS)
        count.add_select("student_id", table=UNION_ALIAS, function="COUNT", alias="itemcount")
        count.add_select("type_label", table=UNION_ALIAS, function="MAX", alias="type_label")
        build.advance(BuildState.ANCESTORS_APPLIED)

        current.apply_count(count, request)
        build.advance(BuildState.CURRENT_APPLIED)

        for cross_cutting in CROSS_CUTTING_FILTERS:
            cross_cutting.apply(count, request)
        build.advance(BuildState.CROSS_CUTTING_APPLIED)

        display = QueryPlan("displayquery")
        display.add_from(count, alias=COUNT_ALIAS)
        display.add_select("id", table=COUNT_ALIAS, alias="id")
        display.add_select("itemcount", table=COUNT_ALIAS, alias="itemcount")
        if dimension not in (Dimension.COHORT, Dimension.COURSE):
            display.add_select("type_label", table=COUNT_ALIAS, alias="type_label")
        current.apply_display(display, request)
        if include_config:
            ConfigPassthroughFilter().apply(display, dimension, f"{COUNT_ALIAS}.id", request)
        build.advance(BuildState.DISPLAY_WRAPPED)
        return display

    # ------------------------------------------------------------------
    # Settings tree
    # ------------------------------------------------------------------

    def _config_plan(self, build: _Build, request: FilterRequest) -> QueryPlan:
        path = build.path
        dimension = path.next_dimension

        current = self.filters.resolve(dimension, FilterRole.CONFIG_CURRENT)
        plan = current.base_plan(request)
        build.advance(BuildState.SOURCES_SELECTED)

        for ancestor, value in path.ordered():
            self.filters.resolve(ancestor, FilterRole.CONFIG_ANCESTOR).apply(plan, value, request)
        build.advance(BuildState.ANCESTORS_APPLIED)

        current.apply_display(plan, request)
        build.advance(BuildState.CURRENT_APPLIED)

        ConfigPassthroughFilter().apply(plan, dimension, current.id_expression, request)
        build.advance(BuildState.DISPLAY_WRAPPED)
        return plan

    # ------------------------------------------------------------------
    # Execution and formatting
    # ------------------------------------------------------------------

    def _execute(self, plan: QueryPlan) -> List[Mapping]:
        rendered = plan.render()
        logger.debug(f"Node query for user {self.context.user_id}:\n{rendered.sql}")
        return self.context.db.execute(rendered.statement(), rendered.params).mappings().all()

    def _node(self, row: Mapping, dimension: Dimension, include_config: bool) -> NavigationNode:
        groups = None
        scope_type = _GROUP_SCOPES.get(dimension)
        if include_config and scope_type is not None:
            groups = self.settings_repo.available_groups(self.context.user_id, scope_type, int(row["id"]))
        return build_node(
            row,
            dimension,
            summary_length=self.context.settings.SUMMARY_LENGTH,
            include_config=include_config,
            groups=groups,
        )


def get_nodes(
    context: EngineContext,
    sources: SourceRegistry,
    path: NavigationPath,
    tree_kind: TreeKind = TreeKind.MARKING,
    include_config: bool = False,
) -> List[NavigationNode]:
    return NodesFactory(context, sources).get_nodes(path, tree_kind, include_config)
