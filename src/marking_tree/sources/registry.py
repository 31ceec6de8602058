"""
Registry of content sources.

Registration checks each adapter against the item column contract by
building its plan once against a probe, so a misbehaving adapter fails at
startup rather than inside a UNION at request time.
"""

from typing import Dict, Iterable, List, Optional
import logging

from sqlalchemy import select

from marking_tree.business_logic.context import EngineContext
from marking_tree.exceptions import InvalidPath, SourceContractError
from marking_tree.model import CourseModule, Module
from marking_tree.query import ParamNamer, QueryPlan, is_identifier
from marking_tree.sources.assign import AssignSource
from marking_tree.sources.base import ITEM_COLUMNS, ContentSource
from marking_tree.sources.forum import ForumSource
from marking_tree.sources.journal import JournalSource
from marking_tree.sources.quiz import QuizSource
from marking_tree.sources.workshop import WorkshopSource

logger = logging.getLogger(__name__)


class _ContractProbe:
    """Stands in for an EngineContext while an adapter's plan is inspected."""

    user_id = 0
    now = 0

    def __init__(self):
        self.param_name = ParamNamer()

    def module_id(self, name: str) -> int:
        return 0


class SourceRegistry:

    def __init__(self, sources: Optional[Iterable[ContentSource]] = None):
        self._sources: Dict[str, ContentSource] = {}
        for source in sources or []:
            self.register(source)

    def register(self, source: ContentSource) -> None:
        name = getattr(source, "name", None)
        if not name or not is_identifier(name):
            raise SourceContractError(
                detail=f"Content source name {name!r} must be a lower-case identifier",
                context={"source": repr(source)},
            )
        if name in self._sources:
            raise SourceContractError(
                detail=f"Content source '{name}' is already registered",
                context={"source": name},
            )
        if not source.capability_name():
            raise SourceContractError(
                detail=f"Content source '{name}' declares no grading capability",
                context={"source": name},
            )

        plan = source.unmarked_items_plan(_ContractProbe())
        if not isinstance(plan, QueryPlan) or plan.column_signature() != ITEM_COLUMNS:
            raise SourceContractError(
                detail=f"Content source '{name}' does not select the item columns",
                context={
                    "source": name,
                    "expected": list(ITEM_COLUMNS),
                    "got": list(plan.column_signature()) if isinstance(plan, QueryPlan) else None,
                },
            )

        self._sources[name] = source
        logger.debug(f"Registered content source '{name}' ({source.capability_name()})")

    def get(self, name: str) -> Optional[ContentSource]:
        return self._sources.get(name)

    def all(self) -> List[ContentSource]:
        return list(self._sources.values())

    def names(self) -> List[str]:
        return list(self._sources)

    def capabilities(self) -> List[str]:
        return sorted({source.capability_name() for source in self._sources.values()})

    def enabled(self, context: EngineContext) -> List[ContentSource]:
        """Registered sources whose module is enabled on the site."""
        modules = context.enabled_modules()
        return [source for name, source in self._sources.items() if name in modules]

    def capabilities_by_module(self, context: EngineContext) -> Dict[int, str]:
        modules = context.enabled_modules()
        return {
            modules[source.name]: source.capability_name()
            for source in self.enabled(context)
        }

    def for_activity(self, context: EngineContext, activity_id: int) -> ContentSource:
        """
        The source behind one activity.

        Raises:
            InvalidPath: if the activity does not exist or its module has no
                enabled source
        """
        module_name = context.db.execute(
            select(Module.name)
            .join(CourseModule, CourseModule.module == Module.id)
            .where(CourseModule.id == activity_id)
        ).scalar_one_or_none()

        if module_name is None:
            raise InvalidPath(
                detail=f"Activity {activity_id} does not exist",
                context={"activity_id": activity_id},
            )

        source = self._sources.get(module_name)
        if source is None:
            logger.warning(f"Activity {activity_id} uses module '{module_name}' with no registered source")
        if source is None or module_name not in context.enabled_modules():
            raise InvalidPath(
                detail=f"Activity {activity_id} belongs to '{module_name}', which has no enabled content source",
                context={"activity_id": activity_id, "module": module_name},
            )
        return source


def default_source_registry() -> SourceRegistry:
    """Registry holding the bundled content sources."""
    return SourceRegistry([
        AssignSource(),
        ForumSource(),
        QuizSource(),
        WorkshopSource(),
        JournalSource(),
    ])
