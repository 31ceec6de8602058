from marking_tree.sources.base import ITEM_COLUMNS, ContentSource
from marking_tree.sources.registry import SourceRegistry, default_source_registry
from marking_tree.sources.assign import AssignSource
from marking_tree.sources.forum import ForumSource
from marking_tree.sources.quiz import QuizSource
from marking_tree.sources.workshop import WorkshopSource
from marking_tree.sources.journal import JournalSource

__all__ = [
    "ITEM_COLUMNS",
    "ContentSource",
    "SourceRegistry",
    "default_source_registry",
    "AssignSource",
    "ForumSource",
    "QuizSource",
    "WorkshopSource",
    "JournalSource",
]
