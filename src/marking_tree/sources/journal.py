"""Journals: entries never marked, or edited since they were marked."""

from marking_tree.business_logic.context import EngineContext
from marking_tree.query import QueryPlan
from marking_tree.sources.base import ACTIVITY_ALIAS, ContentSource


class JournalSource(ContentSource):
    name = "journal"
    capability = "mod/journal:manageentries"
    activity_table = "journal"

    def unmarked_items_plan(self, context: EngineContext) -> QueryPlan:
        plan = self.base_plan(context, student_column="entry.userid", item_column="entry.id")

        plan.add_from("journal_entries", alias="entry", on=f"entry.journal = {ACTIVITY_ALIAS}.id")
        plan.add_where(f"{ACTIVITY_ALIAS}.assessed <> 0")
        plan.add_where("entry.timemarked IS NULL OR entry.modified > entry.timemarked")
        return plan
