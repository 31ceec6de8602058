from marking_tree.filters.base import (
    COUNT_ALIAS,
    UNION_ALIAS,
    AncestorFilter,
    ConfigAncestorFilter,
    ConfigCurrentFilter,
    CurrentFilter,
    FilterRequest,
    FilterRole,
)
from marking_tree.filters.config import ConfigPassthroughFilter
from marking_tree.filters.core import CROSS_CUTTING_FILTERS
from marking_tree.filters.registry import FilterRegistry, build_default_registry

__all__ = [
    "COUNT_ALIAS",
    "UNION_ALIAS",
    "AncestorFilter",
    "ConfigAncestorFilter",
    "ConfigCurrentFilter",
    "CurrentFilter",
    "FilterRequest",
    "FilterRole",
    "ConfigPassthroughFilter",
    "CROSS_CUTTING_FILTERS",
    "FilterRegistry",
    "build_default_registry",
]
