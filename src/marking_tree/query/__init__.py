from marking_tree.query.plan import (
    AND,
    OR,
    INNER_JOIN,
    LEFT_JOIN,
    QueryPlan,
    RenderedQuery,
)
from marking_tree.query.sql import ParamNamer, coalesce, is_identifier, placeholder_names

__all__ = [
    "AND",
    "OR",
    "INNER_JOIN",
    "LEFT_JOIN",
    "QueryPlan",
    "RenderedQuery",
    "ParamNamer",
    "coalesce",
    "is_identifier",
    "placeholder_names",
]
