"""
Small SQL text helpers shared by the query plan and the filters.
"""

import itertools
import re
from typing import Set

# ":name" placeholders, skipping PostgreSQL "::type" casts
_PLACEHOLDER = re.compile(r"(?<![:\w]):([A-Za-z_][A-Za-z0-9_]*)")

_IDENTIFIER = re.compile(r"^[a-z][a-z0-9_]*$")


def placeholder_names(sql: str) -> Set[str]:
    """Names of all bound parameters referenced in a statement."""
    return set(_PLACEHOLDER.findall(sql))


def coalesce(*expressions: str) -> str:
    return f"COALESCE({', '.join(expressions)})"


def is_identifier(value: str) -> bool:
    """Lower-case SQL identifier, safe to inline as a literal or a name."""
    return bool(_IDENTIFIER.match(value))


class ParamNamer:
    """
    Hands out parameter names that are unique within one statement.

    Filters and subqueries may be applied more than once per request, and the
    store needs a distinct placeholder for every occurrence, so each call
    suffixes the base name with a request-wide counter.
    """

    def __init__(self):
        self._counter = itertools.count(1)

    def __call__(self, base: str) -> str:
        return f"{base}_{next(self._counter)}"

