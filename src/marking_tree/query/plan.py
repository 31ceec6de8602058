"""
Abstract, mutable representation of one relational query.

A QueryPlan owns its SELECT terms, FROM/JOIN terms (tables, nested plans and
UNION ALL combinations of sibling plans), WHERE terms, ORDER BY terms and a
parameter table. Filters mutate plans through this API only; ``render()``
turns the whole tree into statement text plus a flat parameter map.

Rendering adds GROUP BY automatically when any select term is an aggregate,
grouping by every non-aggregate select expression. The count layer therefore
only ever selects ids next to its aggregates; descriptive text is joined in by
the outer display layer.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import logging

from sqlalchemy import bindparam, text
from sqlalchemy.sql.elements import TextClause

from marking_tree.exceptions import (
    MissingParameter,
    ParameterConflict,
    PlanCompositionError,
    UnknownSubquery,
)
from marking_tree.query.sql import placeholder_names

logger = logging.getLogger(__name__)

AGGREGATE_FUNCTIONS = frozenset({"COUNT", "MAX", "MIN", "SUM", "AVG"})

INNER_JOIN = "INNER JOIN"
LEFT_JOIN = "LEFT JOIN"
_JOIN_TYPES = frozenset({INNER_JOIN, LEFT_JOIN})

AND = "AND"
OR = "OR"


@dataclass
class SelectTerm:
    column: str
    table: Optional[str] = None
    function: Optional[str] = None
    alias: Optional[str] = None
    distinct: bool = False
    group_identity: bool = False

    @property
    def expression(self) -> str:
        expression = f"{self.table}.{self.column}" if self.table else self.column
        if self.function:
            expression = f"{self.function}({expression})"
        return expression

    @property
    def name(self) -> str:
        """Name of the column in the result set."""
        if self.alias:
            return self.alias
        return self.column

    @property
    def is_aggregate(self) -> bool:
        return bool(self.function) and self.function.upper() in AGGREGATE_FUNCTIONS

    def render(self) -> str:
        if self.alias:
            return f"{self.expression} AS {self.alias}"
        return self.expression


@dataclass
class FromTerm:
    source: Union[str, "QueryPlan", List["QueryPlan"]]
    alias: Optional[str] = None
    join: Optional[str] = None
    on: Optional[str] = None

    @property
    def name(self) -> str:
        """Name other terms use to refer to this source."""
        if self.alias:
            return self.alias
        return self.source  # plain table without alias

    @property
    def is_union(self) -> bool:
        return isinstance(self.source, list)

    @property
    def is_subquery(self) -> bool:
        return isinstance(self.source, QueryPlan)


@dataclass
class WhereTerm:
    condition: str
    connective: str = AND


@dataclass
class RenderedQuery:
    """Executable statement text and the parameters it references."""
    sql: str
    params: Dict[str, Any] = field(default_factory=dict)

    def statement(self) -> TextClause:
        """SQLAlchemy text clause; list-valued parameters become expanding IN binds."""
        expanding = [bindparam(name, expanding=True)
                     for name, value in self.params.items() if isinstance(value, list)]
        clause = text(self.sql)
        if expanding:
            clause = clause.bindparams(*expanding)
        return clause


class QueryPlan:
    """
    Builder for a single SELECT statement that can be nested in other plans.

    A nested plan is owned by exactly one parent once attached, and no plan
    can be mutated after it has been rendered.
    """

    def __init__(self, label: Optional[str] = None):
        self.label = label
        self._selects: List[SelectTerm] = []
        self._froms: List[FromTerm] = []
        self._wheres: List[WhereTerm] = []
        self._orderbys: List[str] = []
        self._params: Dict[str, Any] = {}
        self._parent: Optional["QueryPlan"] = None
        self._rendered = False

    def __repr__(self) -> str:
        return f"<QueryPlan {self.label or ''} columns={list(self.column_signature())}>"

    # ------------------------------------------------------------------
    # Mutation API
    # ------------------------------------------------------------------

    def _check_mutable(self) -> None:
        if self._rendered:
            raise PlanCompositionError(
                detail="Query plan was already rendered and can no longer change",
                context={"plan": self.label},
            )

    def add_select(
        self,
        column: str,
        table: Optional[str] = None,
        alias: Optional[str] = None,
        function: Optional[str] = None,
        distinct: bool = False,
        group_identity: bool = False,
    ) -> SelectTerm:
        """
        Add a column to the SELECT list.

        ``group_identity`` puts the term first so that it heads the GROUP BY
        surface of an aggregating plan. Only one identity term is allowed.
        """
        self._check_mutable()
        term = SelectTerm(column=column, table=table, function=function, alias=alias,
                          distinct=distinct, group_identity=group_identity)
        if term.name in self.column_signature():
            raise PlanCompositionError(
                detail=f"Column '{term.name}' is already selected",
                context={"plan": self.label, "column": term.name},
            )
        if group_identity:
            if any(s.group_identity for s in self._selects):
                raise PlanCompositionError(
                    detail="Plan already has a group identity column",
                    context={"plan": self.label, "column": term.name},
                )
            self._selects.insert(0, term)
        else:
            self._selects.append(term)
        return term

    def add_from(
        self,
        source: Union[str, "QueryPlan", Sequence["QueryPlan"]],
        alias: Optional[str] = None,
        join: Optional[str] = None,
        on: Optional[str] = None,
    ) -> FromTerm:
        """
        Add a table, a nested plan, or a list of sibling plans combined with
        UNION ALL. The first term is the base of the FROM clause; every later
        term is joined (INNER JOIN unless told otherwise) and needs ``on``.
        """
        self._check_mutable()

        if isinstance(source, (list, tuple)):
            members = list(source)
            if not members:
                raise PlanCompositionError(detail="UNION needs at least one member plan")
            signature = members[0].column_signature()
            for member in members[1:]:
                if member.column_signature() != signature:
                    raise PlanCompositionError(
                        detail="UNION members must select identical columns",
                        context={
                            "expected": list(signature),
                            "got": list(member.column_signature()),
                            "member": member.label,
                        },
                    )
            source = members

        if not isinstance(source, str) and not alias:
            raise PlanCompositionError(detail="Subqueries and unions need an alias")

        if self._froms:
            join = join or INNER_JOIN
            if join not in _JOIN_TYPES:
                raise PlanCompositionError(detail=f"Unsupported join type '{join}'")
            if not on:
                raise PlanCompositionError(
                    detail="Joined sources need an ON condition",
                    context={"plan": self.label, "source": alias or source},
                )
        else:
            join = None
            on = None

        term = FromTerm(source=source, alias=alias, join=join, on=on)
        if self.has_join_table(term.name):
            raise PlanCompositionError(
                detail=f"Alias '{term.name}' is already used in this plan",
                context={"plan": self.label, "alias": term.name},
            )

        children = source if term.is_union else [source] if term.is_subquery else []
        for child in children:
            self._check_adoptable(child)
        for child in children:
            child._parent = self

        self._froms.append(term)
        return term

    def _check_adoptable(self, child: "QueryPlan") -> None:
        if child is self:
            raise PlanCompositionError(detail="A plan cannot be nested in itself")
        if child._parent is not None:
            raise PlanCompositionError(
                detail="Plan is already attached to another plan",
                context={"plan": child.label},
            )

    def add_where(self, condition: str, connective: str = AND) -> None:
        self._check_mutable()
        if connective not in (AND, OR):
            raise PlanCompositionError(detail=f"Unsupported connective '{connective}'")
        self._wheres.append(WhereTerm(condition=condition, connective=connective))

    def add_param(self, name: str, value: Any) -> None:
        self._check_mutable()
        if isinstance(value, (set, frozenset, tuple)):
            value = sorted(value)
        if name in self._params and self._params[name] != value:
            raise ParameterConflict(name)
        self._params[name] = value

    def add_params(self, params: Dict[str, Any]) -> None:
        for name, value in params.items():
            self.add_param(name, value)

    def add_order_by(self, expression: str) -> None:
        self._check_mutable()
        self._orderbys.append(expression)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def get_subquery(self, alias: str) -> "QueryPlan":
        """Nested plan previously attached under ``alias``."""
        for term in self._froms:
            if term.is_subquery and term.alias == alias:
                return term.source
        raise UnknownSubquery(alias)

    def has_join_table(self, name: str) -> bool:
        return any(term.name == name for term in self._froms)

    def column_signature(self) -> Tuple[str, ...]:
        return tuple(term.name for term in self._selects)

    def expression_for(self, column: str) -> str:
        """
        Expression behind a selected column name, for use in WHERE clauses of
        this same plan where select aliases are not visible.
        """
        for term in self._selects:
            if term.name == column:
                return term.expression
        raise PlanCompositionError(
            detail=f"Plan does not select a column named '{column}'",
            context={"plan": self.label, "columns": list(self.column_signature())},
        )

    @property
    def params(self) -> Dict[str, Any]:
        return dict(self._params)

    @property
    def is_rendered(self) -> bool:
        return self._rendered

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> RenderedQuery:
        """
        Produce statement text and the flattened parameter map.

        Raises:
            PlanCompositionError: if the plan selects nothing or has no source
            ParameterConflict: if nested plans bind one name to different values
            MissingParameter: if a placeholder has no bound value
        """
        sql = self._render_sql()
        params = self._collect_params({})

        referenced = placeholder_names(sql)
        missing = referenced - params.keys()
        if missing:
            raise MissingParameter(missing, context={"plan": self.label})

        self._freeze()
        return RenderedQuery(sql=sql, params={name: params[name] for name in referenced})

    def _freeze(self) -> None:
        self._rendered = True
        for term in self._froms:
            if term.is_subquery:
                term.source._freeze()
            elif term.is_union:
                for member in term.source:
                    member._freeze()

    def _collect_params(self, collected: Dict[str, Any]) -> Dict[str, Any]:
        for name, value in self._params.items():
            if name in collected and collected[name] != value:
                raise ParameterConflict(name)
            collected[name] = value
        for term in self._froms:
            if term.is_subquery:
                term.source._collect_params(collected)
            elif term.is_union:
                for member in term.source:
                    member._collect_params(collected)
        return collected

    def _where_groups(self) -> List[str]:
        """WHERE terms with each OR run bracketed so AND binds the runs together."""
        runs: List[List[str]] = []
        for term in self._wheres:
            if term.connective == OR and runs:
                runs[-1].append(term.condition)
            else:
                runs.append([term.condition])
        return [
            f"({run[0]})" if len(run) == 1
            else "(" + f" {OR} ".join(f"({condition})" for condition in run) + ")"
            for run in runs
        ]

    def _render_sql(self) -> str:
        if not self._selects:
            raise PlanCompositionError(detail="Plan has no SELECT terms", context={"plan": self.label})
        if not self._froms:
            raise PlanCompositionError(detail="Plan has no FROM terms", context={"plan": self.label})

        distinct = "DISTINCT " if any(s.distinct for s in self._selects) else ""
        lines = ["SELECT " + distinct + ",\n       ".join(s.render() for s in self._selects)]

        for index, term in enumerate(self._froms):
            source = self._render_source(term)
            if index == 0:
                lines.append(f"  FROM {source}")
            else:
                lines.append(f"  {term.join} {source}")
                lines.append(f"    ON {term.on}")

        for index, condition in enumerate(self._where_groups()):
            keyword = " WHERE" if index == 0 else f"   {AND}"
            lines.append(f"{keyword} {condition}")

        aggregates = [s for s in self._selects if s.is_aggregate]
        if aggregates:
            grouped = [s.expression for s in self._selects if not s.is_aggregate]
            if grouped:
                lines.append(" GROUP BY " + ", ".join(grouped))

        if self._orderbys:
            lines.append(" ORDER BY " + ", ".join(self._orderbys))

        return "\n".join(lines)

    @staticmethod
    def _indent(sql: str) -> str:
        return "\n".join("    " + line for line in sql.splitlines())

    def _render_source(self, term: FromTerm) -> str:
        if term.is_union:
            members = "\n    UNION ALL\n".join(self._indent(m._render_sql()) for m in term.source)
            return f"(\n{members}\n  ) {term.alias}"
        if term.is_subquery:
            return f"(\n{self._indent(term.source._render_sql())}\n  ) {term.alias}"
        if term.alias and term.alias != term.source:
            return f"{term.source} {term.alias}"
        return term.source
