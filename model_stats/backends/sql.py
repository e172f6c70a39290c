"""
sql.py - SQL-backed collection for statistics evaluation.

Runs aggregates through SQLAlchemy Core. Plain string conditions are literal
SQL. Positional conditions [expr, *params] use '?' placeholders ('??' for a
literal '?'), which are turned into named bind parameters so values never
reach the SQL text.
"""
from __future__ import annotations

import itertools
import logging
import re
from typing import Any, Callable, Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.sql.elements import ColumnElement, TextClause

logger = logging.getLogger(__name__)

PLACEHOLDER = "?"
ESCAPED_PLACEHOLDER = "??"

_PLACEHOLDER_RE = re.compile(r"\?\?|\?")

_AGGREGATES: Dict[str, Callable[[ColumnElement], ColumnElement]] = {
    "count": sa.func.count,
    "sum": sa.func.sum,
    "average": sa.func.avg,
    "minimum": sa.func.min,
    "maximum": sa.func.max,
}

SUPPORTED_OPTIONS = ("conditions", "joins", "distinct")

Condition = Union[str, Sequence[Any]]
Scope = Union[Condition, Callable[["SqlCollection"], "SqlCollection"]]


def condition_to_clause(condition: Condition, counter: Iterator[int]) -> TextClause:
    """
    Convert a condition into a SQL text clause with bound parameters.

    A plain string is used as literal SQL. In [expr, param1, ...] each '?'
    in expr binds the next param and '??' is a literal '?'.

    Args:
        condition: "expr" or [expr, param1, param2, ...] with one '?' per param
        counter: Source of unique bind parameter numbers within a statement

    Returns:
        TextClause with its parameters bound

    Raises:
        ValueError: If the number of placeholders and params differ
        TypeError: If the condition has an unsupported type
    """
    if isinstance(condition, str):
        return sa.text(condition)
    if not isinstance(condition, (list, tuple)) or not condition:
        raise TypeError(f"Unsupported condition: {condition!r}")

    expression, params = str(condition[0]), list(condition[1:])
    placeholders = sum(1 for match in _PLACEHOLDER_RE.finditer(expression) if match.group() == PLACEHOLDER)
    if placeholders != len(params):
        raise ValueError(
            f"Condition {expression!r} has {placeholders} placeholders but {len(params)} parameters"
        )

    binds = {}

    def bind(match):
        if match.group() == ESCAPED_PLACEHOLDER:
            return PLACEHOLDER
        bind_name = f"p_{next(counter)}"
        binds[bind_name] = params[len(binds)]
        return f":{bind_name}"

    clause = sa.text(_PLACEHOLDER_RE.sub(bind, expression))
    return clause.bindparams(**binds) if binds else clause


class SqlCollection:
    """
    A table (optionally narrowed by scopes) that can compute aggregates.

    Collections are immutable: apply_scope returns a new collection, so one
    base collection can be shared between threads.

    Example:
        engine = sa.create_engine("sqlite://")
        orders = SqlCollection(engine, "orders", scopes={
            "paid": "status = 'paid'",
            "large": ["amount > ?", 100],
        })
        orders.apply_scope("paid").calculate("sum", "amount", {"conditions": ["channel = ?", "web"]})

    Attributes:
        engine: SQLAlchemy engine used for every calculation
        table: Table (or lightweight table clause) being aggregated
        scopes: Scope name -> condition or callable(collection) -> collection
        criteria: Conditions accumulated from applied scopes
    """

    def __init__(
        self,
        engine: Engine,
        table: Union[str, sa.Table, sa.TableClause],
        scopes: Optional[Mapping[str, Scope]] = None,
        criteria: Tuple[Condition, ...] = (),
    ) -> None:
        self.engine = engine
        self.table = sa.table(table) if isinstance(table, str) else table
        self.scopes = dict(scopes or {})
        self.criteria = tuple(criteria)

    def where(self, condition: Condition) -> SqlCollection:
        """Return a new collection further narrowed by a condition."""
        return SqlCollection(self.engine, self.table, self.scopes, self.criteria + (condition,))

    def apply_scope(self, name: str) -> SqlCollection:
        """
        Narrow the collection by a named scope.

        Raises:
            KeyError: If the scope is not defined for this collection
        """
        scope = self.scopes[name]
        if callable(scope):
            return scope(self)
        return self.where(scope)

    def calculate(self, kind: str, column: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Compute an aggregate.

        Args:
            kind: One of count, sum, average, minimum, maximum
            column: Column name, optionally qualified ("orders.amount")
            options: 'conditions', 'joins' and 'distinct' (count only)

        Returns:
            The scalar result (None for empty sum/average/minimum/maximum)

        Raises:
            ValueError: Unknown aggregate or unsupported option
        """
        statement = self.build_statement(kind, column, options)
        logger.debug(f"Executing {kind}({column}) on {self.table.name}")
        with self.engine.connect() as connection:
            return connection.execute(statement).scalar()

    def build_statement(self, kind: str, column: str, options: Optional[Mapping[str, Any]] = None) -> sa.Select:
        """Build the SELECT statement for an aggregate without executing it."""
        options = dict(options or {})
        unsupported = sorted(set(options) - set(SUPPORTED_OPTIONS))
        if unsupported:
            raise ValueError(f"Unsupported calculation options: {unsupported}")
        try:
            aggregate = _AGGREGATES[kind]
        except KeyError:
            raise ValueError(f"Unsupported calculation: {kind!r}") from None

        target = self._column(column)
        if options.get("distinct"):
            if kind != "count":
                raise ValueError("'distinct' is only supported for count")
            target = sa.distinct(target)

        statement = sa.select(aggregate(target)).select_from(self._from_clause(options.get("joins")))

        counter = itertools.count()
        conditions = list(self.criteria)
        if options.get("conditions") is not None:
            conditions.append(options["conditions"])
        for condition in conditions:
            statement = statement.where(condition_to_clause(condition, counter))
        return statement

    def _column(self, column: str) -> ColumnElement:
        if column in self.table.c:
            return self.table.c[column]
        return sa.literal_column(column)

    def _from_clause(self, joins: Optional[Iterable[Any]]):
        from_clause = self.table
        for join in joins or ():
            if isinstance(join, Mapping):
                name, on, outer = join["table"], join["on"], bool(join.get("outer", False))
            else:
                name, on = join
                outer = False
            right = sa.table(name) if isinstance(name, str) else name
            from_clause = from_clause.join(right, sa.text(on), isouter=outer)
        return from_clause
