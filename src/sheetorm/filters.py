"""Filter expressions and their in-memory evaluation against decoded rows."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from sheetorm.codec import parse_date
from sheetorm.errors import InvalidFilterError

# Operator-object keys accepted in mapping filters
OPERATORS: dict[str, str] = {
    "gt": ">",
    "lt": "<",
    "gte": ">=",
    "lte": "<=",
    "ne": "!=",
    "like": "LIKE",
    "ilike": "ILIKE",
}

_ORDERED_OPS = {">", "<", ">=", "<="}


class FilterExpression:
    """Base class for filter expressions."""

    def __and__(self, other: FilterExpression) -> LogicalExpression:
        return LogicalExpression(op="AND", children=[self, other])

    def __or__(self, other: FilterExpression) -> LogicalExpression:
        return LogicalExpression(op="OR", children=[self, other])

    def __invert__(self) -> LogicalExpression:
        return LogicalExpression(op="NOT", children=[self])


@dataclass
class ComparisonExpression(FilterExpression):
    """A comparison between a column and a value.

    op is one of "==", "!=", ">", ">=", "<", "<=", "LIKE", "ILIKE".
    """

    column: str
    op: str
    value: Any = None

    def __hash__(self) -> int:
        v = self.value
        if isinstance(v, list):
            v = tuple(v)
        return hash((self.column, self.op, v))

    def __eq__(self, other: object) -> bool:  # type: ignore[override]
        if not isinstance(other, ComparisonExpression):
            return NotImplemented
        return self.column == other.column and self.op == other.op and self.value == other.value


@dataclass
class LogicalExpression(FilterExpression):
    """A logical combination of filter expressions."""

    op: str  # "AND", "OR", "NOT"
    children: list[FilterExpression] = field(default_factory=list)


class FieldProxy:
    """Builds comparison expressions from Python operators.

    Usage: ``col("age") > 25``, ``col("name").ilike("a%")``
    """

    def __init__(self, column: str) -> None:
        self._column = column

    def __eq__(self, other: object) -> ComparisonExpression:  # type: ignore[override]
        return ComparisonExpression(self._column, "==", other)

    def __ne__(self, other: object) -> ComparisonExpression:  # type: ignore[override]
        return ComparisonExpression(self._column, "!=", other)

    def __gt__(self, other: Any) -> ComparisonExpression:
        return ComparisonExpression(self._column, ">", other)

    def __ge__(self, other: Any) -> ComparisonExpression:
        return ComparisonExpression(self._column, ">=", other)

    def __lt__(self, other: Any) -> ComparisonExpression:
        return ComparisonExpression(self._column, "<", other)

    def __le__(self, other: Any) -> ComparisonExpression:
        return ComparisonExpression(self._column, "<=", other)

    def like(self, pattern: str) -> ComparisonExpression:
        return ComparisonExpression(self._column, "LIKE", pattern)

    def ilike(self, pattern: str) -> ComparisonExpression:
        return ComparisonExpression(self._column, "ILIKE", pattern)

    def startswith(self, prefix: str) -> ComparisonExpression:
        return ComparisonExpression(self._column, "LIKE", f"{prefix}%")

    def endswith(self, suffix: str) -> ComparisonExpression:
        return ComparisonExpression(self._column, "LIKE", f"%{suffix}")

    def contains(self, substring: str) -> ComparisonExpression:
        return ComparisonExpression(self._column, "LIKE", f"%{substring}%")


def col(name: str) -> FieldProxy:
    """Create a proxy for building expressions on column ``name``."""
    return FieldProxy(name)


def compile_filter(
    filter_: Mapping[str, Any] | FilterExpression | None,
) -> FilterExpression | None:
    """Compile a mapping filter into an expression tree.

    Each field maps to a literal (equality) or an operator mapping. Every
    operator within a field and every field within the filter are ANDed.
    Expressions are passed through unchanged.
    """
    if filter_ is None or isinstance(filter_, FilterExpression):
        return filter_

    children: list[FilterExpression] = []
    for column, value in filter_.items():
        if isinstance(value, Mapping):
            for key, operand in value.items():
                op = OPERATORS.get(key)
                if op is None:
                    raise InvalidFilterError(column, key)
                children.append(ComparisonExpression(column, op, operand))
        else:
            children.append(ComparisonExpression(column, "==", value))

    if not children:
        return None
    if len(children) == 1:
        return children[0]
    return LogicalExpression(op="AND", children=children)


@lru_cache(maxsize=256)
def like_regex(pattern: str, case_insensitive: bool = False) -> re.Pattern[str]:
    """Translate a LIKE pattern (``%`` any run, ``_`` one char) into an anchored regex."""
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    flags = re.DOTALL | (re.IGNORECASE if case_insensitive else 0)
    return re.compile("".join(parts), flags)


def _coerce_operand(row_value: Any, operand: Any) -> Any:
    if isinstance(row_value, datetime):
        if isinstance(operand, str):
            return parse_date(operand)
        if isinstance(operand, datetime) and operand.tzinfo is None:
            return operand.replace(tzinfo=timezone.utc)
    return operand


def _compare(row_value: Any, op: str, operand: Any) -> bool:
    if op == "==":
        return bool(row_value == _coerce_operand(row_value, operand))

    if op == "!=":
        if row_value is None:
            return operand is not None
        return bool(row_value != _coerce_operand(row_value, operand))

    if op in _ORDERED_OPS:
        if operand is None:
            return True
        if row_value is None:
            return False
        operand = _coerce_operand(row_value, operand)
        try:
            if op == ">":
                return bool(row_value > operand)
            if op == "<":
                return bool(row_value < operand)
            if op == ">=":
                return bool(row_value >= operand)
            return bool(row_value <= operand)
        except TypeError:
            return False

    if op in ("LIKE", "ILIKE"):
        if not isinstance(row_value, str) or not isinstance(operand, str):
            return False
        return like_regex(operand, op == "ILIKE").fullmatch(row_value) is not None

    raise ValueError(f"Unknown comparison operator: {op}")


def evaluate(expr: FilterExpression | None, row: Mapping[str, Any]) -> bool:
    """Evaluate an expression tree against one decoded row."""
    if expr is None:
        return True
    if isinstance(expr, ComparisonExpression):
        return _compare(row.get(expr.column), expr.op, expr.value)
    if isinstance(expr, LogicalExpression):
        if expr.op == "AND":
            return all(evaluate(c, row) for c in expr.children)
        if expr.op == "OR":
            return any(evaluate(c, row) for c in expr.children)
        if expr.op == "NOT":
            return not evaluate(expr.children[0], row)
    raise ValueError(f"Unknown filter expression type: {type(expr)}")