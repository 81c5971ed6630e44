"""Value codec: remote cell text <-> typed column values."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

from sheetorm.datatypes import LogicalType

logger = logging.getLogger(__name__)


class Formula(str):
    """Cell text written through unmodified for the remote store to evaluate.

    Any column accepts a ``Formula`` regardless of its logical type; on read
    the computed value is parsed with the column's declared type.
    """

    __slots__ = ()


@dataclass(frozen=True)
class InvalidDate:
    """Sentinel for date cells whose text is not an ISO-8601 instant.

    Keeps the raw text so that writing the row back leaves the cell untouched.
    """

    raw: str

    def __str__(self) -> str:
        return "Invalid Date"


def format_private_key(key: str) -> str:
    """Turn literal ``\\n`` sequences (as found in env files) into newlines."""
    return key.replace("\\n", "\n")


_INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def _parse_number(text: str) -> int | float:
    stripped = text.strip()
    if _INTEGER_RE.fullmatch(stripped):
        return int(stripped)
    if _DECIMAL_RE.fullmatch(stripped):
        return float(stripped)
    return float("nan")


def parse_date(text: str) -> datetime | InvalidDate:
    candidate = text.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return InvalidDate(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_value(value: Any, logical_type: LogicalType | str) -> Any:
    """Parse raw cell text into the value for ``logical_type``.

    Empty or absent cells are always ``None``.
    """
    if value is None or value == "":
        return None
    text = value if isinstance(value, str) else str(value)
    kind = LogicalType(logical_type)

    if kind is LogicalType.NUMBER:
        return _parse_number(text)
    if kind is LogicalType.BOOLEAN:
        return text.lower() == "true"
    if kind is LogicalType.JSON:
        try:
            return json.loads(text)
        except ValueError:
            logger.debug("Malformed JSON cell degraded to null: %.40r", text)
            return None
    if kind is LogicalType.DATE:
        return parse_date(text)
    return text


def format_instant(value: datetime) -> str:
    """ISO-8601 instant in UTC with millisecond precision, e.g. ``2024-01-02T03:04:05.000Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def serialize_value(value: Any) -> str:
    """Serialize a typed value into cell text."""
    if value is None:
        return ""
    if isinstance(value, str):
        # Formula and plain strings alike
        return str.__str__(value)
    if isinstance(value, InvalidDate):
        return value.raw
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return format_instant(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)
