"""A1-notation range helpers.

Ranges are written ``<table>!<cells>``; the table name (text before the first
``!``) is the unit of cache invalidation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_CELL_RE = re.compile(r"^([A-Za-z]*)(\d*)$")


def column_letter(index: int) -> str:
    """1-based column index to its A1 letters (1 -> A, 27 -> AA)."""
    if index < 1:
        raise ValueError(f"Column index must be >= 1, got {index}")
    letters = ""
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def column_index(letters: str) -> int:
    """A1 letters to a 1-based column index (A -> 1, AA -> 27)."""
    index = 0
    for ch in letters.upper():
        index = index * 26 + (ord(ch) - ord("A") + 1)
    return index


def table_of(range_: str) -> str:
    """Table-name prefix of a range; a bare name is its own table."""
    name = range_.split("!", 1)[0]
    if len(name) >= 2 and name[0] == name[-1] == "'":
        name = name[1:-1].replace("''", "'")
    return name


def quote_table(name: str) -> str:
    if re.fullmatch(r"[A-Za-z0-9_]+", name):
        return name
    return "'" + name.replace("'", "''") + "'"


def header_range(table: str, width: int) -> str:
    return f"{quote_table(table)}!A1:{column_letter(width)}1"


def data_range(table: str, width: int) -> str:
    return f"{quote_table(table)}!A2:{column_letter(width)}"


def data_anchor(table: str) -> str:
    return f"{quote_table(table)}!A2"


def header_anchor(table: str) -> str:
    return f"{quote_table(table)}!A1"


def append_range(table: str) -> str:
    return f"{quote_table(table)}!A:A"


@dataclass(frozen=True)
class GridRange:
    """Parsed A1 range; rows/columns are 1-based, open ends are ``None``."""

    table: str
    start_row: int | None = None
    start_col: int | None = None
    end_row: int | None = None
    end_col: int | None = None


def _parse_cell(ref: str, range_: str) -> tuple[int | None, int | None]:
    m = _CELL_RE.match(ref)
    if not m or not (m.group(1) or m.group(2)):
        raise ValueError(f"Unable to parse range: {range_}")
    col = column_index(m.group(1)) if m.group(1) else None
    row = int(m.group(2)) if m.group(2) else None
    return row, col


def parse_range(range_: str) -> GridRange:
    """Parse ``Table!A2:Z``, ``Table!A1``, ``Table!A:A`` or a bare ``Table``."""
    table = table_of(range_)
    if "!" not in range_:
        return GridRange(table)
    cells = range_.split("!", 1)[1]
    if ":" in cells:
        start, end = cells.split(":", 1)
        start_row, start_col = _parse_cell(start, range_)
        end_row, end_col = _parse_cell(end, range_)
        return GridRange(table, start_row, start_col, end_row, end_col)
    row, col = _parse_cell(cells, range_)
    return GridRange(table, row, col, row, col)
