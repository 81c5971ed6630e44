"""In-process remote store with spreadsheet range semantics."""

from __future__ import annotations

import copy
import logging

from sheetorm.errors import RemoteStoreError
from sheetorm.ranges import GridRange, parse_range
from sheetorm.stores.base import Cells

logger = logging.getLogger(__name__)


def _trim(rows: Cells) -> Cells:
    """Drop trailing empty cells per row and trailing empty rows, as the Sheets API does."""
    trimmed: Cells = []
    for row in rows:
        end = len(row)
        while end and row[end - 1] == "":
            end -= 1
        trimmed.append(row[:end])
    while trimmed and not trimmed[-1]:
        trimmed.pop()
    return trimmed


class MemoryStore:
    """Tables held as ragged lists of cell text.

    Mirrors the remote error signatures: reading an unknown table fails with
    ``400 Unable to parse range`` and creating an existing one fails with
    ``already exists``. Formulas are stored as written, not evaluated.
    """

    def __init__(self, tables: dict[str, Cells] | None = None) -> None:
        self._tables: dict[str, Cells] = {
            name: [list(r) for r in rows] for name, rows in (tables or {}).items()
        }

    @property
    def table_names(self) -> list[str]:
        return list(self._tables)

    def snapshot(self, table: str) -> Cells:
        """Copy of a table's stored cells (trimmed)."""
        return _trim(copy.deepcopy(self._tables[table]))

    def _grid(self, operation: str, range_: str) -> tuple[GridRange, Cells]:
        try:
            grid = parse_range(range_)
        except ValueError as e:
            raise RemoteStoreError(operation, str(e), status=400) from e
        if grid.table not in self._tables:
            raise RemoteStoreError(operation, f"Unable to parse range: {range_}", status=400)
        return grid, self._tables[grid.table]

    @staticmethod
    def _set(rows: Cells, row: int, col: int, value: str) -> None:
        while len(rows) <= row:
            rows.append([])
        target = rows[row]
        while len(target) <= col:
            target.append("")
        target[col] = value

    async def read_range(self, range_: str) -> Cells:
        grid, rows = self._grid("read_range", range_)
        r0 = (grid.start_row or 1) - 1
        r1 = grid.end_row if grid.end_row is not None else len(rows)
        c0 = (grid.start_col or 1) - 1
        window: Cells = []
        for row in rows[r0:r1]:
            c1 = grid.end_col if grid.end_col is not None else len(row)
            window.append(list(row[c0:c1]))
        return _trim(window)

    async def append_rows(self, range_: str, rows: Cells) -> None:
        grid, stored = self._grid("append_rows", range_)
        last = len(_trim(stored))
        c0 = (grid.start_col or 1) - 1
        for offset, values in enumerate(rows):
            for ci, value in enumerate(values):
                self._set(stored, last + offset, c0 + ci, value)
        logger.debug("Appended %d rows to %s", len(rows), grid.table)

    async def overwrite_range(self, range_: str, rows: Cells) -> None:
        grid, stored = self._grid("overwrite_range", range_)
        r0 = (grid.start_row or 1) - 1
        c0 = (grid.start_col or 1) - 1
        for ri, values in enumerate(rows):
            for ci, value in enumerate(values):
                self._set(stored, r0 + ri, c0 + ci, value)

    async def clear_range(self, range_: str) -> None:
        grid, stored = self._grid("clear_range", range_)
        r0 = (grid.start_row or 1) - 1
        r1 = grid.end_row if grid.end_row is not None else len(stored)
        c0 = (grid.start_col or 1) - 1
        for row in stored[r0:r1]:
            c1 = grid.end_col if grid.end_col is not None else len(row)
            for ci in range(c0, min(c1, len(row))):
                row[ci] = ""

    async def create_table(self, name: str) -> None:
        if name in self._tables:
            raise RemoteStoreError(
                "create_table",
                f'A sheet with the name "{name}" already exists. Please enter another name.',
                status=400,
            )
        self._tables[name] = []
        logger.debug("Created table %s", name)
