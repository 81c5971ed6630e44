"""Test doubles for the remote store boundary."""

from __future__ import annotations

from typing import Any

from sheetorm.errors import RemoteStoreError
from sheetorm.stores.base import Cells
from sheetorm.stores.memory import MemoryStore


class RecordingStore(MemoryStore):
    """MemoryStore that records every primitive call.

    ``stale_reads`` makes every read return no rows, as a store that has not
    yet made earlier writes visible would.
    """

    def __init__(self, tables: dict[str, Cells] | None = None, *, stale_reads: bool = False):
        super().__init__(tables)
        self.stale_reads = stale_reads
        self.calls: list[tuple[str, str, Any]] = []

    def calls_to(self, operation: str) -> list[tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] == operation]

    def reset_calls(self) -> None:
        self.calls.clear()

    async def read_range(self, range_: str) -> Cells:
        self.calls.append(("read_range", range_, None))
        rows = await super().read_range(range_)
        return [] if self.stale_reads else rows

    async def append_rows(self, range_: str, rows: Cells) -> None:
        self.calls.append(("append_rows", range_, [list(r) for r in rows]))
        await super().append_rows(range_, rows)

    async def overwrite_range(self, range_: str, rows: Cells) -> None:
        self.calls.append(("overwrite_range", range_, [list(r) for r in rows]))
        await super().overwrite_range(range_, rows)

    async def clear_range(self, range_: str) -> None:
        self.calls.append(("clear_range", range_, None))
        await super().clear_range(range_)

    async def create_table(self, name: str) -> None:
        self.calls.append(("create_table", name, None))
        await super().create_table(name)


class FailingStore(RecordingStore):
    """Raises the given error from every read."""

    def __init__(self, error: Exception, tables: dict[str, Cells] | None = None):
        super().__init__(tables)
        self.error = error

    async def read_range(self, range_: str) -> Cells:
        self.calls.append(("read_range", range_, None))
        raise self.error


def unavailable() -> RemoteStoreError:
    return RemoteStoreError("read_range", "The service is currently unavailable.", status=503)
