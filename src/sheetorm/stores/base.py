"""Remote store protocol: the only I/O surface the engine depends on."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

Cells = list[list[str]]


@runtime_checkable
class RemoteStore(Protocol):
    """Row/column store addressed by A1 ranges (``<table>!<cells>``).

    Failures are raised as :class:`sheetorm.errors.RemoteStoreError`.
    """

    async def read_range(self, range_: str) -> Cells: ...

    async def append_rows(self, range_: str, rows: Cells) -> None: ...

    async def overwrite_range(self, range_: str, rows: Cells) -> None: ...

    async def clear_range(self, range_: str) -> None: ...

    async def create_table(self, name: str) -> None: ...
