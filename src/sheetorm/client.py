"""Cached remote accessor shared by the models of one spreadsheet."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from sheetorm.cache import ReadCache
from sheetorm.config import SheetOrmConfig
from sheetorm.errors import is_table_exists_error
from sheetorm.ranges import table_of
from sheetorm.stores.base import Cells, RemoteStore

logger = logging.getLogger(__name__)


class SheetClient:
    """Wraps a :class:`RemoteStore` with a range-keyed read cache.

    Reads are served from the cache while the entry is younger than the
    configured ttl. Every write invalidates all cached ranges of the written
    table. The cache is owned by this instance; models that should observe
    each other's writes must share one client.
    """

    def __init__(
        self,
        store: RemoteStore,
        config: SheetOrmConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.config = config or SheetOrmConfig()
        self.cache = ReadCache(
            self.config.cache_ttl_s, self.config.max_cache_size, clock=clock
        )

    async def read(self, range_: str) -> Cells:
        hit, payload = self.cache.get(range_)
        if hit:
            logger.debug("Cache hit %s", range_)
            return payload
        logger.debug("Cache miss %s", range_)
        rows = await self.store.read_range(range_) or []
        self.cache.put(range_, rows)
        return rows

    async def append(self, range_: str, rows: Cells) -> None:
        try:
            await self.store.append_rows(range_, rows)
        finally:
            self.cache.invalidate_table(table_of(range_))

    async def overwrite(self, range_: str, rows: Cells) -> None:
        try:
            await self.store.overwrite_range(range_, rows)
        finally:
            self.cache.invalidate_table(table_of(range_))

    async def clear(self, range_: str) -> None:
        try:
            await self.store.clear_range(range_)
        finally:
            self.cache.invalidate_table(table_of(range_))

    async def create_table(self, name: str) -> None:
        """Create a table; an "already exists" failure is treated as success."""
        try:
            await self.store.create_table(name)
            logger.info("Created table %s", name)
        except Exception as e:
            if not is_table_exists_error(e):
                raise
            logger.warning("Table %s already exists; continuing", name)
        finally:
            self.cache.invalidate_table(name)

    def invalidate(self, table: str | None = None) -> None:
        """Drop cached reads for one table, or all of them."""
        if table is None:
            self.cache.clear()
        else:
            self.cache.invalidate_table(table)

    def cache_info(self) -> dict[str, Any]:
        return {
            "size": len(self.cache),
            "max_size": self.cache.max_size,
            "ttl_ms": self.config.cache_ttl_ms,
            "keys": self.cache.keys(),
        }
