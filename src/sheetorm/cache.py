"""Time- and size-bounded read cache keyed by range, invalidated per table."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sheetorm.ranges import table_of

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    range_key: str
    payload: Any
    inserted_at: float


class ReadCache:
    """Range-keyed cache of raw row matrices.

    Entries expire ``ttl`` seconds after insertion. When full, the oldest
    inserted entry is evicted (insertion order, not access order). A ttl of 0
    disables caching entirely.
    """

    def __init__(
        self,
        ttl: float,
        max_size: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, range_key: object) -> bool:
        return range_key in self._entries

    def keys(self) -> list[str]:
        return list(self._entries)

    def get(self, range_key: str) -> tuple[bool, Any]:
        """Return ``(hit, payload)`` for a live entry."""
        if not self.enabled:
            return False, None
        entry = self._entries.get(range_key)
        if entry is None:
            return False, None
        if self._clock() - entry.inserted_at >= self.ttl:
            del self._entries[range_key]
            return False, None
        return True, entry.payload

    def put(self, range_key: str, payload: Any) -> None:
        if not self.enabled:
            return
        # Re-inserting moves the key to the newest position
        self._entries.pop(range_key, None)
        while len(self._entries) >= self.max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug("Cache evicted %s", oldest)
        self._entries[range_key] = CacheEntry(range_key, payload, self._clock())

    def invalidate_table(self, table: str) -> int:
        """Drop every entry whose table-name prefix equals ``table``."""
        stale = [k for k in self._entries if table_of(k) == table]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Cache invalidated %d entries for table %s", len(stale), table)
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
