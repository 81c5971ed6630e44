"""Model: query/mutation engine binding a Schema to one table."""

from __future__ import annotations

import asyncio
import logging
import math
import uuid
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from functools import cmp_to_key
from types import MappingProxyType
from typing import Any

from cuid2 import cuid_wrapper

from sheetorm.client import SheetClient
from sheetorm.codec import parse_value, serialize_value
from sheetorm.datatypes import LogicalType
from sheetorm.errors import ConfigurationError, UniqueConstraintError, is_missing_table_error
from sheetorm.filters import ComparisonExpression, FilterExpression, compile_filter, evaluate
from sheetorm.options import FindOptions, coerce_options
from sheetorm.ranges import (
    append_range,
    data_anchor,
    data_range,
    header_anchor,
    header_range,
)
from sheetorm.relations import Relation
from sheetorm.schema import Column, Schema
from sheetorm.stores.base import Cells

logger = logging.getLogger(__name__)

Row = dict[str, Any]
Where = Mapping[str, Any] | FilterExpression | None

_ABSENT = object()
_new_cuid = cuid_wrapper()


def _now() -> datetime:
    # Millisecond precision so the returned value equals what reads back
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _is_blank(raw: Sequence[str]) -> bool:
    return all(cell in ("", None) for cell in raw)


def _compare_values(a: Any, b: Any) -> int:
    try:
        if a < b:
            return -1
        if a > b:
            return 1
        return 0
    except TypeError:
        sa, sb = str(a), str(b)
        return (sa > sb) - (sa < sb)


def sort_rows(rows: list[Row], column: str, order: str = "asc") -> list[Row]:
    """Stable sort by ``column``; null values always sort last."""
    present = [r for r in rows if r.get(column) is not None]
    missing = [r for r in rows if r.get(column) is None]
    key = cmp_to_key(_compare_values)
    present.sort(key=lambda r: key(r[column]), reverse=order == "desc")
    return present + missing


def _index_by(rows: list[Row], column: str) -> dict[Any, list[Row]]:
    index: dict[Any, list[Row]] = {}
    for row in rows:
        value = row.get(column)
        if value is None:
            continue
        try:
            index.setdefault(value, []).append(row)
        except TypeError:
            continue
    return index


class Model:
    """Relational-style access to one table of a :class:`SheetClient`.

    The header row is resolved lazily on the first operation and kept for the
    lifetime of the instance; it fixes the physical column order of every row
    read and written. If the table does not exist it is created and its header
    written from the schema's column order.

    Every read scans the full data range. Mutations of existing rows
    (``update``, ``delete``) write the whole data range back in a single call.
    """

    def __init__(
        self,
        client: SheetClient,
        table: str,
        schema: Schema,
        *,
        relations: Mapping[str, Relation] | None = None,
    ) -> None:
        self.client = client
        self.table = table
        self.schema = schema
        self._headers: tuple[str, ...] | None = None
        self._watermarks: dict[str, int] = {}
        self._relations: Mapping[str, Relation] | None = None

        width = max(client.config.max_columns, len(schema))
        self._header_range = header_range(table, width)
        self._data_range = data_range(table, width)

        if relations is not None:
            self.bind_relations(relations)

    def __repr__(self) -> str:
        return f"Model(table={self.table!r}, columns={list(self.schema)})"

    # --- Relations ---

    @property
    def relations(self) -> Mapping[str, Relation]:
        return self._relations if self._relations is not None else MappingProxyType({})

    def bind_relations(self, relations: Mapping[str, Relation]) -> None:
        """Attach relation declarations. Allowed once per model."""
        if self._relations is not None:
            raise ConfigurationError(f"Relations for table '{self.table}' are already bound")
        for name, rel in relations.items():
            if name in self.schema:
                raise ConfigurationError(
                    f"Relation '{name}' collides with a column of '{self.table}'", column=name
                )
            if rel.local_key not in self.schema:
                raise ConfigurationError(
                    f"Relation '{name}': local key is not a column of '{self.table}'",
                    column=rel.local_key,
                )
            if rel.foreign_key not in rel.target.schema:
                raise ConfigurationError(
                    f"Relation '{name}': foreign key is not a column of '{rel.target.table}'",
                    column=rel.foreign_key,
                )
        self._relations = MappingProxyType(dict(relations))

    # --- Headers and row mapping ---

    @property
    def headers(self) -> tuple[str, ...] | None:
        return self._headers

    async def _ensure_headers(self) -> tuple[str, ...]:
        if self._headers is not None:
            return self._headers

        try:
            values = await self.client.read(self._header_range)
        except Exception as e:
            if not is_missing_table_error(e):
                raise
            logger.info("Table %s is missing; creating it", self.table)
            await self.client.create_table(self.table)
            values = []

        if values and values[0]:
            headers = tuple(values[0])
        else:
            headers = self.schema.column_names
            await self.client.overwrite(header_anchor(self.table), [list(headers)])
            logger.info("Wrote header row for %s: %s", self.table, ", ".join(headers))

        self._headers = headers
        return headers

    def _decode(self, raw: Sequence[str]) -> Row:
        assert self._headers is not None
        row: Row = {}
        for i, header in enumerate(self._headers):
            value = raw[i] if i < len(raw) else None
            column = self.schema.get(header)
            row[header] = parse_value(value, column.type) if column is not None else value
        return row

    def _encode(self, row: Mapping[str, Any]) -> list[str]:
        assert self._headers is not None
        return [serialize_value(row.get(header)) for header in self._headers]

    async def _read_raw(self) -> Cells:
        await self._ensure_headers()
        return await self.client.read(self._data_range)

    async def _load(self, include_deleted: bool) -> list[Row]:
        raw = await self._read_raw()
        rows = [self._decode(r) for r in raw if not _is_blank(r)]
        deleted_col = self.schema.deleted_at_column
        if deleted_col and not include_deleted:
            rows = [r for r in rows if r.get(deleted_col) is None]
        return rows

    # --- Reads ---

    async def find_many(
        self,
        where: Where = None,
        options: FindOptions | Mapping[str, Any] | None = None,
        *,
        select: dict[str, bool] | None = None,
        include: dict[str, Any] | None = None,
        limit: int | None = None,
        skip: int | None = None,
        include_deleted: bool | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> list[Row]:
        """Return rows matching ``where``.

        Pipeline: soft-delete exclusion, filter, sort, skip, limit, relation
        inclusion, then projection.
        """
        overrides = {
            k: v
            for k, v in (
                ("select", select),
                ("include", include),
                ("limit", limit),
                ("skip", skip),
                ("include_deleted", include_deleted),
                ("sort_by", sort_by),
                ("sort_order", sort_order),
            )
            if v is not None
        }
        opts = coerce_options(options, **overrides)
        expr = compile_filter(where)

        rows = [r for r in await self._load(opts.include_deleted) if evaluate(expr, r)]

        if opts.sort_by:
            rows = sort_rows(rows, opts.sort_by, opts.sort_order)
        if opts.skip:
            rows = rows[opts.skip :]
        if opts.limit is not None:
            rows = rows[: opts.limit]
        if opts.include:
            await self._load_relations(rows, opts.include)
        if opts.select is not None:
            rows = [
                {k: row[k] for k, wanted in opts.select.items() if wanted and k in row}
                for row in rows
            ]
        return rows

    async def find_first(
        self,
        where: Where = None,
        options: FindOptions | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> Row | None:
        """First matching row, or ``None``."""
        kwargs["limit"] = 1
        rows = await self.find_many(where, options, **kwargs)
        return rows[0] if rows else None

    async def count(self, where: Where = None, *, include_deleted: bool = False) -> int:
        expr = compile_filter(where)
        return sum(1 for r in await self._load(include_deleted) if evaluate(expr, r))

    async def _load_relations(
        self, rows: list[Row], include: Mapping[str, bool | FindOptions]
    ) -> None:
        requested: list[tuple[str, Relation, FindOptions]] = []
        for name, value in include.items():
            if not value:
                continue
            rel = self.relations.get(name)
            if rel is None:
                logger.debug("Ignoring unknown relation %s on %s", name, self.table)
                continue
            nested = value if isinstance(value, FindOptions) else FindOptions()
            if nested.select is not None:
                nested = nested.model_copy(
                    update={"select": {**nested.select, rel.foreign_key: True}}
                )
            requested.append((name, rel, nested))

        # One bulk fetch per relation, joined in memory
        fetched = await asyncio.gather(
            *(rel.target.find_many(None, nested) for _, rel, nested in requested)
        )

        for (name, rel, _), related in zip(requested, fetched):
            index = _index_by(related, rel.foreign_key)
            for row in rows:
                local = row.get(rel.local_key)
                if local is None:
                    continue
                try:
                    matches = index.get(local, [])
                except TypeError:
                    matches = []
                if rel.many:
                    row[name] = [dict(m) for m in matches]
                else:
                    row[name] = dict(matches[0]) if matches else None

    # --- Creates ---

    async def create(self, data: Mapping[str, Any]) -> Row:
        """Insert one row and return it with generated values filled in."""
        created = await self.create_many([data])
        return created[0]

    async def create_many(self, items: Sequence[Mapping[str, Any]]) -> list[Row]:
        """Insert rows with a single append call.

        Unique columns are checked for every row before any default is
        generated or anything is written; a collision fails the whole batch.
        """
        await self._ensure_headers()
        prepared = [dict(item) for item in items]
        seen: dict[str, list[Any]] = {}
        for data in prepared:
            await self._check_unique(data, seen)
        # Generated values, auto-increment ids included, only after every row passed
        for data in prepared:
            await self._apply_defaults(data)

        if prepared:
            await self.client.append(append_range(self.table), [self._encode(d) for d in prepared])
            logger.debug("Appended %d rows to %s", len(prepared), self.table)
        return prepared

    async def _check_unique(self, data: Row, seen: dict[str, list[Any]]) -> None:
        for column in self.schema.unique_columns:
            value = data.get(column)
            if value is None:
                continue
            batch_values = seen.setdefault(column, [])
            if any(v == value for v in batch_values):
                raise UniqueConstraintError(column, value)
            if await self.find_first(ComparisonExpression(column, "==", value)) is not None:
                raise UniqueConstraintError(column, value)
            batch_values.append(value)

    async def _apply_defaults(self, data: Row) -> None:
        for name, column in self.schema.items():
            if name in data:
                continue
            value = await self._default_for(name, column)
            if value is not _ABSENT:
                data[name] = value

    async def _default_for(self, name: str, column: Column) -> Any:
        if column.has_default:
            return column.get_default()
        if column.auto_increment:
            return await self._next_auto_increment(name)
        if column.type is LogicalType.UUID:
            return str(uuid.uuid4())
        if column.type is LogicalType.CUID:
            return _new_cuid()
        if column.type is LogicalType.DATE and (column.created_at or column.updated_at):
            return _now()
        return _ABSENT

    async def _next_auto_increment(self, name: str) -> int:
        """Next id: larger of the scanned maximum and this instance's watermark, plus one.

        The watermark covers creates the store does not reflect yet. It does
        not coordinate separate processes.
        """
        raw = await self._read_raw()
        assert self._headers is not None
        highest: float = 0
        if name in self._headers:
            idx = self._headers.index(name)
            for r in raw:
                value = parse_value(r[idx], LogicalType.NUMBER) if idx < len(r) else None
                if isinstance(value, (int, float)) and not math.isnan(value) and value > highest:
                    highest = value
        highest = max(highest, self._watermarks.get(name, 0))
        next_value = math.floor(highest) + 1
        self._watermarks[name] = next_value
        return next_value

    # --- Updates and deletes ---

    async def upsert(
        self,
        *,
        where: Where,
        update: Mapping[str, Any],
        create: Mapping[str, Any],
    ) -> Row:
        """Update the rows matching ``where`` or create one if none exists."""
        existing = await self.find_first(where)
        if existing is None:
            return await self.create(create)
        updated = await self.update(where, update)
        return updated[0] if updated else existing

    async def update(self, where: Where, data: Mapping[str, Any]) -> list[Row]:
        """Merge ``data`` into every live matching row; returns the merged rows.

        Soft-deleted rows are never updated.
        """
        expr = compile_filter(where)
        raw = await self._read_raw()
        deleted_col = self.schema.deleted_at_column
        patch = dict(data)
        if self.schema.updated_at_column:
            patch[self.schema.updated_at_column] = _now()

        new_rows: Cells = []
        updated: list[Row] = []
        for r in raw:
            if _is_blank(r):
                new_rows.append(r)
                continue
            row = self._decode(r)
            if deleted_col and row.get(deleted_col) is not None:
                new_rows.append(r)
                continue
            if evaluate(expr, row):
                merged = {**row, **patch}
                updated.append(merged)
                new_rows.append(self._encode(merged))
            else:
                new_rows.append(r)

        if updated:
            await self.client.overwrite(data_anchor(self.table), new_rows)
            logger.debug("Updated %d rows in %s", len(updated), self.table)
        return updated

    async def delete(self, where: Where, *, force: bool = False) -> int:
        """Delete matching rows and return how many were affected.

        With a ``deleted_at`` column (and no ``force``) rows are stamped
        instead of removed; rows already stamped are not counted again.
        """
        expr = compile_filter(where)
        raw = await self._read_raw()
        deleted_col = self.schema.deleted_at_column

        if deleted_col and not force:
            stamp = _now()
            new_rows: Cells = []
            stamped = 0
            for r in raw:
                if _is_blank(r):
                    new_rows.append(r)
                    continue
                row = self._decode(r)
                if row.get(deleted_col) is None and evaluate(expr, row):
                    row[deleted_col] = stamp
                    new_rows.append(self._encode(row))
                    stamped += 1
                else:
                    new_rows.append(r)
            if stamped:
                await self.client.overwrite(data_anchor(self.table), new_rows)
                logger.debug("Soft-deleted %d rows in %s", stamped, self.table)
            return stamped

        kept: Cells = []
        removed = 0
        for r in raw:
            if _is_blank(r):
                continue
            if evaluate(expr, self._decode(r)):
                removed += 1
            else:
                kept.append(r)

        if removed:
            await self.client.clear(self._data_range)
            if kept:
                await self.client.overwrite(data_anchor(self.table), kept)
            logger.debug("Hard-deleted %d rows from %s", removed, self.table)
        return removed
