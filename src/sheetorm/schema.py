"""Schema: normalized, validated column definitions for a table."""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from sheetorm.datatypes import DataType, LogicalType
from sheetorm.errors import ConfigurationError

ColumnSpec = Union[DataType, LogicalType, str, "Column", Mapping[str, Any]]


class Column(BaseModel):
    """Canonical column definition.

    ``auto_increment`` is only valid on number columns and the date-role flags
    (``created_at``, ``updated_at``, ``deleted_at``) only on date columns.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    type: LogicalType
    unique: bool = False
    default: Any = None
    default_factory: Callable[[], Any] | None = None
    auto_increment: bool = False
    created_at: bool = False
    updated_at: bool = False
    deleted_at: bool = False

    @model_validator(mode="before")
    @classmethod
    def _merge_marker_flags(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        marker = data.get("type")
        if not isinstance(marker, DataType):
            return data
        merged = dict(data)
        merged["type"] = marker.logical_type
        for flag in ("auto_increment", "created_at", "updated_at", "deleted_at"):
            if getattr(marker, f"is_{flag}"):
                merged[flag] = True
        return merged

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.lower()
        return value

    @model_validator(mode="after")
    def _check_flags(self) -> Column:
        if self.auto_increment and self.type is not LogicalType.NUMBER:
            raise ValueError(f"auto_increment requires a number column, got {self.type.value}")
        roles = [r for r in ("created_at", "updated_at", "deleted_at") if getattr(self, r)]
        if roles and self.type is not LogicalType.DATE:
            raise ValueError(f"{roles[0]} requires a date column, got {self.type.value}")
        if "default" in self.model_fields_set and self.default_factory is not None:
            raise ValueError("default and default_factory are mutually exclusive")
        return self

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set or self.default_factory is not None

    def get_default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        if "default" in self.model_fields_set:
            return copy.deepcopy(self.default)
        raise ValueError("Column has no default")


def normalize_column(name: str, spec: ColumnSpec) -> Column:
    """Normalize one declaration (bare marker, mapping or Column) into a Column."""
    if isinstance(spec, Column):
        return spec
    payload: Any = {"type": spec} if isinstance(spec, (DataType, str)) else spec
    try:
        return Column.model_validate(payload)
    except PydanticValidationError as e:
        messages = "; ".join(err["msg"].removeprefix("Value error, ") for err in e.errors())
        raise ConfigurationError(messages, column=name) from e


def normalize(definition: Mapping[str, ColumnSpec]) -> dict[str, Column]:
    """Normalize a whole schema declaration, preserving key order."""
    return {name: normalize_column(name, spec) for name, spec in definition.items()}


class Schema(Mapping[str, Column]):
    """Immutable ordered mapping of column name to :class:`Column`."""

    def __init__(self, definition: Mapping[str, ColumnSpec]) -> None:
        columns = normalize(definition)
        if not columns:
            raise ConfigurationError("Schema must declare at least one column")

        deleted = [n for n, c in columns.items() if c.deleted_at]
        if len(deleted) > 1:
            raise ConfigurationError(f"Schema declares multiple deleted_at columns: {deleted}")

        self._columns: Mapping[str, Column] = MappingProxyType(columns)

    def __getitem__(self, name: str) -> Column:
        return self._columns[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __repr__(self) -> str:
        cols = ", ".join(f"{n}={c.type.value}" for n, c in self._columns.items())
        return f"Schema({cols})"

    @property
    def columns(self) -> Mapping[str, Column]:
        return self._columns

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(self._columns)

    @property
    def deleted_at_column(self) -> str | None:
        return next((n for n, c in self._columns.items() if c.deleted_at), None)

    @property
    def updated_at_column(self) -> str | None:
        return next((n for n, c in self._columns.items() if c.updated_at), None)

    @property
    def unique_columns(self) -> tuple[str, ...]:
        return tuple(n for n, c in self._columns.items() if c.unique)
