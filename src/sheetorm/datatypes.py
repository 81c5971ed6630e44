"""Logical column types and the DataTypes markers used in schema declarations."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class LogicalType(str, Enum):
    """Closed set of column types understood by the value codec."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"
    DATE = "date"
    UUID = "uuid"
    CUID = "cuid"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DataType:
    """A bare type marker, e.g. ``DataTypes.String``.

    Markers are immutable; the builder methods on the subclasses return new
    markers carrying the extra flag.
    """

    logical_type: LogicalType
    is_auto_increment: bool = False
    is_created_at: bool = False
    is_updated_at: bool = False
    is_deleted_at: bool = False

    def __str__(self) -> str:
        return self.logical_type.value


@dataclass(frozen=True)
class NumberDataType(DataType):
    logical_type: LogicalType = LogicalType.NUMBER

    def auto_increment(self) -> NumberDataType:
        return replace(self, is_auto_increment=True)


@dataclass(frozen=True)
class DateDataType(DataType):
    logical_type: LogicalType = LogicalType.DATE

    def created_at(self) -> DateDataType:
        return replace(self, is_created_at=True)

    def updated_at(self) -> DateDataType:
        return replace(self, is_updated_at=True)

    def deleted_at(self) -> DateDataType:
        return replace(self, is_deleted_at=True)


class DataTypes:
    """Namespace of the type markers accepted by :class:`sheetorm.schema.Schema`."""

    String = DataType(LogicalType.STRING)
    Number = NumberDataType()
    Boolean = DataType(LogicalType.BOOLEAN)
    JSON = DataType(LogicalType.JSON)
    Date = DateDataType()
    UUID = DataType(LogicalType.UUID)
    CUID = DataType(LogicalType.CUID)
