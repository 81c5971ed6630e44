"""sheetorm: schema-driven models over spreadsheet-style tabular stores."""

__version__ = "0.1.0"

from sheetorm.client import SheetClient
from sheetorm.codec import Formula, InvalidDate, format_private_key, parse_value, serialize_value
from sheetorm.config import SheetOrmConfig
from sheetorm.datatypes import DataType, DataTypes, LogicalType
from sheetorm.errors import (
    ConfigurationError,
    InvalidFilterError,
    RemoteStoreError,
    SheetOrmError,
    UniqueConstraintError,
    ValidationError,
)
from sheetorm.filters import col
from sheetorm.model import Model
from sheetorm.options import FindOptions
from sheetorm.relations import Relation, RelationKind, bind_relations
from sheetorm.schema import Column, Schema
from sheetorm.stores import GoogleSheetsStore, MemoryStore, RemoteStore

__all__ = [
    "__version__",
    "SheetClient",
    "SheetOrmConfig",
    "Model",
    "Schema",
    "Column",
    "DataType",
    "DataTypes",
    "LogicalType",
    "FindOptions",
    "Relation",
    "RelationKind",
    "bind_relations",
    "col",
    "Formula",
    "InvalidDate",
    "format_private_key",
    "parse_value",
    "serialize_value",
    "RemoteStore",
    "MemoryStore",
    "GoogleSheetsStore",
    "SheetOrmError",
    "ConfigurationError",
    "ValidationError",
    "UniqueConstraintError",
    "InvalidFilterError",
    "RemoteStoreError",
]
