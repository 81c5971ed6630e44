"""Structured error types for sheetorm."""

from __future__ import annotations

from typing import Any

_MISSING_TABLE_SIGNATURES = ("Unable to parse range", "Invalid range", "Invalid values")
_TABLE_EXISTS_SIGNATURES = ("already exists",)


class SheetOrmError(Exception):
    """Base error for all sheetorm errors."""


class ConfigurationError(SheetOrmError):
    """Raised when a schema, relation or client is configured inconsistently."""

    def __init__(self, detail: str, column: str | None = None) -> None:
        self.detail = detail
        self.column = column
        prefix = f"Column '{column}': " if column else ""
        super().__init__(f"{prefix}{detail}")


class ValidationError(SheetOrmError):
    """Raised when data fails validation (e.g., unique constraint violation)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class UniqueConstraintError(ValidationError):
    """Raised when a created row collides with an existing value on a unique column."""

    def __init__(self, column: str, value: Any) -> None:
        self.column = column
        self.value = value
        super().__init__(
            f"Unique constraint violation: {column} with value '{value}' already exists."
        )


class InvalidFilterError(SheetOrmError, ValueError):
    """Raised when an operator mapping contains an unsupported operator."""

    def __init__(self, column: str, operator: str) -> None:
        self.column = column
        self.operator = operator
        super().__init__(f"Unsupported filter operator '{operator}' on column '{column}'")


class RemoteStoreError(SheetOrmError):
    """Raised when a remote store primitive fails."""

    def __init__(self, operation: str, detail: str, status: int | None = None) -> None:
        self.operation = operation
        self.detail = detail
        self.status = status
        code = f" (status {status})" if status is not None else ""
        super().__init__(f"Remote store error during {operation}{code}: {detail}")


def _error_message(err: BaseException) -> str:
    if isinstance(err, RemoteStoreError):
        return err.detail
    return str(err)


def is_missing_table_error(err: BaseException) -> bool:
    """True when the remote store rejected a range because its table does not exist."""
    status = getattr(err, "status", None)
    if status not in (None, 400):
        return False
    message = _error_message(err)
    return any(sig in message for sig in _MISSING_TABLE_SIGNATURES)


def is_table_exists_error(err: BaseException) -> bool:
    """True when a create-table call failed only because the table is already there."""
    message = _error_message(err)
    return any(sig in message for sig in _TABLE_EXISTS_SIGNATURES)
