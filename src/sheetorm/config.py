"""Configuration for sheetorm clients and transports."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from sheetorm.codec import format_private_key
from sheetorm.errors import ConfigurationError


@dataclass
class SheetOrmConfig:
    """Configuration for the cached accessor and the Google Sheets transport."""

    spreadsheet_id: str | None = None
    client_email: str | None = None
    private_key: str | None = None
    cache_ttl_ms: int = 60000
    max_cache_size: int = 100
    max_columns: int = 26
    request_timeout_s: float = 30.0
    api_base_url: str = "https://sheets.googleapis.com/v4"

    def __post_init__(self) -> None:
        if self.cache_ttl_ms < 0:
            raise ConfigurationError(f"cache_ttl_ms must be >= 0, got {self.cache_ttl_ms}")
        if self.max_cache_size < 1:
            raise ConfigurationError(f"max_cache_size must be >= 1, got {self.max_cache_size}")
        if self.max_columns < 1:
            raise ConfigurationError(f"max_columns must be >= 1, got {self.max_columns}")
        if self.private_key is not None:
            self.private_key = format_private_key(self.private_key)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SheetOrmConfig:
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {
            "spreadsheet_id": env.get("GOOGLE_SPREADSHEET_ID"),
            "client_email": env.get("GOOGLE_SERVICE_ACCOUNT_EMAIL"),
            "private_key": env.get("GOOGLE_PRIVATE_KEY"),
        }
        if "SHEETORM_CACHE_TTL_MS" in env:
            kwargs["cache_ttl_ms"] = _int_env(env, "SHEETORM_CACHE_TTL_MS")
        if "SHEETORM_MAX_CACHE_SIZE" in env:
            kwargs["max_cache_size"] = _int_env(env, "SHEETORM_MAX_CACHE_SIZE")
        return cls(**kwargs)  # type: ignore[arg-type]

    @property
    def cache_ttl_s(self) -> float:
        return self.cache_ttl_ms / 1000.0


def _int_env(env: Mapping[str, str], name: str) -> int:
    value = env[name]
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e
