"""Google Sheets v4 REST transport.

Authentication is left to the caller: pass either a static ``access_token``
or an async ``token_provider`` returning a bearer token (for example one
minted from the service-account credentials in :class:`SheetOrmConfig`).
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote

import httpx

from sheetorm.config import SheetOrmConfig
from sheetorm.errors import ConfigurationError, RemoteStoreError
from sheetorm.stores.base import Cells

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]

VALUE_INPUT_OPTION = "USER_ENTERED"


class GoogleSheetsStore:
    """RemoteStore backed by one spreadsheet."""

    def __init__(
        self,
        config: SheetOrmConfig,
        *,
        access_token: str | None = None,
        token_provider: TokenProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not config.spreadsheet_id:
            raise ConfigurationError("spreadsheet_id is required for GoogleSheetsStore")
        if access_token is None and token_provider is None:
            raise ConfigurationError("GoogleSheetsStore needs access_token or token_provider")

        self.spreadsheet_id = config.spreadsheet_id
        self._base = f"{config.api_base_url.rstrip('/')}/spreadsheets/{self.spreadsheet_id}"
        self._access_token = access_token
        self._token_provider = token_provider
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.request_timeout_s)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> GoogleSheetsStore:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def _headers(self) -> dict[str, str]:
        token = self._access_token
        if self._token_provider is not None:
            token = await self._token_provider()
        return {"Authorization": f"Bearer {token}"}

    def _values_url(self, range_: str, suffix: str = "") -> str:
        return f"{self._base}/values/{quote(range_, safe='')}{suffix}"

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        logger.debug("%s %s", method, url)
        try:
            response = await self._http.request(
                method, url, params=params, json=json, headers=await self._headers()
            )
        except httpx.HTTPError as e:
            raise RemoteStoreError(operation, str(e)) from e

        if response.is_error:
            raise RemoteStoreError(operation, _error_detail(response), status=response.status_code)
        if not response.content:
            return {}
        return response.json()

    async def read_range(self, range_: str) -> Cells:
        body = await self._request("read_range", "GET", self._values_url(range_))
        return body.get("values", [])

    async def append_rows(self, range_: str, rows: Cells) -> None:
        await self._request(
            "append_rows",
            "POST",
            self._values_url(range_, ":append"),
            params={"valueInputOption": VALUE_INPUT_OPTION},
            json={"values": rows},
        )

    async def overwrite_range(self, range_: str, rows: Cells) -> None:
        await self._request(
            "overwrite_range",
            "PUT",
            self._values_url(range_),
            params={"valueInputOption": VALUE_INPUT_OPTION},
            json={"values": rows},
        )

    async def clear_range(self, range_: str) -> None:
        await self._request("clear_range", "POST", self._values_url(range_, ":clear"))

    async def create_table(self, name: str) -> None:
        await self._request(
            "create_table",
            "POST",
            f"{self._base}:batchUpdate",
            json={"requests": [{"addSheet": {"properties": {"title": name}}}]},
        )


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.text or response.reason_phrase
