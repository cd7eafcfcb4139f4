"""
Spreadsheet readers.

A reader is anything with ``async fetch_rows(credentials, source_id)`` that
returns the full current set of rows or raises SheetReadError. The polling
core treats every failure the same way, so readers do not classify errors
as retryable or fatal.
"""

import logging
from typing import Any, Optional, Protocol
from urllib.parse import quote

import httpx

from leadring.errors import SheetReadError
from leadring.models.session import Credentials

logger = logging.getLogger(__name__)

DEFAULT_SHEETS_BASE_URL = "https://sheets.googleapis.com"
DEFAULT_RANGE = "A:Z"

Rows = list[list[str]]


class SpreadsheetReader(Protocol):
    async def fetch_rows(self, credentials: Credentials, source_id: str) -> Rows:
        ...


class GoogleSheetsReader:
    """Reads a fixed range through the Sheets v4 values endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_SHEETS_BASE_URL,
        sheet_range: str = DEFAULT_RANGE,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._range = sheet_range
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"User-Agent": "leadring/0.1.0", "Accept": "application/json"},
            timeout=timeout,
        )

    def _values_path(self, source_id: str) -> str:
        return f"/v4/spreadsheets/{quote(source_id, safe='')}/values/{quote(self._range, safe='')}"

    @staticmethod
    def _normalize(values: Any) -> Rows:
        """Sheets omits trailing empty cells and may send numbers; rows are lists of strings."""
        if not isinstance(values, list):
            return []
        return [
            ["" if cell is None else str(cell) for cell in row] if isinstance(row, list) else [str(row)]
            for row in values
        ]

    async def fetch_rows(self, credentials: Credentials, source_id: str) -> Rows:
        try:
            resp = await self._client.get(
                self._values_path(source_id),
                headers={"Authorization": credentials.authorization_header()},
            )
        except httpx.HTTPError as e:
            raise SheetReadError(f"Sheets request failed: {e}") from e
        if resp.status_code >= 400:
            raise SheetReadError(f"HTTP {resp.status_code}: {resp.text[:200]}", status_code=resp.status_code)
        try:
            body = resp.json()
        except ValueError as e:
            raise SheetReadError(f"Invalid JSON from Sheets API: {e}") from e
        # An empty range comes back without a "values" key.
        return self._normalize(body.get("values", []) if isinstance(body, dict) else [])

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
