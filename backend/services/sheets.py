"""Google Sheets reader for the spreadsheet analysis session.

Reads cell values through the Sheets v4 REST API with a service account.
Token refresh is blocking (google-auth), so it runs in a worker thread.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from config import Settings
from utils import load_google_credentials, retry_async

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]

SPREADSHEET_ID_PATTERN = re.compile(r"/d/([a-zA-Z0-9_-]+)")


class SpreadsheetReadError(Exception):
    """Raised when a spreadsheet cannot be read."""


def extract_spreadsheet_id(url: str) -> str | None:
    """Extract the spreadsheet id from a Google Sheets link.

    >>> extract_spreadsheet_id("https://docs.google.com/spreadsheets/d/ABC123/edit")
    'ABC123'
    """
    match = SPREADSHEET_ID_PATTERN.search(url or "")
    return match.group(1) if match else None


@dataclass
class SheetData:
    """Values read from one sheet."""

    sheet_name: str
    values: list[list[str]]
    total_rows: int

    @property
    def row_count(self) -> int:
        return len(self.values)

    @property
    def truncated(self) -> bool:
        return self.total_rows > self.row_count

    def to_dict(self) -> dict[str, Any]:
        """Tool result payload."""
        return {
            "sheetName": self.sheet_name,
            "rowCount": self.row_count,
            "totalRows": self.total_rows,
            "truncated": self.truncated,
            "values": self.values,
        }


class GoogleSheetsReader:
    """Reads spreadsheet values with a Google service account.

    Args:
        credentials: google-auth credentials (anything with ``valid``,
            ``token`` and ``refresh(request)``).
        max_rows: Max rows returned by one read.
        timeout: Request timeout in seconds.
        retry_attempts: Retries after a timeout or connection error.
        http_client: Optional pre-built httpx client (tests).
    """

    def __init__(
        self,
        credentials: Any,
        *,
        max_rows: int = 500,
        timeout: float = 20.0,
        retry_attempts: int = 1,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._credentials = credentials
        self.max_rows = max_rows
        self.retry_attempts = retry_attempts
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout=timeout, connect=10.0)
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleSheetsReader":
        """Build a reader from application settings."""
        info = load_google_credentials(settings.google_credentials)
        credentials = service_account.Credentials.from_service_account_info(
            info, scopes=SHEETS_SCOPES
        )
        return cls(
            credentials,
            max_rows=settings.sheet_max_rows,
            timeout=settings.sheets_timeout_seconds,
            retry_attempts=settings.retry_attempts,
        )

    async def read(self, spreadsheet_id: str, sheet_name: str | None = None) -> SheetData:
        """Read cell values of one sheet, capped at max_rows.

        Args:
            spreadsheet_id: Google Sheets document id.
            sheet_name: Sheet (tab) to read. Defaults to the first sheet.

        Returns:
            SheetData with stringified cell values.

        Raises:
            SpreadsheetReadError: If the API call fails.
        """
        headers = await self._auth_headers()

        if not sheet_name:
            sheet_name = await self._first_sheet_name(spreadsheet_id, headers)

        range_ = quote(f"'{sheet_name}'", safe="")
        payload = await self._get(
            f"{SHEETS_API_URL}/{spreadsheet_id}/values/{range_}",
            headers,
            params={"majorDimension": "ROWS"},
        )

        rows = payload.get("values", [])
        values = [[str(cell) for cell in row] for row in rows[: self.max_rows]]

        logger.info(
            "Read spreadsheet %s sheet '%s': %d rows (returned %d)",
            spreadsheet_id,
            sheet_name,
            len(rows),
            len(values),
        )
        return SheetData(sheet_name=sheet_name, values=values, total_rows=len(rows))

    async def _first_sheet_name(
        self, spreadsheet_id: str, headers: dict[str, str]
    ) -> str:
        payload = await self._get(
            f"{SHEETS_API_URL}/{spreadsheet_id}",
            headers,
            params={"fields": "sheets.properties.title"},
        )
        sheets = payload.get("sheets") or []
        if not sheets:
            raise SpreadsheetReadError(f"Spreadsheet {spreadsheet_id} has no sheets")
        return sheets[0]["properties"]["title"]

    async def _get(
        self,
        url: str,
        headers: dict[str, str],
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await retry_async(
                lambda: self._client.get(url, headers=headers, params=params),
                retry_on=(httpx.TimeoutException, httpx.ConnectError),
                attempts=self.retry_attempts,
                label="Sheets API request",
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Sheets API returned %s for %s", status, url)
            if status == 404:
                raise SpreadsheetReadError("Spreadsheet not found") from e
            if status == 403:
                raise SpreadsheetReadError(
                    "No access to the spreadsheet; share it with the service account"
                ) from e
            raise SpreadsheetReadError(f"Sheets API error {status}") from e
        except httpx.HTTPError as e:
            logger.error("Sheets API request failed: %s", e)
            raise SpreadsheetReadError(f"Sheets API request failed: {e}") from e

    async def _auth_headers(self) -> dict[str, str]:
        if not self._credentials.valid:
            try:
                await asyncio.to_thread(self._credentials.refresh, GoogleAuthRequest())
            except Exception as e:
                logger.error("Failed to refresh Google credentials: %s", e)
                raise SpreadsheetReadError("Google authentication failed") from e
        return {"Authorization": f"Bearer {self._credentials.token}"}

    async def close(self) -> None:
        await self._client.aclose()
