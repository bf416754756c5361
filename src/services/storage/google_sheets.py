"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as an optional backend because:
1. Non-technical users can look at their raw data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Each key is one row: [key, value, updated_at]. A cell holds at most
  50,000 characters, which bounds the size of one month partition
- No transactions (the ledger already tolerates this)
- Every lookup reads the whole sheet (fine for personal volumes)
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from src.config import get_settings
from src.config.settings import GoogleSheetsSettings
from src.services.storage.interface import (
    ConnectionError,
    KeyValueStoreInterface,
    StorageError,
)


KV_COLUMNS = ["key", "value", "updated_at"]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_kv_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.kv_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.kv_sheet_name,
                rows=500,
                cols=len(KV_COLUMNS),
            )
            sheet.append_row(KV_COLUMNS)
        return sheet


class GoogleSheetsKeyValueStore(KeyValueStoreInterface):
    """
    Google Sheets implementation of key-value storage.

    Row 1 is the header; every following row is one key.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _rows(self, sheet: gspread.Worksheet) -> list[tuple[int, list]]:
        """(sheet row number, row) pairs for all data rows."""
        return [
            (idx, row)
            for idx, row in enumerate(sheet.get_all_values()[1:], start=2)
            if row and row[0]
        ]

    def _find_row(self, sheet: gspread.Worksheet, key: str) -> Optional[tuple[int, list]]:
        for idx, row in self._rows(sheet):
            if row[0] == key:
                return idx, row
        return None

    async def get_item(self, key: str) -> Optional[str]:
        try:
            sheet = self._client.get_kv_sheet()
            found = self._find_row(sheet, key)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read key {key}: {e}")

        if found is None:
            return None
        _, row = found
        return row[1] if len(row) > 1 else ""

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def set_item(self, key: str, value: str) -> None:
        try:
            sheet = self._client.get_kv_sheet()
            updated_at = datetime.now(timezone.utc).isoformat()
            found = self._find_row(sheet, key)
            if found is None:
                sheet.append_row([key, value, updated_at], value_input_option="RAW")
            else:
                idx, _ = found
                sheet.update(
                    range_name=f"B{idx}:C{idx}",
                    values=[[value, updated_at]],
                    value_input_option="RAW",
                )
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save key {key}: {e}")

    async def remove_item(self, key: str) -> None:
        await self.multi_remove([key])

    async def get_all_keys(self) -> list[str]:
        try:
            sheet = self._client.get_kv_sheet()
            return [row[0] for _, row in self._rows(sheet)]
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list keys: {e}")

    async def multi_remove(self, keys: Iterable[str]) -> None:
        wanted = set(keys)
        if not wanted:
            return
        try:
            sheet = self._client.get_kv_sheet()
            indexes = [idx for idx, row in self._rows(sheet) if row[0] in wanted]
            # Bottom-up so earlier deletions don't shift later row numbers
            for idx in sorted(indexes, reverse=True):
                sheet.delete_rows(idx)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete keys: {e}")
