"""Buffered Google Sheets export with crash-safe flushing."""

import asyncio
import json
import logging
from typing import Any, List, Optional

import gspread
from google.oauth2.service_account import Credentials

from reddit_quotes.collector.error_handler import ConfigError
from reddit_quotes.models.records import OUTPUT_COLUMNS, OutputRecord

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
DEFAULT_BATCH_SIZE = 100


class SheetsSink:
    """
    Buffers output rows and appends them to a worksheet in batches.

    ``flush`` is idempotent and safe to call on an empty buffer, so it is
    registered as the handler for every interruption-style lifecycle event.
    Rows whose append fails stay buffered for the next flush attempt.
    """

    def __init__(self, worksheet: Any, batch_size: int = DEFAULT_BATCH_SIZE):
        """
        Initialize the sink.

        Args:
            worksheet: A gspread Worksheet (or anything with ``append_rows``)
            batch_size: Maximum rows per append call; also the auto-flush threshold
        """
        self.worksheet = worksheet
        self.batch_size = batch_size
        self.header = list(OUTPUT_COLUMNS)
        self.header_added = False
        self.buffer: List[List[Any]] = []
        self._lock = asyncio.Lock()

    @classmethod
    def from_service_account(
        cls,
        service_account_key: str,
        spreadsheet_id: str,
        sheet_name: str = "Sheet1",
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> Optional["SheetsSink"]:
        """
        Connect to a worksheet with a service account key.

        Args:
            service_account_key: Service account key as a JSON string
            spreadsheet_id: Target spreadsheet key
            sheet_name: Worksheet title
            batch_size: Rows per append call

        Returns:
            SheetsSink, or None if credentials or target are missing or unreachable

        Raises:
            ConfigError: If the service account key is not valid JSON
        """
        if not service_account_key or not spreadsheet_id:
            logger.info("Google Sheets export disabled (no credentials or spreadsheet id)")
            return None

        try:
            info = json.loads(service_account_key)
        except ValueError as e:
            raise ConfigError(f"GOOGLE_SERVICE_ACCOUNT_KEY is not valid JSON: {e}") from e

        if isinstance(info.get("private_key"), str):
            info["private_key"] = info["private_key"].replace("\\n", "\n")

        try:
            credentials = Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)
            client = gspread.authorize(credentials)
            worksheet = client.open_by_key(spreadsheet_id).worksheet(sheet_name or "Sheet1")
        except Exception as e:
            logger.error(f"Failed to open Google Sheet {spreadsheet_id}: {e}. Sheets export disabled.")
            return None

        logger.info(f"Google Sheets export enabled ({spreadsheet_id}!{sheet_name})")
        return cls(worksheet, batch_size=batch_size)

    async def push_row(self, record: OutputRecord) -> None:
        """Buffer one record, flushing once a full batch is waiting."""
        await self.push_rows([record])

    async def push_rows(self, records: List[OutputRecord]) -> None:
        """
        Buffer records, flushing once a full batch is waiting.

        All rows are buffered before the first await, and the flush keeps
        running if the caller is cancelled mid-append.
        """
        self.buffer.extend(record.to_row() for record in records)
        if len(self.buffer) >= self.batch_size:
            await asyncio.shield(self.flush())

    def _append(self, values: List[List[Any]]) -> None:
        self.worksheet.append_rows(
            values,
            value_input_option="RAW",
            insert_data_option="INSERT_ROWS",
            table_range="A1",
        )

    async def flush(self) -> int:
        """
        Append every buffered row in chunks of at most ``batch_size``.

        The header row is prepended until the first append succeeds. On a
        failed append the chunk is put back at the front of the buffer and
        flushing stops until the next attempt.

        Returns:
            Number of rows appended by this call
        """
        appended = 0
        async with self._lock:
            while self.buffer:
                chunk = self.buffer[: self.batch_size]
                del self.buffer[: len(chunk)]
                values = chunk if self.header_added else [self.header] + chunk
                with_header = not self.header_added

                try:
                    await asyncio.to_thread(self._append, values)
                except Exception as e:
                    self.buffer[0:0] = chunk
                    logger.error(f"Sheets append failed: {e}")
                    break

                self.header_added = True
                appended += len(chunk)
                logger.info(f"Sheets: appended {len(chunk)} rows{' with header' if with_header else ''}.")
        return appended
