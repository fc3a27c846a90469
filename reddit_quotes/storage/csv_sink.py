"""CSV export of output records."""

import csv
import logging
import os
from typing import List

import pandas as pd

from reddit_quotes.models.records import OUTPUT_COLUMNS, OutputRecord

logger = logging.getLogger(__name__)


class CsvSink:
    """CSV file implementation of the DataSink interface."""

    COLUMNS = OUTPUT_COLUMNS

    def __init__(self, csv_path: str):
        """
        Initialize the CSV sink with a file path.

        Args:
            csv_path: Path to the CSV file
        """
        self.csv_path = csv_path
        self._ensure_directory()

    def _ensure_directory(self) -> None:
        """Ensure the directory for the CSV file exists."""
        directory = os.path.dirname(self.csv_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def _file_exists(self) -> bool:
        """Check if the CSV file already exists."""
        return os.path.exists(self.csv_path) and os.path.getsize(self.csv_path) > 0

    def append(self, records: List[OutputRecord]) -> int:
        """
        Append records to the CSV file.

        Unlike a dataset merge, nothing is deduplicated or re-sorted: rows are
        appended in the order they were classified.

        Args:
            records: Output records to append

        Returns:
            Number of records appended
        """
        if not records:
            return 0

        df = pd.DataFrame([record.to_row() for record in records], columns=self.COLUMNS)
        df.to_csv(
            self.csv_path,
            mode="a",
            index=False,
            header=not self._file_exists(),
            quoting=csv.QUOTE_MINIMAL,
            encoding="utf-8",
        )

        count = len(records)
        logger.debug(f"Appended {count} records to {self.csv_path}")
        return count

    def flush(self) -> None:
        return None
