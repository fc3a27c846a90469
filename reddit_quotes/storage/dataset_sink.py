"""Append-only JSON-lines dataset of output records."""

import json
import logging
import os
from typing import List

from reddit_quotes.models.records import OutputRecord

logger = logging.getLogger(__name__)


class DatasetSink:
    """Writes one JSON object per record, one record per line."""

    def __init__(self, path: str):
        """
        Initialize the dataset sink.

        Args:
            path: Path to the ``.jsonl`` dataset file
        """
        self.path = path
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def append(self, records: List[OutputRecord]) -> int:
        if not records:
            return 0

        with open(self.path, "a", encoding="utf-8") as f:
            for record in records:
                f.write(json.dumps(record.to_dict(), ensure_ascii=False))
                f.write("\n")

        logger.debug(f"Appended {len(records)} records to {self.path}")
        return len(records)

    def flush(self) -> None:
        # Every append opens and closes the file
        return None
