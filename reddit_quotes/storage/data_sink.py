"""Defines the DataSink protocol for storage backends."""

from typing import List, Protocol

from reddit_quotes.models.records import OutputRecord


class DataSink(Protocol):
    """
    A protocol that defines the interface for all output sinks.

    Sinks are append-only and perform no deduplication: one post legitimately
    expands into several records, and post-level dedup already happened in
    the frontier.
    """

    def append(self, records: List[OutputRecord]) -> int:
        """
        Append records to the storage backend.

        Args:
            records: Output records to append.

        Returns:
            The number of records successfully appended.
        """
        ...

    def flush(self) -> None:
        """Persist anything the sink still holds in memory."""
        ...
