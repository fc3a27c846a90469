"""Composite storage implementation for writing to multiple storage backends."""

import logging
from typing import List

from reddit_quotes.models.records import OutputRecord
from reddit_quotes.storage.data_sink import DataSink

logger = logging.getLogger(__name__)


class CompositeSink:
    """
    Composite sink that writes to multiple storage backends.

    This class implements the same interface as individual sinks
    but delegates operations to all configured sinks.
    """

    def __init__(self, configured_sinks: List[DataSink]):
        """
        Initialize the composite storage sink with pre-configured sink instances.

        Args:
            configured_sinks: A list of already initialized DataSink objects.
                The first one is treated as the primary sink.
        """
        self.sinks: List[DataSink] = list(configured_sinks)
        if not self.sinks:
            logger.warning("CompositeSink initialized with no data sinks.")
        else:
            names = ", ".join(type(s).__name__ for s in self.sinks)
            logger.info(f"Records will be written to: {names}")

    def append(self, records: List[OutputRecord]) -> int:
        """
        Append records to all configured storage backends.

        A failing backend is logged and skipped; the others still receive
        the records.

        Args:
            records: Output records to append

        Returns:
            Number of records successfully appended to the primary sink
        """
        if not records:
            return 0

        primary_count = 0
        for i, sink in enumerate(self.sinks):
            sink_name = sink.__class__.__name__
            try:
                count = sink.append(records)
                if i == 0:
                    primary_count = count
            except Exception as e:
                logger.error(f"Error in {sink_name}.append: {str(e)}", exc_info=True)
        return primary_count

    def flush(self) -> None:
        for sink in self.sinks:
            try:
                sink.flush()
            except Exception as e:
                logger.error(f"Error in {sink.__class__.__name__}.flush: {str(e)}")
