from __future__ import annotations

import logging
from collections.abc import Iterator

from clientscan.exceptions import TimestampParseError

from .classifier import TraceLineClassifier
from .schemas import NotApplicable, RequestRecord


logger = logging.getLogger(__name__)


class RequestExtractor:
    """Streams one log file's lines through the classifier.

    Lines outside the grammar and lines with broken timestamps are skipped,
    never fatal for the file.
    """

    def __init__(self, classifier: TraceLineClassifier | None = None) -> None:
        self.classifier = classifier or TraceLineClassifier()

        # Statistics
        self.parsed_lines: int = 0
        self.skipped_lines: int = 0
        self.error_lines: int = 0

    def reset_stats(self) -> None:
        self.parsed_lines = 0
        self.skipped_lines = 0
        self.error_lines = 0

    def extract(self, content: bytes, file_id: str) -> Iterator[RequestRecord]:
        """Lazily yield the request records found in ``content``.

        Args:
            content: Decompressed log file content.
            file_id: Stable identifier of the file, used for provenance only.

        Yields:
            RequestRecord for each PRODUCE/FETCH trace line in scope.
        """
        # bytes.splitlines only breaks on \n, \r and \r\n; client ids may hold other separators
        for line_number, raw in enumerate(content.splitlines(), start=1):
            line = raw.decode("utf-8", errors="replace")
            try:
                result = self.classifier.classify(
                    line, source_file=file_id, line_number=line_number
                )
            except TimestampParseError as e:
                self.error_lines += 1
                logger.debug(
                    "Skipping line %d of %s: %s. Line: '%s'", line_number, file_id, e, line
                )
                continue

            if isinstance(result, NotApplicable):
                self.skipped_lines += 1
                logger.debug(
                    "Skipping line %d of %s (%s)", line_number, file_id, result.reason
                )
                continue

            self.parsed_lines += 1
            yield result
