"""Exception hierarchy for client inventory scans."""
from __future__ import annotations


class ClientScanError(Exception):
    """Base class for all client scan errors."""


class TimestampParseError(ClientScanError):
    """A trace line matched the grammar but its timestamp could not be parsed."""

    def __init__(self, raw_timestamp: str) -> None:
        super().__init__(f"Unable to parse timestamp '{raw_timestamp}'")
        self.raw_timestamp = raw_timestamp


class LogSourceError(ClientScanError):
    """A log location could not be listed, or a log file could not be fetched or decompressed."""

    def __init__(self, message: str, *, file_id: str | None = None) -> None:
        super().__init__(message)
        self.file_id = file_id


class InventoryFinalizedError(ClientScanError):
    """Raised when a finalized inventory is mutated."""
