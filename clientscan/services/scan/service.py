"""Client inventory scan service.

This service orchestrates:
- Log file enumeration and fetching via a LogSource
- Request extraction via RequestExtractor
- Deduplication via IdentityReconciler

Fetches run concurrently up to ``max_concurrency``; all merges happen on the
event loop, so the reconciler is the only writer of the inventory.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from clientscan.exceptions import LogSourceError
from clientscan.services.inventory.reconciler import IdentityReconciler, Inventory
from clientscan.services.traceparser.extractor import RequestExtractor

if TYPE_CHECKING:
    from clientscan.services.sources.base import LogSource


logger = logging.getLogger(__name__)


@dataclass
class FileFailure:
    """A log file that could not be fetched or decompressed."""

    file_id: str
    error: str


class ClientInventoryScanService:
    """Builds a client inventory from every broker log file under a location.

    Example:
        service = ClientInventoryScanService(
            source=LocalLogSource(),
            location="/data/broker-logs",
        )
        inventory = await service.run()
        # or, in the background:
        await service.start()
        # ... later ...
        await service.stop()
    """

    def __init__(
        self,
        source: "LogSource",
        location: str,
        *,
        extractor: RequestExtractor | None = None,
        max_concurrency: int = 4,
    ) -> None:
        """Initialize the scan service.

        Args:
            source: LogSource used to list and fetch log files.
            location: S3 URI or directory holding the broker logs.
            extractor: RequestExtractor for turning file content into records.
            max_concurrency: Maximum number of files fetched at once.
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.source: LogSource = source
        self.location: str = location
        self.extractor: RequestExtractor = extractor or RequestExtractor()
        self.max_concurrency: int = max_concurrency

        self.reconciler: IdentityReconciler = IdentityReconciler()
        self._inventory: Inventory | None = None

        # Background task management
        self._stop_event: asyncio.Event = asyncio.Event()
        self._scan_task: asyncio.Task[None] | None = None

        # Statistics
        self.files_total: int = 0
        self.files_processed: int = 0
        self.records_extracted: int = 0
        self.failures: list[FileFailure] = []
        self.duration_seconds: float | None = None

    @property
    def is_running(self) -> bool:
        """Return True if a background scan is running."""
        return self._scan_task is not None and not self._scan_task.done()

    @property
    def inventory(self) -> Inventory | None:
        """The inventory of the last finished scan, if any."""
        return self._inventory

    @property
    def files_failed(self) -> int:
        return len(self.failures)

    def _reset(self) -> None:
        self.reconciler = IdentityReconciler()
        self.extractor.reset_stats()
        self.files_total = 0
        self.files_processed = 0
        self.records_extracted = 0
        self.failures = []
        self.duration_seconds = None

    async def run(self) -> Inventory:
        """Scan every log file under the location and return the finalized inventory.

        A file that cannot be fetched is logged and skipped. If ``stop`` is called
        mid-scan, the inventory holds whatever was merged up to that point.

        Raises:
            LogSourceError: The location itself could not be listed.
        """
        self._reset()
        started = time.monotonic()
        logger.info("Starting client inventory scan of %s", self.location)

        file_ids = await self.source.list_files(self.location)
        self.files_total = len(file_ids)
        if not file_ids:
            logger.info("No log files found to process in %s", self.location)
        else:
            await self._process_files(file_ids)

        inventory = self.reconciler.finalize()
        self._inventory = inventory
        self.duration_seconds = time.monotonic() - started
        logger.info(
            "Finished client inventory scan: %d distinct clients from %d records "
            "(%d/%d files processed, %d failed) in %.1fs",
            len(inventory),
            self.records_extracted,
            self.files_processed,
            self.files_total,
            self.files_failed,
            self.duration_seconds,
        )
        return inventory

    async def _process_files(self, file_ids: list[str]) -> None:
        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = [
            asyncio.create_task(self._fetch(file_id, semaphore), name=f"fetch:{file_id}")
            for file_id in file_ids
        ]
        try:
            for next_done in asyncio.as_completed(tasks):
                file_id, content = await next_done
                if self._stop_event.is_set():
                    logger.info("Scan stopped, %d files were not merged", self.files_total - self.files_processed)
                    break
                if content is None:
                    continue
                self._merge_file(file_id, content)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _fetch(
        self, file_id: str, semaphore: asyncio.Semaphore
    ) -> tuple[str, bytes | None]:
        async with semaphore:
            if self._stop_event.is_set():
                return file_id, None
            try:
                return file_id, await self.source.fetch(file_id)
            except LogSourceError as e:
                logger.error("Failed to extract API requests from %s: %s", file_id, e)
                self.failures.append(FileFailure(file_id=file_id, error=str(e)))
                return file_id, None

    def _merge_file(self, file_id: str, content: bytes) -> None:
        count = self.reconciler.merge_all(self.extractor.extract(content, file_id))
        self.files_processed += 1
        self.records_extracted += count
        logger.info("Parsed log file %s: found %d matching log lines", file_id, count)

    async def start(self) -> None:
        """Start the scan as a background task."""
        if self.is_running:
            logger.warning("Scan already running")
            return

        self._stop_event.clear()
        self._scan_task = asyncio.create_task(self._run_scan(), name="client-inventory-scan")
        logger.info(
            "Started client inventory scan service (location=%s, max_concurrency=%d)",
            self.location,
            self.max_concurrency,
        )

    async def stop(self, timeout: float = 10.0) -> None:
        """Stop the scan gracefully.

        Args:
            timeout: Seconds to wait before force-cancelling.
        """
        if not self._scan_task:
            return

        self._stop_event.set()
        try:
            await asyncio.wait_for(self._scan_task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Scan did not stop gracefully, cancelling")
            self._scan_task.cancel()
            try:
                await self._scan_task
            except asyncio.CancelledError:
                pass
        except asyncio.CancelledError:
            pass

        self._stop_event.clear()
        logger.info("Stopped client inventory scan service. Files processed: %d", self.files_processed)

    async def _run_scan(self) -> None:
        try:
            await self.run()
        except asyncio.CancelledError:
            logger.info("Scan cancelled")
            raise
        except LogSourceError as e:
            logger.error("Client inventory scan failed: %s", e)
        except Exception as e:
            logger.exception("Scan error: %s", e)
            raise

    # Statistics properties for API endpoints
    @property
    def parsed_lines(self) -> int:
        """Return the number of request lines parsed by the extractor."""
        return self.extractor.parsed_lines

    @property
    def skipped_lines(self) -> int:
        """Return the number of out-of-scope lines skipped by the extractor."""
        return self.extractor.skipped_lines

    @property
    def error_lines(self) -> int:
        """Return the number of lines skipped for a malformed timestamp."""
        return self.extractor.error_lines
