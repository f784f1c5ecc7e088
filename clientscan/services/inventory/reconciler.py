"""Identity reconciliation - merges request records into a deduplicated inventory.

A record is identified by its composite key. For each key the inventory keeps
only the most recent record; exact-timestamp ties go to the record with the
greater (source file, line number), so the result does not depend on the order
files were processed in.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping

from clientscan.exceptions import InventoryFinalizedError
from clientscan.services.traceparser.schemas import RequestRecord


logger = logging.getLogger(__name__)


class Inventory(Mapping[str, RequestRecord]):
    """Mapping of composite key to the most recent request record for that key."""

    def __init__(self) -> None:
        self._records: dict[str, RequestRecord] = {}
        self._finalized: bool = False

    def __getitem__(self, key: str) -> RequestRecord:
        return self._records[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def put(self, record: RequestRecord) -> None:
        """Store ``record`` under its composite key, replacing any previous entry."""
        if self._finalized:
            raise InventoryFinalizedError("Inventory is finalized and can no longer change")
        self._records[record.composite_key] = record

    def finalize(self) -> "Inventory":
        self._finalized = True
        return self

    def records(self) -> list[RequestRecord]:
        """Retained records ordered by timestamp, then composite key."""
        return sorted(self._records.values(), key=lambda r: (r.timestamp, r.composite_key))


class IdentityReconciler:
    """Sole writer of an Inventory.

    Example:
        reconciler = IdentityReconciler()
        for records in streams:
            reconciler.merge_all(records)
        inventory = reconciler.finalize()
    """

    def __init__(self, inventory: Inventory | None = None) -> None:
        self.inventory = inventory if inventory is not None else Inventory()

        # Statistics
        self.merged_records: int = 0
        self.replaced_records: int = 0

    def merge(self, record: RequestRecord) -> bool:
        """Merge one record. Returns True if the inventory changed."""
        self.merged_records += 1
        existing = self.inventory.get(record.composite_key)
        if existing is None:
            self.inventory.put(record)
            return True

        if record.recency > existing.recency:
            self.inventory.put(record)
            self.replaced_records += 1
            return True
        return False

    def merge_all(self, records: Iterable[RequestRecord]) -> int:
        """Merge every record of one stream. Returns the number of records consumed."""
        count = 0
        for record in records:
            self.merge(record)
            count += 1
        return count

    def finalize(self) -> Inventory:
        logger.debug(
            "Finalizing inventory: %d distinct clients from %d records (%d replaced)",
            len(self.inventory),
            self.merged_records,
            self.replaced_records,
        )
        return self.inventory.finalize()

    def reconcile(self, streams: Iterable[Iterable[RequestRecord]]) -> Inventory:
        """Merge all record streams and return the finalized inventory."""
        for records in streams:
            self.merge_all(records)
        return self.finalize()


def reconcile(streams: Iterable[Iterable[RequestRecord]]) -> Inventory:
    """Build a finalized inventory from record streams."""
    return IdentityReconciler().reconcile(streams)
