"""Stats API endpoint for scan statistics."""
from __future__ import annotations

from typing import Any

from litestar import get
from litestar.di import Provide

from clientscan.services.scan import ClientInventoryScanService
from clientscan.api.dependencies import provide_scan_service as pss


@get("/stats", dependencies={"scan_service": Provide(pss, sync_to_thread=False)})
async def stats(scan_service: ClientInventoryScanService | None) -> dict[str, Any]:
    """Get client inventory scan statistics.

    Returns:
        Dictionary with file, line and client counts.
        Returns zeros if the scan service is not available (degraded mode).
    """
    if scan_service is None:
        return {
            "files_total": 0,
            "files_processed": 0,
            "files_failed": 0,
            "total_parsed_lines": 0,
            "total_skipped_lines": 0,
            "total_error_lines": 0,
            "distinct_clients": 0,
            "is_running": False,
        }

    inventory = scan_service.inventory
    return {
        "files_total": scan_service.files_total,
        "files_processed": scan_service.files_processed,
        "files_failed": scan_service.files_failed,
        "total_parsed_lines": scan_service.parsed_lines,
        "total_skipped_lines": scan_service.skipped_lines,
        "total_error_lines": scan_service.error_lines,
        "distinct_clients": len(inventory) if inventory is not None else 0,
        "is_running": scan_service.is_running,
    }
