"""Application lifecycle hooks for startup and shutdown."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from clientscan.config.settings import get_settings
from clientscan.server.plugins import build_scan_service
from clientscan.services.scan import ClientInventoryScanService

if TYPE_CHECKING:
    from litestar import Litestar

logger = logging.getLogger(__name__)


async def on_startup(app: "Litestar") -> None:
    """Create the scan service and start a background scan.

    - If no log location is configured, start the API in a degraded mode
      (no scan, empty inventory) instead of failing app startup.
    """
    settings = get_settings()

    scan_service = build_scan_service(settings)
    if scan_service is None:
        logger.warning("No log location configured (SOURCE_LOCATION): starting without a scan.")
        return

    app.state.scan_service = scan_service

    if settings.scanner.run_on_startup:
        await scan_service.start()


async def on_shutdown(app: "Litestar") -> None:
    """Stop a running scan."""
    scan_service: ClientInventoryScanService | None = getattr(
        app.state, "scan_service", None
    )
    if scan_service:
        await scan_service.stop(timeout=5.0)
