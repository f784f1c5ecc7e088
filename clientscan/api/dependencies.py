"""Shared dependency providers for API layer."""
from __future__ import annotations

from litestar import Request

from clientscan.services.scan import ClientInventoryScanService


def provide_scan_service(request: Request) -> ClientInventoryScanService | None:
    """Provide the ClientInventoryScanService from app state.

    Returns None if the service is not available (degraded mode).
    """
    return getattr(request.app.state, "scan_service", None)
