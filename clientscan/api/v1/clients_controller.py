"""Client inventory API endpoints."""
from __future__ import annotations

from litestar import Controller, get
from litestar.di import Provide

from clientscan.api.dependencies import provide_scan_service
from clientscan.services.inventory import DiscoveredClient, to_discovered_clients
from clientscan.services.scan import ClientInventoryScanService


class ClientInventoryController(Controller):
    """Discovered client endpoints

    Serves the inventory of the last finished scan.
    """
    path = "/api/v1/clients"
    tags = ["Client Inventory"]

    dependencies = {
        "scan_service": Provide(provide_scan_service, sync_to_thread=False),
    }

    @get("/")
    async def list_clients(
        self,
        scan_service: ClientInventoryScanService | None,
        role: str | None = None,
        auth: str | None = None,
    ) -> list[DiscoveredClient]:
        """List discovered clients, optionally filtered by role and auth kind."""
        if scan_service is None or scan_service.inventory is None:
            return []

        clients = to_discovered_clients(scan_service.inventory)
        if role:
            clients = [c for c in clients if c.role.lower() == role.lower()]
        if auth:
            clients = [c for c in clients if c.auth.lower() == auth.lower()]
        return clients
