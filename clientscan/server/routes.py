"""Central route registration."""
from litestar.types import ControllerRouterHandler

from clientscan.api.v1.clients_controller import ClientInventoryController
from clientscan.api.v1.settings import read_settings
from clientscan.api.v1.stats import stats

def get_route_handlers() -> list[ControllerRouterHandler]:
    """Get all route handlers for the application."""
    return [
        ClientInventoryController,
        read_settings,
        stats,
    ]
