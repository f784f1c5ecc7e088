"""Application factory for creating Litestar app instance."""

from __future__ import annotations


from litestar import Litestar
from litestar.openapi import OpenAPIConfig
from litestar.middleware.logging import LoggingMiddlewareConfig

from clientscan.config.settings import get_settings
from clientscan.server.lifecycle import on_startup, on_shutdown
from clientscan.server.plugins import create_logging_config
from clientscan.server.routes import get_route_handlers


def create_app() -> Litestar:
    """Create and configure the Litestar application.

    Returns:
        Litestar: Configured application instance
    """
    settings = get_settings()

    openapi_config = OpenAPIConfig(
        title=settings.name,
        version=settings.version,
        description=settings.description,
        create_examples=True,
    )

    logging_middleware_config = LoggingMiddlewareConfig()

    app = Litestar(
        debug=settings.debug,
        route_handlers=get_route_handlers(),
        on_startup=[on_startup],
        on_shutdown=[on_shutdown],
        logging_config=create_logging_config(settings),
        openapi_config=openapi_config,
        middleware=[logging_middleware_config.middleware],
    )

    return app
