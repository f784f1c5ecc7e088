"""Shared configuration objects and factories.

This module provides:
- Logging configuration (used by the API server and the scan command)
- A factory building the scan service from settings
"""
from __future__ import annotations

from litestar.logging import LoggingConfig

from clientscan.config.settings import Settings, get_settings
from clientscan.services.scan import ClientInventoryScanService
from clientscan.services.sources import create_log_source
from clientscan.services.traceparser import RequestExtractor, TraceLineClassifier


def create_logging_config(settings: Settings | None = None) -> LoggingConfig:
    """Logging configuration with the level taken from settings."""
    settings = settings or get_settings()
    return LoggingConfig(
        root={"level": settings.api.log_level, "handlers": ["queue_listener"]},
        formatters={
            "standard": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"}
        },
        log_exceptions="always",
    )


def build_scan_service(
    settings: Settings | None = None,
    *,
    location: str | None = None,
    region: str | None = None,
) -> ClientInventoryScanService | None:
    """Build a scan service for the configured source.

    ``location`` and ``region`` override the source settings.
    Returns None when no log location is configured.
    """
    settings = settings or get_settings()
    location = location or settings.source.location
    if not location:
        return None

    classifier = TraceLineClassifier(excluded_client_ids=settings.scanner.excluded_client_ids)
    return ClientInventoryScanService(
        source=create_log_source(
            location,
            region_name=region or settings.source.region,
            suffixes=settings.source.suffixes,
        ),
        location=location,
        extractor=RequestExtractor(classifier),
        max_concurrency=settings.source.max_concurrency,
    )
