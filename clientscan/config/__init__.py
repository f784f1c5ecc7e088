"""Configuration module for ClientScan."""

from clientscan.config.settings import (
    APISettings,
    ScannerSettings,
    Settings,
    SourceSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "APISettings",
    "ScannerSettings",
    "SourceSettings",
]
