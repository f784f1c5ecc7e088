from __future__ import annotations

from typing import Any
from litestar import get
from clientscan.config.settings import get_settings

@get("/settings")
async def read_settings() -> dict[str, Any]:
    """Endpoint to read current application settings."""
    return get_settings().model_dump(mode="json")
