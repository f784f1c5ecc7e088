"""Inventory emitters - render a finalized inventory to CSV or JSON files."""
from __future__ import annotations

import csv
import io
import logging
from collections.abc import Callable
from pathlib import Path

import aiofiles
from litestar.serialization import encode_json

from .reconciler import Inventory
from .schemas import DiscoveredClient


logger = logging.getLogger(__name__)

CSV_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

CSV_COLUMNS: tuple[tuple[str, Callable[[DiscoveredClient], str]], ...] = (
    ("Client ID", lambda c: c.client_id),
    ("Role", lambda c: c.role),
    ("Topic", lambda c: c.topic),
    ("Auth", lambda c: c.auth),
    ("Principal", lambda c: c.principal),
    ("IP Address", lambda c: c.ip_address or ""),
    ("Timestamp", lambda c: c.timestamp.strftime(CSV_TIMESTAMP_FORMAT)),
    ("Source File", lambda c: c.source_file),
    ("Line Number", lambda c: str(c.line_number)),
    ("Log Line", lambda c: c.log_line),
)


def to_discovered_clients(inventory: Inventory) -> list[DiscoveredClient]:
    """One row per inventory entry, oldest first."""
    return [DiscoveredClient.from_record(record) for record in inventory.records()]


def render_csv(inventory: Inventory) -> str:
    """Render the inventory as CSV text. The header row is always present."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([header for header, _ in CSV_COLUMNS])
    for client in to_discovered_clients(inventory):
        writer.writerow([extract(client) for _, extract in CSV_COLUMNS])
    return buffer.getvalue()


async def write_inventory_csv(inventory: Inventory, path: Path) -> Path:
    """Write the inventory to ``path`` as CSV."""
    if not inventory:
        logger.info("No clients discovered, writing header-only CSV to %s", path)
    async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
        await f.write(render_csv(inventory))
    logger.info("Wrote %d clients to %s", len(inventory), path)
    return path


async def write_inventory_json(inventory: Inventory, path: Path) -> Path:
    """Write the inventory to ``path`` as a JSON list of discovered clients."""
    async with aiofiles.open(path, "wb") as f:
        await f.write(encode_json(to_discovered_clients(inventory)))
    logger.info("Wrote %d clients to %s", len(inventory), path)
    return path
