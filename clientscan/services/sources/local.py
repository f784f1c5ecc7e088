from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

import aiofiles
import aiofiles.os

from clientscan.exceptions import LogSourceError

from .base import DEFAULT_LOG_SUFFIXES, decompress


logger = logging.getLogger(__name__)


class LocalLogSource:
    """Reads broker log files from a local directory tree (e.g. a synced S3 prefix)."""

    def __init__(self, suffixes: Iterable[str] = DEFAULT_LOG_SUFFIXES) -> None:
        self.suffixes: tuple[str, ...] = tuple(suffixes)

    def _walk(self, root: Path) -> list[str]:
        return sorted(
            str(path)
            for path in root.rglob("*")
            if path.is_file() and path.name.endswith(self.suffixes)
        )

    async def list_files(self, location: str) -> list[str]:
        """List matching files below ``location``, sorted by path."""
        root = Path(location)
        if not await aiofiles.os.path.isdir(root):
            raise LogSourceError(f"Log directory {root} does not exist")

        try:
            files = await asyncio.to_thread(self._walk, root)
        except OSError as e:
            raise LogSourceError(f"Failed to list {root}: {e}") from e
        logger.debug("Found %d log files in %s", len(files), root)
        return files

    async def fetch(self, file_id: str) -> bytes:
        try:
            async with aiofiles.open(file_id, "rb") as f:
                data = await f.read()
        except OSError as e:
            raise LogSourceError(f"Failed to read {file_id}: {e}", file_id=file_id) from e
        return decompress(data, file_id)
