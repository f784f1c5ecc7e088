from __future__ import annotations

import gzip
import zlib
from typing import Protocol, runtime_checkable

from clientscan.exceptions import LogSourceError

DEFAULT_LOG_SUFFIXES: tuple[str, ...] = (".log.gz",)


@runtime_checkable
class LogSource(Protocol):
    """Where broker log files come from.

    ``list_files`` enumerates the file ids under a location and ``fetch``
    returns one file's decompressed content.
    """

    async def list_files(self, location: str) -> list[str]: ...

    async def fetch(self, file_id: str) -> bytes: ...


def decompress(data: bytes, file_id: str) -> bytes:
    """Gunzip ``data`` when ``file_id`` names a gzip file, else return it unchanged."""
    if not file_id.endswith(".gz"):
        return data
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise LogSourceError(f"Failed to decompress {file_id}: {e}", file_id=file_id) from e
