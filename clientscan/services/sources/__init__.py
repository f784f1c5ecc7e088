"""Log sources - listing and fetching broker log files."""
from __future__ import annotations

from collections.abc import Iterable

from .base import DEFAULT_LOG_SUFFIXES, LogSource
from .local import LocalLogSource
from .s3 import S3_SCHEME, S3LogSource, parse_s3_uri, region_from_s3_uri


def create_log_source(
    location: str,
    *,
    region_name: str | None = None,
    suffixes: Iterable[str] = DEFAULT_LOG_SUFFIXES,
) -> LogSource:
    """Pick the log source matching the scheme of ``location``.

    Without an explicit region, S3 sources take it from an MSK log delivery path.
    """
    if location.startswith(S3_SCHEME):
        region_name = region_name or region_from_s3_uri(location)
        return S3LogSource(region_name=region_name, suffixes=suffixes)
    return LocalLogSource(suffixes=suffixes)


__all__ = [
    "LogSource",
    "LocalLogSource",
    "S3LogSource",
    "create_log_source",
    "parse_s3_uri",
    "region_from_s3_uri",
]
