"""S3 log source for MSK broker logs delivered to a bucket."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from clientscan.exceptions import LogSourceError

from .base import DEFAULT_LOG_SUFFIXES, decompress


logger = logging.getLogger(__name__)

S3_SCHEME = "s3://"


def parse_s3_uri(s3_uri: str) -> tuple[str, str]:
    """Split ``s3://bucket/prefix`` into bucket and prefix.

    Raises:
        LogSourceError: The URI is not an s3:// URI or has no bucket.
    """
    if not s3_uri.startswith(S3_SCHEME):
        raise LogSourceError(f"Invalid S3 URI '{s3_uri}': must start with '{S3_SCHEME}'")

    bucket, _, prefix = s3_uri[len(S3_SCHEME):].partition("/")
    if not bucket:
        raise LogSourceError(f"Invalid S3 URI '{s3_uri}': missing bucket name")
    return bucket, prefix


def region_from_s3_uri(s3_uri: str) -> str | None:
    """Region segment of an MSK log delivery prefix, if ``s3_uri`` follows that layout.

    MSK delivers broker logs under ``AWSLogs/<account>/KafkaBrokerLogs/<region>/...``.
    """
    _, prefix = parse_s3_uri(s3_uri)
    parts = prefix.strip("/").split("/")
    if len(parts) >= 4 and parts[0] == "AWSLogs" and parts[2] == "KafkaBrokerLogs" and parts[3]:
        return parts[3]
    return None


def get_s3_client(region_name: str | None = None) -> Any:
    """Create an S3 client."""
    return boto3.client(service_name="s3", region_name=region_name)


class S3LogSource:
    """Lists and downloads gzipped broker logs from S3.

    File ids are full ``s3://bucket/key`` URIs. boto3 is blocking, so every
    call runs in a worker thread.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        region_name: str | None = None,
        suffixes: Iterable[str] = DEFAULT_LOG_SUFFIXES,
    ) -> None:
        self.client = client if client is not None else get_s3_client(region_name)
        self.suffixes: tuple[str, ...] = tuple(suffixes)

    def _list_keys(self, bucket: str, prefix: str) -> list[str]:
        if prefix and not prefix.endswith("/"):
            prefix += "/"

        keys: list[str] = []
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                key = obj.get("Key")
                if key and key.endswith(self.suffixes):
                    keys.append(key)
        return keys

    def _get_object(self, bucket: str, key: str) -> bytes:
        response = self.client.get_object(Bucket=bucket, Key=key)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()

    async def list_files(self, location: str) -> list[str]:
        bucket, prefix = parse_s3_uri(location)
        try:
            keys = await asyncio.to_thread(self._list_keys, bucket, prefix)
        except (BotoCoreError, ClientError) as e:
            raise LogSourceError(f"Failed to list objects in {location}: {e}") from e

        logger.debug("Found %d log files in %s", len(keys), location)
        return sorted(f"{S3_SCHEME}{bucket}/{key}" for key in keys)

    async def fetch(self, file_id: str) -> bytes:
        bucket, key = parse_s3_uri(file_id)
        try:
            data = await asyncio.to_thread(self._get_object, bucket, key)
        except (BotoCoreError, ClientError) as e:
            raise LogSourceError(f"Failed to download {file_id}: {e}", file_id=file_id) from e
        return decompress(data, file_id)
