"""Regex patterns and fixed values for the Kafka broker TRACE log grammar."""
from __future__ import annotations

import re
from functools import lru_cache

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S,%f"

CANARY_CLIENT_ID = "amazon.msk.canary.client"
DEFAULT_EXCLUDED_CLIENT_IDS: frozenset[str] = frozenset({CANARY_CLIENT_ID})

PRODUCER_ROLE = "Producer"
CONSUMER_ROLE = "Consumer"


@lru_cache(maxsize=1)
def kafka_api_trace_pattern() -> re.Pattern[str]:
    """Lines emitted by kafka.server.KafkaApis at TRACE level."""
    return re.compile(
        r"^\[(?P<timestamp>[^\]]+)\] TRACE \[KafkaApi-\d+\].*\(kafka\.server\.KafkaApis\)\s*$"
    )


@lru_cache(maxsize=1)
def timestamp_pattern() -> re.Pattern[str]:
    """Exact ``YYYY-MM-DD HH:MM:SS,mmm`` shape; strptime alone accepts short fields."""
    return re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d{3}$")


@lru_cache(maxsize=1)
def api_key_pattern() -> re.Pattern[str]:
    return re.compile(r"apiKey=([^,\)]+)")


@lru_cache(maxsize=1)
def client_id_pattern() -> re.Pattern[str]:
    return re.compile(r"clientId=([^,\)]+)")


@lru_cache(maxsize=1)
def broker_fetcher_pattern() -> re.Pattern[str]:
    """Inter-broker replication fetchers, e.g. broker-2-fetcher-0."""
    return re.compile(r"^broker-\d+-fetcher-\d+$")


@lru_cache(maxsize=1)
def ip_address_pattern() -> re.Pattern[str]:
    return re.compile(r"from connection INTERNAL_IP-(\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}):")


@lru_cache(maxsize=1)
def producer_topic_pattern() -> re.Pattern[str]:
    """First topic-partition=size group; anchored on the trailing -<partition>=<size>."""
    return re.compile(r"partitionSizes=\[([A-Za-z0-9._-]+?)-\d+=\d+")


@lru_cache(maxsize=1)
def consumer_topic_pattern() -> re.Pattern[str]:
    return re.compile(r"FetchTopic\(topic='([^']+)'")


@lru_cache(maxsize=1)
def anonymous_principal_pattern() -> re.Pattern[str]:
    return re.compile(r"principal:(User:ANONYMOUS)\b")


@lru_cache(maxsize=1)
def iam_principal_pattern() -> re.Pattern[str]:
    return re.compile(r"principal:\[IAM\]:\[(arn:aws[^\]]*)\]")


@lru_cache(maxsize=1)
def tls_security_protocol_pattern() -> re.Pattern[str]:
    return re.compile(r"securityProtocol:SSL\b")


@lru_cache(maxsize=1)
def tls_principal_pattern() -> re.Pattern[str]:
    """Certificate subjects may contain spaces and commas; stop at the next delimiter."""
    return re.compile(r"principal:(User:CN=[^;(\]]+)")


@lru_cache(maxsize=1)
def sasl_scram_principal_pattern() -> re.Pattern[str]:
    return re.compile(r"principal:(User:(?!CN=)[^\s;,(\[\]]+)")
