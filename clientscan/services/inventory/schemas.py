"""Row schema for emitted inventories."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from clientscan.services.traceparser.schemas import RequestRecord


@dataclass
class DiscoveredClient:
    """One distinct client as surfaced to CSV, JSON and the HTTP API."""

    composite_key: str
    client_id: str
    role: str
    topic: str
    auth: str
    principal: str
    ip_address: str | None
    timestamp: datetime
    source_file: str
    line_number: int
    log_line: str

    @classmethod
    def from_record(cls, record: RequestRecord) -> "DiscoveredClient":
        return cls(
            composite_key=record.composite_key,
            client_id=record.client_id,
            role=record.role,
            topic=record.topic,
            auth=record.auth_kind.value,
            principal=record.principal,
            ip_address=record.ip_address,
            timestamp=record.timestamp,
            source_file=record.source_file,
            line_number=record.line_number,
            log_line=record.raw_line,
        )
