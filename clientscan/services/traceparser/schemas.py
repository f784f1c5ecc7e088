"""Schemas for parsed trace lines - pure data, no I/O."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .constants import CONSUMER_ROLE, PRODUCER_ROLE


class ApiKind(str, Enum):
    """Kafka API request kinds the scanner understands."""

    PRODUCE = "PRODUCE"
    FETCH = "FETCH"

    @property
    def role(self) -> str:
        return PRODUCER_ROLE if self is ApiKind.PRODUCE else CONSUMER_ROLE


class AuthKind(str, Enum):
    """How a client authenticated against the broker."""

    IAM = "IAM"
    SASL_SCRAM = "SASL_SCRAM"
    TLS = "TLS"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class NotApplicable:
    """A line outside the scanner's scope. Not an error."""

    reason: str


@dataclass(frozen=True)
class RequestRecord:
    """One producer or consumer request extracted from a broker trace line.

    The composite key is derived from the identity fields and is only used
    to deduplicate records describing the same logical client activity.
    """

    timestamp: datetime
    api_kind: ApiKind
    client_id: str
    topic: str
    auth_kind: AuthKind
    principal: str
    ip_address: str | None = None
    source_file: str = ""
    line_number: int = 0
    raw_line: str = field(default="", repr=False)

    @property
    def role(self) -> str:
        return self.api_kind.role

    @property
    def composite_key(self) -> str:
        return "|".join(
            (
                self.client_id,
                self.topic,
                self.role,
                self.auth_kind.value,
                self.principal,
                self.ip_address or "",
            )
        )

    @property
    def recency(self) -> tuple[datetime, str, int]:
        """Sort key for picking the most recent record; provenance breaks exact-timestamp ties."""
        return (self.timestamp, self.source_file, self.line_number)
