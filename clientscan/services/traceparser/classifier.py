"""Trace line classifier for Kafka broker request logs.

Turns a single ``kafka.server.KafkaApis`` TRACE line into a RequestRecord, or
reports why the line is out of scope. Each field is extracted by its own named
rule so the rules can be exercised on their own:

- trace form gate (bracketed timestamp + KafkaApi TRACE marker)
- api kind (PRODUCE / FETCH only)
- client id (canary and replica fetchers excluded)
- authentication kind and principal (ordered rule table)
- topic (kind specific)
- connection IP address (optional)
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from IPy import IP

from clientscan.exceptions import TimestampParseError

from .constants import (
    DEFAULT_EXCLUDED_CLIENT_IDS,
    TIMESTAMP_FORMAT,
    anonymous_principal_pattern,
    api_key_pattern,
    broker_fetcher_pattern,
    client_id_pattern,
    consumer_topic_pattern,
    iam_principal_pattern,
    ip_address_pattern,
    kafka_api_trace_pattern,
    producer_topic_pattern,
    sasl_scram_principal_pattern,
    tls_principal_pattern,
    timestamp_pattern,
    tls_security_protocol_pattern,
)
from .schemas import ApiKind, AuthKind, NotApplicable, RequestRecord


logger = logging.getLogger(__name__)


def extract_field(line: str, pattern: re.Pattern[str]) -> str:
    """Return the first capture group of ``pattern`` in ``line``, or an empty string."""
    matched = pattern.search(line)
    if matched is None:
        return ""
    return matched.group(1)


def _match_anonymous(line: str) -> str | None:
    return extract_field(line, anonymous_principal_pattern()) or None


def _match_iam(line: str) -> str | None:
    return extract_field(line, iam_principal_pattern()) or None


def _match_tls(line: str) -> str | None:
    # Certificate principals only count when the connection itself is SSL
    if not tls_security_protocol_pattern().search(line):
        return None
    return extract_field(line, tls_principal_pattern()).rstrip() or None


def _match_sasl_scram(line: str) -> str | None:
    return extract_field(line, sasl_scram_principal_pattern()) or None


@dataclass(frozen=True)
class AuthRule:
    """Maps one principal form to the auth kind it implies."""

    kind: AuthKind
    match: Callable[[str], str | None]


# Ordered: the structurally specific IAM and TLS forms must win over the generic User: form.
AUTH_RULES: tuple[AuthRule, ...] = (
    AuthRule(AuthKind.UNAUTHENTICATED, _match_anonymous),
    AuthRule(AuthKind.IAM, _match_iam),
    AuthRule(AuthKind.TLS, _match_tls),
    AuthRule(AuthKind.SASL_SCRAM, _match_sasl_scram),
)


def determine_auth(line: str) -> tuple[AuthKind, str]:
    """Classify how the client authenticated and return its principal."""
    for rule in AUTH_RULES:
        principal = rule.match(line)
        if principal:
            return rule.kind, principal
    return AuthKind.UNKNOWN, ""


def extract_topic(line: str, api_kind: ApiKind) -> str:
    """Extract the topic a request refers to, using the rule for its kind."""
    if api_kind is ApiKind.PRODUCE:
        return extract_field(line, producer_topic_pattern())
    return extract_field(line, consumer_topic_pattern())


def extract_ip_address(line: str) -> str | None:
    """Return the caller's IP address from the connection descriptor, if valid."""
    candidate = extract_field(line, ip_address_pattern())
    if not candidate:
        return None
    try:
        IP(candidate)
    except ValueError:
        logger.debug("Ignoring invalid connection IP address %s", candidate)
        return None
    return candidate


def parse_timestamp(raw: str) -> datetime:
    """Parse ``YYYY-MM-DD HH:MM:SS,mmm`` as a UTC timestamp."""
    if timestamp_pattern().match(raw) is None:
        raise TimestampParseError(raw)
    try:
        return datetime.strptime(raw, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise TimestampParseError(raw) from e


class TraceLineClassifier:
    """Classifies broker TRACE lines into producer/consumer request records.

    ``classify`` is pure: the same line always yields an equal result.
    """

    def __init__(self, excluded_client_ids: Iterable[str] | None = None) -> None:
        """
        Args:
            excluded_client_ids (Iterable[str], optional): Client ids that never describe an
                external client. Defaults to the MSK canary client.
        """
        self.excluded_client_ids: frozenset[str] = (
            frozenset(excluded_client_ids)
            if excluded_client_ids is not None
            else DEFAULT_EXCLUDED_CLIENT_IDS
        )

    def is_excluded_client(self, client_id: str) -> bool:
        """Return True for synthetic health-check clients and inter-broker fetchers."""
        return (
            client_id in self.excluded_client_ids
            or broker_fetcher_pattern().match(client_id) is not None
        )

    def classify(
        self, line: str, *, source_file: str = "", line_number: int = 0
    ) -> RequestRecord | NotApplicable:
        """Classify one log line.

        Returns:
            RequestRecord for a supported request, NotApplicable otherwise.

        Raises:
            TimestampParseError: The line is in scope but its timestamp is malformed.
        """
        trace = kafka_api_trace_pattern().match(line)
        if trace is None:
            return NotApplicable("not a KafkaApis trace line")

        api_key = extract_field(line, api_key_pattern())
        try:
            api_kind = ApiKind(api_key)
        except ValueError:
            return NotApplicable(f"unsupported api key '{api_key}'")

        client_id = extract_field(line, client_id_pattern())
        if self.is_excluded_client(client_id):
            return NotApplicable(f"excluded client '{client_id}'")

        auth_kind, principal = determine_auth(line)
        topic = extract_topic(line, api_kind)
        timestamp = parse_timestamp(trace.group("timestamp"))

        return RequestRecord(
            timestamp=timestamp,
            api_kind=api_kind,
            client_id=client_id,
            topic=topic,
            auth_kind=auth_kind,
            principal=principal,
            ip_address=extract_ip_address(line),
            source_file=source_file,
            line_number=line_number,
            raw_line=line.rstrip(),
        )
