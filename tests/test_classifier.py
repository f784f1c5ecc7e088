from datetime import datetime, timezone

import pytest

from clientscan.exceptions import TimestampParseError
from clientscan.services.traceparser.classifier import (
    AUTH_RULES,
    TraceLineClassifier,
    determine_auth,
    extract_ip_address,
    extract_topic,
    parse_timestamp,
)
from clientscan.services.traceparser.schemas import ApiKind, AuthKind, NotApplicable, RequestRecord

IAM_ARN = "arn:aws:sts::000123456789:assumed-role/kcp-testing-role/testing-sts"

PRODUCE_IAM_LINE = (
    "[2025-07-25 14:45:53,662] TRACE [KafkaApi-1] Handling request:RequestHeader(apiKey=PRODUCE, "
    "apiVersion=7, clientId=TESTING_PRODUCER-1, correlationId=2, headerVersion=1) -- "
    "{acks=1,timeout=10000,partitionSizes=[customers1-0=107]} from connection "
    "INTERNAL_IP-65.1.63.214:33245-169;securityProtocol:SASL_SSL,principal:[IAM]:"
    f"[{IAM_ARN}]:[INTERNAL_IP-65.1.63.214:33245-169]:"
    "[00079d61-baba-497e-87c2-80c46608f1da] (kafka.server.KafkaApis)"
)

FETCH_TLS_LINE = (
    "[2025-08-13 12:11:38,087] TRACE [KafkaApi-1] Handling request:RequestHeader(apiKey=FETCH, "
    "apiVersion=11, clientId=sarama, correlationId=9, headerVersion=1) -- "
    "FetchRequestData(clusterId=null, replicaId=-1, maxWaitMs=500, minBytes=1, "
    "topics=[FetchTopic(topic='test-topic-1', topicId=AAAAAAAAAAAAAAAAAAAAAA, "
    "partitions=[FetchPartition(partition=1, currentLeaderEpoch=0, fetchOffset=180)])], "
    "forgottenTopicsData=[], rackId='') from connection INTERNAL_IP-65.1.63.214:21744-27;"
    "securityProtocol:SSL,principal:User:CN=kcp_tls_testing (kafka.server.KafkaApis)"
)


def make_line(
    *,
    api_key: str = "PRODUCE",
    client_id: str = "my-client",
    payload: str = "{acks=1,timeout=10000,partitionSizes=[orders-0=10]}",
    security: str = "securityProtocol:SASL_SSL,principal:User:alice",
    timestamp: str = "2025-08-07 14:34:27,495",
) -> str:
    return (
        f"[{timestamp}] TRACE [KafkaApi-1] Handling request:RequestHeader(apiKey={api_key}, "
        f"apiVersion=7, clientId={client_id}, correlationId=19, headerVersion=1) -- {payload} "
        f"from connection INTERNAL_IP-65.1.63.214:14972-3;{security} (kafka.server.KafkaApis)"
    )


@pytest.fixture
def classifier() -> TraceLineClassifier:
    return TraceLineClassifier()


def test_produce_iam_line(classifier: TraceLineClassifier) -> None:
    """PRODUCE with an IAM principal keeps the full ARN as logged."""
    record = classifier.classify(PRODUCE_IAM_LINE, source_file="broker-1.log.gz", line_number=7)

    assert isinstance(record, RequestRecord)
    assert record.api_kind is ApiKind.PRODUCE
    assert record.role == "Producer"
    assert record.client_id == "TESTING_PRODUCER-1"
    assert record.topic == "customers1"
    assert record.auth_kind is AuthKind.IAM
    assert record.principal == IAM_ARN
    assert record.ip_address == "65.1.63.214"
    assert record.timestamp == datetime(2025, 7, 25, 14, 45, 53, 662000, tzinfo=timezone.utc)
    assert record.source_file == "broker-1.log.gz"
    assert record.line_number == 7
    assert record.raw_line == PRODUCE_IAM_LINE


def test_fetch_tls_line(classifier: TraceLineClassifier) -> None:
    record = classifier.classify(FETCH_TLS_LINE)

    assert isinstance(record, RequestRecord)
    assert record.role == "Consumer"
    assert record.client_id == "sarama"
    assert record.topic == "test-topic-1"
    assert record.auth_kind is AuthKind.TLS
    assert record.principal == "User:CN=kcp_tls_testing"


def test_fetch_tls_line_with_spaces_in_subject(classifier: TraceLineClassifier) -> None:
    line = FETCH_TLS_LINE.replace("CN=kcp_tls_testing", "CN=kcp testing more info")
    record = classifier.classify(line)

    assert isinstance(record, RequestRecord)
    assert record.auth_kind is AuthKind.TLS
    assert record.principal == "User:CN=kcp testing more info"


def test_classify_is_idempotent(classifier: TraceLineClassifier) -> None:
    assert classifier.classify(PRODUCE_IAM_LINE) == classifier.classify(PRODUCE_IAM_LINE)
    assert classifier.classify("garbage") == classifier.classify("garbage")


@pytest.mark.parametrize("api_key", ["METADATA", "HEARTBEAT", "OFFSET_COMMIT", "API_VERSIONS"])
def test_unsupported_api_keys_not_applicable(classifier: TraceLineClassifier, api_key: str) -> None:
    result = classifier.classify(make_line(api_key=api_key))
    assert isinstance(result, NotApplicable)
    assert api_key in result.reason


@pytest.mark.parametrize(
    "client_id",
    ["amazon.msk.canary.client", "broker-1-fetcher-0", "broker-12-fetcher-3"],
)
def test_excluded_clients_not_applicable(classifier: TraceLineClassifier, client_id: str) -> None:
    result = classifier.classify(make_line(client_id=client_id))
    assert isinstance(result, NotApplicable)


def test_fetcher_lookalike_client_is_kept(classifier: TraceLineClassifier) -> None:
    result = classifier.classify(make_line(client_id="my-broker-1-fetcher-0-app"))
    assert isinstance(result, RequestRecord)


def test_configured_exclusions() -> None:
    classifier = TraceLineClassifier(excluded_client_ids=["healthcheck"])
    assert isinstance(classifier.classify(make_line(client_id="healthcheck")), NotApplicable)
    assert isinstance(classifier.classify(make_line(client_id="broker-1-fetcher-0")), NotApplicable)
    assert isinstance(classifier.classify(make_line(client_id="amazon.msk.canary.client")), RequestRecord)


@pytest.mark.parametrize(
    "line",
    [
        "",
        "[2025-08-13 12:12:01,000] DEBUG [ReplicaManager broker=1] Recorded replica 2 (kafka.server.ReplicaManager)",
        "[2024-01-15 10:33:00,999] TRACE [ReplicaManager broker=1] Completed request:RequestHeader("
        "apiKey=PRODUCE, apiVersion=9, clientId=metadata-client, correlationId=789) totalTime:0.5ms",
        "TRACE [KafkaApi-1] apiKey=PRODUCE clientId=x (kafka.server.KafkaApis)",
    ],
)
def test_non_trace_lines_not_applicable(classifier: TraceLineClassifier, line: str) -> None:
    assert isinstance(classifier.classify(line), NotApplicable)


def test_trailing_carriage_return_is_tolerated(classifier: TraceLineClassifier) -> None:
    record = classifier.classify(PRODUCE_IAM_LINE + "\r")
    assert isinstance(record, RequestRecord)
    assert record.raw_line == PRODUCE_IAM_LINE


@pytest.mark.parametrize(
    "timestamp",
    [
        "2025-13-45 99:61:61,000",
        "2025-8-7 1:2:3,4",
        "2025-08-07 14:34:27,495123",
        "2025-08-07 14:34:27,49",
        "2025-08-07 14:34:27.495",
        "2025-08-07T14:34:27,495",
    ],
)
def test_malformed_timestamp_raises(classifier: TraceLineClassifier, timestamp: str) -> None:
    with pytest.raises(TimestampParseError):
        classifier.classify(make_line(timestamp=timestamp))


def test_parse_timestamp_requires_millisecond_precision() -> None:
    with pytest.raises(TimestampParseError) as exc_info:
        parse_timestamp("2025-08-07 14:34:27,4")
    assert exc_info.value.raw_timestamp == "2025-08-07 14:34:27,4"


def test_malformed_timestamp_on_unsupported_kind_is_soft(classifier: TraceLineClassifier) -> None:
    result = classifier.classify(make_line(api_key="METADATA", timestamp="yesterday"))
    assert isinstance(result, NotApplicable)


def test_parse_timestamp_is_utc() -> None:
    assert parse_timestamp("2025-08-13 12:11:38,087") == datetime(
        2025, 8, 13, 12, 11, 38, 87000, tzinfo=timezone.utc
    )


@pytest.mark.parametrize(
    ("security", "expected_kind", "expected_principal"),
    [
        (f"securityProtocol:SASL_SSL,principal:[IAM]:[{IAM_ARN}]:[x]", AuthKind.IAM, IAM_ARN),
        (
            "securityProtocol:SSL,principal:[IAM]:[arn:aws:iam::123456789012:user/TestUser]:",
            AuthKind.IAM,
            "arn:aws:iam::123456789012:user/TestUser",
        ),
        ("securityProtocol:SSL,principal:User:CN=kcp_tls_testing", AuthKind.TLS, "User:CN=kcp_tls_testing"),
        (
            "securityProtocol:SSL,principal:User:CN=client.example.com,OU=Kafka,O=Example",
            AuthKind.TLS,
            "User:CN=client.example.com,OU=Kafka,O=Example",
        ),
        ("securityProtocol:SASL_SSL,principal:User:kafka-user-2", AuthKind.SASL_SCRAM, "User:kafka-user-2"),
        (
            "securityProtocol:SASL_SSL,principal:User:kafka_user_with_underscores",
            AuthKind.SASL_SCRAM,
            "User:kafka_user_with_underscores",
        ),
        ("securityProtocol:PLAINTEXT,principal:User:ANONYMOUS", AuthKind.UNAUTHENTICATED, "User:ANONYMOUS"),
        ("securityProtocol:SSL,principal:InvalidFormat", AuthKind.UNKNOWN, ""),
    ],
)
def test_determine_auth(security: str, expected_kind: AuthKind, expected_principal: str) -> None:
    line = make_line(security=security)
    assert determine_auth(line) == (expected_kind, expected_principal)


def test_tls_wins_over_generic_user_form() -> None:
    """A User:CN= principal on an SSL connection is TLS, never SASL/SCRAM."""
    line = make_line(security="securityProtocol:SSL,principal:User:CN=kcp_tls_testing")
    kind, _ = determine_auth(line)
    assert kind is AuthKind.TLS


def test_certificate_principal_without_ssl_is_not_scram() -> None:
    line = make_line(security="securityProtocol:SASL_SSL,principal:User:CN=kcp_tls_testing")
    kind, _ = determine_auth(line)
    assert kind is not AuthKind.SASL_SCRAM


def test_every_auth_kind_has_a_rule() -> None:
    ruled = [rule.kind for rule in AUTH_RULES]
    assert sorted(ruled) == sorted(kind for kind in AuthKind if kind is not AuthKind.UNKNOWN)
    assert len(ruled) == len(set(ruled))


@pytest.mark.parametrize(
    ("partition_sizes", "expected"),
    [
        ("[customers1-0=107]", "customers1"),
        ("[test-topic-0=107]", "test-topic"),
        ("[test_topic-0=107]", "test_topic"),
        ("[test-topic-1-0=1024]", "test-topic-1"),
        ("[test-topic-1-5=108]", "test-topic-1"),
        ("[orders.v2-12=5, payments-3=9]", "orders.v2"),
    ],
)
def test_extract_producer_topic(partition_sizes: str, expected: str) -> None:
    line = make_line(payload=f"{{acks=1,timeout=10000,partitionSizes={partition_sizes}}}")
    assert extract_topic(line, ApiKind.PRODUCE) == expected


def test_extract_consumer_topic() -> None:
    assert extract_topic(FETCH_TLS_LINE, ApiKind.FETCH) == "test-topic-1"


def test_missing_topic_is_empty() -> None:
    assert extract_topic(make_line(payload="{acks=1}"), ApiKind.PRODUCE) == ""


def test_extract_ip_address() -> None:
    assert extract_ip_address(PRODUCE_IAM_LINE) == "65.1.63.214"
    assert extract_ip_address("from connection 10.0.0.1:9094-10.0.0.2:5555-1;") is None
    assert extract_ip_address("from connection INTERNAL_IP-999.1.1.1:33245-169;") is None


def test_composite_key() -> None:
    record = TraceLineClassifier().classify(PRODUCE_IAM_LINE)
    assert isinstance(record, RequestRecord)
    assert record.composite_key == f"TESTING_PRODUCER-1|customers1|Producer|IAM|{IAM_ARN}|65.1.63.214"
