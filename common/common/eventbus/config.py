from __future__ import annotations

import os


KAFKA_BOOTSTRAP_SERVERS_ENV = "KAFKA_BOOTSTRAP_SERVERS"
KAFKA_MESSAGE_MAX_BYTES_ENV = "KAFKA_MESSAGE_MAX_BYTES"
KAFKA_CLIENT_ID_ENV = "KAFKA_CLIENT_ID"


def get_brokers() -> str:
    """Kafka bootstrap 서버 목록. 없으면 기동 시점에 실패한다."""
    brokers = os.getenv(KAFKA_BOOTSTRAP_SERVERS_ENV, "").strip()
    if not brokers:
        raise RuntimeError(f"{KAFKA_BOOTSTRAP_SERVERS_ENV} environment variable is required")
    return brokers


def get_client_id() -> str:
    """브로커 로그에서 producer 를 구분하기 위한 client.id."""
    return os.getenv(KAFKA_CLIENT_ID_ENV, "").strip() or os.getenv(
        "SERVICE_NAME", "abonent-service"
    )


def get_message_max_bytes() -> int | None:
    """producer 의 message.max.bytes.

    비어 있거나 0 이하이면 None (librdkafka 기본값 사용). 정수가 아니면 RuntimeError.
    """

    raw = os.getenv(KAFKA_MESSAGE_MAX_BYTES_ENV, "").strip()
    if not raw:
        return None

    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(
            f"{KAFKA_MESSAGE_MAX_BYTES_ENV} must be an integer value, got: {raw!r}"
        ) from exc

    return value if value > 0 else None
