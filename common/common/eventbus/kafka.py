from __future__ import annotations

import json
import logging
from typing import Any

from confluent_kafka import Producer

from .config import get_client_id, get_message_max_bytes
from .core import Event, Topic

logger = logging.getLogger(__name__)


class KafkaEventBus:
    """Kafka 기반 발행 전용 EventBus.

    Producer.produce 는 논블로킹이므로 asyncio 핸들러 안에서 그대로 호출해도 된다.
    """

    def __init__(self, brokers: str) -> None:
        conf: dict[str, Any] = {
            "bootstrap.servers": brokers,
            "client.id": get_client_id(),
        }
        max_bytes = get_message_max_bytes()
        if max_bytes is not None:
            conf["message.max.bytes"] = max_bytes
        self._producer = Producer(conf)

    def close(self) -> None:
        self._producer.flush()

    def publish(self, topic: Topic | str, event: Event) -> None:
        topic_name = topic.base if isinstance(topic, Topic) else topic
        payload = json.dumps(
            {"id": event.id, "payload": event.payload},
            ensure_ascii=False,
            default=str,
        ).encode("utf-8")

        def _delivery_callback(err, msg) -> None:  # type: ignore[no-untyped-def]
            if err is not None:
                logger.error("failed to deliver message to %s: %s", msg.topic(), err)

        self._producer.produce(
            topic=topic_name,
            value=payload,
            key=(event.key or event.id).encode("utf-8"),
            callback=_delivery_callback,
        )
        self._producer.poll(0)
