from __future__ import annotations

import logging
from typing import Protocol

from common.eventbus.helpers import new_json_event
from common.eventbus.kafka import KafkaEventBus
from common.eventbus.topics import TOPIC_KEY_RENEWAL

from ..models.composite_key import KeyRenewalRequest


logger = logging.getLogger(__name__)


class KeyRenewalServiceInterface(Protocol):
    """키 갱신(재발급) 서브시스템으로 가는 관문."""

    async def process(
        self, request: KeyRenewalRequest
    ) -> None:  # pragma: no cover - Protocol
        ...


class KafkaKeyRenewalService:
    """갱신 요청을 Kafka 토픽으로 넘긴다.

    같은 키에 대한 요청이 같은 파티션으로 가도록 key_id 를 메시지 키로 쓴다.
    """

    def __init__(self, bus: KafkaEventBus) -> None:
        self._bus = bus

    async def process(self, request: KeyRenewalRequest) -> None:
        event = new_json_event(payload=request.model_dump(), key=request.key_id)
        self._bus.publish(TOPIC_KEY_RENEWAL, event)
        logger.debug(
            "key renewal requested",
            extra={"user_id": request.user_id, "key_id": request.key_id},
        )
