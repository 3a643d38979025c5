from __future__ import annotations

import logging

from common.eventbus.helpers import new_json_event
from common.eventbus.kafka import KafkaEventBus
from common.eventbus.result import HandlerResult
from common.eventbus.signals import SignalBus
from common.eventbus.topics import TOPIC_ABONENT
from common.events.abonent import (
    AbonentEventType,
    PerimetersAddedEvent,
    PerimetersRemovedEvent,
    PerimetersTariffChangedEvent,
    TemporaryPerimetersAddedEvent,
)

from ..exceptions import HandlerFailureError


logger = logging.getLogger(__name__)


FORWARDED_EVENT_TYPES = (
    AbonentEventType.PERIMETERS_ADDED,
    AbonentEventType.TEMPORARY_PERIMETERS_ADDED,
    AbonentEventType.PERIMETERS_REMOVED,
    AbonentEventType.PERIMETERS_TARIFF_CHANGED,
)

ForwardedEvent = (
    PerimetersAddedEvent
    | TemporaryPerimetersAddedEvent
    | PerimetersRemovedEvent
    | PerimetersTariffChangedEvent
)


class AbonentEventsForwarder:
    """페리미터 권한 변경 이벤트를 키 발급 서브시스템 토픽으로 넘긴다.

    - 같은 입주자의 이벤트 순서를 지키기 위해 user_id(없으면 company_id)를 파티션 키로 쓴다.
    - 발행 실패는 HandlerFailureError 로 올리고, SignalBus 가 이 구독자의 실패 사유로 바꾼다.
    """

    def __init__(self, bus: KafkaEventBus) -> None:
        self._bus = bus

    def start(self, signals: SignalBus) -> None:
        for event_type in FORWARDED_EVENT_TYPES:
            signals.subscribe(event_type, self.forward)

    async def forward(self, event: ForwardedEvent) -> HandlerResult:
        message = new_json_event(
            payload=event.to_dict(),
            event_id=event.id,
            key=event.user_id or event.company_id,
        )
        try:
            self._bus.publish(TOPIC_ABONENT, message)
        except Exception as exc:  # noqa: BLE001
            raise HandlerFailureError(f"forward {event.type} failed: {exc}") from exc

        logger.info(
            "forwarded %s id=%s",
            event.type,
            event.id,
            extra={"event_type": event.type, "user_id": event.user_id},
        )
        return HandlerResult.ok()
