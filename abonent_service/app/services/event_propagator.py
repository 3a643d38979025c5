"""입주자 change set 을 타입별 전파 이벤트로 바꿔 구독자에게 발행한다.

비어 있는 change set 에 대해서는 이벤트를 만들지 않는다. 모든 구독자 결과는
끝까지 합쳐서(HandlerResult.combine) 호출한 쪽에 돌려준다. 입주자 저장 이후의
단계이므로 여기서의 실패는 저장된 변경을 되돌리지 않는다.
"""

from __future__ import annotations

import logging

from common.eventbus.result import HandlerResult
from common.eventbus.signals import SignalBus
from common.events.abonent import (
    AbonentEventType,
    AttributeChangedEvent,
    CarsChangedEvent,
    PerimetersAddedEvent,
    PerimetersRemovedEvent,
    PerimetersTariffChangedEvent,
    TemporaryPerimetersAddedEvent,
    new_event_meta,
)
from common.models.abonent import Abonent
from common.models.key_payload import PayloadItem

from .change_sets import AbonentChanges, PerimeterChangeSet, TemporaryChangeSet
from .payload_snapshot import PayloadSnapshotResolver


logger = logging.getLogger(__name__)


class EventPropagator:
    def __init__(self, bus: SignalBus, snapshot_resolver: PayloadSnapshotResolver) -> None:
        self._bus = bus
        self._snapshot_resolver = snapshot_resolver

    async def propagate_registered(self, abonent: Abonent) -> HandlerResult:
        """신규 입주자: 모든 가족/임시 권한이 추가된 것으로 간주한다."""
        changes = AbonentChanges(
            perimeters=PerimeterChangeSet(added=list(abonent.perimeters)),
            temporary=TemporaryChangeSet(added=abonent.active_temporary_perimeters()),
        )
        return await self.propagate(abonent, changes)

    async def propagate_unregistered(self, abonent: Abonent) -> HandlerResult:
        removed_ids = list(
            dict.fromkeys(grant.perimeter_id for grant in abonent.perimeters)
        )
        if not removed_ids:
            return HandlerResult.ok()

        event = PerimetersRemovedEvent(
            **new_event_meta(AbonentEventType.PERIMETERS_REMOVED),
            company_id=abonent.company_id,
            user_id=abonent.user_id,
            removed_perimeter_ids=removed_ids,
        )
        return await self._emit(AbonentEventType.PERIMETERS_REMOVED, event)

    async def propagate(self, abonent: Abonent, changes: AbonentChanges) -> HandlerResult:
        results: list[HandlerResult] = []
        perimeter_ids = abonent.all_perimeter_ids()

        if not changes.cars.is_empty():
            if abonent.user_id:
                event = CarsChangedEvent(
                    **new_event_meta(AbonentEventType.CARS_CHANGED),
                    company_id=abonent.company_id,
                    user_id=abonent.user_id,
                    phone_number=abonent.phone_number,
                    perimeter_ids=perimeter_ids,
                    added=list(changes.cars.added),
                    deleted=list(changes.cars.deleted),
                )
                results.append(await self._emit(AbonentEventType.CARS_CHANGED, event))
            else:
                logger.debug(
                    "skip cars_changed: abonent has no linked user",
                    extra={"abonent_id": abonent.id},
                )

        if changes.perimeters.added or changes.temporary.added:
            payload = await self._resolve_payload(abonent, results)
            if payload is not None:
                results.extend(await self._emit_added(abonent, changes, payload))

        removed_ids = list(
            dict.fromkeys(
                [
                    *changes.perimeters.removed_ids,
                    *(grant.perimeter_id for grant in changes.temporary.removed),
                ]
            )
        )
        if removed_ids:
            event = PerimetersRemovedEvent(
                **new_event_meta(AbonentEventType.PERIMETERS_REMOVED),
                company_id=abonent.company_id,
                user_id=abonent.user_id,
                removed_perimeter_ids=removed_ids,
            )
            results.append(await self._emit(AbonentEventType.PERIMETERS_REMOVED, event))

        if changes.perimeters.tariff_changed:
            event = PerimetersTariffChangedEvent(
                **new_event_meta(AbonentEventType.PERIMETERS_TARIFF_CHANGED),
                company_id=abonent.company_id,
                user_id=abonent.user_id,
                perimeters=list(changes.perimeters.tariff_changed),
            )
            results.append(
                await self._emit(AbonentEventType.PERIMETERS_TARIFF_CHANGED, event)
            )

        if changes.attributes:
            if abonent.user_id:
                event = AttributeChangedEvent(
                    **new_event_meta(AbonentEventType.ATTRIBUTE_CHANGED),
                    company_id=abonent.company_id,
                    user_id=abonent.user_id,
                    phone_number=abonent.phone_number,
                    perimeter_ids=perimeter_ids,
                    payload=list(changes.attributes),
                )
                results.append(
                    await self._emit(AbonentEventType.ATTRIBUTE_CHANGED, event)
                )
            else:
                logger.debug(
                    "skip attribute_changed: abonent has no linked user",
                    extra={"abonent_id": abonent.id},
                )

        return HandlerResult.combine(results)

    async def _emit_added(
        self, abonent: Abonent, changes: AbonentChanges, payload: list[PayloadItem]
    ) -> list[HandlerResult]:
        results: list[HandlerResult] = []

        if changes.perimeters.added:
            family_event = PerimetersAddedEvent(
                **new_event_meta(AbonentEventType.PERIMETERS_ADDED),
                company_id=abonent.company_id,
                user_id=abonent.user_id,
                perimeters=list(changes.perimeters.added),
                payload=list(payload),
            )
            results.append(
                await self._emit(AbonentEventType.PERIMETERS_ADDED, family_event)
            )

        if changes.temporary.added:
            temporary_event = TemporaryPerimetersAddedEvent(
                **new_event_meta(AbonentEventType.TEMPORARY_PERIMETERS_ADDED),
                company_id=abonent.company_id,
                user_id=abonent.user_id,
                perimeter_ids=[grant.perimeter_id for grant in changes.temporary.added],
                payload=list(payload),
            )
            results.append(
                await self._emit(
                    AbonentEventType.TEMPORARY_PERIMETERS_ADDED, temporary_event
                )
            )

        return results

    async def _resolve_payload(
        self, abonent: Abonent, results: list[HandlerResult]
    ) -> list[PayloadItem] | None:
        try:
            return await self._snapshot_resolver.resolve(abonent)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "failed to resolve payload snapshot",
                extra={"abonent_id": abonent.id, "company_id": abonent.company_id},
            )
            results.append(HandlerResult.fail(f"payload snapshot: {exc}"))
            return None

    async def _emit(self, signal: str, event: object) -> HandlerResult:
        logger.debug("emitting %s", signal, extra={"event_type": signal})
        return await self._bus.emit(signal, event)
