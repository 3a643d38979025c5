"""입주자 속성/차량 변경을 이미 발급된 키의 payload 에 반영한다.

키 하나의 실패는 그 키에서 격리되며(item_errors) 나머지 키 처리는 계속된다.
대상 키 목록 자체를 조회하지 못한 경우에만 핸들러 전체가 실패한다.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable

from common.eventbus.result import HandlerResult
from common.eventbus.signals import SignalBus
from common.events.abonent import AbonentEventType, AttributeChangedEvent, CarsChangedEvent
from common.models.key_payload import (
    CarPayload,
    PayloadKind,
    find_payload_item,
    upsert_payload_item,
)

from ..config import KeySyncConfig
from ..models.composite_key import KeyRenewalRequest, KeyType, UserCompositeKey
from ..repositories.interfaces import (
    AccessPerimeterRepositoryInterface,
    CompositeKeyTemplateRepositoryInterface,
    UserCompositeKeyRepositoryInterface,
)
from .key_renewal import KeyRenewalServiceInterface


logger = logging.getLogger(__name__)


SYNCED_KEY_TYPES = frozenset({KeyType.FAMILY, KeyType.TEMPORARY})


class KeyPayloadService:
    def __init__(
        self,
        key_repo: UserCompositeKeyRepositoryInterface,
        template_repo: CompositeKeyTemplateRepositoryInterface,
        perimeter_repo: AccessPerimeterRepositoryInterface,
        renewal_service: KeyRenewalServiceInterface,
        config: KeySyncConfig,
    ) -> None:
        self._key_repo = key_repo
        self._template_repo = template_repo
        self._perimeter_repo = perimeter_repo
        self._renewal_service = renewal_service
        self._max_concurrency = max(1, config.max_concurrency)

    def start(self, bus: SignalBus) -> None:
        """입주자 이벤트 구독을 등록한다."""
        bus.subscribe(AbonentEventType.CARS_CHANGED, self.handle_cars_changed)
        bus.subscribe(AbonentEventType.ATTRIBUTE_CHANGED, self.handle_attribute_changed)

    async def handle_attribute_changed(self, event: AttributeChangedEvent) -> HandlerResult:
        logger.debug(
            "updating payload in keys",
            extra={"user_id": event.user_id, "company_id": event.company_id},
        )

        try:
            keys = await self._collect_keys(
                event.perimeter_ids, event.company_id, event.user_id
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "failed to resolve keys for attribute change",
                extra={"user_id": event.user_id, "company_id": event.company_id},
            )
            return HandlerResult.fail(f"key resolution failed: {exc}")

        async def _apply(key: UserCompositeKey) -> None:
            payload = list(key.payload)
            for item in event.payload:
                upsert_payload_item(payload, item.model_copy(deep=True))
            await self._key_repo.update_payload(key.id, payload)
            key.payload = payload
            await self._renewal_service.process(
                KeyRenewalRequest(user_id=event.user_id, key_id=key.id)
            )

        return await self._fan_out(keys, _apply, user_id=event.user_id)

    async def handle_cars_changed(self, event: CarsChangedEvent) -> HandlerResult:
        logger.debug(
            "updating cars in keys",
            extra={"user_id": event.user_id, "company_id": event.company_id},
        )

        try:
            keys = await self._collect_keys(
                event.perimeter_ids,
                event.company_id,
                event.user_id,
                parking_only=True,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "failed to resolve parking keys for cars change",
                extra={"user_id": event.user_id, "company_id": event.company_id},
            )
            return HandlerResult.fail(f"key resolution failed: {exc}")

        # 차량 항목이 없는 키는 아직 주차 payload 가 발급되지 않은 것이므로 건드리지 않는다.
        keys = [
            key for key in keys if find_payload_item(key.payload, PayloadKind.CARS) is not None
        ]
        deleted = set(event.deleted)

        async def _apply(key: UserCompositeKey) -> None:
            payload = list(key.payload)
            current = find_payload_item(payload, PayloadKind.CARS)
            cars = [car for car in current.cars if car not in deleted]  # type: ignore[union-attr]
            cars.extend(event.added)
            upsert_payload_item(payload, CarPayload(cars=cars))
            await self._key_repo.update_payload(key.id, payload)
            key.payload = payload

        return await self._fan_out(keys, _apply, user_id=event.user_id)

    async def _collect_keys(
        self,
        perimeter_ids: Iterable[str],
        company_id: str,
        user_id: str,
        *,
        parking_only: bool = False,
    ) -> list[UserCompositeKey]:
        """소유자의 가족/임시 키 + 그 키에서 파생된 멤버 키 (id 기준 중복 제거)."""

        template_ids = await self._perimeter_repo.find_template_ids(
            perimeter_ids, company_id
        )
        owned = [
            key
            for key in await self._key_repo.list_by_owner_id(user_id)
            if key.company_id == company_id
            and key.type in SYNCED_KEY_TYPES
            and key.template_id in template_ids
        ]

        if parking_only and owned:
            templates = await self._template_repo.find_by_ids(
                {key.template_id for key in owned}
            )
            parking_ids = {template.id for template in templates if template.is_parking}
            owned = [key for key in owned if key.template_id in parking_ids]

        if not owned:
            return []

        members = await self._key_repo.list_member_keys([key.id for key in owned])

        unique: dict[str, UserCompositeKey] = {}
        for key in [*owned, *members]:
            unique.setdefault(key.id, key)

        logger.debug(
            "resolved %d key(s) for payload sync",
            len(unique),
            extra={"user_id": user_id, "company_id": company_id},
        )
        return list(unique.values())

    async def _fan_out(
        self,
        keys: list[UserCompositeKey],
        apply: Callable[[UserCompositeKey], Awaitable[None]],
        *,
        user_id: str,
    ) -> HandlerResult:
        if not keys:
            return HandlerResult.ok()

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _guarded(key: UserCompositeKey) -> str | None:
            async with semaphore:
                try:
                    await apply(key)
                except Exception as exc:  # noqa: BLE001
                    logger.exception(
                        "failed to update key payload",
                        extra={"user_id": user_id, "key_id": key.id},
                    )
                    return f"{key.id}: {exc}"
            return None

        outcomes = await asyncio.gather(*(_guarded(key) for key in keys))
        item_errors = [outcome for outcome in outcomes if outcome is not None]
        return HandlerResult.ok(item_errors=item_errors)
