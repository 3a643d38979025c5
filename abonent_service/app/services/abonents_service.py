from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Sequence

from fastapi import Depends, Request
from pymongo.asynchronous.database import AsyncDatabase

from common.eventbus.result import HandlerResult
from common.eventbus.signals import SignalBus
from common.models.abonent import (
    Abonent,
    PerimeterGrant,
    RegisterAbonentInput,
    TemporaryGrant,
    UnregisterAbonentInput,
    UpdateAbonentInput,
)
from common.mongo.client import get_database

from ..exceptions import DuplicateEntryError, NotFoundError, ValidationFailureError
from ..models.catalog import AccessObject
from ..repositories.abonent_repository import AbonentRepository
from ..repositories.catalog_repository import (
    AccessObjectRepository,
    AccessPerimeterRepository,
    TariffPolicyRepository,
)
from ..repositories.interfaces import AbonentRepositoryInterface, UserDirectoryInterface
from ..repositories.user_directory import UserDirectory
from .change_sets import (
    AbonentChanges,
    PerimeterChangeSet,
    TemporaryChangeSet,
    attribute_diff,
    car_diff,
    perimeter_diff,
    temporary_diff,
)
from .consistency_guard import ConsistencyGuard
from .event_propagator import EventPropagator
from .payload_snapshot import PayloadSnapshotResolver


logger = logging.getLogger(__name__)


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class AbonentMutationResult:
    """저장된 입주자와 전파 결과.

    propagation 이 실패여도 abonent 는 이미 저장된 상태다.
    """

    abonent: Abonent
    propagation: HandlerResult


class AbonentsService:
    """입주자 등록/수정/삭제 및 권한 삭제 비즈니스 로직.

    - 검증(중복, 참조 무결성, 존재 여부)은 항상 변경 전에 끝난다.
    - 집합체는 요청당 한 번 저장하고, 그 다음에 change set 을 전파한다.
    - 동시 수정 제어는 저장소 레이어의 책임이다.
    """

    def __init__(
        self,
        abonent_repo: AbonentRepositoryInterface,
        user_directory: UserDirectoryInterface,
        guard: ConsistencyGuard,
        snapshot_resolver: PayloadSnapshotResolver,
        propagator: EventPropagator,
        clock: Clock = utc_now,
    ) -> None:
        self._abonent_repo = abonent_repo
        self._user_directory = user_directory
        self._guard = guard
        self._snapshot_resolver = snapshot_resolver
        self._propagator = propagator
        self._clock = clock

    async def list_abonents(self, company_id: str) -> list[Abonent]:
        return await self._abonent_repo.list_by_company(company_id)

    async def register(self, input_model: RegisterAbonentInput) -> AbonentMutationResult:
        _ensure_not_blank(
            company_id=input_model.company_id,
            phone_number=input_model.phone_number,
            display_name=input_model.display_name,
        )

        existing = await self._abonent_repo.find_by_phone_number(
            input_model.phone_number, input_model.company_id
        )
        if existing is not None:
            raise DuplicateEntryError(input_model.phone_number)

        await self._guard.verify(
            input_model.perimeters,
            input_model.company_id,
            input_model.temporary_perimeter_ids,
        )

        now = self._clock()
        abonent = Abonent(
            company_id=input_model.company_id,
            display_name=input_model.display_name,
            phone_number=input_model.phone_number,
            address_id=input_model.address_id,
            room=input_model.room,
            comments=input_model.comments,
            external_id=input_model.external_id,
            is_administrator=input_model.is_administrator,
            cars=list(input_model.cars),
            temporary_perimeters=[
                TemporaryGrant(perimeter_id=perimeter_id, created_at=now)
                for perimeter_id in input_model.temporary_perimeter_ids
            ],
        )
        _apply_perimeters(abonent, input_model.perimeters)

        # 같은 전화번호의 플랫폼 계정이 아직 없을 수 있다.
        abonent.user_id = await self._user_directory.find_user_id_by_phone(
            input_model.phone_number
        )

        created = await self._abonent_repo.insert(abonent)
        logger.info(
            "abonent registered",
            extra={"abonent_id": created.id, "company_id": created.company_id},
        )

        propagation = await self._propagator.propagate_registered(created)
        return AbonentMutationResult(abonent=created, propagation=propagation)

    async def update(self, input_model: UpdateAbonentInput) -> AbonentMutationResult:
        _ensure_not_blank(
            company_id=input_model.company_id,
            display_name=input_model.display_name,
        )

        await self._guard.verify(
            input_model.perimeters,
            input_model.company_id,
            input_model.temporary_perimeter_ids,
        )

        abonent = await self._abonent_repo.find_by_id(
            input_model.abonent_id, input_model.company_id
        )
        if abonent is None:
            raise NotFoundError(f"abonent not found: {input_model.abonent_id}")

        existing_object, desired_object = await self._resolve_access_objects(
            abonent, input_model
        )

        # 모든 change set 은 변경 전 스냅샷 기준으로 계산한다.
        changes = AbonentChanges(
            attributes=attribute_diff(
                abonent,
                input_model.display_name,
                input_model.address_id,
                input_model.room,
                existing_object,
                desired_object,
            ),
            cars=car_diff(abonent.cars, input_model.cars),
            temporary=temporary_diff(
                abonent.active_temporary_perimeters(),
                input_model.temporary_perimeter_ids,
            ),
        )

        abonent.display_name = input_model.display_name
        abonent.comments = input_model.comments
        abonent.address_id = input_model.address_id
        abonent.room = input_model.room
        abonent.cars = list(input_model.cars)
        self._merge_temporary_changes(abonent, changes.temporary)
        changes.perimeters = _apply_perimeters(abonent, input_model.perimeters)

        updated = await self._abonent_repo.update(abonent)
        logger.info(
            "abonent updated",
            extra={"abonent_id": updated.id, "company_id": updated.company_id},
        )

        propagation = await self._propagator.propagate(updated, changes)
        return AbonentMutationResult(abonent=updated, propagation=propagation)

    async def unregister(self, input_model: UnregisterAbonentInput) -> HandlerResult:
        abonent = await self._abonent_repo.find_by_id(
            input_model.abonent_id, input_model.company_id
        )
        if abonent is None:
            raise NotFoundError(f"abonent not found: {input_model.abonent_id}")

        await self._abonent_repo.delete(input_model.abonent_id, input_model.company_id)
        logger.info(
            "abonent unregistered",
            extra={"abonent_id": abonent.id, "company_id": abonent.company_id},
        )

        return await self._propagator.propagate_unregistered(abonent)

    async def delete_temporary_grant(
        self, user_id: str, company_id: str, perimeter_id: str
    ) -> bool:
        """활성 임시 권한을 soft-delete 한다.

        - 일치하는 활성 권한이 없으면 아무 것도 하지 않고 False 를 반환한다 (멱등).
        - 레코드는 컬렉션에서 지우지 않고 removed/removed_at 만 설정한다.
        """

        logger.debug(
            "deleting temporary perimeter %s",
            perimeter_id,
            extra={"user_id": user_id, "company_id": company_id},
        )
        abonent = await self._get_by_user_id(user_id, company_id)

        grant = next(
            (
                item
                for item in abonent.temporary_perimeters
                if item.active and item.perimeter_id == perimeter_id
            ),
            None,
        )
        if grant is None:
            return False

        grant.removed = True
        grant.removed_at = self._clock()
        await self._abonent_repo.update(abonent)
        logger.debug(
            "temporary perimeter %s deleted from abonent",
            perimeter_id,
            extra={"abonent_id": abonent.id},
        )
        return True

    async def delete_family_grant(
        self, user_id: str, company_id: str, perimeter_id: str
    ) -> bool:
        """가족 권한을 목록에서 제거한다. 일치하는 권한이 없으면 False (멱등)."""

        logger.debug(
            "deleting family perimeter %s",
            perimeter_id,
            extra={"user_id": user_id, "company_id": company_id},
        )
        abonent = await self._get_by_user_id(user_id, company_id)

        index = next(
            (
                i
                for i, item in enumerate(abonent.perimeters)
                if item.perimeter_id == perimeter_id
            ),
            None,
        )
        if index is None:
            return False

        del abonent.perimeters[index]
        await self._abonent_repo.update(abonent)
        logger.debug(
            "family perimeter %s deleted from abonent",
            perimeter_id,
            extra={"abonent_id": abonent.id},
        )
        return True

    async def _get_by_user_id(self, user_id: str, company_id: str) -> Abonent:
        abonent = await self._abonent_repo.find_by_user_id(user_id, company_id)
        if abonent is None:
            raise NotFoundError(f"abonent not found for user: {user_id}")
        return abonent

    def _merge_temporary_changes(
        self, abonent: Abonent, change_set: TemporaryChangeSet
    ) -> None:
        now = self._clock()
        removed_ids = {grant.perimeter_id for grant in change_set.removed}
        for grant in abonent.temporary_perimeters:
            if grant.active and grant.perimeter_id in removed_ids:
                grant.removed = True
                grant.removed_at = now

        for grant in change_set.added:
            grant.created_at = now
            abonent.temporary_perimeters.append(grant)

    async def _resolve_access_objects(
        self, abonent: Abonent, input_model: UpdateAbonentInput
    ) -> tuple[AccessObject | None, AccessObject | None]:
        """첫 번째 페리미터가 바뀌는 경우에만 기존/변경 후 출입 객체를 조회한다."""

        current_ids = abonent.all_perimeter_ids()
        desired_ids = list(
            dict.fromkeys(
                [
                    *(grant.perimeter_id for grant in input_model.perimeters),
                    *input_model.temporary_perimeter_ids,
                ]
            )
        )
        current_first = current_ids[0] if current_ids else None
        desired_first = desired_ids[0] if desired_ids else None
        if current_first == desired_first or desired_first is None:
            return None, None

        existing_object = await self._snapshot_resolver.resolve_access_object(
            current_ids
        )
        desired_object = await self._snapshot_resolver.resolve_access_object(
            desired_ids
        )
        return existing_object, desired_object


def _apply_perimeters(
    abonent: Abonent, desired: Sequence[PerimeterGrant]
) -> PerimeterChangeSet:
    """가족 권한 목록을 원하는 상태로 통째로 교체하고 변경분을 반환한다."""
    change_set = perimeter_diff(abonent.perimeters, desired)
    abonent.perimeters = [grant.model_copy() for grant in desired]
    return change_set


def _ensure_not_blank(**values: str) -> None:
    blank = [name for name, value in values.items() if not value or not value.strip()]
    if blank:
        raise ValidationFailureError(f"required fields are blank: {', '.join(blank)}")


def get_abonent_repository(
    db: AsyncDatabase = Depends(get_database),
) -> AbonentRepositoryInterface:
    """FastAPI DI용 AbonentRepository 팩토리."""

    return AbonentRepository(db)


def get_event_bus(request: Request) -> SignalBus:
    """lifespan 에서 조립한 SignalBus 를 꺼낸다."""

    return request.app.state.event_bus


def get_abonents_service(
    db: AsyncDatabase = Depends(get_database),
    abonent_repo: AbonentRepositoryInterface = Depends(get_abonent_repository),
    bus: SignalBus = Depends(get_event_bus),
) -> AbonentsService:
    """FastAPI DI용 AbonentsService 팩토리."""

    perimeter_repo = AccessPerimeterRepository(db)
    snapshot_resolver = PayloadSnapshotResolver(
        perimeter_repo=perimeter_repo,
        access_object_repo=AccessObjectRepository(db),
    )
    return AbonentsService(
        abonent_repo=abonent_repo,
        user_directory=UserDirectory(db),
        guard=ConsistencyGuard(
            perimeter_repo=perimeter_repo,
            tariff_policy_repo=TariffPolicyRepository(db),
        ),
        snapshot_resolver=snapshot_resolver,
        propagator=EventPropagator(bus=bus, snapshot_resolver=snapshot_resolver),
    )
