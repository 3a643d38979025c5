from __future__ import annotations

from typing import Any

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from common.eventbus.signals import SignalBus
from common.events.abonent import AbonentEventType
from common.models.abonent import Abonent, PerimeterGrant, RegisterAbonentInput

from abonent_service.app.exceptions import DuplicateEntryError
from abonent_service.app.models.catalog import AccessObject, AccessPerimeter, TariffPolicy
from abonent_service.app.repositories.abonent_repository import AbonentRepository
from abonent_service.app.services.abonents_service import AbonentsService
from abonent_service.app.services.consistency_guard import ConsistencyGuard
from abonent_service.app.services.event_propagator import EventPropagator
from abonent_service.app.services.payload_snapshot import PayloadSnapshotResolver
from abonent_service.tests.fakes import (
    FakeAccessObjectRepository,
    FakePerimeterRepository,
    FakeTariffPolicyRepository,
    FakeUserDirectory,
    RecordingSubscriber,
)


class _InsertResult:
    def __init__(self, inserted_id: ObjectId) -> None:
        self.inserted_id = inserted_id


class FakeAbonentsCollection:
    """find_one 은 항상 비어 있고, insert_one 은 유니크 인덱스 위반을 흉내낼 수 있다."""

    def __init__(self, duplicate_on_insert: bool = False) -> None:
        self.duplicate_on_insert = duplicate_on_insert
        self.inserted: list[dict[str, Any]] = []

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        return None

    async def insert_one(self, document: dict[str, Any]) -> _InsertResult:
        if self.duplicate_on_insert:
            raise DuplicateKeyError(
                "E11000 duplicate key error collection: abonents "
                "index: uniq_company_phone_number"
            )
        self.inserted.append(document)
        return _InsertResult(ObjectId())


def _repository(collection: FakeAbonentsCollection) -> AbonentRepository:
    return AbonentRepository({"abonents": collection})  # type: ignore[arg-type]


def _abonent() -> Abonent:
    return Abonent(
        company_id="c1",
        display_name="김철수",
        phone_number="+79990000002",
        perimeters=[PerimeterGrant(perimeter_id="p1", tariff_policy_id="t1")],
    )


@pytest.mark.asyncio
async def test_insert_assigns_generated_id() -> None:
    collection = FakeAbonentsCollection()

    saved = await _repository(collection).insert(_abonent())

    assert saved.id is not None
    assert ObjectId.is_valid(saved.id)
    assert saved.created_at is not None
    assert collection.inserted[0]["phone_number"] == "+79990000002"


@pytest.mark.asyncio
async def test_insert_maps_unique_index_violation_to_duplicate_entry() -> None:
    repository = _repository(FakeAbonentsCollection(duplicate_on_insert=True))

    with pytest.raises(DuplicateEntryError) as exc_info:
        await repository.insert(_abonent())

    assert exc_info.value.phone_number == "+79990000002"
    assert isinstance(exc_info.value.__cause__, DuplicateKeyError)


@pytest.mark.asyncio
async def test_concurrent_register_loser_gets_duplicate_entry_without_events() -> None:
    # 중복 조회는 통과했지만 다른 요청이 먼저 같은 번호를 저장한 상황
    perimeters = FakePerimeterRepository(
        AccessPerimeter(id="p1", company_id="c1", access_object_id="o1"),
    )
    resolver = PayloadSnapshotResolver(
        perimeter_repo=perimeters,
        access_object_repo=FakeAccessObjectRepository(
            AccessObject(id="o1", company_id="c1", display_name_user="A동"),
        ),
    )
    bus = SignalBus()
    recorder = RecordingSubscriber()
    bus.subscribe(
        AbonentEventType.PERIMETERS_ADDED,
        recorder.handler_for(AbonentEventType.PERIMETERS_ADDED),
    )
    service = AbonentsService(
        abonent_repo=_repository(FakeAbonentsCollection(duplicate_on_insert=True)),
        user_directory=FakeUserDirectory({"+79990000002": "u2"}),
        guard=ConsistencyGuard(
            perimeter_repo=perimeters,
            tariff_policy_repo=FakeTariffPolicyRepository(
                TariffPolicy(id="t1", company_id="c1")
            ),
        ),
        snapshot_resolver=resolver,
        propagator=EventPropagator(bus=bus, snapshot_resolver=resolver),
    )

    with pytest.raises(DuplicateEntryError):
        await service.register(
            RegisterAbonentInput(
                company_id="c1",
                display_name="김철수",
                phone_number="+79990000002",
                perimeters=[PerimeterGrant(perimeter_id="p1", tariff_policy_id="t1")],
            )
        )

    assert recorder.events == []
