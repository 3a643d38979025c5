from __future__ import annotations

import pytest

from common.eventbus.signals import SignalBus
from common.events.abonent import AbonentEventType
from common.models.abonent import Abonent, PerimeterGrant, TemporaryGrant
from common.models.key_payload import RoomPayload

from abonent_service.app.models.catalog import AccessObject, AccessPerimeter
from abonent_service.app.services.change_sets import (
    AbonentChanges,
    CarChangeSet,
    PerimeterChangeSet,
    TemporaryChangeSet,
)
from abonent_service.app.services.event_propagator import EventPropagator
from abonent_service.app.services.payload_snapshot import PayloadSnapshotResolver
from abonent_service.tests.fakes import (
    FakeAccessObjectRepository,
    FakePerimeterRepository,
    RecordingSubscriber,
)


def _setup() -> tuple[EventPropagator, RecordingSubscriber, FakePerimeterRepository]:
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
    for signal in (
        AbonentEventType.CARS_CHANGED,
        AbonentEventType.PERIMETERS_ADDED,
        AbonentEventType.TEMPORARY_PERIMETERS_ADDED,
        AbonentEventType.PERIMETERS_REMOVED,
        AbonentEventType.PERIMETERS_TARIFF_CHANGED,
        AbonentEventType.ATTRIBUTE_CHANGED,
    ):
        bus.subscribe(signal, recorder.handler_for(signal))
    return EventPropagator(bus=bus, snapshot_resolver=resolver), recorder, perimeters


def _abonent(**overrides) -> Abonent:  # type: ignore[no-untyped-def]
    data = {
        "id": "a1",
        "company_id": "c1",
        "display_name": "홍길동",
        "phone_number": "+79990000001",
        "user_id": "u1",
        "perimeters": [PerimeterGrant(perimeter_id="p1", tariff_policy_id="t1")],
        "temporary_perimeters": [
            TemporaryGrant(perimeter_id="p2"),
            TemporaryGrant(perimeter_id="p9", removed=True),
        ],
    }
    data.update(overrides)
    return Abonent(**data)


@pytest.mark.asyncio
async def test_empty_changes_emit_nothing() -> None:
    propagator, recorder, _ = _setup()

    result = await propagator.propagate(_abonent(), AbonentChanges())

    assert result.success
    assert recorder.events == []


@pytest.mark.asyncio
async def test_emission_order_and_touched_perimeters() -> None:
    propagator, recorder, _ = _setup()
    changes = AbonentChanges(
        perimeters=PerimeterChangeSet(
            added=[PerimeterGrant(perimeter_id="p1", tariff_policy_id="t1")],
            removed_ids=["p5"],
            tariff_changed=[PerimeterGrant(perimeter_id="p1", tariff_policy_id="t2")],
        ),
        temporary=TemporaryChangeSet(
            added=[TemporaryGrant(perimeter_id="p2")],
            removed=[TemporaryGrant(perimeter_id="p6")],
        ),
        cars=CarChangeSet(added=["C"]),
        attributes=[RoomPayload(room="7")],
    )

    await propagator.propagate(_abonent(), changes)

    assert recorder.signals == [
        AbonentEventType.CARS_CHANGED,
        AbonentEventType.PERIMETERS_ADDED,
        AbonentEventType.TEMPORARY_PERIMETERS_ADDED,
        AbonentEventType.PERIMETERS_REMOVED,
        AbonentEventType.PERIMETERS_TARIFF_CHANGED,
        AbonentEventType.ATTRIBUTE_CHANGED,
    ]
    cars = recorder.of(AbonentEventType.CARS_CHANGED)[0]
    # 제거된 임시 권한(p9)은 포함하지 않는다.
    assert cars.perimeter_ids == ["p1", "p2"]
    removed = recorder.of(AbonentEventType.PERIMETERS_REMOVED)[0]
    assert removed.removed_perimeter_ids == ["p5", "p6"]


@pytest.mark.asyncio
async def test_snapshot_failure_is_reported_and_other_events_still_fire() -> None:
    propagator, recorder, perimeters = _setup()
    perimeters.raise_error = RuntimeError("catalog down")
    changes = AbonentChanges(
        perimeters=PerimeterChangeSet(
            added=[PerimeterGrant(perimeter_id="p1", tariff_policy_id="t1")],
            removed_ids=["p5"],
        ),
    )

    result = await propagator.propagate(_abonent(), changes)

    assert not result.success
    assert result.errors == ["payload snapshot: catalog down"]
    assert recorder.signals == [AbonentEventType.PERIMETERS_REMOVED]


@pytest.mark.asyncio
async def test_unregistered_without_family_grants_emits_nothing() -> None:
    propagator, recorder, _ = _setup()

    result = await propagator.propagate_unregistered(_abonent(perimeters=[]))

    assert result.success
    assert recorder.events == []
