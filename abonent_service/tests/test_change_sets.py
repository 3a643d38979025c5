from __future__ import annotations

from common.models.abonent import Abonent, PerimeterGrant, TemporaryGrant
from common.models.key_payload import (
    AccessObjectNamePayload,
    CategoriesPayload,
    DisplayNamePayload,
    RoomPayload,
)

from abonent_service.app.models.catalog import AccessObject
from abonent_service.app.services.change_sets import (
    attribute_diff,
    car_diff,
    perimeter_diff,
    temporary_diff,
)


def _grant(perimeter_id: str, tariff_policy_id: str = "t1") -> PerimeterGrant:
    return PerimeterGrant(perimeter_id=perimeter_id, tariff_policy_id=tariff_policy_id)


def _abonent(**overrides) -> Abonent:  # type: ignore[no-untyped-def]
    data = {
        "id": "a1",
        "company_id": "c1",
        "display_name": "홍길동",
        "phone_number": "+79990000001",
        "address_id": "addr-1",
        "room": "101",
    }
    data.update(overrides)
    return Abonent(**data)


def test_perimeter_diff_splits_added_removed_and_tariff_changed() -> None:
    existing = [_grant("p1", "t1"), _grant("p2", "t1"), _grant("p3", "t1")]
    desired = [_grant("p2", "t1"), _grant("p3", "t2"), _grant("p4", "t1")]

    change_set = perimeter_diff(existing, desired)

    assert [g.perimeter_id for g in change_set.added] == ["p4"]
    assert change_set.removed_ids == ["p1"]
    assert [(g.perimeter_id, g.tariff_policy_id) for g in change_set.tariff_changed] == [
        ("p3", "t2")
    ]


def test_perimeter_diff_identical_sets_is_empty() -> None:
    grants = [_grant("p1"), _grant("p2")]

    assert perimeter_diff(grants, list(grants)).is_empty()


def test_car_diff_example() -> None:
    change_set = car_diff(["A", "B"], ["B", "C"])

    assert change_set.added == ["C"]
    assert change_set.deleted == ["A"]


def test_car_diff_duplicates_decided_by_membership() -> None:
    change_set = car_diff(["A", "A"], ["A", "B", "B"])

    assert change_set.added == ["B"]
    assert change_set.deleted == []


def test_car_diff_uses_exact_string_identity() -> None:
    change_set = car_diff(["a123bc"], ["A123BC"])

    assert change_set.added == ["A123BC"]
    assert change_set.deleted == ["a123bc"]


def test_temporary_diff_adds_new_and_removes_missing_active() -> None:
    active = [TemporaryGrant(perimeter_id="p1"), TemporaryGrant(perimeter_id="p2")]

    change_set = temporary_diff(active, ["p2", "p3"])

    assert [g.perimeter_id for g in change_set.added] == ["p3"]
    assert all(g.active for g in change_set.added)
    assert [g.perimeter_id for g in change_set.removed] == ["p1"]


def test_temporary_diff_ignores_already_removed_records() -> None:
    # soft-delete 된 레코드는 활성 목록에 없으므로 같은 페리미터를 다시 추가할 수 있다.
    change_set = temporary_diff([], ["p1"])

    assert [g.perimeter_id for g in change_set.added] == ["p1"]
    assert change_set.removed == []


def test_attribute_diff_empty_when_nothing_changed() -> None:
    abonent = _abonent()

    assert attribute_diff(abonent, "홍길동", "addr-1", "101") == []


def test_attribute_diff_reports_display_name_and_room() -> None:
    abonent = _abonent()

    changes = attribute_diff(abonent, "김철수", "addr-1", "202")

    assert changes == [
        DisplayNamePayload(display_name="김철수"),
        RoomPayload(address_id="addr-1", room="202"),
    ]


def test_attribute_diff_reports_access_object_changes() -> None:
    abonent = _abonent()
    old = AccessObject(id="o1", company_id="c1", display_name_user="A동", categories=["x"])
    new = AccessObject(id="o2", company_id="c1", display_name_user="B동", categories=["x"])

    changes = attribute_diff(abonent, "홍길동", "addr-1", "101", old, new)

    assert changes == [AccessObjectNamePayload(display_name="B동")]


def test_attribute_diff_first_access_object() -> None:
    abonent = _abonent()
    new = AccessObject(id="o2", company_id="c1", display_name_user="B동", categories=["vip"])

    changes = attribute_diff(abonent, "홍길동", "addr-1", "101", None, new)

    assert changes == [
        AccessObjectNamePayload(display_name="B동"),
        CategoriesPayload(categories=["vip"]),
    ]
