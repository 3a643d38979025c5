from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from common.models.key_payload import (
    CarPayload,
    DisplayNamePayload,
    PayloadKind,
    PayloadItem,
    RoomPayload,
    dump_payload,
    find_payload_item,
    upsert_payload_item,
)


payload_list_adapter = TypeAdapter(list[PayloadItem])


def test_upsert_twice_keeps_single_item_with_latest_value() -> None:
    items = [CarPayload(cars=["A"])]

    upsert_payload_item(items, DisplayNamePayload(display_name="first"))
    upsert_payload_item(items, DisplayNamePayload(display_name="second"))

    names = [item for item in items if item.kind == PayloadKind.DISPLAY_NAME]
    assert len(names) == 1
    assert names[0].display_name == "second"
    # 다른 kind 의 항목은 그대로
    assert items[0] == CarPayload(cars=["A"])


def test_upsert_replaces_in_place_and_drops_stale_duplicates() -> None:
    items = [
        DisplayNamePayload(display_name="old"),
        RoomPayload(room="1"),
        DisplayNamePayload(display_name="older"),
    ]

    upsert_payload_item(items, DisplayNamePayload(display_name="new"))

    assert items == [DisplayNamePayload(display_name="new"), RoomPayload(room="1")]


def test_find_payload_item_by_kind() -> None:
    items = [RoomPayload(room="1"), CarPayload(cars=["X"])]

    assert find_payload_item(items, PayloadKind.CARS) == CarPayload(cars=["X"])
    assert find_payload_item(items, PayloadKind.CATEGORIES) is None


def test_payload_list_is_discriminated_by_kind() -> None:
    raw = [
        {"kind": "display_name", "display_name": "홍길동"},
        {"kind": "cars", "cars": ["A1"]},
    ]

    items = payload_list_adapter.validate_python(raw)

    assert isinstance(items[0], DisplayNamePayload)
    assert isinstance(items[1], CarPayload)
    assert dump_payload(items) == raw


def test_unknown_payload_kind_is_rejected() -> None:
    with pytest.raises(ValidationError):
        payload_list_adapter.validate_python([{"kind": "unknown"}])
