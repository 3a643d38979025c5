"""키(composite key)에 내장되는 페이로드 항목 모델.

오프라인 검증을 위해 키에는 입주자 정보의 스냅샷이 들어간다. 항목 종류(kind)는
닫힌 집합이며, 하나의 키는 종류별로 최대 한 개의 항목만 가진다.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Iterable, Literal, Union

from pydantic import BaseModel, Field


class PayloadKind(StrEnum):
    DISPLAY_NAME = "display_name"
    ROOM = "room"
    ACCESS_OBJECT_NAME = "access_object_name"
    CATEGORIES = "categories"
    CARS = "cars"


class DisplayNamePayload(BaseModel):
    kind: Literal["display_name"] = "display_name"
    display_name: str


class RoomPayload(BaseModel):
    kind: Literal["room"] = "room"
    address_id: str | None = None
    room: str | None = None


class AccessObjectNamePayload(BaseModel):
    kind: Literal["access_object_name"] = "access_object_name"
    display_name: str


class CategoriesPayload(BaseModel):
    kind: Literal["categories"] = "categories"
    categories: list[str] = Field(default_factory=list)


class CarPayload(BaseModel):
    kind: Literal["cars"] = "cars"
    cars: list[str] = Field(default_factory=list)


PayloadItem = Annotated[
    Union[
        DisplayNamePayload,
        RoomPayload,
        AccessObjectNamePayload,
        CategoriesPayload,
        CarPayload,
    ],
    Field(discriminator="kind"),
]


def find_payload_item(items: Iterable[PayloadItem], kind: PayloadKind) -> PayloadItem | None:
    for item in items:
        if item.kind == kind:
            return item
    return None


def upsert_payload_item(items: list[PayloadItem], item: PayloadItem) -> list[PayloadItem]:
    """같은 kind 의 항목을 교체하고, 없으면 끝에 추가한다.

    - 기존 위치를 유지하며 교체한다.
    - 입력 리스트를 제자리에서 수정하고 그대로 반환한다.
    """

    for index, existing in enumerate(items):
        if existing.kind == item.kind:
            items[index] = item
            # 같은 kind 가 중복 저장돼 있던 경우 나머지는 정리한다.
            items[index + 1 :] = [
                other for other in items[index + 1 :] if other.kind != item.kind
            ]
            return items
    items.append(item)
    return items


def dump_payload(items: Iterable[PayloadItem]) -> list[dict]:
    return [item.model_dump(mode="json") for item in items]
