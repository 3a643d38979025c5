"""입주자 권한 변경분(change set) 계산.

모든 함수는 순수 함수다. I/O 없이 입력만으로 결과가 결정된다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from common.models.abonent import Abonent, PerimeterGrant, TemporaryGrant
from common.models.key_payload import (
    AccessObjectNamePayload,
    CategoriesPayload,
    DisplayNamePayload,
    PayloadItem,
    RoomPayload,
)

from ..models.catalog import AccessObject


@dataclass(slots=True)
class PerimeterChangeSet:
    added: list[PerimeterGrant] = field(default_factory=list)
    removed_ids: list[str] = field(default_factory=list)
    tariff_changed: list[PerimeterGrant] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.removed_ids or self.tariff_changed)


@dataclass(slots=True)
class CarChangeSet:
    added: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.deleted)


@dataclass(slots=True)
class TemporaryChangeSet:
    # 새로 만들 활성 레코드
    added: list[TemporaryGrant] = field(default_factory=list)
    # soft-delete 대상 (현재 활성 레코드)
    removed: list[TemporaryGrant] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.removed)


@dataclass(slots=True)
class AbonentChanges:
    """한 번의 변경 요청에서 나온 모든 change set 묶음 (저장하지 않는다)."""

    perimeters: PerimeterChangeSet = field(default_factory=PerimeterChangeSet)
    temporary: TemporaryChangeSet = field(default_factory=TemporaryChangeSet)
    cars: CarChangeSet = field(default_factory=CarChangeSet)
    attributes: list[PayloadItem] = field(default_factory=list)


def perimeter_diff(
    existing: Sequence[PerimeterGrant], desired: Sequence[PerimeterGrant]
) -> PerimeterChangeSet:
    """perimeter_id 기준으로 가족 권한 변경분을 계산한다.

    - desired 에만 있으면 added
    - existing 에만 있으면 removed_ids (id 만)
    - 양쪽에 있고 요금 정책이 다르면 tariff_changed (desired 쪽 값)
    """

    existing_by_id = {grant.perimeter_id: grant for grant in existing}
    desired_ids = {grant.perimeter_id for grant in desired}

    change_set = PerimeterChangeSet()
    for grant in desired:
        current = existing_by_id.get(grant.perimeter_id)
        if current is None:
            change_set.added.append(grant)
        elif current.tariff_policy_id != grant.tariff_policy_id:
            change_set.tariff_changed.append(grant)

    change_set.removed_ids = [
        perimeter_id for perimeter_id in existing_by_id if perimeter_id not in desired_ids
    ]
    return change_set


def car_diff(existing: Iterable[str], desired: Iterable[str]) -> CarChangeSet:
    """차량 식별 문자열의 집합 차를 계산한다 (정확한 문자열 비교, 순서 유지)."""

    existing_list = list(dict.fromkeys(existing))
    desired_list = list(dict.fromkeys(desired))
    existing_set = set(existing_list)
    desired_set = set(desired_list)

    return CarChangeSet(
        added=[car for car in desired_list if car not in existing_set],
        deleted=[car for car in existing_list if car not in desired_set],
    )


def temporary_diff(
    existing_active: Sequence[TemporaryGrant], desired_perimeter_ids: Iterable[str]
) -> TemporaryChangeSet:
    """활성 임시 권한과 원하는 페리미터 목록을 비교한다.

    - desired 중 활성 레코드에 없는 페리미터 -> added (새 활성 레코드)
    - 활성 레코드 중 desired 에 없는 페리미터 -> removed (soft-delete 대상)
    """

    desired_ids = list(dict.fromkeys(desired_perimeter_ids))
    active_ids = {grant.perimeter_id for grant in existing_active}
    desired_set = set(desired_ids)

    return TemporaryChangeSet(
        added=[
            TemporaryGrant(perimeter_id=perimeter_id)
            for perimeter_id in desired_ids
            if perimeter_id not in active_ids
        ],
        removed=[
            grant for grant in existing_active if grant.perimeter_id not in desired_set
        ],
    )


def attribute_diff(
    existing: Abonent,
    display_name: str,
    address_id: str | None,
    room: str | None,
    existing_object: AccessObject | None = None,
    desired_object: AccessObject | None = None,
) -> list[PayloadItem]:
    """키 페이로드에 영향을 주는 속성 변경분을 계산한다.

    출입 객체 스냅샷(existing_object / desired_object)은 호출하는 쪽이 카탈로그에서
    미리 조회해서 넘긴다. 둘 다 None 이면 출입 객체 관련 항목은 비교하지 않는다.
    """

    changes: list[PayloadItem] = []

    if existing.display_name != display_name:
        changes.append(DisplayNamePayload(display_name=display_name))

    if existing.address_id != address_id or existing.room != room:
        changes.append(RoomPayload(address_id=address_id, room=room))

    if desired_object is not None and (
        existing_object is None or existing_object.id != desired_object.id
    ):
        old_name = existing_object.display_name_user if existing_object else None
        old_categories = existing_object.categories if existing_object else []
        if old_name != desired_object.display_name_user:
            changes.append(
                AccessObjectNamePayload(display_name=desired_object.display_name_user)
            )
        if old_categories != desired_object.categories:
            changes.append(CategoriesPayload(categories=list(desired_object.categories)))

    return changes
