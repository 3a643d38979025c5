"""입주자(abonent) 권한 변경 전파 이벤트 정의.

입주자 집합체가 저장된 뒤 변경 종류별로 하나씩 발행되며, 키 페이로드 동기화와
키 발급 서브시스템이 구독한다.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from common.models.abonent import PerimeterGrant
from common.models.key_payload import PayloadItem


EVENT_SOURCE = "abonent-service"
EVENT_VERSION = "1.0"


class AbonentEventType:
    """입주자 이벤트 타입(시그널 이름) 상수."""

    PERIMETERS_ADDED = "abonent.perimeters_added"
    PERIMETERS_REMOVED = "abonent.perimeters_removed"
    PERIMETERS_TARIFF_CHANGED = "abonent.perimeters_tariff_changed"
    TEMPORARY_PERIMETERS_ADDED = "abonent.temporary_perimeters_added"
    CARS_CHANGED = "abonent.cars_changed"
    ATTRIBUTE_CHANGED = "abonent.attribute_changed"


def new_event_meta(event_type: str) -> dict[str, str]:
    """이벤트 공통 메타 필드(id, type, timestamp, source, version)를 만든다."""
    return {
        "id": str(uuid.uuid4()),
        "type": event_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": EVENT_SOURCE,
        "version": EVENT_VERSION,
    }


def _to_plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_plain(item) for item in value]
    return value


class _EventDictMixin:
    def to_dict(self) -> dict[str, Any]:
        """Kafka 발행용 JSON 직렬화 가능한 dict 로 변환한다."""
        return {f.name: _to_plain(getattr(self, f.name)) for f in fields(self)}  # type: ignore[arg-type]


@dataclass(slots=True)
class PerimetersAddedEvent(_EventDictMixin):
    """가족 권한 페리미터가 추가되었을 때 발행된다."""

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    company_id: str
    user_id: str | None
    perimeters: list[PerimeterGrant]
    payload: list[PayloadItem] = field(default_factory=list)

    @property
    def perimeter_ids(self) -> list[str]:
        return [grant.perimeter_id for grant in self.perimeters]


@dataclass(slots=True)
class TemporaryPerimetersAddedEvent(_EventDictMixin):
    """임시 권한 페리미터가 추가되었을 때 발행된다."""

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    company_id: str
    user_id: str | None
    perimeter_ids: list[str]
    payload: list[PayloadItem] = field(default_factory=list)


@dataclass(slots=True)
class PerimetersRemovedEvent(_EventDictMixin):
    """가족/임시 권한이 제거되었거나 입주자가 삭제되었을 때 발행된다."""

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    company_id: str
    user_id: str | None
    removed_perimeter_ids: list[str]

    @property
    def perimeter_ids(self) -> list[str]:
        return self.removed_perimeter_ids


@dataclass(slots=True)
class PerimetersTariffChangedEvent(_EventDictMixin):
    """같은 페리미터의 요금 정책만 바뀌었을 때 발행된다."""

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    company_id: str
    user_id: str | None
    perimeters: list[PerimeterGrant]

    @property
    def perimeter_ids(self) -> list[str]:
        return [grant.perimeter_id for grant in self.perimeters]


@dataclass(slots=True)
class CarsChangedEvent(_EventDictMixin):
    """입주자의 차량 목록이 바뀌었을 때 발행된다. user_id 가 있는 경우에만 발행."""

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    company_id: str
    user_id: str
    phone_number: str
    perimeter_ids: list[str]
    added: list[str]
    deleted: list[str]


@dataclass(slots=True)
class AttributeChangedEvent(_EventDictMixin):
    """키 페이로드에 영향을 주는 입주자 속성이 바뀌었을 때 발행된다.

    payload 에는 바뀐 항목만 들어 있다.
    """

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    company_id: str
    user_id: str
    phone_number: str
    perimeter_ids: list[str]
    payload: list[PayloadItem]
