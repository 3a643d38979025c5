from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field
from pydantic.functional_serializers import PlainSerializer

from common.eventbus.result import HandlerResult
from common.models.abonent import Abonent, PerimeterGrant
from common.mongo.types import ensure_utc_datetime


def _serialize_utc(value: datetime) -> str:
    return ensure_utc_datetime(value).isoformat()


# 응답의 모든 시각은 UTC ISO8601(+00:00) 문자열
UtcDateTime = Annotated[
    datetime,
    PlainSerializer(_serialize_utc, return_type=str, when_used="json"),
]


class PerimeterGrantSchema(BaseModel):
    perimeter_id: str = Field(..., min_length=1)
    tariff_policy_id: str = Field(..., min_length=1)

    def to_domain(self) -> PerimeterGrant:
        return PerimeterGrant(**self.model_dump())


class TemporaryGrantResponse(BaseModel):
    perimeter_id: str
    removed: bool
    removed_at: UtcDateTime | None = None
    created_at: UtcDateTime | None = None


class AbonentResponse(BaseModel):
    """입주자 응답 DTO."""

    id: str | None
    company_id: str
    display_name: str
    phone_number: str
    user_id: str | None = None
    address_id: str | None = None
    room: str | None = None
    comments: str | None = None
    external_id: str | None = None
    is_administrator: bool = False
    cars: list[str]
    perimeters: list[PerimeterGrantSchema]
    temporary_perimeters: list[TemporaryGrantResponse]
    created_at: UtcDateTime | None = None
    updated_at: UtcDateTime | None = None

    @classmethod
    def from_domain(cls, abonent: Abonent) -> "AbonentResponse":
        return cls.model_validate(abonent.model_dump())


class ListAbonentsResponse(BaseModel):
    total: int
    items: list[AbonentResponse]


class RegisterAbonentRequest(BaseModel):
    company_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)
    address_id: str | None = None
    room: str | None = None
    comments: str | None = None
    external_id: str | None = None
    is_administrator: bool = False
    cars: list[str] = Field(default_factory=list)
    perimeters: list[PerimeterGrantSchema] = Field(default_factory=list)
    temporary_perimeter_ids: list[str] = Field(default_factory=list)


class UpdateAbonentRequest(BaseModel):
    """원하는 최종 상태. 전화번호는 바꿀 수 없다."""

    company_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    address_id: str | None = None
    room: str | None = None
    comments: str | None = None
    cars: list[str] = Field(default_factory=list)
    perimeters: list[PerimeterGrantSchema] = Field(default_factory=list)
    temporary_perimeter_ids: list[str] = Field(default_factory=list)


class PropagationResponse(BaseModel):
    """변경 전파 결과. 실패가 있어도 저장된 변경은 유지된다."""

    propagation_errors: list[str] = Field(default_factory=list)
    item_errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: HandlerResult) -> "PropagationResponse":
        return cls(
            propagation_errors=list(result.errors),
            item_errors=list(result.item_errors),
        )


class AbonentMutationResponse(PropagationResponse):
    abonent: AbonentResponse


class DeleteGrantResponse(BaseModel):
    deleted: bool
