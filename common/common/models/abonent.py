from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PerimeterGrant(BaseModel):
    """입주자의 상시(가족) 출입 권한. 페리미터 + 요금 정책 쌍."""

    perimeter_id: str
    tariff_policy_id: str


class TemporaryGrant(BaseModel):
    """임시 출입 권한.

    - 한 번 생성되면 물리적으로 삭제하지 않는다 (append-only).
    - removed 는 False -> True 로만 바뀐다.
    """

    perimeter_id: str
    removed: bool = False
    removed_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def active(self) -> bool:
        return not self.removed


class Abonent(BaseModel):
    """입주자(abonent) 도메인 모델.

    - 서비스 회사(company_id) 범위 안에서 전화번호로 유일하다.
    - user_id 는 같은 전화번호의 플랫폼 계정이 생기기 전까지 비어 있을 수 있다.
    """

    id: str | None = None
    company_id: str
    display_name: str
    phone_number: str
    user_id: str | None = None
    address_id: str | None = None
    room: str | None = None
    comments: str | None = None
    external_id: str | None = None
    is_administrator: bool = False
    cars: list[str] = Field(default_factory=list)
    perimeters: list[PerimeterGrant] = Field(default_factory=list)
    temporary_perimeters: list[TemporaryGrant] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def active_temporary_perimeters(self) -> list[TemporaryGrant]:
        return [grant for grant in self.temporary_perimeters if grant.active]

    def all_perimeter_ids(self) -> list[str]:
        """가족 권한 + 활성 임시 권한 페리미터 id (중복 제거, 순서 유지)."""
        ids = [grant.perimeter_id for grant in self.perimeters]
        ids.extend(grant.perimeter_id for grant in self.active_temporary_perimeters())
        return list(dict.fromkeys(ids))


class RegisterAbonentInput(BaseModel):
    """관리자 화면에서 입주자를 등록할 때의 입력 모델."""

    company_id: str
    display_name: str
    phone_number: str
    address_id: str | None = None
    room: str | None = None
    comments: str | None = None
    external_id: str | None = None
    is_administrator: bool = False
    cars: list[str] = Field(default_factory=list)
    perimeters: list[PerimeterGrant] = Field(default_factory=list)
    temporary_perimeter_ids: list[str] = Field(default_factory=list)


class UpdateAbonentInput(BaseModel):
    """입주자 수정 입력 모델.

    - 원하는 최종 상태를 전달하고, 서비스가 기존 상태와의 차이를 계산한다.
    - 전화번호는 수정 대상이 아니다 (user_id 연결이 함께 바뀌어야 하기 때문).
    """

    abonent_id: str
    company_id: str
    display_name: str
    address_id: str | None = None
    room: str | None = None
    comments: str | None = None
    cars: list[str] = Field(default_factory=list)
    perimeters: list[PerimeterGrant] = Field(default_factory=list)
    temporary_perimeter_ids: list[str] = Field(default_factory=list)


class UnregisterAbonentInput(BaseModel):
    abonent_id: str
    company_id: str
