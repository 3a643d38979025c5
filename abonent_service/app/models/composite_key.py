"""키(UserCompositeKey) 도메인 모델.

키 자체는 발급 서브시스템 소유이고, 이 서비스는 식별/템플릿/소유자 정보를 읽고
payload 만 갱신한다.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from common.models.key_payload import PayloadItem


class KeyType(StrEnum):
    FAMILY = "family"
    TEMPORARY = "temporary"
    GUEST = "guest"
    SERVICE = "service"


class UserCompositeKey(BaseModel):
    id: str
    owner_id: str
    company_id: str
    type: KeyType
    template_id: str
    # 가족 공유 키인 경우 원본(소유자) 키 id
    owner_key_id: str | None = None
    payload: list[PayloadItem] = Field(default_factory=list)


class CompositeKeyTemplate(BaseModel):
    id: str
    company_id: str
    name: str = ""
    is_parking: bool = False


class KeyRenewalRequest(BaseModel):
    """키 갱신 요청. (user_id, key_id) 기준으로 멱등하다."""

    user_id: str
    key_id: str
