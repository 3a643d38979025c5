"""카탈로그(읽기 전용) 도메인 모델.

페리미터, 요금 정책, 출입 객체는 다른 서브시스템이 관리하고 이 서비스는 조회만 한다.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class AccessPerimeter(BaseModel):
    id: str
    company_id: str
    access_object_id: str
    name: str = ""
    # 이 페리미터에 묶인 키 템플릿
    template_ids: list[str] = Field(default_factory=list)


class TariffPolicy(BaseModel):
    id: str
    company_id: str
    name: str = ""


class AccessObject(BaseModel):
    id: str
    company_id: str
    display_name_user: str
    categories: list[str] = Field(default_factory=list)
