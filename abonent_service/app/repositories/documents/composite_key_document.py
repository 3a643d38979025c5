from __future__ import annotations

from pydantic import Field

from common.models.key_payload import PayloadItem
from common.mongo.types import BaseDocument, from_object_id

from ...models.composite_key import CompositeKeyTemplate, KeyType, UserCompositeKey


class UserCompositeKeyDocument(BaseDocument):
    """MongoDB user_composite_keys 컬렉션 도큐먼트 모델.

    발급 서브시스템이 쓰는 나머지 필드는 이 서비스에서 읽지 않는다.
    """

    owner_id: str
    company_id: str
    type: KeyType
    template_id: str
    owner_key_id: str | None = None
    payload: list[PayloadItem] = Field(default_factory=list)

    def to_domain(self) -> UserCompositeKey:
        return UserCompositeKey(
            id=from_object_id(self.id) or "",
            owner_id=self.owner_id,
            company_id=self.company_id,
            type=self.type,
            template_id=self.template_id,
            owner_key_id=self.owner_key_id,
            payload=list(self.payload),
        )


class CompositeKeyTemplateDocument(BaseDocument):
    """MongoDB composite_key_templates 컬렉션 도큐먼트 모델."""

    company_id: str
    name: str = ""
    is_parking: bool = False

    def to_domain(self) -> CompositeKeyTemplate:
        return CompositeKeyTemplate(
            id=from_object_id(self.id) or "",
            company_id=self.company_id,
            name=self.name,
            is_parking=self.is_parking,
        )
