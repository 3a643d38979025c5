from __future__ import annotations

from pydantic import Field

from common.mongo.types import BaseDocument, from_object_id

from ...models.catalog import AccessObject, AccessPerimeter, TariffPolicy


class AccessPerimeterDocument(BaseDocument):
    """MongoDB access_perimeters 컬렉션 도큐먼트 모델."""

    company_id: str
    access_object_id: str
    name: str = ""
    template_ids: list[str] = Field(default_factory=list)

    def to_domain(self) -> AccessPerimeter:
        return AccessPerimeter(
            id=from_object_id(self.id) or "",
            company_id=self.company_id,
            access_object_id=self.access_object_id,
            name=self.name,
            template_ids=list(self.template_ids),
        )


class TariffPolicyDocument(BaseDocument):
    """MongoDB tariff_policies 컬렉션 도큐먼트 모델."""

    company_id: str
    name: str = ""

    def to_domain(self) -> TariffPolicy:
        return TariffPolicy(
            id=from_object_id(self.id) or "",
            company_id=self.company_id,
            name=self.name,
        )


class AccessObjectDocument(BaseDocument):
    """MongoDB access_objects 컬렉션 도큐먼트 모델."""

    company_id: str
    display_name_user: str
    categories: list[str] = Field(default_factory=list)

    def to_domain(self) -> AccessObject:
        return AccessObject(
            id=from_object_id(self.id) or "",
            company_id=self.company_id,
            display_name_user=self.display_name_user,
            categories=list(self.categories),
        )
