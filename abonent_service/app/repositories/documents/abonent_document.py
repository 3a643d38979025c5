from __future__ import annotations

from pydantic import Field

from common.models.abonent import Abonent, PerimeterGrant, TemporaryGrant
from common.mongo.types import BaseDocument, from_object_id


class AbonentDocument(BaseDocument):
    """MongoDB abonents 컬렉션 도큐먼트 모델."""

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

    @classmethod
    def from_domain(cls, abonent: Abonent) -> "AbonentDocument":
        data = abonent.model_dump()
        # 도메인 id(str) 는 _id(ObjectId) 로 옮긴다. 신규 도큐먼트는 Mongo 가 생성한다.
        abonent_id = data.pop("id")
        if abonent_id:
            data["_id"] = abonent_id
        return cls.model_validate(data)

    def to_domain(self) -> Abonent:
        return Abonent(
            id=from_object_id(self.id),
            company_id=self.company_id,
            display_name=self.display_name,
            phone_number=self.phone_number,
            user_id=self.user_id,
            address_id=self.address_id,
            room=self.room,
            comments=self.comments,
            external_id=self.external_id,
            is_administrator=self.is_administrator,
            cars=list(self.cars),
            perimeters=list(self.perimeters),
            temporary_perimeters=list(self.temporary_perimeters),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
