from __future__ import annotations

from datetime import datetime, timezone

from bson import ObjectId
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from common.models.abonent import Abonent

from ..exceptions import DuplicateEntryError
from .documents.abonent_document import AbonentDocument
from .interfaces import AbonentRepositoryInterface


class AbonentRepository(AbonentRepositoryInterface):
    """abonents 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: AsyncDatabase) -> None:
        self._db = database
        self._col = database["abonents"]

    @staticmethod
    def _from_document(doc: dict) -> Abonent:
        document = AbonentDocument.model_validate(doc)
        return document.to_domain()

    async def find_by_id(self, abonent_id: str, company_id: str) -> Abonent | None:
        # 형식이 틀린 id 는 존재하지 않는 입주자로 취급한다.
        if not ObjectId.is_valid(abonent_id):
            return None
        doc = await self._col.find_one(
            {"_id": ObjectId(abonent_id), "company_id": company_id}
        )
        if not doc:
            return None
        return self._from_document(doc)

    async def find_by_phone_number(
        self, phone_number: str, company_id: str
    ) -> Abonent | None:
        doc = await self._col.find_one(
            {"phone_number": phone_number, "company_id": company_id}
        )
        if not doc:
            return None
        return self._from_document(doc)

    async def find_by_user_id(self, user_id: str, company_id: str) -> Abonent | None:
        doc = await self._col.find_one({"user_id": user_id, "company_id": company_id})
        if not doc:
            return None
        return self._from_document(doc)

    async def list_by_company(self, company_id: str) -> list[Abonent]:
        cursor = self._col.find({"company_id": company_id}, sort=[("_id", 1)])
        return [self._from_document(doc) async for doc in cursor]

    async def insert(self, abonent: Abonent) -> Abonent:
        now = datetime.now(timezone.utc)
        abonent.created_at = now
        abonent.updated_at = now

        document = AbonentDocument.from_domain(abonent)
        payload = document.to_mongo_record()
        try:
            result = await self._col.insert_one(payload)
        except DuplicateKeyError as exc:
            # 조회 후 삽입 사이에 같은 번호가 먼저 저장된 경우 (uniq_company_phone_number)
            raise DuplicateEntryError(abonent.phone_number) from exc
        payload["_id"] = result.inserted_id
        return self._from_document(payload)

    async def update(self, abonent: Abonent) -> Abonent:
        """입주자 집합체 전체를 교체 저장한다 (요청당 한 번)."""
        if not abonent.id:
            raise ValueError("abonent id is required for update")

        abonent.updated_at = datetime.now(timezone.utc)
        document = AbonentDocument.from_domain(abonent)
        payload = document.to_mongo_record()
        result = await self._col.find_one_and_replace(
            {"_id": ObjectId(abonent.id), "company_id": abonent.company_id},
            payload,
            return_document=True,
        )
        if not result:
            raise RuntimeError(f"abonent not found for update (id={abonent.id})")
        return self._from_document(result)

    async def delete(self, abonent_id: str, company_id: str) -> bool:
        """삭제된 도큐먼트가 있으면 True, 없으면 False 를 반환한다."""
        if not ObjectId.is_valid(abonent_id):
            return False
        result = await self._col.delete_one(
            {"_id": ObjectId(abonent_id), "company_id": company_id}
        )
        return result.deleted_count > 0
