from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from bson import ObjectId
from pymongo.asynchronous.database import AsyncDatabase

from common.models.key_payload import PayloadItem, dump_payload
from common.mongo.types import to_object_ids

from ..models.composite_key import CompositeKeyTemplate, UserCompositeKey
from .documents.composite_key_document import (
    CompositeKeyTemplateDocument,
    UserCompositeKeyDocument,
)
from .interfaces import (
    CompositeKeyTemplateRepositoryInterface,
    UserCompositeKeyRepositoryInterface,
)


class UserCompositeKeyRepository(UserCompositeKeyRepositoryInterface):
    """user_composite_keys 컬렉션 접근 레이어.

    키의 발급/폐기는 발급 서브시스템이 담당하므로 여기서는 조회와 payload 갱신만 한다.
    """

    def __init__(self, database: AsyncDatabase) -> None:
        self._col = database["user_composite_keys"]

    async def list_by_owner_id(self, owner_id: str) -> list[UserCompositeKey]:
        cursor = self._col.find({"owner_id": owner_id})
        return [
            UserCompositeKeyDocument.model_validate(doc).to_domain()
            async for doc in cursor
        ]

    async def list_member_keys(
        self, owner_key_ids: Iterable[str]
    ) -> list[UserCompositeKey]:
        ids = list(dict.fromkeys(owner_key_ids))
        if not ids:
            return []

        cursor = self._col.find({"owner_key_id": {"$in": ids}})
        return [
            UserCompositeKeyDocument.model_validate(doc).to_domain()
            async for doc in cursor
        ]

    async def update_payload(self, key_id: str, payload: list[PayloadItem]) -> None:
        result = await self._col.update_one(
            {"_id": ObjectId(key_id)},
            {
                "$set": {
                    "payload": dump_payload(payload),
                    "updated_at": datetime.now(timezone.utc),
                }
            },
        )
        if result.matched_count == 0:
            raise RuntimeError(f"composite key not found for update (id={key_id})")


class CompositeKeyTemplateRepository(CompositeKeyTemplateRepositoryInterface):
    def __init__(self, database: AsyncDatabase) -> None:
        self._col = database["composite_key_templates"]

    async def find_by_ids(self, template_ids: Iterable[str]) -> list[CompositeKeyTemplate]:
        object_ids = to_object_ids(set(template_ids))
        if not object_ids:
            return []

        cursor = self._col.find({"_id": {"$in": object_ids}})
        return [
            CompositeKeyTemplateDocument.model_validate(doc).to_domain()
            async for doc in cursor
        ]
