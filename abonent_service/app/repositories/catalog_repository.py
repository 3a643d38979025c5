"""카탈로그(페리미터, 요금 정책, 출입 객체) 조회용 MongoDB 레이어."""

from __future__ import annotations

from typing import Iterable

from bson import ObjectId
from pymongo.asynchronous.database import AsyncDatabase

from common.mongo.types import to_object_ids

from ..models.catalog import AccessObject, AccessPerimeter, TariffPolicy
from .documents.catalog_document import (
    AccessObjectDocument,
    AccessPerimeterDocument,
    TariffPolicyDocument,
)
from .interfaces import (
    AccessObjectRepositoryInterface,
    AccessPerimeterRepositoryInterface,
    TariffPolicyRepositoryInterface,
)


class AccessPerimeterRepository(AccessPerimeterRepositoryInterface):
    def __init__(self, database: AsyncDatabase) -> None:
        self._col = database["access_perimeters"]

    async def find_by_ids(
        self, perimeter_ids: Iterable[str], company_id: str | None = None
    ) -> list[AccessPerimeter]:
        object_ids = to_object_ids(perimeter_ids)
        if not object_ids:
            return []

        query: dict = {"_id": {"$in": object_ids}}
        if company_id is not None:
            query["company_id"] = company_id

        cursor = self._col.find(query)
        return [
            AccessPerimeterDocument.model_validate(doc).to_domain()
            async for doc in cursor
        ]

    async def find_template_ids(
        self, perimeter_ids: Iterable[str], company_id: str
    ) -> set[str]:
        perimeters = await self.find_by_ids(perimeter_ids, company_id)
        return {
            template_id
            for perimeter in perimeters
            for template_id in perimeter.template_ids
        }


class TariffPolicyRepository(TariffPolicyRepositoryInterface):
    def __init__(self, database: AsyncDatabase) -> None:
        self._col = database["tariff_policies"]

    async def find_by_ids(self, tariff_policy_ids: Iterable[str]) -> list[TariffPolicy]:
        object_ids = to_object_ids(set(tariff_policy_ids))
        if not object_ids:
            return []

        cursor = self._col.find({"_id": {"$in": object_ids}})
        return [
            TariffPolicyDocument.model_validate(doc).to_domain() async for doc in cursor
        ]


class AccessObjectRepository(AccessObjectRepositoryInterface):
    def __init__(self, database: AsyncDatabase) -> None:
        self._col = database["access_objects"]

    async def find_by_id(
        self, access_object_id: str, company_id: str
    ) -> AccessObject | None:
        if not ObjectId.is_valid(access_object_id):
            return None
        doc = await self._col.find_one(
            {"_id": ObjectId(access_object_id), "company_id": company_id}
        )
        if not doc:
            return None
        return AccessObjectDocument.model_validate(doc).to_domain()
