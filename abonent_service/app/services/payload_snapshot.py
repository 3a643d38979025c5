from __future__ import annotations

import logging
from typing import Iterable

from common.models.abonent import Abonent
from common.models.key_payload import (
    AccessObjectNamePayload,
    CarPayload,
    CategoriesPayload,
    DisplayNamePayload,
    PayloadItem,
)

from ..models.catalog import AccessObject
from ..repositories.interfaces import (
    AccessObjectRepositoryInterface,
    AccessPerimeterRepositoryInterface,
)


logger = logging.getLogger(__name__)


def abonent_payload(abonent: Abonent) -> list[PayloadItem]:
    """입주자 자신의 정보로 만든 키 페이로드 스냅샷."""
    return [
        DisplayNamePayload(display_name=abonent.display_name),
        CarPayload(cars=list(abonent.cars)),
    ]


def access_object_payload(access_object: AccessObject | None) -> list[PayloadItem]:
    if access_object is None:
        return []
    items: list[PayloadItem] = [
        AccessObjectNamePayload(display_name=access_object.display_name_user)
    ]
    if access_object.categories:
        items.append(CategoriesPayload(categories=list(access_object.categories)))
    return items


class PayloadSnapshotResolver:
    """페리미터 목록의 첫 번째 페리미터가 속한 출입 객체를 찾는다."""

    def __init__(
        self,
        perimeter_repo: AccessPerimeterRepositoryInterface,
        access_object_repo: AccessObjectRepositoryInterface,
    ) -> None:
        self._perimeter_repo = perimeter_repo
        self._access_object_repo = access_object_repo

    async def resolve_access_object(
        self, perimeter_ids: Iterable[str]
    ) -> AccessObject | None:
        ids = list(dict.fromkeys(perimeter_ids))
        if not ids:
            return None

        perimeters = await self._perimeter_repo.find_by_ids(ids)
        by_id = {perimeter.id: perimeter for perimeter in perimeters}
        first = next((by_id[pid] for pid in ids if pid in by_id), None)
        if first is None:
            logger.warning("no access perimeter found for ids=%s", ids)
            return None

        access_object = await self._access_object_repo.find_by_id(
            first.access_object_id, first.company_id
        )
        if access_object is None:
            logger.warning(
                "access object %s not found for perimeter %s",
                first.access_object_id,
                first.id,
                extra={"company_id": first.company_id},
            )
        return access_object

    async def resolve(self, abonent: Abonent) -> list[PayloadItem]:
        """출입 객체 스냅샷 + 입주자 스냅샷."""
        access_object = await self.resolve_access_object(abonent.all_perimeter_ids())
        return access_object_payload(access_object) + abonent_payload(abonent)
