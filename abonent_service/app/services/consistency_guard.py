from __future__ import annotations

import logging
from typing import Sequence

from common.models.abonent import PerimeterGrant

from ..exceptions import ReferentialIntegrityError
from ..repositories.interfaces import (
    AccessPerimeterRepositoryInterface,
    TariffPolicyRepositoryInterface,
)


logger = logging.getLogger(__name__)


class ConsistencyGuard:
    """변경을 적용하기 전에 페리미터/요금 정책 참조 무결성을 검증한다.

    검사 순서는 고정이며 첫 실패에서 ReferentialIntegrityError 로 중단한다.
    1. 가족 페리미터 중복
    2. 가족 페리미터 미등록(또는 다른 회사 소속)
    3. 요금 정책 미등록(또는 다른 회사 소속), 중복 제거 후 비교
    4. 임시 페리미터에 대해 1-2 반복
    """

    def __init__(
        self,
        perimeter_repo: AccessPerimeterRepositoryInterface,
        tariff_policy_repo: TariffPolicyRepositoryInterface,
    ) -> None:
        self._perimeter_repo = perimeter_repo
        self._tariff_policy_repo = tariff_policy_repo

    async def verify(
        self,
        perimeters: Sequence[PerimeterGrant],
        company_id: str,
        temporary_perimeter_ids: Sequence[str],
    ) -> None:
        perimeter_ids = [grant.perimeter_id for grant in perimeters]
        await self._verify_perimeter_ids(
            perimeter_ids, company_id, label="perimeters"
        )

        tariff_policy_ids = [grant.tariff_policy_id for grant in perimeters]
        if tariff_policy_ids:
            distinct_ids = set(tariff_policy_ids)
            found = await self._tariff_policy_repo.find_by_ids(distinct_ids)
            owned = {policy.id for policy in found if policy.company_id == company_id}
            if len(owned) != len(distinct_ids):
                logger.info(
                    "unregistered tariff policies in request",
                    extra={"company_id": company_id},
                )
                raise ReferentialIntegrityError("unregistered tariff policies")

        await self._verify_perimeter_ids(
            list(temporary_perimeter_ids), company_id, label="temporary perimeters"
        )

    async def _verify_perimeter_ids(
        self, perimeter_ids: list[str], company_id: str, *, label: str
    ) -> None:
        if not perimeter_ids:
            return

        if len(perimeter_ids) != len(set(perimeter_ids)):
            raise ReferentialIntegrityError(f"duplicate {label}")

        found = await self._perimeter_repo.find_by_ids(perimeter_ids, company_id)
        found_ids = {perimeter.id for perimeter in found if perimeter.company_id == company_id}
        if len(found_ids) != len(perimeter_ids):
            logger.info(
                "unregistered %s in request", label, extra={"company_id": company_id}
            )
            raise ReferentialIntegrityError(f"unregistered {label}")
