from __future__ import annotations

from typing import Iterable, Protocol

from common.models.abonent import Abonent
from common.models.key_payload import PayloadItem

from ..models.catalog import AccessObject, AccessPerimeter, TariffPolicy
from ..models.composite_key import CompositeKeyTemplate, UserCompositeKey


class AbonentRepositoryInterface(Protocol):
    """AbonentRepository가 따라야 할 최소한의 계약.

    Service 레이어는 이 인터페이스에만 의존하고, 구체 구현(Mongo 등)은 몰라도 된다.
    모든 조회는 company_id 범위 안에서 이루어진다.
    """

    async def find_by_id(
        self, abonent_id: str, company_id: str
    ) -> Abonent | None:  # pragma: no cover - Protocol
        ...

    async def find_by_phone_number(
        self, phone_number: str, company_id: str
    ) -> Abonent | None:  # pragma: no cover - Protocol
        ...

    async def find_by_user_id(
        self, user_id: str, company_id: str
    ) -> Abonent | None:  # pragma: no cover - Protocol
        ...

    async def list_by_company(
        self, company_id: str
    ) -> list[Abonent]:  # pragma: no cover - Protocol
        ...

    async def insert(self, abonent: Abonent) -> Abonent:  # pragma: no cover - Protocol
        ...

    async def update(self, abonent: Abonent) -> Abonent:  # pragma: no cover - Protocol
        ...

    async def delete(
        self, abonent_id: str, company_id: str
    ) -> bool:  # pragma: no cover - Protocol
        ...


class AccessPerimeterRepositoryInterface(Protocol):
    async def find_by_ids(
        self, perimeter_ids: Iterable[str], company_id: str | None = None
    ) -> list[AccessPerimeter]:  # pragma: no cover - Protocol
        """id 목록에 해당하는 페리미터를 반환한다. company_id 가 있으면 그 회사 것만."""
        ...

    async def find_template_ids(
        self, perimeter_ids: Iterable[str], company_id: str
    ) -> set[str]:  # pragma: no cover - Protocol
        """페리미터들에 묶인 키 템플릿 id 집합."""
        ...


class TariffPolicyRepositoryInterface(Protocol):
    async def find_by_ids(
        self, tariff_policy_ids: Iterable[str]
    ) -> list[TariffPolicy]:  # pragma: no cover - Protocol
        ...


class AccessObjectRepositoryInterface(Protocol):
    async def find_by_id(
        self, access_object_id: str, company_id: str
    ) -> AccessObject | None:  # pragma: no cover - Protocol
        ...


class UserDirectoryInterface(Protocol):
    """플랫폼 유저 계정 조회 (전화번호 -> user_id)."""

    async def find_user_id_by_phone(
        self, phone_number: str
    ) -> str | None:  # pragma: no cover - Protocol
        ...


class UserCompositeKeyRepositoryInterface(Protocol):
    async def list_by_owner_id(
        self, owner_id: str
    ) -> list[UserCompositeKey]:  # pragma: no cover - Protocol
        ...

    async def list_member_keys(
        self, owner_key_ids: Iterable[str]
    ) -> list[UserCompositeKey]:  # pragma: no cover - Protocol
        """소유자 키에서 파생된(가족 공유) 키 목록."""
        ...

    async def update_payload(
        self, key_id: str, payload: list[PayloadItem]
    ) -> None:  # pragma: no cover - Protocol
        ...


class CompositeKeyTemplateRepositoryInterface(Protocol):
    async def find_by_ids(
        self, template_ids: Iterable[str]
    ) -> list[CompositeKeyTemplate]:  # pragma: no cover - Protocol
        ...
