"""테스트용 가짜 저장소/게이트웨이 모음. 호출 내역을 리스트로 기록한다."""

from __future__ import annotations

from typing import Iterable

from common.models.abonent import Abonent
from common.models.key_payload import PayloadItem

from abonent_service.app.models.catalog import AccessObject, AccessPerimeter, TariffPolicy
from abonent_service.app.models.composite_key import (
    CompositeKeyTemplate,
    KeyRenewalRequest,
    UserCompositeKey,
)


class FakeAbonentRepository:
    def __init__(self, *abonents: Abonent) -> None:
        self.items: dict[str, Abonent] = {}
        self.insert_calls: list[Abonent] = []
        self.update_calls: list[Abonent] = []
        self.delete_calls: list[tuple[str, str]] = []
        self._seq = 0
        for abonent in abonents:
            self._store(abonent)

    def _store(self, abonent: Abonent) -> Abonent:
        if not abonent.id:
            self._seq += 1
            abonent.id = f"abonent-{self._seq}"
        self.items[abonent.id] = abonent.model_copy(deep=True)
        return abonent.model_copy(deep=True)

    async def find_by_id(self, abonent_id: str, company_id: str) -> Abonent | None:
        found = self.items.get(abonent_id)
        if found is None or found.company_id != company_id:
            return None
        return found.model_copy(deep=True)

    async def find_by_phone_number(
        self, phone_number: str, company_id: str
    ) -> Abonent | None:
        for item in self.items.values():
            if item.phone_number == phone_number and item.company_id == company_id:
                return item.model_copy(deep=True)
        return None

    async def find_by_user_id(self, user_id: str, company_id: str) -> Abonent | None:
        for item in self.items.values():
            if item.user_id == user_id and item.company_id == company_id:
                return item.model_copy(deep=True)
        return None

    async def list_by_company(self, company_id: str) -> list[Abonent]:
        return [
            item.model_copy(deep=True)
            for item in self.items.values()
            if item.company_id == company_id
        ]

    async def insert(self, abonent: Abonent) -> Abonent:
        self.insert_calls.append(abonent.model_copy(deep=True))
        return self._store(abonent)

    async def update(self, abonent: Abonent) -> Abonent:
        self.update_calls.append(abonent.model_copy(deep=True))
        return self._store(abonent)

    async def delete(self, abonent_id: str, company_id: str) -> bool:
        self.delete_calls.append((abonent_id, company_id))
        found = self.items.get(abonent_id)
        if found is None or found.company_id != company_id:
            return False
        del self.items[abonent_id]
        return True


class FakePerimeterRepository:
    def __init__(self, *perimeters: AccessPerimeter) -> None:
        self.items = {perimeter.id: perimeter for perimeter in perimeters}
        self.raise_error: Exception | None = None

    async def find_by_ids(
        self, perimeter_ids: Iterable[str], company_id: str | None = None
    ) -> list[AccessPerimeter]:
        if self.raise_error is not None:
            raise self.raise_error
        found = []
        for perimeter_id in dict.fromkeys(perimeter_ids):
            perimeter = self.items.get(perimeter_id)
            if perimeter is None:
                continue
            if company_id is not None and perimeter.company_id != company_id:
                continue
            found.append(perimeter)
        return found

    async def find_template_ids(
        self, perimeter_ids: Iterable[str], company_id: str
    ) -> set[str]:
        if self.raise_error is not None:
            raise self.raise_error
        template_ids: set[str] = set()
        for perimeter in await self.find_by_ids(perimeter_ids, company_id):
            template_ids.update(perimeter.template_ids)
        return template_ids


class FakeTariffPolicyRepository:
    def __init__(self, *policies: TariffPolicy) -> None:
        self.items = {policy.id: policy for policy in policies}
        self.calls: list[set[str]] = []

    async def find_by_ids(self, tariff_policy_ids: Iterable[str]) -> list[TariffPolicy]:
        ids = set(tariff_policy_ids)
        self.calls.append(ids)
        return [self.items[policy_id] for policy_id in ids if policy_id in self.items]


class FakeAccessObjectRepository:
    def __init__(self, *objects: AccessObject) -> None:
        self.items = {obj.id: obj for obj in objects}

    async def find_by_id(
        self, access_object_id: str, company_id: str
    ) -> AccessObject | None:
        found = self.items.get(access_object_id)
        if found is None or found.company_id != company_id:
            return None
        return found


class FakeUserDirectory:
    def __init__(self, users: dict[str, str] | None = None) -> None:
        self.users = dict(users or {})

    async def find_user_id_by_phone(self, phone_number: str) -> str | None:
        return self.users.get(phone_number)


class FakeCompositeKeyRepository:
    def __init__(self, *keys: UserCompositeKey) -> None:
        self.items = {key.id: key for key in keys}
        self.failing_key_ids: set[str] = set()
        self.list_error: Exception | None = None
        self.update_calls: list[tuple[str, list[PayloadItem]]] = []

    async def list_by_owner_id(self, owner_id: str) -> list[UserCompositeKey]:
        if self.list_error is not None:
            raise self.list_error
        return [
            key.model_copy(deep=True)
            for key in self.items.values()
            if key.owner_id == owner_id
        ]

    async def list_member_keys(
        self, owner_key_ids: Iterable[str]
    ) -> list[UserCompositeKey]:
        ids = set(owner_key_ids)
        return [
            key.model_copy(deep=True)
            for key in self.items.values()
            if key.owner_key_id in ids
        ]

    async def update_payload(self, key_id: str, payload: list[PayloadItem]) -> None:
        if key_id in self.failing_key_ids:
            raise RuntimeError(f"write failed for {key_id}")
        self.update_calls.append((key_id, list(payload)))
        self.items[key_id] = self.items[key_id].model_copy(
            update={"payload": list(payload)}
        )


class FakeTemplateRepository:
    def __init__(self, *templates: CompositeKeyTemplate) -> None:
        self.items = {template.id: template for template in templates}

    async def find_by_ids(self, template_ids: Iterable[str]) -> list[CompositeKeyTemplate]:
        return [self.items[t] for t in set(template_ids) if t in self.items]


class FakeRenewalService:
    def __init__(self) -> None:
        self.requests: list[KeyRenewalRequest] = []
        self.failing_key_ids: set[str] = set()

    async def process(self, request: KeyRenewalRequest) -> None:
        if request.key_id in self.failing_key_ids:
            raise RuntimeError(f"renewal rejected: {request.key_id}")
        self.requests.append(request)


class RecordingSubscriber:
    """SignalBus 에 붙여서 받은 이벤트를 순서대로 기록한다."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def handler_for(self, signal: str):  # type: ignore[no-untyped-def]
        async def _handle(event: object) -> None:
            self.events.append((signal, event))

        return _handle

    @property
    def signals(self) -> list[str]:
        return [signal for signal, _ in self.events]

    def of(self, signal: str) -> list[object]:
        return [event for name, event in self.events if name == signal]
