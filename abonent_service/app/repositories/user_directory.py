from __future__ import annotations

from pymongo.asynchronous.database import AsyncDatabase

from .interfaces import UserDirectoryInterface


class UserDirectory(UserDirectoryInterface):
    """플랫폼 users 컬렉션에서 전화번호로 user_id 를 찾는다."""

    def __init__(self, database: AsyncDatabase) -> None:
        self._col = database["users"]

    async def find_user_id_by_phone(self, phone_number: str) -> str | None:
        doc = await self._col.find_one(
            {"phone_number": phone_number}, projection={"user_code": 1}
        )
        if not doc:
            return None
        user_code = doc.get("user_code")
        return str(user_code) if user_code else None
