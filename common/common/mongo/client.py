from __future__ import annotations

import logging
import threading
from typing import Optional

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from .config import (
    get_mongo_db_name,
    get_mongo_uri,
    get_server_selection_timeout_ms,
)


logger = logging.getLogger(__name__)


_client: Optional[AsyncMongoClient] = None
_db: Optional[AsyncDatabase] = None
_lock = threading.Lock()


def get_client() -> AsyncMongoClient:
    """전역 AsyncMongoClient 싱글톤을 반환한다.

    - MONGO_URI 에서 URI 를 읽어온다.
    - 실제 연결은 첫 요청 시점에 맺어지므로, 기동 시 ping() 으로 검증한다.
    - URI 에 기본 데이터베이스가 포함되어 있지 않으면 에러를 발생시킨다.
    """

    global _client, _db

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        uri = get_mongo_uri()
        client: AsyncMongoClient = AsyncMongoClient(
            uri,
            tz_aware=True,
            serverSelectionTimeoutMS=get_server_selection_timeout_ms(),
        )

        # 사용할 DB 이름 결정: MONGO_DB_NAME 우선, 없으면 URI의 기본 DB 사용
        db_name = get_mongo_db_name()
        try:
            if db_name:
                db = client[db_name]
            else:
                db = client.get_default_database()
        except Exception as exc:  # noqa: BLE001
            raise RuntimeError(
                "MongoDB database name must be specified via MONGO_DB_NAME or in MONGO_URI (mongodb://.../db_name)",
            ) from exc

        _client = client
        _db = db
        return _client


def get_database() -> AsyncDatabase:
    """전역 기본 Database 객체를 반환한다."""

    global _db

    if _db is None:
        get_client()
    assert (
        _db is not None
    )  # get_client 에서 _db 를 초기화하지 못했다면 예외가 이미 발생했어야 한다.
    return _db


async def ping() -> None:
    """연결을 확인하고 필수 인덱스를 생성한다. 애플리케이션 기동 시 한 번 호출한다."""

    client = get_client()
    try:
        await client.admin.command("ping")
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

    db = get_database()
    try:
        await _ensure_indexes(db)
    except Exception as exc:  # noqa: BLE001
        # 인덱스 생성 실패는 치명적 오류로 간주한다.
        logger.error("failed to ensure MongoDB indexes: %s", exc)
        raise

    logger.info("MongoDB connected and indexes ensured (db=%s)", db.name)


async def close_client() -> None:
    global _client, _db

    if _client is None:
        return
    await _client.close()
    _client = None
    _db = None


async def _ensure_indexes(db: AsyncDatabase) -> None:
    """필수 인덱스를 생성한다. 중복 생성해도 MongoDB 가 처리하므로 idempotent 하다."""

    abonents = db["abonents"]

    # 회사 범위에서 전화번호 유일
    await abonents.create_index(
        [("company_id", 1), ("phone_number", 1)],
        name="uniq_company_phone_number",
        unique=True,
    )

    await abonents.create_index(
        [("company_id", 1), ("user_id", 1)],
        name="idx_company_user_id",
    )

    keys = db["user_composite_keys"]

    await keys.create_index([("owner_id", 1)], name="idx_owner_id")
    await keys.create_index([("owner_key_id", 1)], name="idx_owner_key_id")

    perimeters = db["access_perimeters"]

    await perimeters.create_index(
        [("company_id", 1), ("_id", 1)],
        name="idx_company_id",
    )
