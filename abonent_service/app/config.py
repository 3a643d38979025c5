from __future__ import annotations

import os
from dataclasses import dataclass


ABONENT_KEY_SYNC_CONCURRENCY = "ABONENT_KEY_SYNC_CONCURRENCY"
ABONENT_FORWARD_EVENTS = "ABONENT_FORWARD_EVENTS"
ABONENT_SERVICE_PORT = "ABONENT_SERVICE_PORT"


@dataclass(frozen=True, slots=True)
class KeySyncConfig:
    """키 페이로드 동기화 설정."""

    # 하나의 fan-out 배치에서 동시에 처리할 키 수
    max_concurrency: int


@dataclass(frozen=True, slots=True)
class AppConfig:
    """abonent-service 전체 설정 루트."""

    key_sync: KeySyncConfig
    forward_events: bool
    port: int


def load_key_sync_config() -> KeySyncConfig:
    raw = os.getenv(ABONENT_KEY_SYNC_CONCURRENCY)
    if not raw:
        return KeySyncConfig(max_concurrency=8)

    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(
            f"{ABONENT_KEY_SYNC_CONCURRENCY} must be an integer if set, got: {raw!r}"
        ) from exc
    if value <= 0:
        raise RuntimeError(f"{ABONENT_KEY_SYNC_CONCURRENCY} must be >= 1, got: {value}")
    return KeySyncConfig(max_concurrency=value)


def load_forward_events() -> bool:
    raw = os.getenv(ABONENT_FORWARD_EVENTS, "true").strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise RuntimeError(f"{ABONENT_FORWARD_EVENTS} must be a boolean, got: {raw!r}")


def load_port() -> int:
    raw = os.getenv(ABONENT_SERVICE_PORT, "8004")
    try:
        port = int(raw)
    except ValueError as exc:
        raise RuntimeError(
            f"{ABONENT_SERVICE_PORT} must be an integer, got: {raw!r}"
        ) from exc
    if port <= 0:
        raise RuntimeError(f"{ABONENT_SERVICE_PORT} must be > 0, got: {port}")
    return port


def load_config() -> AppConfig:
    """abonent-service 설정을 로드하여 AppConfig 로 반환한다."""

    return AppConfig(
        key_sync=load_key_sync_config(),
        forward_events=load_forward_events(),
        port=load_port(),
    )
