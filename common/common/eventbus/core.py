from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class Event:
    """Kafka 로 발행되는 메시지의 메타데이터와 페이로드.

    payload 는 JSON 직렬화 가능한 dict 를 담고, 실제 인코딩은 Kafka I/O 레이어에서 한다.
    """

    id: str
    payload: Any
    key: str | None = None


@dataclass(frozen=True, slots=True)
class Topic:
    base: str
