from __future__ import annotations

import time
from typing import Any, Mapping

from .core import Event


def new_json_event(
    payload: Mapping[str, Any],
    *,
    event_id: str | None = None,
    key: str | None = None,
) -> Event:
    """dict 페이로드를 Kafka Event 로 감싼다.

    - id가 비어 있으면 고해상도 타임스탬프 기반 문자열을 생성한다.
    - key 가 비어 있으면 발행 시 id 를 파티션 키로 사용한다.
    """
    if not event_id:
        event_id = str(time.time_ns())

    return Event(id=event_id, payload=dict(payload), key=key)
