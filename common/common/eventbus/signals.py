from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from .result import HandlerResult

logger = logging.getLogger(__name__)


SignalHandler = Callable[[Any], Awaitable[HandlerResult | None]]


class SignalBus:
    """프로세스 내부 이벤트 버스.

    이름 있는 시그널마다 비동기 핸들러 목록을 관리한다. 전역 상태로 두지 않고,
    애플리케이션을 조립하는 쪽(lifespan, 테스트)이 생성해서 명시적으로 넘긴다.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[SignalHandler]] = {}

    def subscribe(self, signal: str, handler: SignalHandler) -> None:
        self._handlers.setdefault(signal, []).append(handler)

    def subscribers(self, signal: str) -> list[SignalHandler]:
        return list(self._handlers.get(signal, []))

    async def emit(self, signal: str, event: Any) -> HandlerResult:
        """등록된 모든 핸들러를 순서대로 실행하고 결과를 합친다.

        - 앞선 핸들러가 실패해도 나머지 핸들러는 항상 실행된다.
        - 핸들러 예외는 실패 사유 문자열로 변환된다.
        """
        results: list[HandlerResult | None] = []
        for handler in self.subscribers(signal):
            name = getattr(handler, "__qualname__", repr(handler))
            try:
                result = await handler(event)
            except Exception as exc:  # noqa: BLE001
                logger.exception(
                    "signal handler failed signal=%s handler=%s", signal, name
                )
                result = HandlerResult.fail(f"{name}: {exc}")
            results.append(result)

        combined = HandlerResult.combine(results)
        if not combined.success:
            logger.warning(
                "signal %s finished with %d failure(s)", signal, len(combined.errors)
            )
        return combined
