from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Self


@dataclass(slots=True)
class HandlerResult:
    """이벤트 핸들러 실행 결과.

    - errors: 핸들러 전체를 실패로 만드는 사유 목록
    - item_errors: 배치 내 개별 항목에서 격리된(치명적이지 않은) 실패 사유 목록
    """

    errors: list[str] = field(default_factory=list)
    item_errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @classmethod
    def ok(cls, item_errors: Iterable[str] | None = None) -> Self:
        return cls(errors=[], item_errors=list(item_errors or []))

    @classmethod
    def fail(cls, *reasons: str) -> Self:
        return cls(errors=list(reasons))

    @classmethod
    def combine(cls, results: Iterable[HandlerResult | None]) -> Self:
        """모든 결과를 끝까지 합친다 (첫 실패에서 멈추지 않는다)."""
        combined = cls()
        for result in results:
            if result is None:
                continue
            combined.errors.extend(result.errors)
            combined.item_errors.extend(result.item_errors)
        return combined
