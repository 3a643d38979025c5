from __future__ import annotations

import pytest

from common.eventbus.result import HandlerResult
from common.eventbus.signals import SignalBus


def test_combine_merges_all_results() -> None:
    combined = HandlerResult.combine(
        [
            HandlerResult.ok(item_errors=["k1: boom"]),
            None,
            HandlerResult.fail("first"),
            HandlerResult.fail("second"),
        ]
    )

    assert not combined.success
    assert combined.errors == ["first", "second"]
    assert combined.item_errors == ["k1: boom"]


def test_combine_of_nothing_is_success() -> None:
    assert HandlerResult.combine([]).success


@pytest.mark.asyncio
async def test_emit_runs_every_handler_after_failures() -> None:
    bus = SignalBus()
    calls: list[str] = []

    async def failing(event: object) -> HandlerResult:
        calls.append("failing")
        return HandlerResult.fail("failing handler")

    async def raising(event: object) -> HandlerResult:
        calls.append("raising")
        raise RuntimeError("exploded")

    async def succeeding(event: object) -> None:
        calls.append("succeeding")

    bus.subscribe("sig", failing)
    bus.subscribe("sig", raising)
    bus.subscribe("sig", succeeding)

    result = await bus.emit("sig", object())

    assert calls == ["failing", "raising", "succeeding"]
    assert not result.success
    assert result.errors[0] == "failing handler"
    assert result.errors[1].endswith("raising: exploded")


@pytest.mark.asyncio
async def test_emit_without_subscribers_is_success() -> None:
    bus = SignalBus()

    result = await bus.emit("nobody-listens", object())

    assert result.success
    assert bus.subscribers("nobody-listens") == []
