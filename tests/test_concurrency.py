"""有界并发执行器测试。"""

from __future__ import annotations

import asyncio

import pytest

from card_sync.processing.concurrency import map_limit


class Tracker:
    def __init__(self) -> None:
        self.active = 0
        self.peak = 0
        self.started: list[int] = []

    async def run(self, item: float, index: int) -> int:
        self.started.append(index)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(item)
        finally:
            self.active -= 1
        return index


def test_never_exceeds_limit_and_starts_in_order() -> None:
    tracker = Tracker()
    delays = [0.02, 0.01, 0.03, 0.01, 0.02, 0.01, 0.01, 0.02, 0.01, 0.01]

    results = asyncio.run(map_limit(delays, 3, tracker.run))

    assert tracker.peak == 3
    assert tracker.started == list(range(len(delays)))
    assert results == list(range(len(delays)))


def test_slot_is_refilled_as_soon_as_one_finishes() -> None:
    events: list[str] = []

    async def op(item: tuple[str, float], index: int) -> None:
        name, delay = item
        events.append(f"start {name}")
        await asyncio.sleep(delay)
        events.append(f"end {name}")

    items = [("slow", 0.2), ("fast", 0.01), ("next", 0.01)]
    asyncio.run(map_limit(items, 2, op))

    # 不是固定分批：fast 结束后 next 立即启动，无需等待 slow。
    assert events.index("start next") < events.index("end slow")


def test_empty_items_complete_without_work() -> None:
    async def op(item, index):  # pragma: no cover - 不应被调用
        raise AssertionError("should not run")

    assert asyncio.run(map_limit([], 4, op)) == []


def test_non_positive_limit_runs_serially() -> None:
    tracker = Tracker()

    asyncio.run(map_limit([0.01, 0.01, 0.01], 0, tracker.run))

    assert tracker.peak == 1
    assert tracker.started == [0, 1, 2]


def test_escaped_failure_does_not_cancel_siblings() -> None:
    finished: list[int] = []

    async def op(item: int, index: int) -> None:
        await asyncio.sleep(0.01 * item)
        if index == 1:
            raise RuntimeError("boom")
        finished.append(index)

    with pytest.raises(RuntimeError, match="boom"):
        asyncio.run(map_limit([3, 1, 2, 4, 1], 2, op))

    assert sorted(finished) == [0, 2, 3, 4]
