"""有界并发执行器。"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def map_limit(
    items: Sequence[T],
    limit: int,
    fn: Callable[[T, int], Awaitable[R]],
) -> list[R]:
    """按输入顺序启动任务，同一时刻最多 ``limit`` 个未完成。

    任一任务结束即释放一个槽位并立刻启动下一个（滑动窗口，而非分批）。
    单个任务失败不会取消其他任务；等待全部任务结束后，才按输入顺序
    重新抛出第一个未被 ``fn`` 自行处理的异常。``limit <= 0`` 按串行执行。
    结果按输入顺序返回。
    """

    slots = max(limit, 1)
    tasks: list[asyncio.Task[R]] = []
    executing: set[asyncio.Task[R]] = set()

    for index, item in enumerate(items):
        task = asyncio.ensure_future(fn(item, index))
        tasks.append(task)
        executing.add(task)
        task.add_done_callback(executing.discard)

        while len(executing) >= slots:
            await asyncio.wait(executing, return_when=asyncio.FIRST_COMPLETED)

    if not tasks:
        return []

    settled = await asyncio.gather(*tasks, return_exceptions=True)
    for value in settled:
        if isinstance(value, BaseException):
            raise value
    return list(settled)
