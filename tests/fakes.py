# tests/fakes.py

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Mapping

from bulk_outreach.tasks.task_models import TaskKind, TaskSnapshot, TaskStatus


def snap(kind: TaskKind, task_id: str, status: TaskStatus | str, **fields: Any) -> TaskSnapshot:
    return TaskSnapshot(id=task_id, kind=kind, status=TaskStatus(status), **fields)


class FakeJobService:
    """
    Deterministic JobService used by poller/workflow tests.

    - initiate()/get_status() pop scripted results (a TaskSnapshot or an
      exception to raise); the last status result is sticky
    - every call is recorded for assertions
    - set `block` to an asyncio.Event to hold status fetches "in flight"
    """

    def __init__(self) -> None:
        self.initiate_results: dict[TaskKind, deque[TaskSnapshot | Exception]] = {
            TaskKind.DISCOVERY: deque(),
            TaskKind.SCRAPING: deque(),
        }
        self.status_results: dict[tuple[TaskKind, str], deque[TaskSnapshot | Exception]] = {}
        self.initiate_calls: list[tuple[TaskKind, dict[str, Any]]] = []
        self.status_calls: list[tuple[TaskKind, str]] = []
        self.block: asyncio.Event | None = None

    def on_initiate(self, kind: TaskKind, *results: TaskSnapshot | Exception) -> None:
        self.initiate_results[kind].extend(results)

    def on_status(self, kind: TaskKind, task_id: str, *results: TaskSnapshot | Exception) -> None:
        self.status_results.setdefault((kind, task_id), deque()).extend(results)

    async def initiate(self, kind: TaskKind, params: Mapping[str, Any]) -> TaskSnapshot:
        self.initiate_calls.append((kind, dict(params)))
        result = self.initiate_results[kind].popleft()
        if isinstance(result, Exception):
            raise result
        return result

    async def get_status(self, kind: TaskKind, task_id: str) -> TaskSnapshot:
        self.status_calls.append((kind, task_id))
        if self.block is not None:
            await self.block.wait()

        queue = self.status_results.get((kind, task_id))
        if not queue:
            raise AssertionError(f"no scripted status for {kind.value}:{task_id}")
        result = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(result, Exception):
            raise result
        return result


class ManualSleep:
    """
    Injectable replacement for asyncio.sleep.

    Sleepers park until the test calls advance(), so poll ticks happen exactly
    when the test says so instead of on wall-clock time.
    """

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._waiters: list[asyncio.Future[None]] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        await fut

    @property
    def sleeping(self) -> int:
        return sum(1 for f in self._waiters if not f.done())

    async def advance(self) -> None:
        waiters, self._waiters = self._waiters, []
        for fut in waiters:
            if not fut.done():
                fut.set_result(None)
        await settle()


async def settle(rounds: int = 20) -> None:
    """Let ready callbacks/tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)
