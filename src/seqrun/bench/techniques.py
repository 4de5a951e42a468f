"""Sequencing techniques compared by the benchmark harness.

Each technique runs a task list strictly in order and returns once the
last work item has continued. They differ only in *how* they advance:

    runner            SequentialTaskRunner (loop-scheduled index advance)
    index_advance     closure over a counter, one call_soon per step
    queue_drain       collections.deque, popleft until empty
    deferred_await    ``await deferred(item)`` in a for loop
    chained_futures   functools.reduce building a chain of tasks

Every technique hops through the event loop between items, so none of
them grows the stack with the list length.
"""

from __future__ import annotations

import asyncio
import functools
from collections import deque
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from seqrun.core.errors import ItemError, MisuseError
from seqrun.execution.adapters import deferred
from seqrun.execution.runner import Continuation, SequentialTaskRunner, WorkItem, is_failure

TechniqueFunc = Callable[[Sequence[WorkItem]], Awaitable[None]]


@dataclass(frozen=True)
class Technique:
    """A named way of running work items one after another."""

    name: str
    description: str
    func: TechniqueFunc

    async def __call__(self, tasks: Sequence[WorkItem]) -> None:
        await self.func(tasks)


async def _via_runner(tasks: Sequence[WorkItem]) -> None:
    result = await SequentialTaskRunner().run(
        tasks,
        on_complete=lambda: None,
        on_error=lambda error, index: None,
    )
    if result.failed_index is None:
        return
    if isinstance(result.error, BaseException):
        raise result.error
    raise ItemError(f"work item failed: {result.error!r}", index=result.failed_index)


def _once(loop: asyncio.AbstractEventLoop, step: Callable[[Any], None]) -> Continuation:
    """Continuation that schedules *step* on the loop; calls after the first are ignored."""
    fired = False

    def continuation(error: Any = None) -> None:
        nonlocal fired
        if fired:
            return
        fired = True
        loop.call_soon(step, error)

    return continuation


async def _index_advance(tasks: Sequence[WorkItem]) -> None:
    loop = asyncio.get_running_loop()
    finished = loop.create_future()
    index = 0

    def go(error: Any = None) -> None:
        nonlocal index
        if finished.done():
            return
        if is_failure(error):
            finished.set_exception(ItemError(f"work item failed: {error!r}", index=index - 1))
        elif index < len(tasks):
            item = tasks[index]
            index += 1
            try:
                item(_once(loop, go))
            except Exception as exc:
                finished.set_exception(ItemError(f"work item raised: {exc!r}", index=index - 1, cause=exc))
        else:
            finished.set_result(None)

    go()
    await finished


async def _queue_drain(tasks: Sequence[WorkItem]) -> None:
    loop = asyncio.get_running_loop()
    finished = loop.create_future()
    queue = deque(tasks)

    def execute_next(error: Any = None) -> None:
        if finished.done():
            return
        if is_failure(error):
            finished.set_exception(ItemError(f"work item failed: {error!r}"))
        elif queue:
            try:
                queue.popleft()(_once(loop, execute_next))
            except Exception as exc:
                finished.set_exception(ItemError(f"work item raised: {exc!r}", cause=exc))
        else:
            finished.set_result(None)

    execute_next()
    await finished


async def _deferred_await(tasks: Sequence[WorkItem]) -> None:
    for item in tasks:
        await deferred(item)


async def _chained_futures(tasks: Sequence[WorkItem]) -> None:
    loop = asyncio.get_running_loop()
    start: asyncio.Future[None] = loop.create_future()
    start.set_result(None)

    async def after(previous: Awaitable[None], item: WorkItem) -> None:
        await previous
        await deferred(item)

    last = functools.reduce(
        lambda previous, item: asyncio.ensure_future(after(previous, item)),
        tasks,
        start,
    )
    await last


TECHNIQUES: dict[str, Technique] = {
    t.name: t
    for t in (
        Technique("runner", "SequentialTaskRunner", _via_runner),
        Technique("index_advance", "Closure over a counter", _index_advance),
        Technique("queue_drain", "Drain a deque front to back", _queue_drain),
        Technique("deferred_await", "Await each item in a for loop", _deferred_await),
        Technique("chained_futures", "Reduce items into a chain of tasks", _chained_futures),
    )
}


def get_technique(name: str) -> Technique:
    """Look up a built-in technique by name.

    Raises:
        MisuseError: If no technique has that name.
    """
    try:
        return TECHNIQUES[name]
    except KeyError:
        raise MisuseError(
            f"unknown technique {name!r}; choose from {', '.join(TECHNIQUES)}"
        ) from None
