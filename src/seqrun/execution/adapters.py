"""Bridges between continuation-passing work items and asyncio.

- :func:`deferred` - await a single work item (work item → awaitable)
- :func:`from_coroutine` - wrap a coroutine function as a work item
- :func:`with_timeout` - watchdog wrapper for one work item
- :func:`run_sequence` - await a whole sequential run
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine, Sequence
from typing import Any, TypeVar

from seqrun.core.errors import ItemError, ItemTimeoutError
from seqrun.core.logging import get_logger
from seqrun.execution.models import RunResult
from seqrun.execution.runner import Continuation, SequentialTaskRunner, WorkItem, is_failure

logger = get_logger(__name__)

T = TypeVar("T")


def deferred(item: WorkItem) -> asyncio.Future[None]:
    """Invoke *item* now and return a future for its continuation.

    The future resolves with ``None`` on success and raises the reported
    error otherwise. Must be called with a running loop.

    Example:
        >>> for item in tasks:
        ...     await deferred(item)
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[None] = loop.create_future()

    def _settle(error: Any) -> None:
        if future.done():
            return
        if not is_failure(error):
            future.set_result(None)
        elif isinstance(error, BaseException):
            future.set_exception(error)
        else:
            future.set_exception(ItemError(f"work item reported error: {error!r}"))

    def done(error: Any = None) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            _settle(error)
        else:
            loop.call_soon_threadsafe(_settle, error)

    try:
        item(done)
    except Exception as exc:
        _settle(ItemError(f"work item raised {type(exc).__name__}: {exc}", cause=exc))
    return future


def from_coroutine(
    factory: Callable[..., Coroutine[Any, Any, T]],
    *args: Any,
    on_result: Callable[[T], Any] | None = None,
    **kwargs: Any,
) -> WorkItem:
    """Wrap an async function as a work item.

    A fresh coroutine is created on every invocation, so the resulting
    work item may appear in several task lists. Its return value goes to
    *on_result* (if given) before the continuation is called; an exception
    from the coroutine is reported through the continuation.

    Example:
        >>> item = from_coroutine(client.get, "/posts/1", on_result=print)
    """

    def work_item(done: Continuation) -> None:
        task = asyncio.ensure_future(factory(*args, **kwargs))

        def _finished(fut: asyncio.Future[T]) -> None:
            if fut.cancelled():
                done(ItemError(f"{getattr(factory, '__name__', 'coroutine')} was cancelled"))
                return
            error = fut.exception()
            if error is not None:
                done(error)
                return
            if on_result is not None:
                try:
                    on_result(fut.result())
                except Exception as exc:
                    done(ItemError(f"on_result raised {type(exc).__name__}: {exc}", cause=exc))
                    return
            done()

        task.add_done_callback(_finished)

    work_item.__name__ = getattr(factory, "__name__", "work_item")
    return work_item


def with_timeout(item: WorkItem, seconds: float) -> WorkItem:
    """Give *item* a deadline.

    If *item* has not called its continuation within *seconds*, the
    continuation is called with :class:`ItemTimeoutError` and the item's
    own late call is dropped. The item itself keeps running; there is no
    way to abort it.

    Raises:
        ValueError: If seconds is negative.
    """
    if seconds < 0:
        raise ValueError(f"Timeout must be non-negative, got {seconds}")

    def work_item(done: Continuation) -> None:
        loop = asyncio.get_running_loop()
        settled = False

        def _settle(error: Any = None) -> None:
            nonlocal settled
            if settled:
                return
            settled = True
            timer.cancel()
            done(error)

        def _expire() -> None:
            if not settled:
                logger.warning("adapters.item_timed_out", timeout=seconds)
                _settle(ItemTimeoutError(seconds))

        def _inner_done(error: Any = None) -> None:
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                _settle(error)
            else:
                loop.call_soon_threadsafe(_settle, error)

        timer = loop.call_later(seconds, _expire)
        try:
            item(_inner_done)
        except Exception:
            timer.cancel()
            raise

    return work_item


async def run_sequence(
    tasks: Sequence[WorkItem],
    *,
    stop_on_error: bool = True,
    runner: SequentialTaskRunner | None = None,
) -> RunResult:
    """Run *tasks* sequentially and return the :class:`RunResult`.

    With ``stop_on_error`` (the default) the first reported error ends the
    run with status FAILED; otherwise errors are logged and skipped past.
    Errors are returned in the result, never raised.
    """
    runner = runner or SequentialTaskRunner()

    def _log_stop(error: Any, index: int) -> None:
        logger.info("adapters.sequence_stopped", index=index, error=repr(error))

    handle = runner.run(
        tasks,
        on_complete=lambda: None,
        on_error=_log_stop if stop_on_error else None,
    )
    return await handle

