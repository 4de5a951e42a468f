"""Sequential Task Runner - run continuation-passing work items one at a time.

WHY
───
A work item here is any callable that accepts a single *continuation* and
calls it exactly once when its (usually asynchronous) work is done::

    def upload(done):
        loop.call_later(0.05, done)          # success
        # or: done(FetchError("boom"))       # failure

Chaining such items by hand ("call the next one from inside the previous
one's callback") grows the Python stack with every item that continues
synchronously and scatters completion/error handling over every call site.
:class:`SequentialTaskRunner` owns that chaining once.

ARCHITECTURE
────────────
::

    SequentialTaskRunner.run(tasks, on_complete, on_error)
      │   snapshot tasks → tuple, validate
      ▼
    RunHandle (one per run, owns all run state)
      ├── _step()     ─ scheduled with loop.call_soon
      │     └── tasks[i](continuation_i)
      ├── continuation_i(error=None)
      │     └── schedules _resume(i, error)      ← never recurses
      ├── _resume()   ─ count, error policy, then _step()
      ├── cancel()    ─ cooperative, absorbing
      └── wait()      ─ awaitable RunResult

    IDLE → RUNNING → COMPLETED | FAILED | CANCELLED   (terminal = absorbing)

Every step runs as its own event-loop callback, so stack depth stays
constant whatever the list length, including items that call their
continuation before returning.

Example::

    runner = SequentialTaskRunner()
    handle = runner.run(
        [fetch_a, fetch_b, fetch_c],
        on_complete=lambda: print("all done"),
        on_error=lambda err, index: print(f"item {index} failed: {err}"),
    )
    result = await handle          # RunResult
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

from seqrun.core.errors import ItemError, MisuseError
from seqrun.core.logging import get_logger
from seqrun.execution.models import RunResult, RunStatus, validate_run_transition

logger = get_logger(__name__)


class Continuation(Protocol):
    """Callback a work item calls exactly once.

    An exception instance or any other truthy value signals failure;
    no argument, ``None`` or another falsy value signals success.
    """

    def __call__(self, error: Any = None) -> None: ...


WorkItem = Callable[[Continuation], Any]
CompletionCallback = Callable[[], Any]
ErrorCallback = Callable[[Any, int], Any]


def is_failure(error: Any) -> bool:
    """Whether a continuation argument reports a failure."""
    return isinstance(error, BaseException) or bool(error)


def _on_loop(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False


def _snapshot(tasks: Any) -> tuple[WorkItem, ...]:
    """Validate *tasks* and freeze it so later caller mutation is not observed."""
    if isinstance(tasks, str | bytes | bytearray) or not isinstance(tasks, Sequence):
        if callable(tasks):
            raise MisuseError(
                "run() takes a sequence of work items, not a single work item; "
                "wrap it in a list"
            )
        raise MisuseError(
            f"run() takes a sequence of work items, got {type(tasks).__name__}"
        )
    items = tuple(tasks)
    for index, item in enumerate(items):
        if not callable(item):
            raise MisuseError(
                f"work item {index} is not callable ({type(item).__name__})"
            ).with_context(index=index)
    return items


class _ItemContinuation:
    """The continuation handed to one work item. Fires at most once."""

    __slots__ = ("_handle", "_index", "fired")

    def __init__(self, handle: RunHandle, index: int) -> None:
        self._handle = handle
        self._index = index
        self.fired = False

    def __call__(self, error: Any = None) -> None:
        if self.fired:
            logger.warning(
                "runner.continuation_refired",
                run_id=self._handle.run_id,
                index=self._index,
            )
            return
        self.fired = True
        self._handle._schedule(self._handle._resume, self._index, error)

    def __repr__(self) -> str:
        return f"<continuation run={self._handle.run_id[:8]} index={self._index} fired={self.fired}>"


class RunHandle:
    """Caller-facing handle for one sequential run.

    Created by :meth:`SequentialTaskRunner.run`; never constructed directly.
    All state lives here, so concurrent runs never share counters.
    The handle is not thread-safe: call :meth:`cancel` from the loop's
    thread. Continuations, however, may be called from any thread.
    """

    def __init__(
        self,
        tasks: tuple[WorkItem, ...],
        on_complete: CompletionCallback,
        on_error: ErrorCallback | None,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self.run_id = str(uuid.uuid4())
        self._tasks = tasks
        self._on_complete = on_complete
        self._on_error = on_error
        self._loop = loop
        self._status = RunStatus.IDLE
        self._next_index = 0
        self._completed = 0
        self._started_at = datetime.now(UTC)
        self._result: RunResult | None = None
        self._future: asyncio.Future[RunResult] = loop.create_future()

    # ── Inspection ───────────────────────────────────────────────────

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def next_index(self) -> int:
        """Index of the next work item to invoke."""
        return self._next_index

    @property
    def total(self) -> int:
        return len(self._tasks)

    @property
    def is_terminal(self) -> bool:
        return self._status.is_terminal

    @property
    def result(self) -> RunResult | None:
        """The :class:`RunResult`, or ``None`` while the run is live."""
        return self._result

    # ── Control ──────────────────────────────────────────────────────

    def cancel(self) -> None:
        """Stop the run before its next item.

        An item already in flight is not interrupted; its continuation is
        accepted and ignored. Neither ``on_complete`` nor ``on_error`` fires.

        Raises:
            MisuseError: If the run already reached a terminal state.
        """
        if self._status.is_terminal:
            raise MisuseError(
                f"cannot cancel run {self.run_id}: already {self._status.value}"
            ).with_context(run_id=self.run_id)
        self._finish(RunStatus.CANCELLED)
        logger.info(
            "runner.run_cancelled",
            run_id=self.run_id,
            next_index=self._next_index,
            total=len(self._tasks),
        )

    async def wait(self) -> RunResult:
        """Wait for any terminal state and return the :class:`RunResult`."""
        return await asyncio.shield(self._future)

    def __await__(self):
        return self.wait().__await__()

    def __repr__(self) -> str:
        return (
            f"<RunHandle {self.run_id[:8]} {self._status.value} "
            f"{self._next_index}/{len(self._tasks)}>"
        )

    # ── Internals ────────────────────────────────────────────────────

    def _schedule(self, callback: Callable[..., Any], *args: Any) -> None:
        if _on_loop(self._loop):
            self._loop.call_soon(callback, *args)
        else:
            self._loop.call_soon_threadsafe(callback, *args)

    def _step(self) -> None:
        if self._status is RunStatus.IDLE:
            validate_run_transition(self._status, RunStatus.RUNNING)
            self._status = RunStatus.RUNNING
            logger.debug("runner.run_started", run_id=self.run_id, total=len(self._tasks))
        if self._status is not RunStatus.RUNNING:
            return

        if self._next_index >= len(self._tasks):
            self._finish(RunStatus.COMPLETED)
            self._invoke_callback(self._on_complete)
            return

        index = self._next_index
        self._next_index += 1
        continuation = _ItemContinuation(self, index)
        try:
            self._tasks[index](continuation)
        except Exception as exc:
            if continuation.fired:
                # Already reported through its continuation; that report stands.
                logger.warning(
                    "runner.item_raised_after_continuation",
                    run_id=self.run_id,
                    index=index,
                    error=repr(exc),
                )
                return
            continuation(
                ItemError(
                    f"work item {index} raised {type(exc).__name__}: {exc}",
                    index=index,
                    cause=exc,
                ).with_context(run_id=self.run_id)
            )

    def _resume(self, index: int, error: Any) -> None:
        if self._status is not RunStatus.RUNNING:
            logger.debug(
                "runner.late_continuation_ignored",
                run_id=self.run_id,
                index=index,
                status=self._status.value,
            )
            return
        self._completed += 1

        if is_failure(error):
            if self._on_error is not None:
                self._finish(RunStatus.FAILED, failed_index=index, error=error)
                self._invoke_callback(self._on_error, error, index)
                return
            logger.warning(
                "runner.item_error_ignored",
                run_id=self.run_id,
                index=index,
                error=repr(error),
            )

        self._step()

    def _finish(
        self,
        status: RunStatus,
        *,
        failed_index: int | None = None,
        error: Any = None,
    ) -> None:
        validate_run_transition(self._status, status)
        self._status = status
        self._result = RunResult(
            run_id=self.run_id,
            status=status,
            total=len(self._tasks),
            started=self._next_index,
            completed=self._completed,
            started_at=self._started_at,
            finished_at=datetime.now(UTC),
            failed_index=failed_index,
            error=error,
        )
        if not self._future.done():
            if _on_loop(self._loop):
                self._future.set_result(self._result)
            else:
                self._loop.call_soon_threadsafe(self._resolve_future)
        logger.debug(
            "runner.run_finished",
            run_id=self.run_id,
            status=status.value,
            completed=self._completed,
            total=len(self._tasks),
        )

    def _resolve_future(self) -> None:
        if not self._future.done() and self._result is not None:
            self._future.set_result(self._result)

    def _invoke_callback(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception(
                "runner.callback_failed",
                run_id=self.run_id,
                status=self._status.value,
            )


class SequentialTaskRunner:
    """Runs lists of work items strictly one after another.

    The runner itself is stateless; every :meth:`run` call returns a fresh
    :class:`RunHandle`, so one runner can drive any number of concurrent,
    independent runs.

    Parameters
    ----------
    loop : asyncio.AbstractEventLoop, optional
        Loop to schedule steps on. Defaults to the running loop at the
        time :meth:`run` is called.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def run(
        self,
        tasks: Sequence[WorkItem],
        on_complete: CompletionCallback,
        on_error: ErrorCallback | None = None,
    ) -> RunHandle:
        """Start running *tasks* in order.

        Nothing is invoked synchronously: the first item (or, for an empty
        list, ``on_complete``) runs on the next loop iteration.

        Args:
            tasks: Sequence of work items, executed in list order.
            on_complete: Called once after the last item's continuation.
            on_error: Called once as ``on_error(error, index)`` when an item
                reports an error; the run stops. If omitted, item errors
                are logged and the run carries on.

        Returns:
            :class:`RunHandle` for cancelling and awaiting the run.

        Raises:
            MisuseError: *tasks* is not a sequence of callables, a callback
                is not callable, or no event loop is available.
        """
        items = _snapshot(tasks)
        if not callable(on_complete):
            raise MisuseError("on_complete must be callable")
        if on_error is not None and not callable(on_error):
            raise MisuseError("on_error must be callable or None")

        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise MisuseError(
                    "run() needs a running event loop; call it from async code "
                    "or pass loop= to SequentialTaskRunner"
                ) from exc
        if loop.is_closed():
            raise MisuseError("the runner's event loop is closed")

        handle = RunHandle(items, on_complete, on_error, loop)
        handle._schedule(handle._step)
        return handle


__all__ = [
    "Continuation",
    "WorkItem",
    "RunHandle",
    "SequentialTaskRunner",
    "is_failure",
]
