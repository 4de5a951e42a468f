"""Run status and run results for sequential runs.

This module defines :class:`RunStatus` (the run state machine) and
:class:`RunResult` (the value a finished run hands back to its caller).

Manifesto:
    A run's outcome is a value, not a side effect.  Callers that time or
    aggregate runs read :class:`RunResult` from the handle instead of
    appending to shared, process-wide lists.

Tags:
    seqrun, execution, run-status, state-machine, run-result
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from seqrun.core.errors import InvalidTransitionError


class RunStatus(str, Enum):
    """Status of one sequential run - the canonical state machine.

    Valid transition graph::

        IDLE      → RUNNING | CANCELLED
        RUNNING   → COMPLETED | FAILED | CANCELLED
        COMPLETED → (terminal)
        FAILED    → (terminal)
        CANCELLED → (terminal)
    """

    IDLE = "idle"  # Handle created, first step not yet scheduled
    RUNNING = "running"  # Invoking items one at a time
    COMPLETED = "completed"  # Every item's continuation accepted
    FAILED = "failed"  # An item reported an error and on_error was set
    CANCELLED = "cancelled"  # Stopped by RunHandle.cancel()

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[RunStatus] = frozenset({
    RunStatus.COMPLETED,
    RunStatus.FAILED,
    RunStatus.CANCELLED,
})


# --- RunStatus transition rules ---

RUN_VALID_TRANSITIONS: dict[RunStatus, frozenset[RunStatus]] = {
    RunStatus.IDLE: frozenset({
        RunStatus.RUNNING,
        RunStatus.CANCELLED,
    }),
    RunStatus.RUNNING: frozenset({
        RunStatus.COMPLETED,
        RunStatus.FAILED,
        RunStatus.CANCELLED,
    }),
    RunStatus.COMPLETED: frozenset(),  # terminal
    RunStatus.FAILED: frozenset(),  # terminal
    RunStatus.CANCELLED: frozenset(),  # terminal
}


def validate_run_transition(current: RunStatus, target: RunStatus) -> None:
    """Raise :class:`InvalidTransitionError` if *current → target* is illegal.

    Example:
        >>> validate_run_transition(RunStatus.RUNNING, RunStatus.COMPLETED)
        >>> validate_run_transition(RunStatus.COMPLETED, RunStatus.RUNNING)
        Traceback (most recent call last):
        ...
        InvalidTransitionError: Invalid RunStatus transition: completed → running
    """
    allowed = RUN_VALID_TRANSITIONS.get(current, frozenset())
    if target not in allowed:
        raise InvalidTransitionError(current.value, target.value, "RunStatus")


@dataclass(frozen=True)
class RunResult:
    """Outcome of a sequential run, produced once the run is terminal.

    Example:
        >>> result = await runner.run(tasks, on_complete=lambda: None).wait()
        >>> result.status, result.completed, result.duration_seconds
        (<RunStatus.COMPLETED: 'completed'>, 3, 0.15...)
    """

    run_id: str
    status: RunStatus
    total: int
    started: int
    """Number of work items that were invoked"""

    completed: int
    """Number of continuations the runner accepted"""

    started_at: datetime
    finished_at: datetime
    failed_index: int | None = None
    error: Any = None
    """Value the failing work item reported, usually an exception"""

    @property
    def duration_seconds(self) -> float:
        """Wall-clock duration of the run."""
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        """Serialise for logging / CLI output."""
        data: dict[str, Any] = {
            "run_id": self.run_id,
            "status": self.status.value,
            "total": self.total,
            "started": self.started,
            "completed": self.completed,
            "duration_seconds": self.duration_seconds,
        }
        if self.failed_index is not None:
            data["failed_index"] = self.failed_index
        if self.error is not None:
            data["error"] = str(self.error) or type(self.error).__name__
        return data
