"""seqrun Execution - run continuation-passing work items strictly in order.

ARCHITECTURE
────────────
::

    WorkItem (callable taking one continuation)
      │
      ▼
    SequentialTaskRunner.run(tasks, on_complete, on_error)
      └── RunHandle  ─ cancel() / await → RunResult
            └── RunStatus  IDLE → RUNNING → COMPLETED | FAILED | CANCELLED
      │
      ▼
    Adapters
      ├── deferred        ─ work item → awaitable
      ├── from_coroutine  ─ async function → work item
      ├── with_timeout    ─ per-item watchdog
      └── run_sequence    ─ await a whole run

MODULE MAP
──────────
  1. models.py    ─ RunStatus, transitions, RunResult
  2. runner.py    ─ SequentialTaskRunner, RunHandle
  3. adapters.py  ─ asyncio bridges
"""

from seqrun.execution.adapters import deferred, from_coroutine, run_sequence, with_timeout
from seqrun.execution.models import (
    RUN_VALID_TRANSITIONS,
    TERMINAL_STATUSES,
    RunResult,
    RunStatus,
    validate_run_transition,
)
from seqrun.execution.runner import Continuation, RunHandle, SequentialTaskRunner, WorkItem, is_failure

__all__ = [
    "Continuation",
    "WorkItem",
    "RunHandle",
    "SequentialTaskRunner",
    "RunResult",
    "RunStatus",
    "RUN_VALID_TRANSITIONS",
    "TERMINAL_STATUSES",
    "validate_run_transition",
    "is_failure",
    "deferred",
    "from_coroutine",
    "run_sequence",
    "with_timeout",
]
