"""
seqrun - sequential asynchronous task runner.

Runs lists of continuation-passing work items one at a time, in order,
on an asyncio event loop, and ships a benchmark harness, HTTP work items
and a CLI built on top of it.
"""

__version__ = "0.1.0"

from seqrun.core.errors import ItemError, MisuseError, SeqrunError
from seqrun.execution import (
    RunHandle,
    RunResult,
    RunStatus,
    SequentialTaskRunner,
    deferred,
    from_coroutine,
    run_sequence,
    with_timeout,
)

__all__ = [
    "__version__",
    "ItemError",
    "MisuseError",
    "SeqrunError",
    "RunHandle",
    "RunResult",
    "RunStatus",
    "SequentialTaskRunner",
    "deferred",
    "from_coroutine",
    "run_sequence",
    "with_timeout",
]
