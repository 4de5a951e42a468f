"""Benchmark harness - time sequencing techniques over the same workload.

WHY
───
Comparing ways of chaining asynchronous work items only means something
if every technique runs the same workload, one technique at a time, and
the results come back as values rather than being pushed onto a shared
list from inside callbacks.

ARCHITECTURE
────────────
::

    BenchmarkHarness(task_count, delay, settle)
      ├── make_tasks()        ─ fresh demo work items per technique
      ├── .run(techniques)    ─ one technique at a time, perf_counter timing
      └── BenchmarkReport     ─ results / fastest() / to_rows()

Example::

    harness = BenchmarkHarness(task_count=100, delay=0.01)
    report = await harness.run()
    print(report.fastest().technique)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from seqrun.bench.techniques import TECHNIQUES, Technique
from seqrun.core.logging import LogContext, get_logger
from seqrun.execution.runner import Continuation, WorkItem

logger = get_logger(__name__)


def make_tasks(
    count: int,
    delay: float,
    on_item: Callable[[int], Any] | None = None,
) -> list[WorkItem]:
    """Build *count* demo work items.

    Item ``i`` waits *delay* seconds on the event loop, reports ``i`` to
    *on_item*, then calls its continuation.
    """
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")

    def make(index: int) -> WorkItem:
        def task(done: Continuation) -> None:
            def finish() -> None:
                if on_item is not None:
                    on_item(index)
                done()

            asyncio.get_running_loop().call_later(delay, finish)

        task.__name__ = f"task_{index + 1}"
        return task

    return [make(i) for i in range(count)]


@dataclass(frozen=True)
class BenchmarkResult:
    """Timing of one technique."""

    technique: str
    seconds: float
    items: int
    """Work items that reported completion"""

    in_order: bool
    status: str = "completed"
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "completed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "technique": self.technique,
            "seconds": self.seconds,
            "items": self.items,
            "in_order": self.in_order,
            "status": self.status,
            "error": self.error,
        }


@dataclass
class BenchmarkReport:
    """Aggregate of one harness run."""

    task_count: int
    delay: float
    results: list[BenchmarkResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.succeeded)

    def fastest(self) -> BenchmarkResult | None:
        """Fastest successful technique, or ``None`` if none succeeded."""
        ok = [r for r in self.results if r.succeeded]
        return min(ok, key=lambda r: r.seconds) if ok else None

    def to_rows(self) -> list[dict[str, Any]]:
        """Rows for tabular output, in run order."""
        return [
            {
                "Technique": r.technique,
                "Time (ms)": round(r.seconds * 1000, 3),
                "Items": r.items,
                "In order": r.in_order,
                "Status": r.status,
            }
            for r in self.results
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_count": self.task_count,
            "delay": self.delay,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


class BenchmarkHarness:
    """Runs techniques one after another over identical workloads.

    Parameters
    ----------
    task_count : int
        Work items per technique (default 100).
    delay : float
        Seconds each work item waits before continuing (default 0.05).
    settle : float
        Pause between techniques (default 0.05).
    """

    def __init__(self, task_count: int = 100, delay: float = 0.05, settle: float = 0.05) -> None:
        if task_count < 0:
            raise ValueError(f"task_count must be non-negative, got {task_count}")
        if delay < 0 or settle < 0:
            raise ValueError("delay and settle must be non-negative")
        self.task_count = task_count
        self.delay = delay
        self.settle = settle

    async def run_one(self, technique: Technique) -> BenchmarkResult:
        """Time a single technique on a fresh workload."""
        seen: list[int] = []
        tasks = make_tasks(self.task_count, self.delay, on_item=seen.append)

        async with LogContext(technique=technique.name):
            logger.debug("bench.technique_started", items=len(tasks))
            start = time.perf_counter()
            try:
                await technique(tasks)
            except Exception as exc:
                elapsed = time.perf_counter() - start
                logger.warning("bench.technique_failed", error=repr(exc))
                return BenchmarkResult(
                    technique=technique.name,
                    seconds=elapsed,
                    items=len(seen),
                    in_order=seen == sorted(seen),
                    status="failed",
                    error=str(exc) or type(exc).__name__,
                )
            elapsed = time.perf_counter() - start
            logger.debug("bench.technique_completed", seconds=elapsed)

        return BenchmarkResult(
            technique=technique.name,
            seconds=elapsed,
            items=len(seen),
            in_order=seen == list(range(self.task_count)),
        )

    async def run(self, techniques: Iterable[Technique] | None = None) -> BenchmarkReport:
        """Run every technique (all built-ins by default) and collect a report."""
        selected: Sequence[Technique] = list(techniques) if techniques is not None else list(TECHNIQUES.values())
        report = BenchmarkReport(task_count=self.task_count, delay=self.delay)

        logger.info(
            "bench.start",
            techniques=[t.name for t in selected],
            task_count=self.task_count,
            delay=self.delay,
        )
        for position, technique in enumerate(selected):
            report.results.append(await self.run_one(technique))
            if self.settle and position < len(selected) - 1:
                await asyncio.sleep(self.settle)

        fastest = report.fastest()
        logger.info(
            "bench.complete",
            succeeded=report.succeeded,
            failed=report.failed,
            fastest=fastest.technique if fastest else None,
        )
        return report
