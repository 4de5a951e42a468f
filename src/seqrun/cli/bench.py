"""
CLI: ``seqrun bench`` - time sequencing techniques over the same workload.
"""

from __future__ import annotations

import asyncio

import typer

from seqrun.bench import TECHNIQUES, BenchmarkHarness, get_technique
from seqrun.cli.utils import console, fail, print_json, print_table, setup
from seqrun.core.errors import SeqrunError


def bench(
    tasks: int | None = typer.Option(None, "--tasks", "-n", help="Work items per technique."),
    delay: float | None = typer.Option(None, "--delay", "-d", help="Seconds each item waits."),
    technique: list[str] | None = typer.Option(
        None, "--technique", "-t", help=f"Technique(s) to run: {', '.join(TECHNIQUES)}."
    ),
    json_out: bool = typer.Option(False, "--json"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Run each technique one after another and print a timing table."""
    settings = setup(verbose)
    try:
        selected = [get_technique(name) for name in technique] if technique else None
        harness = BenchmarkHarness(
            task_count=settings.bench_tasks if tasks is None else tasks,
            delay=settings.bench_delay if delay is None else delay,
            settle=settings.bench_settle,
        )
    except SeqrunError as exc:
        fail(exc)
    except ValueError as exc:
        fail(str(exc))

    report = asyncio.run(harness.run(selected))

    if json_out:
        print_json(report.to_dict())
    else:
        print_table(report.to_rows(), title=f"{report.task_count} tasks × {report.delay}s")
        fastest = report.fastest()
        if fastest is not None:
            console.print(f"\n[green]Fastest:[/green] {fastest.technique} ({fastest.seconds * 1000:.1f} ms)")

    if report.failed:
        raise typer.Exit(code=1)
