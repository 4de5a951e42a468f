"""
CLI: ``seqrun fetch`` - fetch JSON documents one after another.
"""

from __future__ import annotations

import asyncio
from typing import Any

import typer

from seqrun.cli.utils import console, err_console, print_dict, print_json, setup
from seqrun.clients.http import fetch_json
from seqrun.execution.models import RunResult
from seqrun.execution.runner import SequentialTaskRunner


async def fetch_all(urls: list[str], timeout: float) -> tuple[RunResult, list[tuple[str, Any]]]:
    """Fetch *urls* strictly in order, stopping at the first failure."""
    fetched: list[tuple[str, Any]] = []

    def collect(url: str):
        return lambda data: fetched.append((url, data))

    tasks = [fetch_json(url, collect(url), timeout=timeout) for url in urls]
    handle = SequentialTaskRunner().run(
        tasks,
        on_complete=lambda: None,
        on_error=lambda error, index: None,
    )
    return await handle, fetched


def fetch(
    urls: list[str] = typer.Argument(..., help="URLs returning JSON."),
    timeout: float | None = typer.Option(None, "--timeout", help="Per-request timeout in seconds."),
    json_out: bool = typer.Option(False, "--json"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """GET each URL in order and print its JSON body."""
    settings = setup(verbose)
    result, fetched = asyncio.run(fetch_all(urls, timeout or settings.http_timeout))

    if json_out:
        print_json({"run": result.to_dict(), "documents": [{"url": u, "data": d} for u, d in fetched]})
    else:
        for url, data in fetched:
            console.rule(url)
            if isinstance(data, dict):
                print_dict(data)
            else:
                console.print(data)

    if not result.succeeded:
        failed_url = urls[result.failed_index] if result.failed_index is not None else "?"
        err_console.print(f"[bold red]Error[/bold red]: {failed_url}: {result.error}")
        raise typer.Exit(code=1)
