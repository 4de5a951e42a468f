"""
Root Typer application for the seqrun CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="seqrun",
    help="seqrun - run asynchronous work items one after another.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from seqrun import __version__

        typer.echo(f"seqrun {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """seqrun CLI - benchmark sequencing techniques, fetch and validate documents."""


# ── Commands ─────────────────────────────────────────────────────────────

from seqrun.cli.bench import bench  # noqa: E402
from seqrun.cli.fetch import fetch  # noqa: E402
from seqrun.cli.validate import validate  # noqa: E402

app.command("bench", help="Time sequencing techniques.")(bench)
app.command("fetch", help="Fetch JSON documents sequentially.")(fetch)
app.command("validate", help="Validate HTML, CSS or SVG with the W3C validators.")(validate)
