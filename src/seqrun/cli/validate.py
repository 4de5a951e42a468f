"""
CLI: ``seqrun validate`` - check an HTML, CSS or SVG file with the W3C validators.
"""

from __future__ import annotations

from pathlib import Path

import typer

from seqrun.cli.utils import console, fail, print_json, print_table, setup
from seqrun.clients.w3c import KINDS, W3CValidator
from seqrun.core.errors import SeqrunError


def validate(
    kind: str = typer.Argument(..., help=f"Document kind: {', '.join(KINDS)}."),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    json_out: bool = typer.Option(False, "--json"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate a document and list the validator's findings."""
    setup(verbose)
    kind = kind.lower()
    if kind not in KINDS:
        fail(f"unknown document kind {kind!r}; choose from {', '.join(KINDS)}", code=2)

    document = path.read_text(encoding="utf-8")
    try:
        report = W3CValidator().validate(kind, document)
    except SeqrunError as exc:
        fail(exc)

    if json_out:
        print_json(report.to_dict())
    else:
        rows = [
            {"Severity": m.severity, "Line": m.line if m.line is not None else "", "Message": m.message}
            for m in report.messages
        ]
        print_table(rows, title=f"{path.name} ({kind})")
        verdict = "[green]valid[/green]" if report.valid else "[red]invalid[/red]"
        console.print(
            f"\n{verdict}: {len(report.errors)} error(s), {len(report.warnings)} warning(s)"
        )

    if not report.valid:
        raise typer.Exit(code=1)
