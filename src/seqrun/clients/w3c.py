"""W3C validator client - HTML and SVG via the Nu checker, CSS via Jigsaw.

Architecture:
    ::

        W3CValidator
          ├── html(doc)  ─ POST text/html      → validator.w3.org/nu/?out=json
          ├── svg(doc)   ─ POST image/svg+xml  → validator.w3.org/nu/?out=json
          ├── css(doc)   ─ POST text=<doc>     → jigsaw.w3.org/css-validator
          └── as_work_item(kind, doc, on_report) ─ same call, as a work item

        Nu response    {"messages": [{"type": "error"|"info", "subType": ...}]}
        Jigsaw response {"cssvalidation": {"validity": ..., "errors": [...],
                                           "warnings": [...]}}

        both → ValidationReport(kind, valid, errors, warnings)

Examples:
    >>> validator = W3CValidator()
    >>> report = validator.html("<!DOCTYPE html><title>x</title>")
    >>> report.valid, len(report.errors)
    (True, 0)
"""

from __future__ import annotations

import asyncio
import urllib.parse
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from seqrun.clients.http import request_json
from seqrun.core.errors import MisuseError, ValidatorError
from seqrun.core.logging import get_logger
from seqrun.core.settings import get_settings
from seqrun.execution.runner import Continuation, WorkItem

logger = get_logger(__name__)

KINDS: tuple[str, ...] = ("html", "css", "svg")

_NU_CONTENT_TYPES = {
    "html": "text/html; charset=utf-8",
    "svg": "image/svg+xml; charset=utf-8",
}


@dataclass(frozen=True)
class ValidationMessage:
    """One finding reported by a validator."""

    severity: str  # "error" | "warning" | "info"
    message: str
    line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"severity": self.severity, "message": self.message, "line": self.line}


@dataclass
class ValidationReport:
    """Normalised validator result."""

    kind: str
    errors: list[ValidationMessage] = field(default_factory=list)
    warnings: list[ValidationMessage] = field(default_factory=list)
    infos: list[ValidationMessage] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> list[ValidationMessage]:
        return [*self.errors, *self.warnings, *self.infos]

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "valid": self.valid,
            "error_count": len(self.errors),
            "warning_count": len(self.warnings),
            "messages": [m.to_dict() for m in self.messages],
        }


def parse_nu_response(kind: str, payload: Any) -> ValidationReport:
    """Build a report from a Nu HTML checker JSON response."""
    if not isinstance(payload, dict) or not isinstance(payload.get("messages"), list):
        raise ValidatorError(f"Unexpected Nu checker response for {kind}")

    report = ValidationReport(kind=kind, raw=payload)
    for item in payload["messages"]:
        msg_type = item.get("type")
        line = item.get("lastLine")
        text = item.get("message", "")
        if msg_type == "error" or msg_type == "non-document-error":
            report.errors.append(ValidationMessage("error", text, line))
        elif msg_type == "info" and item.get("subType") == "warning":
            report.warnings.append(ValidationMessage("warning", text, line))
        else:
            report.infos.append(ValidationMessage("info", text, line))
    return report


def parse_jigsaw_response(payload: Any) -> ValidationReport:
    """Build a report from a Jigsaw CSS validator JSON response."""
    if not isinstance(payload, dict) or not isinstance(payload.get("cssvalidation"), dict):
        raise ValidatorError("Unexpected CSS validator response")

    body = payload["cssvalidation"]
    report = ValidationReport(kind="css", raw=payload)
    for item in body.get("errors", []):
        report.errors.append(ValidationMessage("error", item.get("message", "").strip(), item.get("line")))
    for item in body.get("warnings", []):
        report.warnings.append(ValidationMessage("warning", item.get("message", "").strip(), item.get("line")))
    return report


class W3CValidator:
    """Thin client for the public W3C validators.

    Endpoints and timeout default to :class:`~seqrun.core.settings.SeqrunSettings`.
    """

    def __init__(
        self,
        html_url: str | None = None,
        css_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self.html_url = html_url or settings.html_validator_url
        self.css_url = css_url or settings.css_validator_url
        self.timeout = timeout or settings.http_timeout

    def html(self, document: str) -> ValidationReport:
        return self._nu("html", document)

    def svg(self, document: str) -> ValidationReport:
        return self._nu("svg", document)

    def css(self, document: str) -> ValidationReport:
        body = urllib.parse.urlencode({"text": document}).encode("utf-8")
        payload = request_json(
            self.css_url,
            data=body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=self.timeout,
        )
        report = parse_jigsaw_response(payload)
        logger.debug("w3c.validated", kind="css", errors=len(report.errors))
        return report

    def validate(self, kind: str, document: str) -> ValidationReport:
        """Dispatch on *kind* (``html``, ``css`` or ``svg``)."""
        if kind not in KINDS:
            raise MisuseError(f"unknown document kind {kind!r}; choose from {', '.join(KINDS)}")
        return getattr(self, kind)(document)

    def as_work_item(
        self,
        kind: str,
        document: str,
        on_report: Callable[[ValidationReport], Any] | None = None,
    ) -> WorkItem:
        """Validation as a work item; the report goes to *on_report*.

        An invalid document is not an error: the continuation only receives
        an error when the validator could not be reached or answered badly.
        """
        if kind not in KINDS:
            raise MisuseError(f"unknown document kind {kind!r}; choose from {', '.join(KINDS)}")

        def work_item(done: Continuation) -> None:
            loop = asyncio.get_running_loop()
            future = loop.run_in_executor(None, self.validate, kind, document)

            def _finished(fut: asyncio.Future[ValidationReport]) -> None:
                if fut.cancelled():
                    done(ValidatorError(f"{kind} validation was cancelled"))
                    return
                error = fut.exception()
                if error is not None:
                    logger.warning("w3c.validation_failed", kind=kind, error=str(error))
                    done(error)
                    return
                if on_report is not None:
                    try:
                        on_report(fut.result())
                    except Exception as exc:
                        done(ValidatorError(f"on_report failed: {exc}", cause=exc))
                        return
                done()

            future.add_done_callback(_finished)

        work_item.__name__ = f"validate_{kind}"
        return work_item

    def _nu(self, kind: str, document: str) -> ValidationReport:
        payload = request_json(
            self.html_url,
            data=document.encode("utf-8"),
            headers={"Content-Type": _NU_CONTENT_TYPES[kind]},
            timeout=self.timeout,
        )
        report = parse_nu_response(kind, payload)
        logger.debug("w3c.validated", kind=kind, errors=len(report.errors))
        return report
