"""HTTP collaborators reached through work items: JSON fetches and W3C validators."""

from seqrun.clients.http import fetch_json, request_json
from seqrun.clients.w3c import (
    KINDS,
    ValidationMessage,
    ValidationReport,
    W3CValidator,
    parse_jigsaw_response,
    parse_nu_response,
)

__all__ = [
    "fetch_json",
    "request_json",
    "KINDS",
    "ValidationMessage",
    "ValidationReport",
    "W3CValidator",
    "parse_jigsaw_response",
    "parse_nu_response",
]
