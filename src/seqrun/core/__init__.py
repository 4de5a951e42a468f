"""Core primitives shared by every seqrun module: errors, logging, settings."""

from seqrun.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    FetchError,
    InvalidTransitionError,
    ItemError,
    ItemTimeoutError,
    MisuseError,
    SeqrunError,
    ValidatorError,
)
from seqrun.core.logging import LogContext, configure_logging, get_logger

__all__ = [
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "FetchError",
    "InvalidTransitionError",
    "ItemError",
    "ItemTimeoutError",
    "MisuseError",
    "SeqrunError",
    "ValidatorError",
    "LogContext",
    "configure_logging",
    "get_logger",
]
