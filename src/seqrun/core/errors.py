"""
Structured error types for seqrun.

Every error raised by seqrun derives from :class:`SeqrunError` and carries a
category, an :class:`ErrorContext` and an optional chained cause, so callers
can log and route failures without parsing messages.

Manifesto:
    - **Typed hierarchy:** item failures, caller misuse and collaborator
      failures are different types
    - **Rich context:** errors carry run_id / index / url metadata
    - **Error chaining:** the original exception is kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                      SeqrunError                          │
        │            (category, context, cause)                     │
        ├──────────────────────────────────────────────────────────┤
        │  ItemError        MisuseError           ConfigError       │
        │  (EXECUTION)      (USAGE)               (CONFIG)          │
        │      │               │                                    │
        │  ItemTimeoutError  InvalidTransitionError                 │
        │                                                           │
        │  FetchError       ValidatorError                          │
        │  (NETWORK)        (SOURCE)                                │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> err = ItemError("upload failed", index=3)
    >>> err.index
    3
    >>> err.to_dict()["category"]
    'EXECUTION'

    >>> MisuseError("tasks must be a sequence").with_context(run_id="abc")
    MisuseError('tasks must be a sequence', category=USAGE)

Tags:
    error-handling, exception-hierarchy, error-context, seqrun
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    EXECUTION = "EXECUTION"  # A work item reported or raised a failure
    USAGE = "USAGE"          # Caller misuse of the runner API
    NETWORK = "NETWORK"      # HTTP transport, status codes
    SOURCE = "SOURCE"        # Upstream returned unusable data
    CONFIG = "CONFIG"        # Invalid settings
    INTERNAL = "INTERNAL"    # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that are set end up in :meth:`to_dict`, so the dict can be
    passed straight to a structured logger.

    Attributes:
        run_id: Identifier of the sequential run
        index: Position of the work item in the task list
        technique: Benchmark technique name
        url: URL that was being accessed
        http_status: HTTP status code if applicable
        metadata: Additional key-value pairs
    """

    run_id: str | None = None
    index: int | None = None
    technique: str | None = None
    url: str | None = None
    http_status: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["run_id", "index", "technique", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SeqrunError(Exception):
    """
    Base exception for all seqrun errors.

    Subclasses set ``default_category`` so a bare ``raise FetchError(msg)``
    is already classified.

    Examples:
        >>> error = SeqrunError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> try:
        ...     raise ConnectionError("DNS lookup failed")
        ... except ConnectionError as e:
        ...     error = SeqrunError("Network error", cause=e)
        >>> error.cause
        ConnectionError('DNS lookup failed')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SeqrunError:
        """
        Add context to this error (fluent API).

        Usage:
            raise FetchError("Failed").with_context(url="https://example.org")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = repr(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# EXECUTION ERRORS
# =============================================================================


class ItemError(SeqrunError):
    """
    A work item failed.

    Raised (or rather, constructed and handed to ``on_error``) when a work
    item raises while being invoked. Errors a work item reports through its
    own continuation are passed through untouched.
    """

    default_category = ErrorCategory.EXECUTION

    def __init__(self, message: str, *, index: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.index = index
        if index is not None:
            self.context.index = index


class ItemTimeoutError(ItemError):
    """A work item did not call its continuation before its deadline."""

    def __init__(self, timeout: float, *, index: int | None = None, **kwargs: Any):
        self.timeout = timeout
        super().__init__(f"work item did not continue within {timeout}s", index=index, **kwargs)


class MisuseError(SeqrunError):
    """The runner API was called incorrectly. Always a caller bug."""

    default_category = ErrorCategory.USAGE


class InvalidTransitionError(MisuseError):
    """Raised when a run status transition violates the state machine."""

    def __init__(self, current: str, target: str, enum_name: str = "RunStatus") -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid {enum_name} transition: {current} → {target}")


# =============================================================================
# COLLABORATOR ERRORS
# =============================================================================


class FetchError(SeqrunError):
    """HTTP request failed: transport error or non-2xx status."""

    default_category = ErrorCategory.NETWORK

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        http_status: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.url = url
        self.http_status = http_status
        if url is not None:
            self.context.url = url
        if http_status is not None:
            self.context.http_status = http_status


class ValidatorError(SeqrunError):
    """The W3C validator answered with something that is not a report."""

    default_category = ErrorCategory.SOURCE


class ConfigError(SeqrunError):
    """Settings could not be loaded or are invalid."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SeqrunError",
    "ItemError",
    "ItemTimeoutError",
    "MisuseError",
    "InvalidTransitionError",
    "FetchError",
    "ValidatorError",
    "ConfigError",
]
