"""
Shared pytest fixtures and configuration for seqrun tests.

This module provides:
- Logging configured once, quietly, for the whole session
- Settings cache isolation between tests
- Work item builders used across the execution and bench tests

Usage:
    Fixtures are auto-discovered by pytest. Simply use them as function
    arguments (pytest injects them automatically).
"""

import asyncio
import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

# Ensure seqrun package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from seqrun.core.logging import clear_context, configure_logging
from seqrun.core.settings import get_settings
from seqrun.execution.runner import SequentialTaskRunner


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark all tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def quiet_logging() -> Generator[None, None, None]:
    """Only warnings and above, rendered as JSON to stderr."""
    configure_logging(level="WARNING", json_format=True)
    yield
    clear_context()


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop cached settings and any SEQRUN_* variables from the environment."""
    import os

    for key in list(os.environ):
        if key.startswith("SEQRUN_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Work Item Builders
# =============================================================================


class Recorder:
    """Collects what a run did, in order."""

    def __init__(self) -> None:
        self.invoked: list[int] = []
        self.completed = 0
        self.errors: list[tuple[object, int]] = []

    def on_complete(self) -> None:
        self.completed += 1

    def on_error(self, error: object, index: int) -> None:
        self.errors.append((error, index))

    def sync_item(self, index: int, error: object = None) -> Callable:
        """Work item that continues before returning."""

        def item(done) -> None:
            self.invoked.append(index)
            done(error)

        return item

    def soon_item(self, index: int, error: object = None) -> Callable:
        """Work item that continues on the next loop iteration."""

        def item(done) -> None:
            self.invoked.append(index)
            asyncio.get_running_loop().call_soon(done, error)

        return item

    def later_item(self, index: int, delay: float, error: object = None) -> Callable:
        """Work item that continues after *delay* seconds."""

        def item(done) -> None:
            self.invoked.append(index)
            asyncio.get_running_loop().call_later(delay, done, error)

        return item


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def runner() -> SequentialTaskRunner:
    return SequentialTaskRunner()
