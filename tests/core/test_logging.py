"""Tests for structlog configuration and context binding."""

from __future__ import annotations

import json

import pytest
import structlog

from seqrun.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


def _json_lines(text: str) -> list[dict]:
    return [json.loads(line) for line in text.splitlines() if line.strip()]


class TestConfigureLogging:
    def test_json_output_goes_to_stderr(self, capsys):
        configure_logging(level="INFO", json_format=True, service="seqrun-test")
        get_logger("seqrun.tests").info("runner.run_started", run_id="abc", total=3)

        captured = capsys.readouterr()
        assert captured.out == ""
        [event] = _json_lines(captured.err)
        assert event["event"] == "runner.run_started"
        assert event["run_id"] == "abc"
        assert event["total"] == 3
        assert event["level"] == "info"
        assert event["service"] == "seqrun-test"
        assert "timestamp" in event

    def test_level_filters(self, capsys):
        configure_logging(level="WARNING", json_format=True)
        logger = get_logger(__name__)
        logger.info("dropped")
        logger.warning("kept")

        events = _json_lines(capsys.readouterr().err)
        assert [e["event"] for e in events] == ["kept"]

    def test_without_timestamp(self, capsys):
        configure_logging(level="INFO", json_format=True, add_timestamp=False)
        get_logger().info("no_time")
        [event] = _json_lines(capsys.readouterr().err)
        assert "timestamp" not in event

    def test_console_format(self, capsys):
        configure_logging(level="INFO", json_format=False)
        get_logger().info("console.event", key="value")
        err = capsys.readouterr().err
        assert "console.event" in err
        assert "key" in err

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(level="CHATTY")


class TestGetLogger:
    def test_named_logger_renders_name(self, capsys):
        configure_logging(level="INFO", json_format=True)
        get_logger("x").info("named.event", count=1)

        [event] = _json_lines(capsys.readouterr().err)
        assert event["event"] == "named.event"
        assert event["logger_name"] == "x"
        assert event["count"] == 1

    def test_unnamed_logger(self, capsys):
        configure_logging(level="INFO", json_format=True)
        get_logger().info("anonymous")

        [event] = _json_lines(capsys.readouterr().err)
        assert "logger_name" not in event

    def test_module_logger_follows_reconfiguration(self, capsys):
        logger = get_logger(__name__)
        configure_logging(level="ERROR", json_format=True)
        logger.warning("filtered")
        configure_logging(level="INFO", json_format=True)
        logger.info("emitted")

        events = _json_lines(capsys.readouterr().err)
        assert [e["event"] for e in events] == ["emitted"]
        assert events[0]["logger_name"] == __name__

    def test_package_imports(self):
        import importlib

        module = importlib.import_module("seqrun")
        assert module.SequentialTaskRunner is not None


class TestContextBinding:
    def test_bind_and_unbind(self, capsys):
        configure_logging(level="INFO", json_format=True)
        logger = get_logger()

        bind_context(run_id="r-1", technique="runner")
        logger.info("bound")
        unbind_context("technique")
        logger.info("partly_bound")
        clear_context()
        logger.info("cleared")

        bound, partly, cleared = _json_lines(capsys.readouterr().err)
        assert bound["run_id"] == "r-1" and bound["technique"] == "runner"
        assert partly["run_id"] == "r-1" and "technique" not in partly
        assert "run_id" not in cleared

    def test_log_context(self, capsys):
        configure_logging(level="INFO", json_format=True)
        with LogContext(technique="queue_drain"):
            get_logger().info("inside")
        get_logger().info("outside")

        inside, outside = _json_lines(capsys.readouterr().err)
        assert inside["technique"] == "queue_drain"
        assert "technique" not in outside

    @pytest.mark.asyncio
    async def test_async_log_context(self):
        async with LogContext(technique="runner"):
            assert structlog.contextvars.get_contextvars() == {"technique": "runner"}
        assert structlog.contextvars.get_contextvars() == {}
