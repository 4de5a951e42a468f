"""Tests for the seqrun CLI commands (bench, fetch, validate)."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from seqrun import __version__
from seqrun.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_settle(monkeypatch):
    monkeypatch.setenv("SEQRUN_BENCH_SETTLE", "0")


class FakeResponse:
    def __init__(self, payload, status: int = 200):
        self._body = json.dumps(payload).encode("utf-8")
        self.status = status

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False


# ── Root ────────────────────────────────────────────────────────────────


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"seqrun {__version__}" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("bench", "fetch", "validate"):
            assert command in result.output


# ── bench ───────────────────────────────────────────────────────────────


class TestBenchCommand:
    def test_json_report(self):
        result = runner.invoke(
            app, ["bench", "-n", "3", "-d", "0", "-t", "runner", "-t", "queue_drain", "--json"]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["task_count"] == 3
        assert [r["technique"] for r in data["results"]] == ["runner", "queue_drain"]
        assert all(r["in_order"] for r in data["results"])

    def test_table_output(self):
        result = runner.invoke(app, ["bench", "--tasks", "2", "--delay", "0"])
        assert result.exit_code == 0, result.output
        assert "Fastest" in result.output
        assert "runner" in result.output

    def test_settings_supply_defaults(self, monkeypatch):
        monkeypatch.setenv("SEQRUN_BENCH_TASKS", "4")
        monkeypatch.setenv("SEQRUN_BENCH_DELAY", "0")
        result = runner.invoke(app, ["bench", "-t", "deferred_await", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["results"][0]["items"] == 4

    def test_unknown_technique(self):
        result = runner.invoke(app, ["bench", "-t", "bogus"])
        assert result.exit_code == 1
        assert "unknown technique" in result.output

    def test_negative_task_count(self):
        result = runner.invoke(app, ["bench", "--tasks=-1"])
        assert result.exit_code == 1
        assert "non-negative" in result.output

    def test_invalid_settings(self, monkeypatch):
        monkeypatch.setenv("SEQRUN_BENCH_TASKS", "-5")
        result = runner.invoke(app, ["bench"])
        assert result.exit_code == 1
        assert "CONFIG" in result.output


# ── fetch ───────────────────────────────────────────────────────────────


class TestFetchCommand:
    def test_fetches_in_order(self):
        responses = [FakeResponse({"id": 1, "title": "first"}), FakeResponse({"id": 2, "title": "second"})]

        with patch("urllib.request.urlopen", side_effect=responses):
            result = runner.invoke(app, ["fetch", "https://api.test/1", "https://api.test/2", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["run"]["status"] == "completed"
        assert [d["url"] for d in data["documents"]] == ["https://api.test/1", "https://api.test/2"]
        assert data["documents"][1]["data"]["title"] == "second"

    def test_plain_output(self):
        with patch("urllib.request.urlopen", return_value=FakeResponse({"title": "hello"})):
            result = runner.invoke(app, ["fetch", "https://api.test/1"])
        assert result.exit_code == 0, result.output
        assert "hello" in result.output

    def test_stops_at_first_failure(self):
        import urllib.error

        failure = urllib.error.HTTPError("https://api.test/2", 404, "Not Found", {}, None)
        with patch(
            "urllib.request.urlopen",
            side_effect=[FakeResponse({"id": 1}), failure, FakeResponse({"id": 3})],
        ) as mock_open:
            result = runner.invoke(
                app, ["fetch", "https://api.test/1", "https://api.test/2", "https://api.test/3"]
            )

        assert result.exit_code == 1
        assert "https://api.test/2" in result.output
        assert "404" in result.output
        assert mock_open.call_count == 2


# ── validate ────────────────────────────────────────────────────────────


class TestValidateCommand:
    def test_valid_html(self, tmp_path):
        page = tmp_path / "index.html"
        page.write_text("<!DOCTYPE html><title>x</title>", encoding="utf-8")

        with patch("seqrun.clients.w3c.request_json", return_value={"messages": []}) as mock_request:
            result = runner.invoke(app, ["validate", "html", str(page)])

        assert result.exit_code == 0, result.output
        assert "valid" in result.output
        assert mock_request.call_args.kwargs["data"] == page.read_bytes()

    def test_invalid_css_exits_nonzero(self, tmp_path):
        sheet = tmp_path / "site.css"
        sheet.write_text("a { color: blurple }", encoding="utf-8")
        payload = {"cssvalidation": {"errors": [{"line": 1, "message": "bad color"}], "warnings": []}}

        with patch("seqrun.clients.w3c.request_json", return_value=payload):
            result = runner.invoke(app, ["validate", "CSS", str(sheet), "--json"])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["kind"] == "css"
        assert data["error_count"] == 1

    def test_unknown_kind(self, tmp_path):
        doc = tmp_path / "doc.xml"
        doc.write_text("<x/>", encoding="utf-8")
        result = runner.invoke(app, ["validate", "xml", str(doc)])
        assert result.exit_code == 2
        assert "unknown document kind" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", "html", str(tmp_path / "missing.html")])
        assert result.exit_code == 2

    def test_validator_unreachable(self, tmp_path):
        from seqrun.core.errors import FetchError

        doc = tmp_path / "a.svg"
        doc.write_text("<svg/>", encoding="utf-8")
        with patch("seqrun.clients.w3c.request_json", side_effect=FetchError("Failed to reach validator")):
            result = runner.invoke(app, ["validate", "svg", str(doc)])

        assert result.exit_code == 1
        assert "NETWORK" in result.output
