"""Tests for telemetry utilities."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

from sodax_slippage.core.telemetry import (
    FileTelemetrySink,
    LogTelemetrySink,
    TelemetryReporter,
    build_telemetry_reporter,
)


def test_file_telemetry_sink_keeps_decimal_precision(tmp_path: Path) -> None:
    path = tmp_path / "telemetry.jsonl"
    reporter = TelemetryReporter(FileTelemetrySink(path))

    reporter.warning("wide slippage", context={"pct": Decimal("2.013718637961374849251")})

    record = json.loads(path.read_text(encoding="utf-8").strip())
    assert record["message"] == "wide slippage"
    assert record["level"] == "WARNING"
    assert record["context"]["pct"] == "2.013718637961374849251"


def test_file_telemetry_sink_appends_lines(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "telemetry.jsonl"
    reporter = TelemetryReporter(FileTelemetrySink(path))

    reporter.info("first", context={"ids": (1, 2)})
    reporter.error("second")

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["message"] for line in lines] == ["first", "second"]
    assert json.loads(lines[0])["context"] == {"ids": [1, 2]}
    assert json.loads(lines[1])["context"] is None


def test_build_telemetry_reporter_assembles_sinks(tmp_path: Path) -> None:
    reporter = build_telemetry_reporter(file_path=tmp_path / "t.jsonl")

    kinds = {type(sink) for sink in reporter._sinks}
    assert kinds == {LogTelemetrySink, FileTelemetrySink}


def test_reporter_defaults_to_log_sink() -> None:
    reporter = TelemetryReporter()

    assert [type(sink) for sink in reporter._sinks] == [LogTelemetrySink]
    reporter.info("hello")
