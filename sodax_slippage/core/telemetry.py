"""Diagnostic events for the slippage monitor.

Refresh failures, empty fetches and batch outcomes are reported here in
addition to the regular log, so they can be collected as JSON lines.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from loguru import logger


@dataclass(frozen=True, slots=True)
class DiagnosticEvent:
    """One monitor diagnostic: level, message and optional context."""

    level: str
    message: str
    timestamp: datetime
    context: dict[str, object] | None = None

    def to_record(self) -> dict[str, object]:
        return {
            "level": self.level,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context,
        }


class TelemetrySink(Protocol):
    def emit(self, event: DiagnosticEvent) -> None: ...


class LogTelemetrySink:
    """Forward diagnostics to loguru."""

    def emit(self, event: DiagnosticEvent) -> None:
        logger.log(event.level, "[telemetry] {} {}", event.message, event.context or "")


class FileTelemetrySink:
    """Append diagnostics to a JSON lines file.

    Values JSON cannot encode, decimals included, are written as strings so
    amounts and percentages keep every digit.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, event: DiagnosticEvent) -> None:
        line = json.dumps(event.to_record(), separators=(",", ":"), default=str)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")


class TelemetryReporter:
    """Fan diagnostics out to sinks; logs only when none are given."""

    def __init__(self, *sinks: TelemetrySink) -> None:
        self._sinks: list[TelemetrySink] = list(sinks) or [LogTelemetrySink()]

    def info(self, message: str, *, context: dict[str, object] | None = None) -> None:
        self._emit("INFO", message, context)

    def warning(self, message: str, *, context: dict[str, object] | None = None) -> None:
        self._emit("WARNING", message, context)

    def error(self, message: str, *, context: dict[str, object] | None = None) -> None:
        self._emit("ERROR", message, context)

    def _emit(self, level: str, message: str, context: dict[str, object] | None) -> None:
        event = DiagnosticEvent(level, message, datetime.now(tz=UTC), context)
        for sink in self._sinks:
            sink.emit(event)


def build_telemetry_reporter(
    *,
    log_sink: bool = True,
    file_path: Path | None = None,
) -> TelemetryReporter:
    sinks: list[TelemetrySink] = []
    if log_sink:
        sinks.append(LogTelemetrySink())
    if file_path is not None:
        sinks.append(FileTelemetrySink(file_path))
    return TelemetryReporter(*sinks)
