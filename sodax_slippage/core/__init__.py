"""Core infrastructure: configuration, telemetry, and errors."""

from sodax_slippage.core.config import MonitorConfig, load_config
from sodax_slippage.core.errors import EventDecodeError, MonitorError, SlippageMonitorError
from sodax_slippage.core.telemetry import (
    DiagnosticEvent,
    FileTelemetrySink,
    LogTelemetrySink,
    TelemetryReporter,
    TelemetrySink,
    build_telemetry_reporter,
)

__all__ = [
    "MonitorConfig",
    "load_config",
    "SlippageMonitorError",
    "MonitorError",
    "EventDecodeError",
    "DiagnosticEvent",
    "TelemetrySink",
    "LogTelemetrySink",
    "FileTelemetrySink",
    "TelemetryReporter",
    "build_telemetry_reporter",
]
