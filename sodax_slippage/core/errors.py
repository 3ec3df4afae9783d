"""Exception hierarchy for the slippage monitor."""

from __future__ import annotations


class SlippageMonitorError(Exception):
    """Base class for monitor errors."""


class MonitorError(SlippageMonitorError):
    """Raised when a refresh cycle fails outside the upstream client."""


class EventDecodeError(SlippageMonitorError):
    """Raised when an upstream payload cannot be decoded into raw events."""
