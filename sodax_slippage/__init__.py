"""SODAX Intent Slippage Monitor - pairs intent quotes with fills and measures slippage."""

__version__ = "0.1.0"

from sodax_slippage.client import SodaxClient
from sodax_slippage.core.config import MonitorConfig, load_config
from sodax_slippage.correlation import CorrelationIndex, IngestOutcome, MatchKey, match_key
from sodax_slippage.engine import BatchResult, ReconciliationEngine, retention_policy
from sodax_slippage.models import (
    Intent,
    IntentLeg,
    IntentStatus,
    LegKind,
    MessageSummary,
    ParsedLeg,
    RawEvent,
    Slippage,
    SlippageStats,
)
from sodax_slippage.parser import parse_action_detail
from sodax_slippage.service import MonitorSnapshot, SlippageMonitor

__all__ = [
    "SodaxClient",
    "MonitorConfig",
    "load_config",
    "CorrelationIndex",
    "IngestOutcome",
    "MatchKey",
    "match_key",
    "BatchResult",
    "ReconciliationEngine",
    "retention_policy",
    "Intent",
    "IntentLeg",
    "IntentStatus",
    "LegKind",
    "MessageSummary",
    "ParsedLeg",
    "RawEvent",
    "Slippage",
    "SlippageStats",
    "parse_action_detail",
    "MonitorSnapshot",
    "SlippageMonitor",
]
