"""Common constants shared across the slippage monitor."""

from __future__ import annotations

from decimal import Decimal

DEFAULT_BASE_URL = "https://sodaxscan.com/api"
DEFAULT_BACKFILL_LIMIT = 150
DEFAULT_INCREMENTAL_LIMIT = 50
DEFAULT_DETAIL_CHUNK_SIZE = 5
DEFAULT_CHUNK_DELAY_SECONDS = 1.0
DEFAULT_POLL_INTERVAL_SECONDS = 10.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0

# Significant digits used for slippage division; wide enough for two
# 18-fractional-digit amounts without rounding before display.
SLIPPAGE_PRECISION = 60
PERCENT_SCALE = Decimal("100")
DISPLAY_PERCENT_PLACES = Decimal("0.0001")
