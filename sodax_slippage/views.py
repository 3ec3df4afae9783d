"""Presentation helpers for reconciled intents.

Display rounding happens here and only here; the engine keeps full precision.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum

from rich.columns import Columns
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sodax_slippage.constants import DISPLAY_PERCENT_PLACES, SLIPPAGE_PRECISION
from sodax_slippage.models import (
    Intent,
    IntentLeg,
    IntentStatus,
    SlippageStats,
    activity_sort_key,
    format_decimal,
)

STATUS_STYLES = {
    IntentStatus.FILLED: "green",
    IntentStatus.PENDING: "yellow",
    IntentStatus.ORPHAN_FILL: "red",
}


class SortField(str, Enum):
    """Sort orders offered by the intents table."""

    TIME = "time"
    ABS = "abs"
    PCT = "pct"


def filter_intents(intents: Sequence[Intent], token: str | None) -> list[Intent]:
    """Keep intents whose quoted from- or to-token contains ``token`` (case-insensitive)."""
    if not token:
        return list(intents)
    needle = token.lower()
    selected = []
    for intent in intents:
        if intent.quote is None:
            continue
        tokens = (intent.quote.leg.from_token or "", intent.quote.leg.to_token or "")
        if any(needle in candidate.lower() for candidate in tokens):
            selected.append(intent)
    return selected


def sort_intents(intents: Sequence[Intent], field: SortField = SortField.TIME) -> list[Intent]:
    """Sort descending by activity time, absolute slippage, or percent slippage."""
    if field is SortField.TIME:
        return sorted(intents, key=lambda i: activity_sort_key(i.activity_timestamp), reverse=True)
    if field is SortField.ABS:
        return sorted(
            intents,
            key=lambda i: i.slippage.absolute if i.slippage is not None else Decimal(0),
            reverse=True,
        )
    return sorted(
        intents,
        key=lambda i: i.slippage.percent if i.slippage is not None else Decimal(0),
        reverse=True,
    )


def format_percent(value: Decimal) -> str:
    with localcontext() as ctx:
        ctx.prec = SLIPPAGE_PRECISION
        rounded = value.quantize(DISPLAY_PERCENT_PLACES, rounding=ROUND_HALF_UP)
    return f"{rounded}%"


def _describe_leg(leg: IntentLeg | None) -> str:
    if leg is None:
        return "-"
    parsed = leg.leg
    return (
        f"{format_decimal(parsed.from_amount)} {parsed.from_token}({parsed.from_chain}) -> "
        f"{format_decimal(parsed.to_amount)} {parsed.to_token}({parsed.to_chain})"
        if parsed.from_amount is not None and parsed.to_amount is not None
        else parsed.raw_text
    )


def render_intents_table(intents: Sequence[Intent], *, title: str = "Intent Slippage") -> Table:
    """Build a rich table with one row per intent."""
    table = Table(title=title, expand=True)
    table.add_column("Time", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Quote")
    table.add_column("Fill")
    table.add_column("Abs Diff", justify="right")
    table.add_column("% Diff", justify="right")

    for intent in intents:
        status = Text(intent.status.value, style=STATUS_STYLES[intent.status])
        if intent.slippage is not None:
            abs_diff = format_decimal(intent.slippage.absolute)
            pct = intent.slippage.percent
            pct_style = "green" if pct >= 0 else "red"
            pct_diff = Text(format_percent(pct), style=pct_style)
        else:
            abs_diff = "-"
            pct_diff = Text("-")
        table.add_row(
            intent.activity_timestamp or "-",
            status,
            _describe_leg(intent.quote),
            _describe_leg(intent.fill),
            abs_diff,
            pct_diff,
        )

    if not intents:
        table.add_row("-", "No intents", "", "", "", "")
    return table


def render_summary(stats: SlippageStats | None) -> Columns | Text:
    """Summary cards for the aggregate statistics."""
    if stats is None:
        return Text("No filled intents yet.", style="dim")
    cards = [
        ("Total Paired", str(stats.count)),
        ("Avg Slippage", format_percent(stats.average_percent)),
        ("Max Positive", format_percent(stats.max_percent)),
        ("Max Negative", format_percent(stats.min_percent)),
    ]
    return Columns(
        [Panel(Text(value, style="bold"), title=label, expand=True) for label, value in cards],
        equal=True,
        expand=True,
    )
