"""Tests for presentation helpers."""

from __future__ import annotations

from decimal import Decimal

from rich.console import Console

from sodax_slippage.engine import ReconciliationEngine
from sodax_slippage.views import (
    SortField,
    filter_intents,
    format_percent,
    render_intents_table,
    render_summary,
    sort_intents,
)


def _engine(make_event) -> ReconciliationEngine:
    engine = ReconciliationEngine()
    engine.ingest_batch(
        [
            make_event(1, "IntentSwap 1 ETH(base) -> 100 USDC(sonic)", "100"),
            make_event(2, "IntentFilled 1 ETH(base) -> 103 USDC(sonic)", "400"),
            make_event(3, "IntentSwap 10 SODA(sonic) -> 100 USDC(base)", "200"),
            make_event(4, "IntentFilled 10 SODA(sonic) -> 90 USDC(base)", "300"),
            make_event(5, "IntentFilled 5 AVAX(avax) -> 1 ETH(base)", "500"),
        ]
    )
    return engine


def test_filter_matches_quoted_tokens_case_insensitively(make_event) -> None:
    intents = _engine(make_event).list_intents()

    assert len(filter_intents(intents, "soda")) == 1
    assert len(filter_intents(intents, "usdc")) == 2
    # orphan fills carry no quote and never match a token filter
    assert filter_intents(intents, "avax") == []
    assert len(filter_intents(intents, None)) == 3


def test_sort_by_percent_and_abs(make_event) -> None:
    intents = _engine(make_event).list_intents()

    by_pct = [
        i.slippage.percent if i.slippage else None for i in sort_intents(intents, SortField.PCT)
    ]
    assert by_pct == [Decimal("3"), None, Decimal("-10")]

    by_abs = sort_intents(intents, SortField.ABS)
    assert by_abs[-1].slippage.absolute == Decimal("-10")

    by_time = [i.activity_timestamp for i in sort_intents(intents, SortField.TIME)]
    assert by_time == ["500", "400", "300"]


def test_format_percent_rounds_for_display() -> None:
    assert format_percent(Decimal("2.013718637961374849251")) == "2.0137%"
    assert format_percent(Decimal("-5")) == "-5.0000%"


def test_render_table_and_summary(make_event) -> None:
    engine = _engine(make_event)
    console = Console(record=True, width=200)

    console.print(render_summary(engine.compute_statistics()))
    console.print(render_intents_table(engine.list_intents()))
    output = console.export_text()

    assert "Total Paired" in output
    assert "orphan_fill" in output
    assert "-10.0000%" in output


def test_render_summary_without_stats() -> None:
    console = Console(record=True, width=120)
    console.print(render_summary(None))
    assert "No filled intents yet." in console.export_text()
