"""Tests for the polling monitor."""

from __future__ import annotations

import json

import pytest

from sodax_slippage.core.config import MonitorConfig
from sodax_slippage.core.errors import MonitorError
from sodax_slippage.core.telemetry import DiagnosticEvent, TelemetryReporter
from sodax_slippage.engine import ReconciliationEngine
from sodax_slippage.models import MessageSummary, RawEvent
from sodax_slippage.service import SlippageMonitor


class StubClient:
    """Serves the newest ``limit`` events from a fixed feed."""

    def __init__(self, events: list[RawEvent]) -> None:
        self.events = events
        self.limits: list[int] = []
        self.fail_with: Exception | None = None
        self.failures_remaining = 0

    async def fetch_latest_messages(self, limit: int = 20) -> list[MessageSummary]:
        self.limits.append(limit)
        newest = sorted(self.events, key=lambda event: event.id, reverse=True)[:limit]
        return [
            MessageSummary(id=e.id, sn=e.sn, action_type=e.action_type, created_at=e.created_at)
            for e in newest
        ]

    async def fetch_message_details_batch(self, ids: list[int]) -> list[RawEvent]:
        if self.fail_with is not None and self.failures_remaining != 0:
            self.failures_remaining -= 1
            raise self.fail_with
        by_id = {event.id: event for event in self.events}
        return [by_id[i] for i in ids]


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[DiagnosticEvent] = []

    def emit(self, event: DiagnosticEvent) -> None:
        self.events.append(event)


def _monitor(client: StubClient, **kwargs: object) -> SlippageMonitor:
    return SlippageMonitor(
        client,  # type: ignore[arg-type]
        ReconciliationEngine(),
        backfill_limit=150,
        incremental_limit=50,
        poll_interval=0,
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.mark.asyncio
async def test_first_refresh_backfills_then_incremental(make_event) -> None:
    client = StubClient([make_event(1, "CreateIntent 100 USDC(arbitrum) -> 10 AVAX(avax)", "1000")])
    monitor = _monitor(client)

    first = await monitor.refresh()
    assert monitor.initialized
    assert first.stats is None
    assert first.intents[0].status.value == "pending"

    client.events.append(make_event(2, "IntentFilled 100 USDC(arbitrum) -> 9.5 AVAX(avax)", "1010"))
    second = await monitor.refresh()

    assert client.limits == [150, 50]
    assert len(second.intents) == 1
    assert second.stats is not None
    assert second.stats.to_dict()["avgPct"] == "-5"
    assert second.batch is not None
    assert second.batch.matched == 1
    assert second.batch.duplicates == 1


@pytest.mark.asyncio
async def test_snapshot_serializes_like_api_response(make_event) -> None:
    client = StubClient(
        [
            make_event(1, "CreateIntent 100 USDC(arbitrum) -> 10 AVAX(avax)", "1000"),
            make_event(2, "IntentFilled 100 USDC(arbitrum) -> 9.5 AVAX(avax)", "1010"),
        ]
    )
    monitor = _monitor(client, explorer_urls={"avax": "https://snowtrace.io/tx/{tx}"})

    snapshot = await monitor.refresh()
    payload = json.loads(json.dumps(snapshot.to_dict()))

    assert set(payload) == {"stats", "intents", "explorerUrls", "lastUpdated"}
    assert payload["stats"] == {"count": 1, "avgPct": "-5", "maxPct": "-5", "minPct": "-5"}
    assert payload["intents"][0]["slippage"] == {"abs": "-0.5", "pct": "-5"}
    assert payload["explorerUrls"] == {"avax": "https://snowtrace.io/tx/{tx}"}


@pytest.mark.asyncio
async def test_empty_fetch_preserves_state(make_event) -> None:
    client = StubClient([make_event(1, "CreateIntent 100 USDC(arbitrum) -> 10 AVAX(avax)")])
    monitor = _monitor(client)
    await monitor.refresh()

    client.events = []
    snapshot = await monitor.refresh()

    assert len(snapshot.intents) == 1
    assert snapshot.batch is not None and snapshot.batch.received == 0


@pytest.mark.asyncio
async def test_unexpected_failure_raises_monitor_error(make_event) -> None:
    client = StubClient([make_event(1, "CreateIntent 100 USDC(arbitrum) -> 10 AVAX(avax)")])
    client.fail_with = RuntimeError("boom")
    client.failures_remaining = -1
    sink = RecordingSink()
    monitor = _monitor(client, telemetry=TelemetryReporter(sink))

    with pytest.raises(MonitorError):
        await monitor.refresh()

    assert not monitor.initialized
    assert sink.events[0].level == "ERROR"
    assert sink.events[0].context == {"mode": "backfill", "error": "boom"}


@pytest.mark.asyncio
async def test_run_continues_after_failed_cycle(make_event) -> None:
    client = StubClient([make_event(1, "CreateIntent 100 USDC(arbitrum) -> 10 AVAX(avax)")])
    client.fail_with = RuntimeError("transient")
    client.failures_remaining = 1
    monitor = _monitor(client)
    seen = []

    await monitor.run(iterations=2, on_snapshot=seen.append)

    assert len(seen) == 1
    # the failed cycle never completed the backfill, so it is retried
    assert client.limits == [150, 150]
    assert len(seen[0].intents) == 1


def test_from_config_wires_limits() -> None:
    config = MonitorConfig(backfill_limit=20, incremental_limit=5, explorer_urls={"a": "b"})

    monitor = SlippageMonitor.from_config(config, client=StubClient([]))  # type: ignore[arg-type]

    assert monitor._backfill_limit == 20
    assert monitor._incremental_limit == 5
    assert monitor.snapshot().explorer_urls == {"a": "b"}


@pytest.mark.asyncio
async def test_empty_refresh_reports_warning() -> None:
    sink = RecordingSink()
    monitor = _monitor(StubClient([]), telemetry=TelemetryReporter(sink))

    snapshot = await monitor.refresh()

    assert snapshot.intents == []
    assert [(event.level, event.message) for event in sink.events] == [
        ("WARNING", "refresh fetched no messages")
    ]
    assert sink.events[0].context == {"mode": "backfill"}
