"""Polling orchestration: fetch from the indexer, reconcile, snapshot."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from sodax_slippage.client import SodaxClient
from sodax_slippage.constants import DEFAULT_POLL_INTERVAL_SECONDS
from sodax_slippage.core.config import MonitorConfig
from sodax_slippage.core.errors import MonitorError
from sodax_slippage.core.telemetry import TelemetryReporter
from sodax_slippage.engine import BatchResult, ReconciliationEngine
from sodax_slippage.models import Intent, SlippageStats


@dataclass(frozen=True)
class MonitorSnapshot:
    """Point-in-time view of the reconciled intents."""

    stats: SlippageStats | None
    intents: list[Intent]
    last_updated: datetime
    explorer_urls: dict[str, str] = field(default_factory=dict)
    batch: BatchResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stats": self.stats.to_dict() if self.stats is not None else None,
            "intents": [intent.to_dict() for intent in self.intents],
            "explorerUrls": dict(self.explorer_urls),
            "lastUpdated": self.last_updated.isoformat(),
        }


def build_snapshot(
    engine: ReconciliationEngine,
    *,
    explorer_urls: dict[str, str] | None = None,
    batch: BatchResult | None = None,
) -> MonitorSnapshot:
    """Capture the engine's current intents and statistics."""
    return MonitorSnapshot(
        stats=engine.compute_statistics(),
        intents=engine.list_intents(),
        last_updated=datetime.now(UTC),
        explorer_urls=dict(explorer_urls or {}),
        batch=batch,
    )


class SlippageMonitor:
    """Drives backfill and incremental refreshes into a reconciliation engine.

    The first refresh pulls a larger page so that quotes created before
    startup can still be paired; later refreshes pull a smaller page.
    """

    def __init__(
        self,
        client: SodaxClient,
        engine: ReconciliationEngine,
        *,
        backfill_limit: int,
        incremental_limit: int,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        explorer_urls: dict[str, str] | None = None,
        telemetry: TelemetryReporter | None = None,
    ) -> None:
        self._client = client
        self._engine = engine
        self._backfill_limit = backfill_limit
        self._incremental_limit = incremental_limit
        self._poll_interval = poll_interval
        self._explorer_urls = dict(explorer_urls or {})
        self._telemetry = telemetry
        self._initialized = False

    @classmethod
    def from_config(
        cls,
        config: MonitorConfig,
        *,
        client: SodaxClient | None = None,
        engine: ReconciliationEngine | None = None,
        telemetry: TelemetryReporter | None = None,
    ) -> SlippageMonitor:
        return cls(
            client if client is not None else SodaxClient.from_config(config),
            engine if engine is not None else ReconciliationEngine(telemetry=telemetry),
            backfill_limit=config.backfill_limit,
            incremental_limit=config.incremental_limit,
            poll_interval=config.poll_interval_seconds,
            explorer_urls=config.explorer_urls,
            telemetry=telemetry,
        )

    @property
    def engine(self) -> ReconciliationEngine:
        return self._engine

    @property
    def initialized(self) -> bool:
        """True once the startup backfill has been ingested."""
        return self._initialized

    async def refresh(self) -> MonitorSnapshot:
        """Fetch the latest messages, reconcile them, and return a snapshot."""
        limit = self._incremental_limit if self._initialized else self._backfill_limit
        mode = "incremental" if self._initialized else "backfill"
        try:
            summaries = await self._client.fetch_latest_messages(limit)
            events = await self._client.fetch_message_details_batch(
                [summary.id for summary in summaries]
            )
            batch = self._engine.ingest_batch(events)
        except Exception as exc:
            logger.exception("Refresh failed during {}", mode)
            if self._telemetry is not None:
                self._telemetry.error("refresh failed", context={"mode": mode, "error": str(exc)})
            raise MonitorError(f"{mode} refresh failed: {exc}") from exc

        self._initialized = True
        if not summaries and self._telemetry is not None:
            self._telemetry.warning("refresh fetched no messages", context={"mode": mode})
        logger.debug(
            "{} refresh fetched {} details for {} summaries", mode, len(events), len(summaries)
        )
        return build_snapshot(self._engine, explorer_urls=self._explorer_urls, batch=batch)

    def snapshot(self) -> MonitorSnapshot:
        """Current state without fetching."""
        return build_snapshot(self._engine, explorer_urls=self._explorer_urls)

    async def run(
        self,
        *,
        iterations: int | None = None,
        on_snapshot: Callable[[MonitorSnapshot], None] | None = None,
    ) -> None:
        """Refresh repeatedly, sleeping ``poll_interval`` between cycles.

        A failed cycle is logged and the loop carries on with the next poll.
        """
        completed = 0
        while iterations is None or completed < iterations:
            try:
                snapshot = await self.refresh()
            except MonitorError as exc:
                logger.warning("Skipping snapshot after failed refresh: {}", exc)
            else:
                if on_snapshot is not None:
                    on_snapshot(snapshot)
            completed += 1
            if iterations is not None and completed >= iterations:
                break
            await asyncio.sleep(self._poll_interval)
