"""Reconciliation engine wrapping the correlation index."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from decimal import Decimal, localcontext
from threading import Lock

from loguru import logger

from sodax_slippage.constants import SLIPPAGE_PRECISION
from sodax_slippage.core.telemetry import TelemetryReporter
from sodax_slippage.correlation import CorrelationIndex, IngestOutcome
from sodax_slippage.models import (
    Intent,
    IntentStatus,
    RawEvent,
    SlippageStats,
    activity_sort_key,
)

PruningPolicy = Callable[[Intent], bool]


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Per-outcome counts for one ingested batch."""

    received: int = 0
    created: int = 0
    matched: int = 0
    duplicates: int = 0
    discarded: int = 0
    total_intents: int = 0

    def as_context(self) -> dict[str, object]:
        return {
            "received": self.received,
            "created": self.created,
            "matched": self.matched,
            "duplicates": self.duplicates,
            "discarded": self.discarded,
            "total_intents": self.total_intents,
        }


class ReconciliationEngine:
    """Serializes ingestion into a :class:`CorrelationIndex` and exposes read APIs.

    Every mutation and every read holds the same lock, so readers never see a
    half-updated intent and concurrent batches never interleave.
    """

    def __init__(
        self,
        index: CorrelationIndex | None = None,
        *,
        telemetry: TelemetryReporter | None = None,
    ) -> None:
        self._index = index if index is not None else CorrelationIndex()
        self._telemetry = telemetry
        self._lock = Lock()

    def ingest(self, event: RawEvent) -> IngestOutcome:
        """Ingest a single event."""
        with self._lock:
            return self._index.ingest(event)

    def ingest_batch(self, events: Iterable[RawEvent]) -> BatchResult:
        """Ingest a batch in ascending event id order.

        The id is the only proxy for causal order between a quote and its
        fill; sorting keeps transient orphan fills to a minimum.
        """
        ordered = sorted(events, key=lambda event: event.id)
        if not ordered:
            return BatchResult()

        outcomes: Counter[IngestOutcome] = Counter()
        with self._lock:
            for event in ordered:
                outcomes[self._index.ingest(event)] += 1
            total = len(self._index)

        result = BatchResult(
            received=len(ordered),
            created=outcomes[IngestOutcome.CREATED],
            matched=outcomes[IngestOutcome.MATCHED],
            duplicates=outcomes[IngestOutcome.DUPLICATE],
            discarded=outcomes[IngestOutcome.DISCARDED],
            total_intents=total,
        )
        logger.info(
            "Ingested {} events: {} created, {} matched, {} duplicate, {} discarded ({} intents)",
            result.received,
            result.created,
            result.matched,
            result.duplicates,
            result.discarded,
            result.total_intents,
        )
        if self._telemetry is not None:
            self._telemetry.info("ingest batch processed", context=result.as_context())
        return result

    def get_intent(self, intent_id: str) -> Intent | None:
        with self._lock:
            intent = self._index.get(intent_id)
            return replace(intent) if intent is not None else None

    def list_intents(self) -> list[Intent]:
        """All intents, most recent activity first.

        Returned intents are copies; later ingestion does not mutate them.
        """
        with self._lock:
            snapshot = [replace(intent) for intent in self._index.intents()]
        return sorted(
            snapshot,
            key=lambda intent: (activity_sort_key(intent.activity_timestamp), intent.intent_id),
            reverse=True,
        )

    def compute_statistics(self) -> SlippageStats | None:
        """Aggregate slippage percent over filled intents, or None if there are none."""
        with self._lock:
            percents = [
                intent.slippage.percent
                for intent in self._index.intents()
                if intent.status is IntentStatus.FILLED and intent.slippage is not None
            ]
        if not percents:
            return None

        with localcontext() as ctx:
            ctx.prec = SLIPPAGE_PRECISION
            average = sum(percents, Decimal(0)) / len(percents)
        return SlippageStats(
            count=len(percents),
            average_percent=average,
            max_percent=max(percents),
            min_percent=min(percents),
        )

    def prune(self, policy: PruningPolicy) -> int:
        """Evict filled intents selected by ``policy``.

        Pending and orphan intents are never pruned. Event ids of pruned
        intents stay consumed so re-delivery cannot resurrect them.
        """
        with self._lock:
            filled = [
                replace(intent)
                for intent in self._index.intents()
                if intent.status is IntentStatus.FILLED
            ]
        # evaluated outside the lock; policies may call back into the engine
        doomed = [intent.intent_id for intent in filled if policy(intent)]
        with self._lock:
            removed = self._index.remove(doomed)
        if removed:
            logger.info("Pruned {} filled intents", removed)
            if self._telemetry is not None:
                self._telemetry.info("intents pruned", context={"removed": removed})
        return removed

    @property
    def intent_count(self) -> int:
        with self._lock:
            return len(self._index)


def retention_policy(max_age: timedelta, *, now: datetime | None = None) -> PruningPolicy:
    """Build a policy selecting intents whose last activity is older than ``max_age``.

    Numeric timestamps are read as epoch seconds. Intents without a readable
    timestamp are kept.
    """
    reference = now if now is not None else datetime.now(UTC)
    cutoff = Decimal(str(reference.timestamp())) - Decimal(str(max_age.total_seconds()))

    def policy(intent: Intent) -> bool:
        moment = activity_sort_key(intent.activity_timestamp)
        return moment.is_finite() and moment < cutoff

    return policy
