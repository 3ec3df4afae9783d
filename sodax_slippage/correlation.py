"""Correlation index pairing quote legs with fill legs.

The indexer exposes no transaction id linking a quote to its fill, so legs are
paired on a match key: the requested amount, the requested token and chain,
and the destination token and chain. The delivered amount is left out of the
key because it is exactly what differs between a quote and its fill.

The index is plain in-memory state. It grows for the life of the process;
eviction happens only through :meth:`CorrelationIndex.remove`, which the
engine drives from an injected pruning policy.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal, localcontext
from enum import Enum

from loguru import logger

from sodax_slippage.constants import PERCENT_SCALE, SLIPPAGE_PRECISION
from sodax_slippage.models import (
    Intent,
    IntentLeg,
    IntentStatus,
    LegKind,
    ParsedLeg,
    RawEvent,
    Slippage,
    format_decimal,
)
from sodax_slippage.parser import parse_action_detail

MatchKey = tuple[str, str, str, str, str]


class IngestOutcome(str, Enum):
    """Result of ingesting a single raw event."""

    DUPLICATE = "duplicate"
    DISCARDED = "discarded"
    CREATED = "created"
    MATCHED = "matched"


def match_key(leg: ParsedLeg) -> MatchKey | None:
    """Return the correlation key for a leg, or None when the from-side is incomplete."""
    if leg.from_amount is None or not leg.from_token or not leg.from_chain:
        return None
    return (
        format_decimal(leg.from_amount),
        leg.from_token,
        leg.from_chain,
        leg.to_token or "",
        leg.to_chain or "",
    )


def compute_slippage(quoted: Decimal, delivered: Decimal) -> Slippage:
    """Exact slippage of a delivered amount against the quoted amount.

    A zero quote yields a zero percentage rather than a division error.
    """
    with localcontext() as ctx:
        ctx.prec = SLIPPAGE_PRECISION
        absolute = delivered - quoted
        percent = Decimal(0) if quoted.is_zero() else absolute / quoted * PERCENT_SCALE
    return Slippage(absolute=absolute, percent=percent)


def refresh_intent(intent: Intent) -> None:
    """Recompute status and slippage from the legs an intent currently holds."""
    if intent.quote is not None and intent.fill is not None:
        intent.status = IntentStatus.FILLED
        quoted = intent.quote.leg.to_amount
        delivered = intent.fill.leg.to_amount
        if quoted is not None and delivered is not None:
            intent.slippage = compute_slippage(quoted, delivered)
    elif intent.fill is not None:
        intent.status = IntentStatus.ORPHAN_FILL
    else:
        intent.status = IntentStatus.PENDING


class CorrelationIndex:
    """In-memory index of intents keyed by swap signature.

    Not thread safe; :class:`~sodax_slippage.engine.ReconciliationEngine`
    serializes access.
    """

    def __init__(self) -> None:
        self._intents: dict[str, Intent] = {}
        self._candidates: dict[MatchKey, list[str]] = {}
        self._created_per_key: defaultdict[MatchKey, int] = defaultdict(int)
        self._consumed: set[int] = set()

    def __len__(self) -> int:
        return len(self._intents)

    def ingest(self, event: RawEvent) -> IngestOutcome:
        """Apply one raw event. Re-delivery of a consumed event id is a no-op."""
        if event.id in self._consumed:
            logger.debug("Skipping already ingested event {}", event.id)
            return IngestOutcome.DUPLICATE
        self._consumed.add(event.id)

        leg = parse_action_detail(event.action_detail)
        if leg.kind is LegKind.UNKNOWN:
            logger.debug("Discarding unparseable event {}: {!r}", event.id, leg.raw_text)
            return IngestOutcome.DISCARDED

        key = match_key(leg)
        if key is None:
            logger.debug("Discarding event {} without a complete from-side", event.id)
            return IngestOutcome.DISCARDED

        candidates = self._candidates.setdefault(key, [])
        intent = self._find_candidate(candidates, leg.kind)
        outcome = IngestOutcome.MATCHED
        if intent is None:
            intent = self._create_intent(key, leg.kind, event.id)
            candidates.append(intent.intent_id)
            outcome = IngestOutcome.CREATED

        attached = IntentLeg(leg=leg, event_id=event.id, timestamp=event.created_at)
        if leg.kind is LegKind.QUOTE:
            intent.quote = attached
        else:
            intent.fill = attached
        refresh_intent(intent)

        if outcome is IngestOutcome.MATCHED:
            logger.debug("Event {} completed intent {}", event.id, intent.intent_id)
        return outcome

    def get(self, intent_id: str) -> Intent | None:
        return self._intents.get(intent_id)

    def intents(self) -> list[Intent]:
        return list(self._intents.values())

    def candidates(self, key: MatchKey) -> list[str]:
        """Intent ids registered under ``key``, in insertion order."""
        return list(self._candidates.get(key, ()))

    def is_consumed(self, event_id: int) -> bool:
        return event_id in self._consumed

    @property
    def consumed_count(self) -> int:
        return len(self._consumed)

    def remove(self, intent_ids: Iterable[str]) -> int:
        """Drop intents from the index. Consumed event ids are kept."""
        removed = 0
        for intent_id in intent_ids:
            intent = self._intents.pop(intent_id, None)
            if intent is None:
                continue
            removed += 1
            attached = intent.quote or intent.fill
            if attached is None:
                continue
            key = match_key(attached.leg)
            ids = self._candidates.get(key, [])
            if intent_id in ids:
                ids.remove(intent_id)
                if not ids:
                    del self._candidates[key]
        return removed

    def _find_candidate(self, candidates: list[str], kind: LegKind) -> Intent | None:
        for intent_id in candidates:
            existing = self._intents.get(intent_id)
            if existing is None:
                continue
            if kind is LegKind.QUOTE and existing.quote is None:
                return existing
            if kind is LegKind.FILL and existing.fill is None:
                return existing
        return None

    def _create_intent(self, key: MatchKey, kind: LegKind, event_id: int) -> Intent:
        ordinal = self._created_per_key[key]
        self._created_per_key[key] = ordinal + 1
        intent = Intent(
            intent_id=f"{event_id}:{ordinal}:{'_'.join(key)}",
            status=IntentStatus.PENDING if kind is LegKind.QUOTE else IntentStatus.ORPHAN_FILL,
        )
        self._intents[intent.intent_id] = intent
        return intent
