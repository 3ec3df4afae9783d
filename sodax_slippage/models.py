"""Swap intent models.

Upstream records are validated with Pydantic v2; correlation state uses
dataclasses. Every amount is a ``Decimal`` and is serialized as a decimal
string, never a float.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from sodax_slippage.constants import SLIPPAGE_PRECISION

MIN_ACTIVITY = Decimal("-Infinity")


def format_decimal(value: Decimal) -> str:
    """Render a decimal canonically: no exponent, no trailing zeros, no ``-0``."""
    with localcontext() as ctx:
        # never round away digits the upstream sent
        ctx.prec = max(SLIPPAGE_PRECISION, len(value.as_tuple().digits))
        normalized = value.normalize()
    if normalized.is_zero():
        return "0"
    return format(normalized, "f")


def activity_sort_key(timestamp: str | None) -> Decimal:
    """Map an opaque upstream timestamp onto a sortable number.

    Numeric strings sort by value, ISO-8601 strings by epoch seconds; anything
    else sorts below every real timestamp.
    """
    if not timestamp:
        return MIN_ACTIVITY
    text = timestamp.strip()
    try:
        value = Decimal(text)
    except InvalidOperation:
        pass
    else:
        return value if value.is_finite() else MIN_ACTIVITY
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return MIN_ACTIVITY
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return Decimal(str(moment.timestamp()))


class MessageSummary(BaseModel):
    """Message summary as listed by the indexer."""

    model_config = ConfigDict(frozen=True)

    id: int
    sn: str = ""
    action_type: str = ""
    created_at: str = ""

    @field_validator("sn", "action_type", "created_at", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        """Accept numeric sequence numbers and timestamps from upstream."""
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class RawEvent(MessageSummary):
    """Message with its free-text action detail. Immutable once received."""

    action_detail: str = ""

    @field_validator("action_detail", mode="before")
    @classmethod
    def coerce_detail(cls, value: Any) -> Any:
        return "" if value is None else value


class LegKind(str, Enum):
    """Classification of a parsed action detail."""

    QUOTE = "quote"
    FILL = "fill"
    UNKNOWN = "unknown"


class IntentStatus(str, Enum):
    """Lifecycle status of a correlated intent."""

    PENDING = "pending"
    FILLED = "filled"
    ORPHAN_FILL = "orphan_fill"


@dataclass(frozen=True, slots=True)
class ParsedLeg:
    """One side of a swap as described by an action detail."""

    kind: LegKind
    raw_text: str
    from_amount: Decimal | None = None
    from_token: str | None = None
    from_chain: str | None = None
    to_amount: Decimal | None = None
    to_token: str | None = None
    to_chain: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "fromAmount": _optional_decimal(self.from_amount),
            "fromToken": self.from_token,
            "fromChain": self.from_chain,
            "toAmount": _optional_decimal(self.to_amount),
            "toToken": self.to_token,
            "toChain": self.to_chain,
            "rawDetail": self.raw_text,
        }


@dataclass(frozen=True, slots=True)
class IntentLeg:
    """A parsed leg attached to an intent, with its originating event."""

    leg: ParsedLeg
    event_id: int
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        record = self.leg.to_dict()
        record["timestamp"] = self.timestamp
        record["id"] = self.event_id
        return record


@dataclass(frozen=True, slots=True)
class Slippage:
    """Delivered minus quoted output, absolute and as a percent of the quote."""

    absolute: Decimal
    percent: Decimal

    def to_dict(self) -> dict[str, str]:
        return {"abs": format_decimal(self.absolute), "pct": format_decimal(self.percent)}


@dataclass(slots=True)
class Intent:
    """A logical swap intent: a quote optionally paired with its fill."""

    intent_id: str
    status: IntentStatus
    quote: IntentLeg | None = None
    fill: IntentLeg | None = None
    slippage: Slippage | None = None

    @property
    def activity_timestamp(self) -> str | None:
        """Fill timestamp when filled, otherwise the quote timestamp."""
        if self.fill is not None:
            return self.fill.timestamp
        if self.quote is not None:
            return self.quote.timestamp
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "intentId": self.intent_id,
            "status": self.status.value,
            "quote": self.quote.to_dict() if self.quote is not None else None,
            "fill": self.fill.to_dict() if self.fill is not None else None,
            "slippage": self.slippage.to_dict() if self.slippage is not None else None,
        }


@dataclass(frozen=True, slots=True)
class SlippageStats:
    """Aggregate slippage percentages across filled intents."""

    count: int
    average_percent: Decimal
    max_percent: Decimal
    min_percent: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "avgPct": format_decimal(self.average_percent),
            "maxPct": format_decimal(self.max_percent),
            "minPct": format_decimal(self.min_percent),
        }


def _optional_decimal(value: Decimal | None) -> str | None:
    return format_decimal(value) if value is not None else None
