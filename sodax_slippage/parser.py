"""Action detail parser.

Turns an indexer action detail such as::

    IntentSwap 73.541165 USDC(arbitrum) -> 5.061095891887000125 AVAX(avax)
    IntentFilled 73.541165 USDC(arbitrum) -> 5.163011091280152576 AVAX(avax)

into a classified :class:`ParsedLeg`. Parsing never raises; anything outside
the grammar comes back as an ``UNKNOWN`` leg carrying only the raw text.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from sodax_slippage.models import LegKind, ParsedLeg

ACTION_KINDS: dict[str, LegKind] = {
    "IntentSwap": LegKind.QUOTE,
    "CreateIntent": LegKind.QUOTE,
    "IntentFilled": LegKind.FILL,
}

_ACTION_PATTERN = re.compile(
    r"^(?P<action>IntentSwap|CreateIntent|IntentFilled)\s+"
    r"(?P<from_amount>[\d.]+)\s+(?P<from_token>\w+)\((?P<from_chain>[\w.]+)\)\s+->\s+"
    r"(?P<to_amount>[\d.]+)\s+(?P<to_token>\w+)\((?P<to_chain>[\w.]+)\)",
    re.ASCII,
)


def parse_action_detail(detail: str) -> ParsedLeg:
    """Classify an action detail as a quote, a fill, or unknown."""
    match = _ACTION_PATTERN.match(detail)
    if match is None:
        return ParsedLeg(kind=LegKind.UNKNOWN, raw_text=detail)

    try:
        from_amount = Decimal(match["from_amount"])
        to_amount = Decimal(match["to_amount"])
    except InvalidOperation:
        # e.g. "1.2.3" satisfies the character class but is not a number
        return ParsedLeg(kind=LegKind.UNKNOWN, raw_text=detail)

    return ParsedLeg(
        kind=ACTION_KINDS[match["action"]],
        raw_text=detail,
        from_amount=from_amount,
        from_token=match["from_token"],
        from_chain=match["from_chain"],
        to_amount=to_amount,
        to_token=match["to_token"],
        to_chain=match["to_chain"],
    )
