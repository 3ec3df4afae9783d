"""HTTP client for the sodaxscan indexer API."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar
from urllib import request
from urllib.parse import urlencode

from loguru import logger
from pydantic import ValidationError

from sodax_slippage.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_CHUNK_DELAY_SECONDS,
    DEFAULT_DETAIL_CHUNK_SIZE,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)
from sodax_slippage.core.config import MonitorConfig
from sodax_slippage.core.errors import EventDecodeError
from sodax_slippage.models import MessageSummary, RawEvent

RecordT = TypeVar("RecordT", bound=MessageSummary)

Transport = Callable[[str], object]
Sleeper = Callable[[float], Awaitable[None]]


def decode_records(payload: object, model: type[RecordT]) -> list[RecordT]:
    """Validate indexer records from a list or a ``{"data": [...]}`` envelope.

    Invalid records are logged and skipped; an unexpected envelope raises
    :class:`EventDecodeError`.
    """
    if isinstance(payload, dict):
        payload = payload.get("data")
    if not isinstance(payload, list):
        raise EventDecodeError(f"expected a list of records, got {type(payload).__name__}")

    records: list[RecordT] = []
    for item in payload:
        try:
            records.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping invalid {} record: {}", model.__name__, exc)
    return records


class SodaxClient:
    """Fetches message summaries and details from sodaxscan.

    Network and decode failures are logged and reported as empty results;
    retrying is left to the next poll. Details are cached per message id for
    the lifetime of the client.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        chunk_size: int = DEFAULT_DETAIL_CHUNK_SIZE,
        chunk_delay: float = DEFAULT_CHUNK_DELAY_SECONDS,
        transport: Transport | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._chunk_size = max(1, chunk_size)
        self._chunk_delay = chunk_delay
        self._transport = transport if transport is not None else self._get_json
        self._sleep = sleep
        self._cache: dict[int, RawEvent] = {}

    @classmethod
    def from_config(cls, config: MonitorConfig, **kwargs: object) -> SodaxClient:
        return cls(
            config.base_url,
            timeout=config.request_timeout,
            chunk_size=config.detail_chunk_size,
            chunk_delay=config.chunk_delay_seconds,
            **kwargs,  # type: ignore[arg-type]
        )

    @property
    def cached_ids(self) -> set[int]:
        return set(self._cache)

    async def fetch_latest_messages(self, limit: int = 20) -> list[MessageSummary]:
        """Return the most recent message summaries."""
        url = f"{self._base_url}/messages?{urlencode({'limit': limit})}"
        try:
            payload = await asyncio.to_thread(self._transport, url)
            return decode_records(payload, MessageSummary)
        except (OSError, ValueError, EventDecodeError) as exc:
            logger.error("Error fetching latest messages: {}", exc)
            return []

    async def fetch_message_detail(self, message_id: int) -> RawEvent | None:
        """Return the full message for ``message_id``, or None if unavailable."""
        cached = self._cache.get(message_id)
        if cached is not None:
            return cached

        logger.debug("[API Fetch] Message {}", message_id)
        url = f"{self._base_url}/messages/{message_id}"
        try:
            payload = await asyncio.to_thread(self._transport, url)
            details = decode_records(payload, RawEvent)
        except (OSError, ValueError, EventDecodeError) as exc:
            logger.error("Error fetching message detail for {}: {}", message_id, exc)
            return None

        if not details:
            return None
        detail = details[0]
        self._cache[message_id] = detail
        return detail

    async def fetch_message_details_batch(self, ids: Sequence[int]) -> list[RawEvent]:
        """Fetch details for ``ids``, cached first, the rest in delayed chunks."""
        results: list[RawEvent] = []
        missing: list[int] = []
        for message_id in ids:
            cached = self._cache.get(message_id)
            if cached is not None:
                results.append(cached)
            else:
                missing.append(message_id)

        for start in range(0, len(missing), self._chunk_size):
            chunk = missing[start : start + self._chunk_size]
            fetched = await asyncio.gather(*(self.fetch_message_detail(i) for i in chunk))
            results.extend(detail for detail in fetched if detail is not None)
            if start + self._chunk_size < len(missing):
                await self._sleep(self._chunk_delay)

        return results

    def _get_json(self, url: str) -> object:
        req = request.Request(url, headers={"Accept": "application/json"}, method="GET")
        with request.urlopen(req, timeout=self._timeout) as response:
            body = response.read()
        return json.loads(body.decode("utf-8"))
