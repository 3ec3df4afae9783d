"""Pytest configuration for shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from loguru import logger

from sodax_slippage.models import RawEvent

EventFactory = Callable[..., RawEvent]


@pytest.fixture(scope="session", autouse=True)
def silence_loguru_handlers() -> None:
    """Route Loguru output to a no-op sink during tests to avoid closed stream errors."""
    logger.remove()
    logger.add(lambda _: None, catch=True)
    yield


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep config-created directories inside the test's temp dir."""
    monkeypatch.setenv("SODAX_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_event() -> EventFactory:
    """Build raw indexer events with sensible defaults."""

    def _make(event_id: int, detail: str, created_at: str | None = None) -> RawEvent:
        return RawEvent(
            id=event_id,
            sn=f"sn-{event_id}",
            action_type="SendMsg",
            created_at=created_at if created_at is not None else str(1000 + event_id),
            action_detail=detail,
        )

    return _make
