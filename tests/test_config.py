"""Tests for MonitorConfig settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from sodax_slippage.core.config import MonitorConfig, load_config


def test_config_defaults() -> None:
    config = MonitorConfig()

    assert config.base_url == "https://sodaxscan.com/api"
    assert config.backfill_limit == 150
    assert config.incremental_limit == 50
    assert config.detail_chunk_size == 5
    assert config.chunk_delay_seconds == 1.0
    assert config.poll_interval_seconds == 10.0
    assert config.telemetry_file is None
    assert config.log_dir.exists()


def test_config_reads_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SODAX_BACKFILL_LIMIT", "300")
    monkeypatch.setenv("SODAX_BASE_URL", "https://mirror.example/api/")
    monkeypatch.setenv("SODAX_TELEMETRY_FILE", str(tmp_path / "telemetry.jsonl"))

    config = load_config()

    assert config.backfill_limit == 300
    assert config.base_url == "https://mirror.example/api"
    assert config.telemetry_file == tmp_path / "telemetry.jsonl"


@pytest.mark.parametrize(
    "overrides",
    [
        {"backfill_limit": 0},
        {"incremental_limit": -1},
        {"detail_chunk_size": 0},
        {"chunk_delay_seconds": -0.5},
        {"poll_interval_seconds": -1},
    ],
)
def test_config_rejects_invalid_values(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        MonitorConfig(**overrides)
