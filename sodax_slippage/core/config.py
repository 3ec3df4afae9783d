"""Configuration management for the SODAX slippage monitor."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sodax_slippage.constants import (
    DEFAULT_BACKFILL_LIMIT,
    DEFAULT_BASE_URL,
    DEFAULT_CHUNK_DELAY_SECONDS,
    DEFAULT_DETAIL_CHUNK_SIZE,
    DEFAULT_INCREMENTAL_LIMIT,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)


class MonitorConfig(BaseSettings):
    """Upstream fetch and polling configuration.

    Uses Pydantic v2 settings with environment variable support
    (``SODAX_BASE_URL``, ``SODAX_BACKFILL_LIMIT``, ...).
    """

    model_config = SettingsConfigDict(
        env_prefix="SODAX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Upstream indexer
    base_url: str = Field(default=DEFAULT_BASE_URL, description="sodaxscan API base URL")
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS, description="HTTP timeout in seconds"
    )

    # Fetch sizing
    backfill_limit: int = Field(
        default=DEFAULT_BACKFILL_LIMIT,
        description="Messages fetched on the first refresh after startup",
    )
    incremental_limit: int = Field(
        default=DEFAULT_INCREMENTAL_LIMIT,
        description="Messages fetched on each subsequent poll",
    )
    detail_chunk_size: int = Field(
        default=DEFAULT_DETAIL_CHUNK_SIZE,
        description="Concurrent detail requests per chunk",
    )
    chunk_delay_seconds: float = Field(
        default=DEFAULT_CHUNK_DELAY_SECONDS,
        description="Pause between detail chunks",
    )
    poll_interval_seconds: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS, description="Seconds between polls in watch mode"
    )

    # Presentation
    explorer_urls: dict[str, str] = Field(
        default_factory=dict,
        description="Transaction explorer URL templates keyed by network id",
    )

    # Paths
    log_dir: Path = Field(default=Path("logs"), description="Directory for logs")
    telemetry_file: Path | None = Field(
        default=None, description="Optional JSONL file receiving telemetry records"
    )

    @field_validator("backfill_limit", "incremental_limit", "detail_chunk_size")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure fetch sizes are positive."""
        if value <= 0:
            raise ValueError("fetch sizes must be positive")
        return value

    @field_validator("chunk_delay_seconds", "poll_interval_seconds", "request_timeout")
    @classmethod
    def validate_non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("durations cannot be negative")
        return value

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def model_post_init(self, __context: object) -> None:
        """Create directories after initialization."""
        self.log_dir.mkdir(parents=True, exist_ok=True)


def load_config() -> MonitorConfig:
    """Load configuration from environment and .env file."""
    return MonitorConfig()
