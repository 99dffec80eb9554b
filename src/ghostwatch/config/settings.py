"""Configuration settings using Pydantic Settings.

Provides typed configuration with environment variable support.

Usage:
    from ghostwatch.config import PipelineSettings

    # Load from environment variables (GHOSTWATCH_*)
    settings = PipelineSettings()

    # Or override with explicit values
    settings = PipelineSettings(world="de99", port=8080)
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for the capture, diff and publish pipeline.

    Attributes:
        world: World identifier substituted into ``base_url``.
        base_url: Snapshot Source URL template with a ``{world}`` placeholder.
        user_agent: User-Agent sent to the Snapshot Source.
        request_timeout: Per-request timeout in seconds.
        min_capture_interval: Minimum seconds between two captures that get diffed.
        retry_interval: Fixed backoff in seconds after a failed cycle.
        retry_jitter: Upper bound of random extra backoff in seconds.
        database_path: SQLite Event Store file, also holding the warm-restart baseline.
        offsets_path: Custom offset table (None uses the bundled one).
        view_limit: Events per kind kept in the presentation view.
        host: Presentation listener address.
        port: Presentation listener port.
        log_level: loguru level for the stderr sink.
        log_dir: Directory for rotating log files (None disables file logging).
        log_rotation: loguru rotation rule for log files.
        log_retention: loguru retention rule for log files.

    Environment Variables:
        GHOSTWATCH_WORLD
        GHOSTWATCH_BASE_URL
        GHOSTWATCH_MIN_CAPTURE_INTERVAL
        GHOSTWATCH_RETRY_INTERVAL
        GHOSTWATCH_DATABASE_PATH
        GHOSTWATCH_BASELINE_PATH
        GHOSTWATCH_PORT
        GHOSTWATCH_LOG_LEVEL
        ... (one per attribute)
    """

    model_config = SettingsConfigDict(
        env_prefix="GHOSTWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    world: str = "de99"
    base_url: str = "https://{world}.grepolis.com/data/"
    user_agent: str = "ghostwatch/0.1 (ghost town tracker)"
    request_timeout: float = Field(default=30.0, gt=0)

    min_capture_interval: float = Field(default=3600.0, ge=0)
    retry_interval: float = Field(default=60.0, ge=0)
    retry_jitter: float = Field(default=0.0, ge=0)

    database_path: Path = Path("db.sqlite")
    offsets_path: Path | None = None
    view_limit: int = Field(default=200, ge=0)

    host: str = "::"
    port: int = Field(default=10204, ge=0, le=65535)

    log_level: str = "INFO"
    log_dir: Path | None = None
    log_rotation: str = "1 day"
    log_retention: str = "30 days"

    @field_validator("base_url")
    @classmethod
    def _require_world_placeholder(cls, value: str) -> str:
        if "{world}" not in value:
            raise ValueError("base_url must contain a '{world}' placeholder")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()
