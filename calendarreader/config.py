"""Settings management using pydantic-settings with optional YAML overrides."""

import logging
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# 50MB
DEFAULT_MAX_FILE_SIZE_BYTES = 50 * 1024 * 1024


class ReaderSettings(BaseSettings):
    """Engine settings with environment variable support."""

    # Placeholder titles
    ics_default_summary: str = Field(
        default="No Title", description="Summary used when an ICS/VCS event has none"
    )
    csv_default_summary: str = Field(
        default="Untitled Event", description="Summary used when a CSV row has none"
    )

    # Timezone handling
    floating_timezone: str = Field(
        default="UTC", description="Zone for ICS date-times that carry no TZID"
    )
    csv_timezone: str = Field(default="UTC", description="Zone for naive CSV date-times")
    display_timezone: str = Field(
        default="America/New_York", description="Default zone for rendering timed events"
    )

    # Resource limits
    max_file_size_bytes: int = Field(
        default=DEFAULT_MAX_FILE_SIZE_BYTES, description="Largest file the engine will read"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level name")

    model_config = SettingsConfigDict(
        env_prefix="CALENDARREADER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("floating_timezone", "csv_timezone", "display_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {value}")
        return level

    @field_validator("max_file_size_bytes")
    @classmethod
    def _positive_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_file_size_bytes must be positive")
        return value


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a settings mapping from a YAML file."""
    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    # safe_load returns None for empty files
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(loaded).__name__}")
    return loaded


def load_settings(config_path: Optional[Path] = None, **overrides: Any) -> ReaderSettings:
    """Build settings from environment, an optional YAML file, and keyword overrides.

    Values from the YAML file take precedence over environment variables, and
    explicit keyword overrides take precedence over both.

    Args:
        config_path: Optional YAML config file
        **overrides: Explicit setting values

    Returns:
        Validated ReaderSettings
    """
    values: dict[str, Any] = {}
    if config_path is not None:
        values.update(_load_yaml(Path(config_path)))
        logger.debug("Loaded settings from %s: %s", config_path, sorted(values))

    values.update({k: v for k, v in overrides.items() if v is not None})
    return ReaderSettings(**values)
