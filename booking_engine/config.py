"""
Centralized process configuration with environment variable overrides.

Only process-wide knobs live here (slot stride, storage location, logging).
Tenant scheduling rules are never cached at module level: they arrive as
``BookingSettings``/``BookingService`` records on every engine call.
"""

import logging
import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation defaults shared by every tenant."""

    slot_stride_minutes: int = _safe_int("SLOT_STRIDE_MINUTES", "30")
    default_timezone: str = os.getenv("DEFAULT_TIMEZONE", "America/New_York")
    next_available_limit: int = _safe_int("NEXT_AVAILABLE_LIMIT", "5")


@dataclass(frozen=True)
class StorageConfig:
    """Where the file-backed store keeps tenant content."""

    content_dir: str = os.getenv("BOOKING_CONTENT_DIR", "content")
    booking_id_prefix: str = os.getenv("BOOKING_ID_PREFIX", "bk_")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 1 <= config.scheduling.slot_stride_minutes <= MINUTES_PER_DAY:
        raise ValueError(
            "SLOT_STRIDE_MINUTES must be between 1 and 1440, "
            f"got {config.scheduling.slot_stride_minutes}"
        )
    if config.scheduling.next_available_limit < 1:
        raise ValueError(
            f"NEXT_AVAILABLE_LIMIT must be >= 1, got {config.scheduling.next_available_limit}"
        )
    try:
        ZoneInfo(config.scheduling.default_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"DEFAULT_TIMEZONE is not a known IANA zone: {config.scheduling.default_timezone!r}"
        ) from None
    if not config.storage.content_dir.strip():
        raise ValueError("BOOKING_CONTENT_DIR must not be empty")
    if not config.storage.booking_id_prefix.strip():
        raise ValueError("BOOKING_ID_PREFIX must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info(
        "Configuration loaded (slot stride %d min, content dir '%s')",
        config.scheduling.slot_stride_minutes,
        config.storage.content_dir,
    )
    return config


# Singleton instance
app_config = load_config()
