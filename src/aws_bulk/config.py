"""Configuration management for aws-bulk."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_int(name: str, default: int) -> int:
    """Read an integer from the environment, falling back on bad values."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class BatchDefaults:
    """Default sizing for bulk operations."""

    max_retries: int = 3  # retries per batch after the first attempt
    batch_size: int = 10  # SQS and most batch APIs cap requests at 10 entries
    max_concurrency: int = 10


@dataclass
class AppConfig:
    """Main application configuration."""

    # AWS defaults
    default_region: str = "us-east-1"
    default_profile: str | None = None

    # Bulk operations
    batch: BatchDefaults = field(default_factory=BatchDefaults)
    call_max_attempts: int = 3

    # Logging
    log_level: str = "WARNING"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load configuration from environment variables."""
        defaults = BatchDefaults()
        return cls(
            default_region=os.environ.get("AWS_DEFAULT_REGION", "us-east-1"),
            default_profile=os.environ.get("AWS_PROFILE") or None,
            batch=BatchDefaults(
                max_retries=_env_int("AWS_BULK_MAX_RETRIES", defaults.max_retries),
                batch_size=_env_int("AWS_BULK_BATCH_SIZE", defaults.batch_size),
                max_concurrency=_env_int("AWS_BULK_MAX_CONCURRENCY", defaults.max_concurrency),
            ),
            call_max_attempts=_env_int("AWS_BULK_CALL_MAX_ATTEMPTS", 3),
            log_level=os.environ.get("AWS_BULK_LOG_LEVEL", "WARNING").upper(),
            log_json=os.environ.get("AWS_BULK_LOG_JSON", "false").lower() == "true",
        )


# Global configuration instance
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
