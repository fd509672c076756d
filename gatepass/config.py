"""Scanner configuration.

All settings can be overridden via environment variables with the
GATEPASS_ prefix.
"""
import os
from dataclasses import dataclass

from .core.constants import (
    CACHE_TTL_HOURS,
    CONNECT_TIMEOUT_SECONDS,
    DEFAULT_DB_PATH,
    DEFAULT_REMOTE_HOST,
    DEFAULT_REMOTE_PATH,
    DEFAULT_REMOTE_PORT,
    SYNC_RETENTION_MINUTES,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ScannerConfig:
    """Door scanner configuration."""

    # Local storage
    db_path: str = str(DEFAULT_DB_PATH)

    # Remote document store (file-backed adapter)
    remote_path: str = str(DEFAULT_REMOTE_PATH)

    # Lifecycle windows
    cache_ttl_hours: float = CACHE_TTL_HOURS
    sync_retention_minutes: float = SYNC_RETENTION_MINUTES

    # Connectivity check
    remote_host: str = DEFAULT_REMOTE_HOST
    remote_port: int = DEFAULT_REMOTE_PORT
    connect_timeout: float = CONNECT_TIMEOUT_SECONDS

    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "ScannerConfig":
        """Load configuration from environment variables."""
        config = cls()

        if "GATEPASS_DB_PATH" in os.environ:
            config.db_path = os.environ["GATEPASS_DB_PATH"]
        if "GATEPASS_REMOTE_PATH" in os.environ:
            config.remote_path = os.environ["GATEPASS_REMOTE_PATH"]

        if "GATEPASS_CACHE_TTL_HOURS" in os.environ:
            config.cache_ttl_hours = float(os.environ["GATEPASS_CACHE_TTL_HOURS"])
        if "GATEPASS_SYNC_RETENTION_MINUTES" in os.environ:
            config.sync_retention_minutes = float(os.environ["GATEPASS_SYNC_RETENTION_MINUTES"])

        if "GATEPASS_REMOTE_HOST" in os.environ:
            config.remote_host = os.environ["GATEPASS_REMOTE_HOST"]
        if "GATEPASS_REMOTE_PORT" in os.environ:
            config.remote_port = int(os.environ["GATEPASS_REMOTE_PORT"])
        if "GATEPASS_CONNECT_TIMEOUT" in os.environ:
            config.connect_timeout = float(os.environ["GATEPASS_CONNECT_TIMEOUT"])

        if "GATEPASS_LOG_LEVEL" in os.environ:
            config.log_level = os.environ["GATEPASS_LOG_LEVEL"].upper()

        return config

    def validate(self) -> list[str]:
        """Validate configuration. Returns list of errors."""
        errors = []

        if not self.db_path:
            errors.append("db_path must not be empty")

        if self.cache_ttl_hours <= 0:
            errors.append(f"cache_ttl_hours must be > 0, got {self.cache_ttl_hours}")

        if self.sync_retention_minutes < 0:
            errors.append(f"sync_retention_minutes must be >= 0, got {self.sync_retention_minutes}")

        if self.remote_port < 1 or self.remote_port > 65535:
            errors.append(f"Invalid remote_port: {self.remote_port}")

        if self.connect_timeout <= 0:
            errors.append(f"connect_timeout must be > 0, got {self.connect_timeout}")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"Unknown log_level: {self.log_level}")

        return errors
