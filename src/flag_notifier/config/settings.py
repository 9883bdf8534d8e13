"""Notifier Settings

Runtime configuration for the flag notifier, resolved from explicit
arguments first and FLAG_NOTIFIER_* environment variables second.
"""

import logging
import os
from datetime import timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENV_PREFIX = "FLAG_NOTIFIER_"


class StorageBackend(Enum):
    """Where the flag snapshot is persisted."""

    MEMORY = "memory"  # Process memory (tests, ephemeral sessions)
    FILE = "file"  # JSON file on local disk
    REDIS = "redis"  # Shared Redis instance


class NotifierSettings(BaseModel):
    """Configuration for the flag notification engine.

    Environment Variables:
        FLAG_NOTIFIER_BASE_URL: Base URL of the course assistant backend
        FLAG_NOTIFIER_FLAGS_PATH: Path of the flags-for-caller endpoint
        FLAG_NOTIFIER_REVIEW_ROUTE: Route opened when a notification is clicked
        FLAG_NOTIFIER_POLL_INTERVAL: Seconds between poll ticks
        FLAG_NOTIFIER_STORAGE_BACKEND: "memory" (default), "file" or "redis"
        REDIS_HOST / REDIS_PORT / REDIS_DB / REDIS_PASSWORD: Redis connection

    Example:
        ```python
        settings = NotifierSettings.from_env()
        settings.poll_interval_seconds
        # 30.0
        ```
    """

    # Endpoint
    base_url: str = Field("http://localhost:3000", description="Backend base URL")
    flags_path: str = Field("/api/flags/my", description="Flags-for-caller endpoint path")
    review_route: str = Field("/student/flagged", description="Navigation target for notification clicks")
    request_timeout: float = Field(10.0, gt=0, description="HTTP timeout in seconds")

    # Scheduling
    poll_interval_seconds: float = Field(30.0, gt=0)
    initial_check_delay_seconds: float = Field(2.0, ge=0, description="Settle delay after start()")
    visibility_check_delay_seconds: float = Field(0.5, ge=0, description="Settle delay after page becomes visible")

    # Classification
    recent_window_seconds: float = Field(
        7200.0, gt=0, description="Age bound for reporting flags first seen already closed"
    )

    # Identity readiness
    identity_poll_interval_seconds: float = Field(0.25, gt=0)
    identity_max_attempts: int = Field(40, ge=1)

    # Notifications
    status_notification_seconds: float = Field(8.0, gt=0)
    response_notification_seconds: float = Field(12.0, gt=0)
    notification_animation_seconds: float = Field(0.3, ge=0)
    notification_base_offset: int = Field(20, ge=0, description="Top offset of the first notification (px)")
    notification_spacing: int = Field(80, gt=0, description="Vertical distance between stacked notifications (px)")

    # Persistence
    storage_backend: StorageBackend = StorageBackend.MEMORY
    storage_path: str = ".flag_notifier_store.json"
    storage_key: str = "biocbot_last_known_flags"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None

    @property
    def recent_window(self) -> timedelta:
        return timedelta(seconds=self.recent_window_seconds)

    @property
    def flags_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.flags_path}"

    @classmethod
    def from_env(cls, **overrides) -> "NotifierSettings":
        """Build settings from the environment.

        Args:
            **overrides: Explicit values, taking precedence over the environment

        Returns:
            NotifierSettings instance
        """
        values = {}

        for name in ("base_url", "flags_path", "review_route", "storage_path", "storage_key"):
            env_value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if env_value:
                values[name] = env_value

        float_env = {
            "request_timeout": "REQUEST_TIMEOUT",
            "poll_interval_seconds": "POLL_INTERVAL",
            "initial_check_delay_seconds": "INITIAL_CHECK_DELAY",
            "visibility_check_delay_seconds": "VISIBILITY_CHECK_DELAY",
            "recent_window_seconds": "RECENT_WINDOW",
            "identity_poll_interval_seconds": "IDENTITY_POLL_INTERVAL",
            "status_notification_seconds": "STATUS_NOTIFICATION_SECONDS",
            "response_notification_seconds": "RESPONSE_NOTIFICATION_SECONDS",
        }
        for name, suffix in float_env.items():
            env_key = f"{ENV_PREFIX}{suffix}"
            env_value = os.getenv(env_key)
            if env_value:
                try:
                    values[name] = float(env_value)
                except ValueError:
                    logger.warning(f"Invalid number in {env_key}: {env_value}")

        attempts = os.getenv(f"{ENV_PREFIX}IDENTITY_MAX_ATTEMPTS")
        if attempts:
            try:
                values["identity_max_attempts"] = int(attempts)
            except ValueError:
                logger.warning(f"Invalid integer in {ENV_PREFIX}IDENTITY_MAX_ATTEMPTS: {attempts}")

        backend_str = os.getenv(f"{ENV_PREFIX}STORAGE_BACKEND")
        if backend_str:
            try:
                values["storage_backend"] = StorageBackend(backend_str.lower())
            except ValueError:
                logger.warning(
                    f"Invalid {ENV_PREFIX}STORAGE_BACKEND '{backend_str}', defaulting to 'memory'"
                )

        # Same variables the other services use for their Redis connection
        values["redis_host"] = os.getenv("REDIS_HOST", "localhost")
        values["redis_password"] = os.getenv("REDIS_PASSWORD")
        for name, env_key, default in (("redis_port", "REDIS_PORT", 6379), ("redis_db", "REDIS_DB", 0)):
            try:
                values[name] = int(os.getenv(env_key, str(default)))
            except ValueError:
                logger.warning(f"Invalid integer in {env_key}, using {default}")
                values[name] = default

        values.update(overrides)
        settings = cls(**values)

        logger.info(
            f"NotifierSettings resolved: url={settings.flags_url}, "
            f"interval={settings.poll_interval_seconds}s, "
            f"storage={settings.storage_backend.value}"
        )
        return settings


# Singleton instance for global access
_settings_instance: Optional[NotifierSettings] = None


def get_settings() -> NotifierSettings:
    """Get or create the global NotifierSettings instance.

    Returns:
        Global NotifierSettings singleton
    """
    global _settings_instance

    if _settings_instance is None:
        _settings_instance = NotifierSettings.from_env()

    return _settings_instance


def reset_settings():
    """Reset the global NotifierSettings instance.

    Used for testing or reconfiguration.
    """
    global _settings_instance
    _settings_instance = None
    logger.warning("NotifierSettings instance reset")
