"""Utility Functions"""

from flag_notifier.utils.resilience import (
    service_startup_retry,
    wait_until_ready,
)
from flag_notifier.utils.timestamps import ensure_utc, utc_now

__all__ = [
    "service_startup_retry",
    "wait_until_ready",
    "ensure_utc",
    "utc_now",
]
