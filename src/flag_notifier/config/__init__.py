"""Configuration Module

Environment-driven settings for the flag notifier.
"""

from .settings import (
    NotifierSettings,
    StorageBackend,
    get_settings,
    reset_settings,
)

__all__ = [
    "NotifierSettings",
    "StorageBackend",
    "get_settings",
    "reset_settings",
]
