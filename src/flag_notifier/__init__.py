"""Flag Notifier

Polling-based change detection and notifications for student flags on
course assistant answers.
"""

__version__ = "0.1.0"

# Models and settings first (no dependencies on the engine)
from flag_notifier.models import (
    ChangeEvent, ChangeKind, FlagRecord, FlagStatus, SnapshotEntry
)
from flag_notifier.config import NotifierSettings, get_settings, reset_settings
from flag_notifier.errors import (
    FlagNotifierError, NetworkError, PersistenceError, ProtocolError
)
from flag_notifier.core import classify


# Lazy import for the engine side, which pulls in httpx and the storage layer
def __getattr__(name):
    """Lazy import for engine components."""
    if name in ("PollEngine", "PollState", "LifecycleManager"):
        from flag_notifier import engine
        return getattr(engine, name)
    if name == "create_notifier":
        from flag_notifier.factory import create_notifier
        return create_notifier
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    # Models
    "ChangeEvent", "ChangeKind", "FlagRecord", "FlagStatus", "SnapshotEntry",
    # Configuration
    "NotifierSettings", "get_settings", "reset_settings",
    # Errors
    "FlagNotifierError", "NetworkError", "PersistenceError", "ProtocolError",
    # Classification
    "classify",
    # Engine (lazy loaded)
    "PollEngine", "PollState", "LifecycleManager", "create_notifier",
]
