"""
Data models for the flag notifier.

Pydantic models for the wire format of the flags endpoint and the locally
persisted snapshot, plus the in-memory change events.
"""

from flag_notifier.models.flag import (
    ChangeEvent,
    ChangeKind,
    FlagRecord,
    FlagStatus,
    SnapshotEntry,
)
from flag_notifier.models.api_models import FlagListData, FlagListResponse

__all__ = [
    "ChangeEvent", "ChangeKind", "FlagRecord", "FlagStatus", "SnapshotEntry",
    "FlagListData", "FlagListResponse",
]
