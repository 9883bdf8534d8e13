"""Snapshot persistence."""

from flag_notifier.storage.kv_store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)
from flag_notifier.storage.snapshot_store import DEFAULT_STORAGE_KEY, SnapshotStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "SnapshotStore",
    "DEFAULT_STORAGE_KEY",
]
