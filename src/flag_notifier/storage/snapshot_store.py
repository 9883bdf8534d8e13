"""Snapshot store for the last observed flag state.

The snapshot is the notifier's belief about what the student last saw.
It is replaced wholesale after every successful fetch and never merged.
"""

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence

from pydantic import TypeAdapter, ValidationError

from flag_notifier.errors import PersistenceError
from flag_notifier.models import FlagRecord, SnapshotEntry
from flag_notifier.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "biocbot_last_known_flags"

_SNAPSHOT_ADAPTER = TypeAdapter(List[SnapshotEntry])


class SnapshotStore:
    """Persisted snapshot plus its in-memory mirror.

    Every save installs a new mapping object, so a mapping read from
    ``current`` before a save keeps describing the pre-save state. The
    poll engine relies on this to compare against the previous cycle.
    """

    def __init__(self, backend: KeyValueStore, storage_key: str = DEFAULT_STORAGE_KEY):
        self.backend = backend
        self.base_key = storage_key
        self.storage_key = storage_key
        self._entries: Mapping[str, SnapshotEntry] = MappingProxyType({})

    @property
    def current(self) -> Mapping[str, SnapshotEntry]:
        """Read-only view of the snapshot, keyed by flag id."""
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def scope_to(self, owner: str) -> None:
        """Key the snapshot by its owner so students sharing a backend stay apart.

        Must be called before load(); the in-memory mirror is not migrated.
        """
        self.storage_key = f"{self.base_key}:{owner}"
        logger.debug(f"[SnapshotStore] Using storage key '{self.storage_key}'")

    async def load(self) -> Mapping[str, SnapshotEntry]:
        """Load the persisted snapshot into memory.

        Missing, unreadable and corrupt data all load as an empty snapshot.

        Returns:
            The loaded snapshot
        """
        try:
            raw = await self.backend.get(self.storage_key)
        except PersistenceError as e:
            logger.warning(f"[SnapshotStore] Error loading last known flags: {e}")
            raw = None

        entries: Dict[str, SnapshotEntry] = {}
        if raw:
            try:
                for entry in _SNAPSHOT_ADAPTER.validate_json(raw):
                    entries[entry.flag_id] = entry
            except ValidationError as e:
                logger.warning(
                    f"[SnapshotStore] Discarding corrupt snapshot under '{self.storage_key}': "
                    f"{e.error_count()} errors"
                )
                entries = {}

        self._entries = MappingProxyType(entries)
        logger.info(f"[SnapshotStore] Loaded {len(entries)} last known flags from storage")
        return self._entries

    async def save(self, records: Sequence[FlagRecord]) -> Mapping[str, SnapshotEntry]:
        """Replace the snapshot with the projection of ``records``.

        The in-memory mirror takes the new value even when the write fails,
        so the next cycle compares against what was actually observed.

        Args:
            records: The full flag set from a successful fetch

        Returns:
            The new snapshot
        """
        projected = [SnapshotEntry.from_record(record) for record in records]
        self._entries = MappingProxyType({entry.flag_id: entry for entry in projected})

        payload = _SNAPSHOT_ADAPTER.dump_json(projected, by_alias=True).decode("utf-8")
        try:
            await self.backend.set(self.storage_key, payload)
        except PersistenceError as e:
            logger.warning(f"[SnapshotStore] Error saving last known flags: {e}")
        else:
            logger.debug(f"[SnapshotStore] Saved {len(projected)} flags to storage")

        return self._entries

    async def clear(self) -> None:
        """Forget the snapshot, in memory and in storage."""
        self._entries = MappingProxyType({})
        try:
            await self.backend.delete(self.storage_key)
        except PersistenceError as e:
            logger.warning(f"[SnapshotStore] Error clearing last known flags: {e}")
