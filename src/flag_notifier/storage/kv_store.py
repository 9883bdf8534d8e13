"""
String-keyed local stores for the flag snapshot.

This module defines the key-value interface the snapshot store persists
through, with an in-memory and a JSON-file implementation.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from flag_notifier.errors import PersistenceError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract string-keyed store holding string values."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent

        Raises:
            PersistenceError: If the store cannot be read
        """

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Overwrite the value stored under key

        Raises:
            PersistenceError: If the store cannot be written
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key; absent keys are ignored"""

    async def close(self) -> None:
        """Release connections held by the store"""


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, lost when the process exits"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """Store backed by a single JSON object file.

    Every key maps to a string value, like the browser's localStorage.
    Writes go to a temporary file in the same directory which then
    replaces the original, so readers never observe a partial file.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.path} does not hold a JSON object")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    json.dump(data, tmp)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e

    async def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    async def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except PersistenceError as e:
            # A corrupt file is rebuilt rather than blocking every later write
            logger.warning(f"Discarding unreadable store file: {e}")
            data = {}
        data[key] = value
        self._write_all(data)

    async def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)
