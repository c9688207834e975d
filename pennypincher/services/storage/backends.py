"""
Key-Value Storage Backends

InMemoryStorage is used by tests and as a fallback when no data directory
is usable. JsonFileStorage keeps one UTF-8 JSON file per key under a
directory and writes through a temporary file so a crash mid-write never
leaves a truncated blob behind.
"""

import copy
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from pennypincher.services.storage.interface import (
    JSONValue,
    KeyValueStorageInterface,
    StorageError,
    StorageUnavailableError,
)


_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class InMemoryStorage(KeyValueStorageInterface):
    """Dict-backed storage. Values are deep-copied in and out."""

    def __init__(self, initial: Optional[dict[str, JSONValue]] = None):
        self._data: dict[str, JSONValue] = copy.deepcopy(initial or {})

    def get(self, key: str) -> Optional[JSONValue]:
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: JSONValue) -> None:
        # Round-trip through json so non-serializable values fail here too
        try:
            self._data[key] = json.loads(json.dumps(value))
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON serializable: {e}") from e

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(KeyValueStorageInterface):
    """One JSON file per key inside `data_dir`."""

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot create data directory {self._data_dir}: {e}"
            ) from e

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        return self._data_dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> Optional[JSONValue]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read '{key}' from {path}: {e}") from e

    def set(self, key: str, value: JSONValue) -> None:
        path = self._path_for(key)
        try:
            payload = json.dumps(value, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON serializable: {e}") from e

        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, suffix=".tmp")
        except OSError as e:
            raise StorageError(f"Failed to write '{key}' to {path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write '{key}' to {path}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete '{key}': {e}") from e
