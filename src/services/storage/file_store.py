"""
JSON File Storage Implementation

DESIGN DECISION: The default backend keeps every key in one local JSON
object on disk. This matches how the app is used (one person, one device)
and needs no setup.

Each operation takes a file lock, reads the whole file, applies the
change and writes it back through a temporary file, so a crash mid-write
leaves the previous contents in place.
"""

import json
import os
from pathlib import Path
from typing import Iterable, Optional

from filelock import FileLock, Timeout

from src.services.storage.interface import KeyValueStoreInterface, StorageError


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """Key-value store persisted as a single JSON object file."""

    def __init__(self, path: str, lock_timeout: float = 5.0):
        self._path = Path(path)
        self._lock = FileLock(str(self._path) + ".lock", timeout=lock_timeout)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists() or self._path.stat().st_size == 0:
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected content in {self._path}: not a JSON object")
        return data

    def _write(self, data: dict[str, str]) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}") from e

    async def get_item(self, key: str) -> Optional[str]:
        try:
            with self._lock:
                return self._read().get(key)
        except Timeout as e:
            raise StorageError(f"Timed out waiting for {self._lock.lock_file}") from e

    async def set_item(self, key: str, value: str) -> None:
        try:
            with self._lock:
                data = self._read()
                data[key] = value
                self._write(data)
        except Timeout as e:
            raise StorageError(f"Timed out waiting for {self._lock.lock_file}") from e

    async def remove_item(self, key: str) -> None:
        await self.multi_remove([key])

    async def get_all_keys(self) -> list[str]:
        try:
            with self._lock:
                return list(self._read())
        except Timeout as e:
            raise StorageError(f"Timed out waiting for {self._lock.lock_file}") from e

    async def multi_remove(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        try:
            with self._lock:
                data = self._read()
                removed = [k for k in keys if data.pop(k, None) is not None]
                if removed:
                    self._write(data)
        except Timeout as e:
            raise StorageError(f"Timed out waiting for {self._lock.lock_file}") from e
