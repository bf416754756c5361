"""
In-Memory Storage Implementation

Used by tests and by the "memory" backend setting. Nothing survives the
process, so this is never the default.
"""

from typing import Iterable, Optional

from src.services.storage.interface import KeyValueStoreInterface


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dict-backed key-value store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    async def get_all_keys(self) -> list[str]:
        return list(self._data)

    async def multi_remove(self, keys: Iterable[str]) -> None:
        for key in list(keys):
            self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of the raw stored values."""
        return dict(self._data)
