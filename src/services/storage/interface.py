"""
Abstract Key-Value Storage Interface

DESIGN DECISION: The ledger only needs durable string-keyed storage.
Defining it as an abstract interface allows us to:
1. Keep data in a local JSON file for the single-user app
2. Use in-memory storage for testing
3. Mirror the data to Google Sheets where the user wants to see it
4. Keep ledger logic decoupled from the storage implementation

Values are opaque strings (the ledger stores JSON). There is no
multi-key transaction: each call is durable on its own.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for key-value storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is not an error.

        Raises:
            StorageError: If the delete fails
        """
        pass

    @abstractmethod
    async def get_all_keys(self) -> list[str]:
        """
        List every stored key.

        Raises:
            StorageError: If the listing fails
        """
        pass

    async def multi_remove(self, keys: Iterable[str]) -> None:
        """
        Remove several keys.

        Backends that can delete in one round trip override this.
        """
        for key in keys:
            await self.remove_item(key)

    async def clear(self) -> None:
        """Remove every key."""
        await self.multi_remove(await self.get_all_keys())


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
