"""
Storage Services Package

Provides the abstract key-value interface and its implementations:
local JSON file (default), in-memory (tests) and Google Sheets.
"""

from src.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    KeyValueStoreInterface,
    StorageError,
)
from src.services.storage.memory import InMemoryKeyValueStore
from src.services.storage.file_store import JsonFileKeyValueStore
from src.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
)

__all__ = [
    # Interface
    "KeyValueStoreInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
]
