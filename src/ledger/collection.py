"""
JSON array collections stored under a single key.

Partitions, the rule set, custom categories and the crypto portfolio are
all stored the same way: one key holding a JSON array of records. Every
mutation is a full read followed by a full write of that key.
"""

import json
from typing import Generic, Optional, Type, TypeVar

import structlog
from pydantic import TypeAdapter, ValidationError

from src.audit import AuditLogger
from src.ledger.errors import LedgerError, LedgerReadError, LedgerWriteError
from src.models.ledger import LedgerModel
from src.services.storage import KeyValueStoreInterface, StorageError


T = TypeVar("T", bound=LedgerModel)

logger = structlog.get_logger(__name__)


class JsonCollection(Generic[T]):
    """Reads and writes lists of one model type as JSON arrays."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        model: Type[T],
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._adapter = TypeAdapter(list[model])
        self._audit_logger = audit_logger

    async def _storage_failed(self, operation: str, key: str, error: Exception) -> None:
        logger.error("storage_operation_failed", operation=operation, key=key, error=str(error))
        if self._audit_logger:
            await self._audit_logger.log_storage_error(operation, key, str(error))

    async def load(self, key: str) -> list[T]:
        """
        Read a collection. An absent key is an empty collection.

        Raises:
            LedgerReadError: If storage fails or the stored JSON is invalid
        """
        try:
            raw = await self._store.get_item(key)
        except StorageError as e:
            await self._storage_failed("read", key, e)
            raise LedgerReadError(str(e)) from e

        if raw is None or raw == "":
            return []

        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            await self._storage_failed("decode", key, e)
            raise LedgerReadError(f"Corrupt data under {key}") from e

    async def save(
        self,
        key: str,
        items: list[T],
        error: Type[LedgerError] = LedgerWriteError,
    ) -> None:
        """
        Write a whole collection in one storage call.

        Raises:
            LedgerWriteError: (or `error`) If storage fails
        """
        payload = json.dumps([item.to_storage() for item in items])
        try:
            await self._store.set_item(key, payload)
        except StorageError as e:
            await self._storage_failed("write", key, e)
            raise error(str(e)) from e
