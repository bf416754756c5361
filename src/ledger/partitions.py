"""
Ledger Partition Manager

Owns the mapping of calendar month -> ordered list of transactions.
Each month is one storage key; every call reads and rewrites the whole
partition, so cost is linear in the size of the month.

GUARANTEES:
- A transaction is only ever written into the partition of its own month
- New transactions go to the head of the list; updates keep their position
- Partition order is otherwise never changed
"""

from typing import Callable, Optional, Union

import structlog

from src.audit import AuditLogger
from src.ledger.collection import JsonCollection
from src.ledger.errors import LedgerDeleteError, LedgerReadError
from src.ledger.keys import LedgerKeys
from src.models.ledger import Transaction, YearMonth
from src.services.storage import KeyValueStoreInterface, StorageError


MonthLike = Union[YearMonth, str]

logger = structlog.get_logger(__name__)


class LedgerPartitionManager:
    """CRUD on month partitions."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        keys: Optional[LedgerKeys] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._keys = keys or LedgerKeys()
        self._audit_logger = audit_logger
        self._collection = JsonCollection(store, Transaction, audit_logger)

    @property
    def keys(self) -> LedgerKeys:
        return self._keys

    async def list_transactions(self, month: MonthLike) -> list[Transaction]:
        """All transactions of a month in stored order; [] if the month is empty."""
        month = YearMonth.coerce(month)
        return await self._collection.load(self._keys.partition(month))

    async def upsert_transaction(self, month: MonthLike, transaction: Transaction) -> bool:
        """
        Insert or replace a transaction in a month partition.

        Returns:
            True if the transaction was new (prepended), False if replaced in place

        Raises:
            ValueError: If the transaction's date is not in `month`
            LedgerReadError / LedgerWriteError: On storage failure
        """
        month = YearMonth.coerce(month)
        if transaction.month != month:
            raise ValueError(
                f"Transaction {transaction.id} is dated {transaction.month}, not {month}"
            )

        key = self._keys.partition(month)
        current = await self._collection.load(key)

        for index, existing in enumerate(current):
            if existing.id == transaction.id:
                current[index] = transaction
                created = False
                break
        else:
            current.insert(0, transaction)
            created = True

        await self._collection.save(key, current)

        logger.debug("transaction_upserted", month=str(month), transaction_id=transaction.id, created=created)
        if self._audit_logger:
            await self._audit_logger.log_transaction_saved(transaction.id, str(month), created)
        return created

    async def remove_transaction(self, month: MonthLike, transaction_id: str) -> bool:
        """
        Remove a transaction by id.

        The partition is rewritten even when nothing matched.

        Returns:
            True if a transaction was removed
        """
        month = YearMonth.coerce(month)
        key = self._keys.partition(month)
        current = await self._collection.load(key)
        remaining = [t for t in current if t.id != transaction_id]
        await self._collection.save(key, remaining, error=LedgerDeleteError)

        found = len(remaining) != len(current)
        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(transaction_id, str(month), found)
        return found

    async def remove_matching(
        self,
        month: MonthLike,
        predicate: Callable[[Transaction], bool],
    ) -> list[Transaction]:
        """
        Remove every transaction of a month for which `predicate` is true.

        Unlike remove_transaction, the partition is only rewritten if
        something was actually removed.

        Returns:
            The removed transactions
        """
        month = YearMonth.coerce(month)
        key = self._keys.partition(month)
        current = await self._collection.load(key)

        removed = [t for t in current if predicate(t)]
        if removed:
            remaining = [t for t in current if not predicate(t)]
            await self._collection.save(key, remaining, error=LedgerDeleteError)
        return removed

    async def _all_keys(self) -> list[str]:
        try:
            return await self._store.get_all_keys()
        except StorageError as e:
            raise LedgerReadError(str(e)) from e

    async def list_partition_months(self) -> list[YearMonth]:
        """Months that have a stored partition, oldest first."""
        months = [self._keys.partition_month(k) for k in await self._all_keys()]
        return sorted(m for m in months if m is not None)

    async def clear_transactions(self) -> int:
        """
        Remove every month partition, keeping rules, budgets and other keys.

        Returns:
            Number of partitions removed
        """
        partition_keys = [k for k in await self._all_keys() if self._keys.is_partition(k)]
        try:
            await self._store.multi_remove(partition_keys)
        except StorageError as e:
            raise LedgerDeleteError(str(e)) from e

        if self._audit_logger:
            await self._audit_logger.log_transactions_cleared(len(partition_keys))
        return len(partition_keys)

    async def clear_all(self) -> int:
        """
        Remove every stored key.

        Returns:
            Number of keys removed
        """
        all_keys = await self._all_keys()
        try:
            await self._store.multi_remove(all_keys)
        except StorageError as e:
            raise LedgerDeleteError(str(e)) from e

        if self._audit_logger:
            await self._audit_logger.log_all_data_cleared(len(all_keys))
        return len(all_keys)
