"""
Budget Store

One decimal ceiling per month, stored as a plain string under its own
key. Reads never fail: a missing, unreadable or malformed value gives the
configured default.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

import structlog

from src.audit import AuditLogger
from src.ledger.errors import LedgerWriteError
from src.ledger.keys import LedgerKeys
from src.models.ledger import YearMonth
from src.services.storage import KeyValueStoreInterface, StorageError


DEFAULT_MONTHLY_BUDGET = Decimal("5000")

logger = structlog.get_logger(__name__)


def parse_budget(raw: Optional[str]) -> Optional[Decimal]:
    """Decimal from a stored budget string, or None if it is not a usable amount."""
    if raw is None:
        return None
    try:
        value = Decimal(raw.strip())
    except (InvalidOperation, AttributeError):
        return None
    if not value.is_finite() or value < 0:
        return None
    return value


class BudgetStore:
    """Month-keyed budget ceilings."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        keys: Optional[LedgerKeys] = None,
        default: Decimal = DEFAULT_MONTHLY_BUDGET,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._keys = keys or LedgerKeys()
        self._default = default
        self._audit_logger = audit_logger

    @property
    def default(self) -> Decimal:
        return self._default

    async def get_budget(self, month: Union[YearMonth, str]) -> Decimal:
        month = YearMonth.coerce(month)
        key = self._keys.budget(month)
        try:
            raw = await self._store.get_item(key)
        except StorageError as e:
            logger.warning("budget_read_failed", month=str(month), error=str(e))
            return self._default

        value = parse_budget(raw)
        if value is None:
            if raw is not None:
                logger.warning("budget_unparseable", month=str(month), raw=raw)
            return self._default
        return value

    async def set_budget(self, month: Union[YearMonth, str], amount: Union[Decimal, int, float, str]) -> Decimal:
        """
        Store a month's budget.

        Raises:
            ValueError: If the amount is not a finite, non-negative number
            LedgerWriteError: If storage fails
        """
        month = YearMonth.coerce(month)
        value = parse_budget(str(amount))
        if value is None:
            raise ValueError(f"Budget must be a non-negative number, got {amount!r}")

        key = self._keys.budget(month)
        try:
            await self._store.set_item(key, str(value))
        except StorageError as e:
            logger.error("budget_write_failed", month=str(month), error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_storage_error("write", key, str(e))
            raise LedgerWriteError(str(e)) from e

        if self._audit_logger:
            await self._audit_logger.log_budget_updated(str(month), str(value))
        return value
