"""
Ledger package.

The month-partitioned transaction ledger and the recurring-transaction
engine that keeps it filled.
"""

from src.ledger.budget import DEFAULT_MONTHLY_BUDGET, BudgetStore
from src.ledger.categories import CategoryStore
from src.ledger.errors import (
    LedgerDeleteError,
    LedgerError,
    LedgerReadError,
    LedgerWriteError,
)
from src.ledger.keys import LedgerKeys
from src.ledger.materializer import RecurrenceMaterializer
from src.ledger.partitions import LedgerPartitionManager
from src.ledger.reconciler import CrossMonthEditReconciler, EditOutcome
from src.ledger.rules import RecurringRuleStore

__all__ = [
    "DEFAULT_MONTHLY_BUDGET",
    "BudgetStore",
    "CategoryStore",
    "CrossMonthEditReconciler",
    "EditOutcome",
    "LedgerDeleteError",
    "LedgerError",
    "LedgerKeys",
    "LedgerPartitionManager",
    "LedgerReadError",
    "LedgerWriteError",
    "RecurrenceMaterializer",
    "RecurringRuleStore",
]
