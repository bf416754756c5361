"""
Shared fixtures.

All tests run against the in-memory store; nothing touches the network
or the real data file.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from src.ledger import (
    BudgetStore,
    CategoryStore,
    CrossMonthEditReconciler,
    LedgerKeys,
    LedgerPartitionManager,
    RecurrenceMaterializer,
    RecurringRuleStore,
)
from src.models.ledger import RecurringRule, Transaction, TransactionType, YearMonth
from src.services.storage import InMemoryKeyValueStore, StorageError


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def make_tx(
    id: str,
    when: datetime,
    amount: str = "10.00",
    category: str = "Food",
    type: TransactionType = TransactionType.EXPENSE,
    rule_id: Optional[str] = None,
) -> Transaction:
    return Transaction(
        id=id,
        amount=Decimal(amount),
        category=category,
        date=when,
        type=type,
        recurring_rule_id=rule_id,
    )


def make_rule(
    id: str,
    last_generated: str,
    day: int = 15,
    amount: str = "99.00",
    category: str = "Rent",
) -> RecurringRule:
    return RecurringRule(
        id=id,
        amount=Decimal(amount),
        category=category,
        day_of_month=day,
        last_generated_month=YearMonth.parse(last_generated),
    )


class FailingStore(InMemoryKeyValueStore):
    """In-memory store whose writes to chosen keys fail after a number of successes."""

    def __init__(self, fail_key: Optional[str] = None, succeed_times: int = 0, fail_reads: bool = False):
        super().__init__()
        self.fail_key = fail_key
        self.succeed_times = succeed_times
        self.fail_reads = fail_reads
        self.writes: list[str] = []

    async def get_item(self, key):
        if self.fail_reads:
            raise StorageError("disk unavailable")
        return await super().get_item(key)

    async def set_item(self, key, value):
        if key == self.fail_key:
            if self.succeed_times <= 0:
                raise StorageError("disk full")
            self.succeed_times -= 1
        self.writes.append(key)
        await super().set_item(key, value)


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def keys():
    return LedgerKeys()


@pytest.fixture
def ledger(store, keys):
    return LedgerPartitionManager(store, keys)


@pytest.fixture
def rules(store, keys):
    return RecurringRuleStore(store, keys)


@pytest.fixture
def materializer(ledger, rules):
    return RecurrenceMaterializer(ledger, rules)


@pytest.fixture
def reconciler(ledger, rules):
    return CrossMonthEditReconciler(ledger, rules)


@pytest.fixture
def budgets(store, keys):
    return BudgetStore(store, keys)


@pytest.fixture
def categories(store, keys):
    return CategoryStore(store, keys)
