"""
Cross-Month Edit Reconciler

Keeps partitions correct when an edit moves a transaction to another
month, and manages the recurring rule bound to a transaction when the
user toggles "repeats monthly".

Recurrence state of an edited transaction:
    OFF -> ON    new rule (watermark = the transaction's month); the
                 transaction carries the new rule's id
    ON  -> ON    nothing changes
    ON  -> OFF   rule deleted, its instances dated after the edited one
                 are purged; the edited transaction is kept as a plain one

"ON" means the transaction carries a recurring_rule_id that still exists
in the rule store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

import structlog
from pydantic import TypeAdapter

from src.audit import AuditLogger
from src.ledger.partitions import LedgerPartitionManager
from src.ledger.rules import RecurringRuleStore
from src.models.ledger import RecurringRule, Transaction, YearMonth, to_utc


DateLike = Union[datetime, str]

_DATETIME = TypeAdapter(datetime)

logger = structlog.get_logger(__name__)


def as_datetime(value: DateLike) -> datetime:
    """Parse ISO strings (including a trailing 'Z') and normalise to UTC."""
    if isinstance(value, str):
        value = _DATETIME.validate_python(value)
    return to_utc(value)


@dataclass
class EditOutcome:
    """What an add/update did, so callers know which months to reload."""

    transaction: Transaction
    new_month: YearMonth
    old_month: YearMonth
    rule_created: Optional[RecurringRule] = None
    rule_deleted: Optional[str] = None
    purged: dict[str, int] = field(default_factory=dict)

    @property
    def moved(self) -> bool:
        return self.old_month != self.new_month

    def touches(self, month: YearMonth) -> bool:
        """True if the displayed `month` needs a reload after this edit."""
        if month in (self.new_month, self.old_month):
            return True
        return any(YearMonth.parse(m) == month for m in self.purged)


class CrossMonthEditReconciler:
    """Transaction add/edit/delete flows that span partitions and rules."""

    def __init__(
        self,
        ledger: LedgerPartitionManager,
        rules: RecurringRuleStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._rules = rules
        self._audit_logger = audit_logger

    async def _is_active(self, rule_id: Optional[str]) -> bool:
        return rule_id is not None and await self._rules.get_rule(rule_id) is not None

    async def add_transaction(
        self,
        transaction: Transaction,
        is_recurring: bool = False,
    ) -> EditOutcome:
        """
        Save a new transaction into its own month.

        When `is_recurring`, a rule is created that is already marked as
        generated for that month, and the transaction carries its id.
        """
        month = transaction.month
        rule = None
        if is_recurring:
            rule = RecurringRule.from_transaction(transaction)
            transaction = transaction.model_copy(update={"recurring_rule_id": rule.id})

        await self._ledger.upsert_transaction(month, transaction)
        if rule is not None:
            await self._rules.add_rule(rule)

        return EditOutcome(
            transaction=transaction,
            new_month=month,
            old_month=month,
            rule_created=rule,
        )

    async def update_transaction(
        self,
        transaction: Transaction,
        old_date: Optional[DateLike] = None,
        is_recurring: bool = False,
    ) -> EditOutcome:
        """
        Save an edited transaction, moving it between months if its date
        changed month, and apply the recurrence toggle.

        Args:
            transaction: The edited record (same id as the stored one)
            old_date: The date before the edit; omit if it did not change
            is_recurring: The desired recurrence state after the edit
        """
        new_month = transaction.month
        old_month = YearMonth.from_datetime(as_datetime(old_date)) if old_date else new_month

        was_recurring = await self._is_active(transaction.recurring_rule_id)
        rule_to_create = None
        rule_to_delete = None

        if is_recurring and not was_recurring:
            rule_to_create = RecurringRule.from_transaction(transaction)
            transaction = transaction.model_copy(update={"recurring_rule_id": rule_to_create.id})
        elif was_recurring and not is_recurring:
            rule_to_delete = transaction.recurring_rule_id
            transaction = transaction.model_copy(update={"recurring_rule_id": None})

        if old_month != new_month:
            await self._ledger.remove_transaction(old_month, transaction.id)
            logger.info(
                "transaction_moved",
                transaction_id=transaction.id,
                old_month=str(old_month),
                new_month=str(new_month),
            )
            if self._audit_logger:
                await self._audit_logger.log_transaction_moved(
                    transaction.id, str(old_month), str(new_month)
                )

        await self._ledger.upsert_transaction(new_month, transaction)

        outcome = EditOutcome(
            transaction=transaction,
            new_month=new_month,
            old_month=old_month,
        )
        if rule_to_create is not None:
            await self._rules.add_rule(rule_to_create)
            outcome.rule_created = rule_to_create
        if rule_to_delete is not None:
            outcome.purged = await self.delete_recurring_rule(rule_to_delete, transaction.date)
            outcome.rule_deleted = rule_to_delete
        return outcome

    async def delete_transaction(self, month: Union[YearMonth, str], transaction_id: str) -> bool:
        return await self._ledger.remove_transaction(month, transaction_id)

    async def delete_recurring_rule(
        self,
        rule_id: str,
        current_transaction_date: Optional[DateLike] = None,
    ) -> dict[str, int]:
        """
        Delete a rule and, when a date is given, its instances after that date.

        Returns:
            Number of instances removed per month ("YYYY-MM" -> count)
        """
        await self._rules.remove_rule(rule_id)
        if current_transaction_date is None:
            return {}
        return await self.delete_future_instances(rule_id, current_transaction_date)

    async def delete_future_instances(self, rule_id: str, from_date: DateLike) -> dict[str, int]:
        """
        Remove a rule's instances dated strictly after `from_date`.

        In the month of `from_date` only instances with a later timestamp
        go; in every later month all of the rule's instances go. Earlier
        months are never touched, and a partition is only rewritten if
        something was removed from it.

        Returns:
            Number of instances removed per month ("YYYY-MM" -> count)
        """
        from_date = as_datetime(from_date)
        from_month = YearMonth.from_datetime(from_date)
        removed_by_month: dict[str, int] = {}

        for month in await self._ledger.list_partition_months():
            if month < from_month:
                continue

            if month == from_month:
                def doomed(t: Transaction) -> bool:
                    return t.recurring_rule_id == rule_id and t.date > from_date
            else:
                def doomed(t: Transaction) -> bool:
                    return t.recurring_rule_id == rule_id

            removed = await self._ledger.remove_matching(month, doomed)
            if removed:
                removed_by_month[str(month)] = len(removed)

        if removed_by_month:
            logger.info(
                "future_instances_purged",
                rule_id=rule_id,
                from_date=from_date.isoformat(),
                removed=removed_by_month,
            )
            if self._audit_logger:
                await self._audit_logger.log_future_instances_purged(
                    rule_id, from_date.isoformat(), removed_by_month
                )
        return removed_by_month
