"""
Recurrence Materializer

Turns recurring rules into concrete transactions for the month being
viewed. Runs on every month activation, before the partition is read.

Policy:
- A rule produces an instance for a month only if its watermark is
  earlier than that month; the watermark then jumps to that month
- Months that were never viewed are NOT back-filled
- Re-running for an already processed month is a no-op
- Day-of-month past the end of a short month is clamped to its last day

Failure is best-effort: there is no rollback across the partition write
and the rule write. If an instance write fails, rules advanced so far are
still persisted before the error propagates, so the next run does not
duplicate their instances.
"""

from typing import Optional, Union

import structlog

from src.audit import AuditLogger
from src.ledger.errors import LedgerError
from src.ledger.partitions import LedgerPartitionManager
from src.ledger.rules import RecurringRuleStore
from src.models.ledger import Transaction, YearMonth


logger = structlog.get_logger(__name__)


class RecurrenceMaterializer:
    """Generates missing recurring instances for a month."""

    def __init__(
        self,
        ledger: LedgerPartitionManager,
        rules: RecurringRuleStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._rules = rules
        self._audit_logger = audit_logger

    async def materialize(self, month: Union[YearMonth, str]) -> list[Transaction]:
        """
        Ensure every rule has its instance in `month`.

        Returns:
            The transactions generated by this run (empty if nothing was due)

        Raises:
            LedgerError: If reading rules, writing an instance or saving
                the advanced watermarks fails
        """
        month = YearMonth.coerce(month)
        rules = await self._rules.list_rules()
        generated: list[Transaction] = []

        try:
            for rule in rules:
                if not rule.needs_instance_for(month):
                    continue
                instance = rule.instantiate(month)
                await self._ledger.upsert_transaction(month, instance)
                rule.last_generated_month = month
                generated.append(instance)
        except LedgerError:
            if generated:
                logger.warning(
                    "materialization_interrupted",
                    month=str(month),
                    generated=len(generated),
                )
                await self._rules.save_rules(rules)
            raise

        if generated:
            # One write for all advanced watermarks
            await self._rules.save_rules(rules)
            logger.info("month_materialized", month=str(month), generated=len(generated))
            if self._audit_logger:
                await self._audit_logger.log_month_materialized(
                    str(month), [t.recurring_rule_id for t in generated]
                )

        return generated
