"""
Recurring Rule Store

All rules live under one key as a flat JSON array. Same read-modify-write
pattern as month partitions.
"""

from typing import Optional

from src.audit import AuditLogger
from src.ledger.collection import JsonCollection
from src.ledger.errors import LedgerDeleteError
from src.ledger.keys import LedgerKeys
from src.models.ledger import RecurringRule
from src.services.storage import KeyValueStoreInterface


class RecurringRuleStore:
    """Owns the rule collection."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        keys: Optional[LedgerKeys] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._keys = keys or LedgerKeys()
        self._audit_logger = audit_logger
        self._collection = JsonCollection(store, RecurringRule, audit_logger)

    async def list_rules(self) -> list[RecurringRule]:
        return await self._collection.load(self._keys.recurring_rules)

    async def get_rule(self, rule_id: str) -> Optional[RecurringRule]:
        for rule in await self.list_rules():
            if rule.id == rule_id:
                return rule
        return None

    async def add_rule(self, rule: RecurringRule) -> None:
        """Append a rule. The caller guarantees the id is unused."""
        rules = await self.list_rules()
        rules.append(rule)
        await self._collection.save(self._keys.recurring_rules, rules)

        if self._audit_logger:
            await self._audit_logger.log_rule_created(
                rule.id, str(rule.last_generated_month), rule.day_of_month
            )

    async def remove_rule(self, rule_id: str) -> bool:
        """Remove a rule by id. Returns True if it existed."""
        rules = await self.list_rules()
        remaining = [r for r in rules if r.id != rule_id]
        await self._collection.save(
            self._keys.recurring_rules, remaining, error=LedgerDeleteError
        )

        found = len(remaining) != len(rules)
        if found and self._audit_logger:
            await self._audit_logger.log_rule_deleted(rule_id)
        return found

    async def save_rules(self, rules: list[RecurringRule]) -> None:
        """Replace the whole rule collection in one write."""
        await self._collection.save(self._keys.recurring_rules, rules)
