"""
Persisted key layout.

With the default prefixes:
    budget_app_2024-05              month partition (JSON array of transactions)
    budget_app_recurring_rules      all recurring rules (JSON array)
    budget_app_custom_categories    custom categories (JSON array)
    budget_app_crypto_portfolio     crypto holdings (JSON array)
    budget_limit_2024-05            budget for a month (decimal string)
"""

import re
from typing import Optional

from src.config.settings import LedgerSettings
from src.models.ledger import YearMonth


class LedgerKeys:
    """Builds and recognises storage keys for one prefix configuration."""

    def __init__(self, settings: Optional[LedgerSettings] = None):
        settings = settings or LedgerSettings()
        self.prefix = settings.key_prefix
        self.budget_prefix = settings.budget_key_prefix
        self._partition_re = re.compile(rf"^{re.escape(self.prefix)}(\d{{4}}-\d{{2}})$")

    def partition(self, month: YearMonth) -> str:
        return f"{self.prefix}{month}"

    def budget(self, month: YearMonth) -> str:
        return f"{self.budget_prefix}{month}"

    @property
    def recurring_rules(self) -> str:
        return f"{self.prefix}recurring_rules"

    @property
    def custom_categories(self) -> str:
        return f"{self.prefix}custom_categories"

    @property
    def crypto_portfolio(self) -> str:
        return f"{self.prefix}crypto_portfolio"

    def partition_month(self, key: str) -> Optional[YearMonth]:
        """Month of a partition key, or None if the key is not a partition."""
        match = self._partition_re.match(key)
        if not match:
            return None
        try:
            return YearMonth.parse(match.group(1))
        except ValueError:
            # e.g. budget_app_2024-13
            return None

    def is_partition(self, key: str) -> bool:
        return self.partition_month(key) is not None
