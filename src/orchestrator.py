"""
Main Orchestrator for the Monthly Ledger

This module ties together all the components and defines the
end-to-end flows a front end drives:
1. Budget session (month switch -> materialize -> read; add/edit/delete)
2. Portfolio view (holdings -> prices -> valuation)

DESIGN DECISION: Application state is an explicit object passed to the
front end, not a global. Every mutating action reloads the session when
it touched the displayed month, and every reload runs the recurrence
materializer before reading the partition.
"""

from decimal import Decimal
from typing import Optional, Union

import structlog

from src.audit import AuditLogger, configure_logging
from src.config import get_settings
from src.ledger import (
    BudgetStore,
    CategoryStore,
    CrossMonthEditReconciler,
    EditOutcome,
    LedgerKeys,
    LedgerPartitionManager,
    RecurrenceMaterializer,
    RecurringRuleStore,
)
from src.ledger.reconciler import DateLike, as_datetime
from src.models.category import DEFAULT_CATEGORIES, Category
from src.models.crypto import CoinPrice, CryptoAsset, PortfolioSummary
from src.models.ledger import RecurringRule, Transaction, YearMonth
from src.portfolio import PortfolioStore, value_portfolio
from src.services.prices import CoinGeckoClient
from src.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
)


logger = structlog.get_logger(__name__)


class BudgetSession:
    """
    State of the budget screens for one displayed month.

    Attributes mirror what the screens render: the month's transactions,
    all recurring rules, the month's budget and the custom categories.
    """

    def __init__(
        self,
        ledger: LedgerPartitionManager,
        rules: RecurringRuleStore,
        materializer: RecurrenceMaterializer,
        reconciler: CrossMonthEditReconciler,
        budgets: BudgetStore,
        categories: CategoryStore,
        current_month: Optional[Union[YearMonth, str]] = None,
    ):
        self._ledger = ledger
        self._rules = rules
        self._materializer = materializer
        self._reconciler = reconciler
        self._budgets = budgets
        self._categories = categories

        self.current_month = YearMonth.coerce(current_month) if current_month else YearMonth.current()
        self.transactions: list[Transaction] = []
        self.recurring_rules: list[RecurringRule] = []
        self.monthly_budget: Decimal = budgets.default
        self.custom_categories: list[Category] = []
        self.loading = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def reload(self, month: Optional[Union[YearMonth, str]] = None) -> None:
        """
        Materialize recurring instances for the month, then read it.

        Raises:
            LedgerError: If any read or the materialization fails; the
                displayed month and loaded state are left as they were
        """
        month = YearMonth.coerce(month) if month is not None else self.current_month

        self.loading = True
        try:
            await self._materializer.materialize(month)
            transactions = await self._ledger.list_transactions(month)
            budget = await self._budgets.get_budget(month)
            rules = await self._rules.list_rules()
            customs = await self._categories.list_custom_categories()
        finally:
            self.loading = False

        self.current_month = month
        self.transactions = transactions
        self.monthly_budget = budget
        self.recurring_rules = rules
        self.custom_categories = customs

    async def switch_month(self, month: Union[YearMonth, str]) -> None:
        await self.reload(month)

    # ------------------------------------------------------------------
    # Transactions and rules
    # ------------------------------------------------------------------

    async def add_transaction(
        self,
        transaction: Transaction,
        is_recurring: bool = False,
    ) -> EditOutcome:
        outcome = await self._reconciler.add_transaction(transaction, is_recurring)
        await self._reload_if_touched(outcome)
        return outcome

    async def update_transaction(
        self,
        transaction: Transaction,
        old_date: Optional[DateLike] = None,
        is_recurring: bool = False,
    ) -> EditOutcome:
        outcome = await self._reconciler.update_transaction(transaction, old_date, is_recurring)
        await self._reload_if_touched(outcome)
        return outcome

    async def delete_transaction(self, transaction_id: str) -> bool:
        """Delete a transaction from the displayed month."""
        found = await self._reconciler.delete_transaction(self.current_month, transaction_id)
        await self.reload()
        return found

    async def delete_recurring_rule(
        self,
        rule_id: str,
        current_transaction_date: Optional[DateLike] = None,
    ) -> dict[str, int]:
        purged = await self._reconciler.delete_recurring_rule(rule_id, current_transaction_date)
        if current_transaction_date is not None and (
            YearMonth.from_datetime(as_datetime(current_transaction_date)) <= self.current_month
        ):
            await self.reload()
        else:
            self.recurring_rules = await self._rules.list_rules()
        return purged

    async def _reload_if_touched(self, outcome: EditOutcome) -> None:
        # A new rule may already owe the displayed month an instance
        if outcome.touches(self.current_month) or outcome.rule_created:
            await self.reload()
        elif outcome.rule_deleted:
            self.recurring_rules = await self._rules.list_rules()

    def is_rule_active(self, rule_id: Optional[str]) -> bool:
        """True if a transaction's rule id refers to a rule that still exists."""
        return rule_id is not None and any(r.id == rule_id for r in self.recurring_rules)

    # ------------------------------------------------------------------
    # Budget and bulk actions
    # ------------------------------------------------------------------

    async def set_budget(self, amount: Union[Decimal, int, float, str]) -> None:
        self.monthly_budget = await self._budgets.set_budget(self.current_month, amount)

    async def clear_transactions(self) -> int:
        """Remove every month partition; rules, budgets and categories stay."""
        count = await self._ledger.clear_transactions()
        await self.reload()
        return count

    async def clear_all_data(self) -> int:
        count = await self._ledger.clear_all()
        await self.reload()
        return count

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    @property
    def categories(self) -> list[str]:
        return DEFAULT_CATEGORIES + [c.name for c in self.custom_categories]

    async def add_custom_category(self, name: str) -> Category:
        category = await self._categories.add_custom_category(name)
        self.custom_categories = await self._categories.list_custom_categories()
        return category

    async def delete_custom_category(self, name: str) -> bool:
        found = await self._categories.delete_custom_category(name)
        self.custom_categories = await self._categories.list_custom_categories()
        return found

    # ------------------------------------------------------------------
    # Derived figures
    # ------------------------------------------------------------------

    @property
    def total_spent(self) -> Decimal:
        return sum((t.amount for t in self.transactions if t.is_expense), Decimal("0"))

    @property
    def total_income(self) -> Decimal:
        return sum((t.amount for t in self.transactions if not t.is_expense), Decimal("0"))

    @property
    def remaining_balance(self) -> Decimal:
        return self.monthly_budget - self.total_spent


class PortfolioView:
    """
    Crypto screens: holdings valued at live prices.

    Price failures never surface here; the client already turned them
    into empty results, so holdings simply show without a price.
    """

    def __init__(self, store: PortfolioStore, prices: CoinGeckoClient):
        self._store = store
        self._prices = prices

    @property
    def store(self) -> PortfolioStore:
        return self._store

    async def load(self) -> PortfolioSummary:
        assets = await self._store.get_portfolio()
        if not assets:
            return PortfolioSummary()
        quotes = await self._prices.fetch_prices(a.id for a in assets)
        return value_portfolio(assets, quotes)

    async def asset_detail(
        self,
        asset_id: str,
        days: Union[int, str] = 1,
    ) -> tuple[Optional[CryptoAsset], Optional[CoinPrice], list[tuple[float, float]]]:
        """
        Returns:
            (held asset or None, current quote or None, price history)
        """
        asset = await self._store.get_asset(asset_id)
        quotes = await self._prices.fetch_prices([asset_id])
        chart = await self._prices.fetch_market_chart(asset_id, days)
        return asset, (quotes[0] if quotes else None), chart


def create_store(backend: Optional[str] = None) -> KeyValueStoreInterface:
    """
    Build the configured key-value store.

    Args:
        backend: Override for STORAGE_BACKEND ("memory", "file", "google_sheets")
    """
    settings = get_settings().storage
    backend = backend or settings.backend

    if backend == "memory":
        return InMemoryKeyValueStore()
    if backend == "google_sheets":
        return GoogleSheetsKeyValueStore(GoogleSheetsClient())
    if backend == "file":
        return JsonFileKeyValueStore(settings.data_path, settings.lock_timeout_seconds)
    raise ValueError(f"Unknown storage backend: {backend}")


def create_app_components(
    store: Optional[KeyValueStoreInterface] = None,
    current_month: Optional[Union[YearMonth, str]] = None,
    price_client: Optional[CoinGeckoClient] = None,
) -> tuple[BudgetSession, PortfolioView]:
    """
    Factory function to create all application components.

    Args:
        store: Key-value store to use. Defaults to the configured backend.
        current_month: Month to display first. Defaults to the current month.
        price_client: Market data client. Defaults to CoinGecko with settings.

    Returns:
        (budget_session, portfolio_view)
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    if store is None:
        store = create_store()
    ledger_settings = settings.ledger
    keys = LedgerKeys(ledger_settings)
    audit_logger = AuditLogger()

    ledger = LedgerPartitionManager(store, keys, audit_logger)
    rules = RecurringRuleStore(store, keys, audit_logger)
    session = BudgetSession(
        ledger=ledger,
        rules=rules,
        materializer=RecurrenceMaterializer(ledger, rules, audit_logger),
        reconciler=CrossMonthEditReconciler(ledger, rules, audit_logger),
        budgets=BudgetStore(store, keys, ledger_settings.default_monthly_budget, audit_logger),
        categories=CategoryStore(store, keys, audit_logger),
        current_month=current_month,
    )

    portfolio_view = PortfolioView(
        PortfolioStore(store, keys, audit_logger),
        price_client or CoinGeckoClient(audit_logger=audit_logger),
    )

    logger.info("app_components_created", store=type(store).__name__, month=str(session.current_month))
    return session, portfolio_view
