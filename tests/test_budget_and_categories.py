"""
Tests for the budget, rule and category stores.
"""

from decimal import Decimal

import pytest

from src.ledger import BudgetStore, LedgerKeys, LedgerWriteError
from src.ledger.budget import parse_budget
from src.models.category import CATEGORY_PALETTE, DEFAULT_CATEGORIES
from src.services.storage import DuplicateError

from tests.conftest import FailingStore, make_rule


class TestBudgetStore:
    """Tests for month budgets."""

    @pytest.mark.asyncio
    async def test_default_when_unset(self, budgets):
        """Test a month without a budget reads as the default."""
        assert await budgets.get_budget("2024-03") == Decimal("5000")

    @pytest.mark.asyncio
    async def test_set_and_get(self, budgets, store):
        """Test budgets are stored per month as plain strings."""
        assert await budgets.set_budget("2024-03", "1250.50") == Decimal("1250.50")
        assert await store.get_item("budget_limit_2024-03") == "1250.50"
        assert await budgets.get_budget("2024-03") == Decimal("1250.50")
        assert await budgets.get_budget("2024-04") == Decimal("5000")

    @pytest.mark.asyncio
    async def test_zero_budget_is_kept(self, budgets):
        """Test zero is a valid budget, not a missing one."""
        await budgets.set_budget("2024-03", 0)
        assert await budgets.get_budget("2024-03") == Decimal("0")

    @pytest.mark.asyncio
    async def test_unparseable_value_gives_default(self, budgets, store):
        """Test garbage under a budget key falls back to the default."""
        await store.set_item("budget_limit_2024-03", "lots")
        assert await budgets.get_budget("2024-03") == Decimal("5000")

    @pytest.mark.asyncio
    async def test_rejects_invalid_amounts(self, budgets):
        """Test negative and non-numeric budgets are refused."""
        for bad in ["-1", "abc", "NaN", "Infinity"]:
            with pytest.raises(ValueError):
                await budgets.set_budget("2024-03", bad)

    @pytest.mark.asyncio
    async def test_read_failure_gives_default(self):
        """Test a failing store read still yields a budget."""
        budgets = BudgetStore(FailingStore(fail_reads=True), LedgerKeys(), default=Decimal("300"))
        assert await budgets.get_budget("2024-03") == Decimal("300")

    @pytest.mark.asyncio
    async def test_write_failure(self):
        """Test a failing write raises a ledger error."""
        budgets = BudgetStore(FailingStore(fail_key="budget_limit_2024-03"), LedgerKeys())
        with pytest.raises(LedgerWriteError):
            await budgets.set_budget("2024-03", "100")

    def test_parse_budget(self):
        """Test the stored string parser."""
        assert parse_budget(" 42.5 ") == Decimal("42.5")
        assert parse_budget(None) is None
        assert parse_budget("") is None
        assert parse_budget("-3") is None


class TestRecurringRuleStore:
    """Tests for the rule collection."""

    @pytest.mark.asyncio
    async def test_add_get_remove(self, rules):
        """Test the rule lifecycle."""
        await rules.add_rule(make_rule("r1", "2024-05"))
        await rules.add_rule(make_rule("r2", "2024-05"))

        assert [r.id for r in await rules.list_rules()] == ["r1", "r2"]
        assert (await rules.get_rule("r2")).id == "r2"
        assert await rules.get_rule("missing") is None

        assert await rules.remove_rule("r1") is True
        assert await rules.remove_rule("r1") is False
        assert [r.id for r in await rules.list_rules()] == ["r2"]

    @pytest.mark.asyncio
    async def test_stored_layout(self, rules, store):
        """Test rules are persisted with camelCase names."""
        await rules.add_rule(make_rule("r1", "2024-05", day=3))
        raw = await store.get_item("budget_app_recurring_rules")
        assert '"dayOfMonth": 3' in raw
        assert '"lastGeneratedMonth": "2024-05"' in raw


class TestCategoryStore:
    """Tests for default and custom categories."""

    @pytest.mark.asyncio
    async def test_defaults_only(self, categories):
        """Test the list without customs."""
        assert await categories.list_categories() == DEFAULT_CATEGORIES

    @pytest.mark.asyncio
    async def test_add_custom(self, categories):
        """Test custom categories follow the defaults and take palette colours in turn."""
        pets = await categories.add_custom_category("  Pets ")
        travel = await categories.add_custom_category("Travel")

        assert pets.name == "Pets"
        assert pets.color == CATEGORY_PALETTE[0]
        assert travel.color == CATEGORY_PALETTE[1]
        assert (await categories.list_categories())[-2:] == ["Pets", "Travel"]

    @pytest.mark.asyncio
    async def test_duplicates_rejected(self, categories):
        """Test names are unique regardless of case."""
        await categories.add_custom_category("Pets")
        with pytest.raises(DuplicateError):
            await categories.add_custom_category("pets")
        with pytest.raises(DuplicateError):
            await categories.add_custom_category("FOOD")

    @pytest.mark.asyncio
    async def test_blank_rejected(self, categories):
        """Test a blank name is refused."""
        with pytest.raises(ValueError):
            await categories.add_custom_category("   ")

    @pytest.mark.asyncio
    async def test_delete_custom(self, categories):
        """Test deleting a custom category."""
        await categories.add_custom_category("Pets")
        assert await categories.delete_custom_category("Pets") is True
        assert await categories.delete_custom_category("Pets") is False
        assert await categories.list_custom_categories() == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
