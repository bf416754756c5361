"""
Tests for the ledger models

Test strategy:
1. Unit tests for models and value types
2. Ledger components against the in-memory store
3. No real API calls in tests (httpx.MockTransport)
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from src.audit import AuditLogger
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from src.models.category import CATEGORY_PALETTE, DEFAULT_CATEGORIES, Category
from src.models.crypto import CryptoAsset
from src.models.ledger import (
    RecurringRule,
    Transaction,
    TransactionType,
    YearMonth,
)

from tests.conftest import make_rule, make_tx, utc


class TestYearMonth:
    """Tests for the typed month value."""

    def test_parse_and_format(self):
        """Test round trip through the YYYY-MM form."""
        month = YearMonth.parse("2024-05")
        assert month == YearMonth(2024, 5)
        assert str(month) == "2024-05"
        assert str(YearMonth(987, 1)) == "0987-01"

    def test_parse_rejects_bad_input(self):
        """Test malformed months are rejected."""
        for bad in ["2024-5", "2024/05", "24-05", "2024-13", "2024-00", ""]:
            with pytest.raises(ValueError):
                YearMonth.parse(bad)

    def test_ordering_across_years(self):
        """Test ordering follows the calendar."""
        assert YearMonth(2023, 12) < YearMonth(2024, 1)
        assert YearMonth(2024, 2) < YearMonth(2024, 10)
        assert sorted([YearMonth(2024, 10), YearMonth(2023, 12), YearMonth(2024, 2)]) == [
            YearMonth(2023, 12), YearMonth(2024, 2), YearMonth(2024, 10)
        ]

    def test_add_months_crosses_year_boundaries(self):
        """Test month arithmetic."""
        assert YearMonth(2024, 12).add_months(1) == YearMonth(2025, 1)
        assert YearMonth(2024, 1).add_months(-1) == YearMonth(2023, 12)
        assert YearMonth(2024, 5).add_months(-17) == YearMonth(2022, 12)
        assert YearMonth(2024, 5).add_months(0) == YearMonth(2024, 5)

    def test_day_clamps_to_month_end(self):
        """Test day-of-month overflow clamps instead of rolling over."""
        assert YearMonth(2024, 2).day(31) == date(2024, 2, 29)
        assert YearMonth(2023, 2).day(31) == date(2023, 2, 28)
        assert YearMonth(2024, 4).day(31) == date(2024, 4, 30)
        assert YearMonth(2024, 1).day(31) == date(2024, 1, 31)

    def test_from_datetime_uses_utc(self):
        """Test a timestamp's month is evaluated in UTC."""
        plus_two = timezone(timedelta(hours=2))
        # 00:30 on June 1st at +02:00 is still May 31st in UTC
        assert YearMonth.from_datetime(datetime(2024, 6, 1, 0, 30, tzinfo=plus_two)) == YearMonth(2024, 5)
        assert YearMonth.from_datetime(datetime(2024, 6, 1, 0, 30)) == YearMonth(2024, 6)

    def test_coerce(self):
        """Test coercion from the supported input types."""
        assert YearMonth.coerce("2024-05") == YearMonth(2024, 5)
        assert YearMonth.coerce(date(2024, 5, 3)) == YearMonth(2024, 5)
        assert YearMonth.coerce(YearMonth(2024, 5)) == YearMonth(2024, 5)
        with pytest.raises(ValueError):
            YearMonth.coerce(202405)


class TestTransaction:
    """Tests for the Transaction model."""

    def test_transaction_creation(self):
        """Test defaults and derived month."""
        tx = Transaction(amount=Decimal("12.50"), category="Food", date=utc(2024, 5, 10, 9, 30))
        assert tx.id
        assert tx.type == TransactionType.EXPENSE
        assert tx.recurring_rule_id is None
        assert tx.month == YearMonth(2024, 5)

    def test_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        for amount in ["0", "-5"]:
            with pytest.raises(ValueError):
                Transaction(amount=Decimal(amount), category="Food", date=utc(2024, 5, 1))

    def test_rejects_blank_category(self):
        """Test that a whitespace-only category is rejected."""
        with pytest.raises(ValueError):
            Transaction(amount=Decimal("1"), category="   ", date=utc(2024, 5, 1))

    def test_strips_category(self):
        """Test category whitespace is stripped."""
        tx = Transaction(amount=Decimal("1"), category="  Rent ", date=utc(2024, 5, 1))
        assert tx.category == "Rent"

    def test_long_category_and_note(self):
        """Test free-form labels and notes are not length-capped."""
        tx = Transaction(
            amount=Decimal("1"), category="x" * 150, note="n" * 2000, date=utc(2024, 5, 1)
        )
        restored = Transaction.model_validate(tx.to_storage())
        assert restored.category == "x" * 150
        assert restored.note == "n" * 2000

        rule = RecurringRule.from_transaction(tx)
        assert rule.instantiate(YearMonth(2024, 6)).category == "x" * 150

    def test_naive_date_is_utc(self):
        """Test naive datetimes are taken as UTC."""
        tx = Transaction(amount=Decimal("1"), category="Food", date=datetime(2024, 5, 31, 23, 0))
        assert tx.date.tzinfo is not None
        assert tx.date == utc(2024, 5, 31, 23, 0)

    def test_storage_layout_is_camel_case(self):
        """Test the persisted field names."""
        tx = make_tx("t1", utc(2024, 5, 10), rule_id="r1")
        data = tx.to_storage()
        assert data["recurringRuleId"] == "r1"
        assert data["type"] == "expense"
        assert data["amount"] == "10.00"
        assert data["date"].startswith("2024-05-10T00:00:00")
        assert "note" not in data

    def test_loads_camel_case_records(self):
        """Test records written in the stored layout load back."""
        tx = Transaction.model_validate({
            "id": "1717000000000",
            "amount": 42.5,
            "category": "Bills",
            "date": "2024-05-30T10:00:00.000Z",
            "note": "",
            "type": "income",
            "recurringRuleId": "r9",
        })
        assert tx.amount == Decimal("42.5")
        assert tx.type == TransactionType.INCOME
        assert tx.recurring_rule_id == "r9"
        assert tx.month == YearMonth(2024, 5)


class TestRecurringRule:
    """Tests for the RecurringRule model."""

    def test_from_transaction(self):
        """Test a rule copies the template and marks the month generated."""
        tx = make_tx("t1", utc(2024, 5, 20), amount="800", category="Rent")
        rule = RecurringRule.from_transaction(tx)
        assert rule.id != tx.id
        assert rule.amount == Decimal("800")
        assert rule.category == "Rent"
        assert rule.day_of_month == 20
        assert rule.last_generated_month == YearMonth(2024, 5)

    def test_watermark_comparison(self):
        """Test which months a rule still owes an instance for."""
        rule = make_rule("r1", "2024-05")
        assert rule.needs_instance_for(YearMonth(2024, 6))
        assert not rule.needs_instance_for(YearMonth(2024, 5))
        assert not rule.needs_instance_for(YearMonth(2024, 4))

    def test_instantiate(self):
        """Test generated instances."""
        rule = make_rule("r1", "2024-04", day=31)
        instance = rule.instantiate(YearMonth(2024, 6))
        assert instance.recurring_rule_id == "r1"
        assert instance.date == utc(2024, 6, 30)
        assert instance.amount == rule.amount
        assert instance.id != rule.id

    def test_watermark_serialises_as_string(self):
        """Test the watermark is stored as YYYY-MM."""
        data = make_rule("r1", "2024-04").to_storage()
        assert data["lastGeneratedMonth"] == "2024-04"
        assert data["dayOfMonth"] == 15
        assert RecurringRule.model_validate(data).last_generated_month == YearMonth(2024, 4)

    def test_day_of_month_bounds(self):
        """Test day of month must be 1-31."""
        for day in [0, 32]:
            with pytest.raises(ValueError):
                make_rule("r1", "2024-04", day=day)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            description="Test transaction saved",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.transaction_moved("t1", "2024-05", "2024-06")
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "transaction_moved"
        assert log_dict["entity_id"] == "t1"
        assert log_dict["month"] == "2024-06"
        assert log_dict["details"]["old_month"] == "2024-05"

    def test_storage_error_is_error_severity(self):
        """Test storage failures are logged as errors."""
        event = AuditEventBuilder.storage_error("write", "budget_app_2024-05", "disk full")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"

    def test_future_instances_purged_totals(self):
        """Test the purge description counts all months."""
        event = AuditEventBuilder.future_instances_purged(
            "r1", "2024-06-15T00:00:00+00:00", {"2024-06": 1, "2024-07": 1}
        )
        assert "2 future instances" in event.description

    @pytest.mark.asyncio
    async def test_audit_logger_writes_events(self):
        """Test the audit logger accepts every severity."""
        audit_logger = AuditLogger()
        assert await audit_logger.log(AuditEventBuilder.rule_deleted("r1"))
        assert await audit_logger.log(AuditEventBuilder.transactions_cleared(3))
        assert await audit_logger.log(AuditEventBuilder.storage_error("read", "k", "boom"))


class TestCategoryAndCrypto:
    """Tests for category and portfolio models."""

    def test_default_categories(self):
        """Test that expected categories exist."""
        for name in ["Food", "Transport", "Bills", "Rent", "Groceries", "Other"]:
            assert name in DEFAULT_CATEGORIES

    def test_category_color_format(self):
        """Test category colour must be a hex colour."""
        assert Category(name="Pets").color == CATEGORY_PALETTE[0]
        with pytest.raises(ValueError):
            Category(name="Pets", color="blue")

    def test_long_custom_category_name(self):
        """Test custom category names match free-form transaction labels."""
        assert Category(name="c" * 150).name == "c" * 150

    def test_crypto_asset_cost_basis(self):
        """Test cost basis and stored names."""
        asset = CryptoAsset(
            id="bitcoin", symbol="btc", name="Bitcoin",
            amount=Decimal("0.5"), average_buy_price=Decimal("30000"),
        )
        assert asset.cost_basis == Decimal("15000")
        assert asset.to_storage()["averageBuyPrice"] == "30000"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
