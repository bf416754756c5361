"""
Core Ledger Models

These models define the records that live in the month-partitioned ledger:
- YearMonth: the typed calendar month used as partition key and watermark
- Transaction: a single income/expense event
- RecurringRule: a "repeats monthly" template that produces Transactions

DESIGN DECISION: Month arithmetic goes through YearMonth rather than
slicing "YYYY-MM" strings. Ordering is (year, month) tuple ordering, which
matches the lexicographic order of zero-padded strings but also survives
year boundaries in add_months().

Persisted JSON uses camelCase names so stored blobs keep the layout of the
mobile app that first wrote them; Python code uses snake_case.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def new_id() -> str:
    """Fresh opaque identifier for transactions and rules."""
    return uuid4().hex


def to_utc(value: datetime) -> datetime:
    """Normalise a datetime to UTC. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True, order=True)
class YearMonth:
    """A calendar month, e.g. YearMonth(2024, 5) <-> "2024-05"."""

    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month out of range: {self.month}")
        if not 1 <= self.year <= 9999:
            raise ValueError(f"Year out of range: {self.year}")

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @classmethod
    def parse(cls, value: str) -> "YearMonth":
        match = _YEAR_MONTH_RE.match(value.strip())
        if not match:
            raise ValueError(f"Expected YYYY-MM, got {value!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def from_datetime(cls, value: datetime) -> "YearMonth":
        """Month that owns a timestamp, evaluated in UTC."""
        value = to_utc(value)
        return cls(value.year, value.month)

    @classmethod
    def current(cls) -> "YearMonth":
        return cls.from_datetime(datetime.now(timezone.utc))

    @classmethod
    def coerce(cls, value: Any) -> "YearMonth":
        """Accept a YearMonth, a "YYYY-MM" string, a date or a datetime."""
        if isinstance(value, YearMonth):
            return value
        if isinstance(value, datetime):
            return cls.from_datetime(value)
        if isinstance(value, date):
            return cls(value.year, value.month)
        if isinstance(value, str):
            return cls.parse(value)
        raise ValueError(f"Cannot interpret {value!r} as a year-month")

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def add_months(self, count: int) -> "YearMonth":
        index = self.year * 12 + (self.month - 1) + count
        return YearMonth(index // 12, index % 12 + 1)

    def day(self, day_of_month: int) -> date:
        """
        Date for a day of this month, clamped to the month's last day.

        Day 31 in February 2024 gives 2024-02-29.
        """
        if day_of_month < 1:
            raise ValueError(f"Day of month must be positive: {day_of_month}")
        return date(self.year, self.month, min(day_of_month, self.days_in_month))

    def midnight_utc(self, day_of_month: int) -> datetime:
        return datetime.combine(self.day(day_of_month), time(0, 0), tzinfo=timezone.utc)


# Pydantic field type: validated from "YYYY-MM", serialised back to "YYYY-MM"
YearMonthField = Annotated[
    YearMonth,
    BeforeValidator(YearMonth.coerce),
    PlainSerializer(str, return_type=str),
]


class TransactionType(str, Enum):
    """Direction of money flow."""
    EXPENSE = "expense"
    INCOME = "income"


class LedgerModel(BaseModel):
    """Shared configuration for persisted ledger records."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    def to_storage(self) -> dict:
        """JSON-ready dict in the persisted (camelCase) layout."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Transaction(LedgerModel):
    """
    A single financial event.

    The owning month partition is always derived from `date`; there is
    no separate month field that could drift out of sync.
    """

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Opaque identifier, immutable once created"
    )
    amount: Annotated[
        Decimal,
        Field(gt=0, description="Positive magnitude; direction comes from type")
    ]
    category: str = Field(
        ...,
        min_length=1,
        description="Free-form category label"
    )
    date: datetime = Field(
        ...,
        description="Absolute timestamp; decides the owning month partition"
    )
    note: Optional[str] = Field(
        default=None,
        description="Optional free text"
    )
    type: TransactionType = Field(default=TransactionType.EXPENSE)
    recurring_rule_id: Optional[str] = Field(
        default=None,
        description="Rule that generated this instance, if any"
    )

    @field_validator('date')
    @classmethod
    def normalise_date(cls, v: datetime) -> datetime:
        return to_utc(v)

    @property
    def month(self) -> YearMonth:
        return YearMonth.from_datetime(self.date)

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE


class RecurringRule(LedgerModel):
    """
    A declarative monthly repeat instruction.

    `last_generated_month` is the watermark: the latest month that already
    has an instance of this rule. It only ever moves forward.
    """

    id: str = Field(default_factory=new_id, min_length=1)

    # Template copied onto generated instances
    amount: Annotated[Decimal, Field(gt=0)]
    category: str = Field(..., min_length=1)
    note: Optional[str] = None
    type: TransactionType = Field(default=TransactionType.EXPENSE)

    day_of_month: int = Field(
        ...,
        ge=1,
        le=31,
        description="Day instances are dated on (clamped in short months)"
    )
    last_generated_month: YearMonthField = Field(
        ...,
        description="Watermark: most recent month already materialized"
    )

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "RecurringRule":
        """Rule repeating a transaction, already marked as generated for its month."""
        return cls(
            amount=transaction.amount,
            category=transaction.category,
            note=transaction.note,
            type=transaction.type,
            day_of_month=transaction.date.day,
            last_generated_month=transaction.month,
        )

    def needs_instance_for(self, month: YearMonth) -> bool:
        return self.last_generated_month < month

    def instantiate(self, month: YearMonth) -> Transaction:
        """Build this rule's instance for a month (fresh id, dated at 00:00 UTC)."""
        return Transaction(
            amount=self.amount,
            category=self.category,
            note=self.note,
            type=self.type,
            date=month.midnight_utc(self.day_of_month),
            recurring_rule_id=self.id,
        )
