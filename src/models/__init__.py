"""
Data Models Package

This package contains all Pydantic models used by the ledger.
Everything written to storage passes through one of these schemas.
"""

from src.models.ledger import (
    RecurringRule,
    Transaction,
    TransactionType,
    YearMonth,
    YearMonthField,
    new_id,
)
from src.models.category import (
    CATEGORY_PALETTE,
    DEFAULT_CATEGORIES,
    Category,
)
from src.models.crypto import (
    AssetHolding,
    CoinPrice,
    CoinSearchResponse,
    CryptoAsset,
    PortfolioSummary,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "RecurringRule",
    "Transaction",
    "TransactionType",
    "YearMonth",
    "YearMonthField",
    "new_id",
    # Categories
    "CATEGORY_PALETTE",
    "DEFAULT_CATEGORIES",
    "Category",
    # Crypto
    "AssetHolding",
    "CoinPrice",
    "CoinSearchResponse",
    "CryptoAsset",
    "PortfolioSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
