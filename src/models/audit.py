"""
Audit Models for the Monthly Ledger

Every mutation of the ledger is described by an AuditEvent so that the
structured log can reconstruct what happened to a partition or rule:
1. Which transactions were written, moved or deleted
2. When recurring rules were created, advanced or retracted
3. Which storage or market-data calls failed
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""

    # Ledger partitions
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_MOVED = "transaction_moved"
    TRANSACTIONS_CLEARED = "transactions_cleared"
    ALL_DATA_CLEARED = "all_data_cleared"

    # Recurring rules
    RULE_CREATED = "rule_created"
    RULE_DELETED = "rule_deleted"
    MONTH_MATERIALIZED = "month_materialized"
    FUTURE_INSTANCES_PURGED = "future_instances_purged"

    # Budget
    BUDGET_UPDATED = "budget_updated"

    # System events
    STORAGE_ERROR = "storage_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g. 'transaction', 'rule', 'partition')"
    )
    entity_id: Optional[str] = None
    month: Optional[str] = Field(
        default=None,
        description="Month partition the event touched, as YYYY-MM"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "month": self.month,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_saved(tx_id, "2024-05")
        event = AuditEventBuilder.rule_created(rule_id, "2024-05", 15)
    """

    @staticmethod
    def transaction_saved(transaction_id: str, month: str, created: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            entity_type="transaction",
            entity_id=transaction_id,
            month=month,
            description=f"Transaction {'added to' if created else 'updated in'} {month}",
            details={"created": created},
        )

    @staticmethod
    def transaction_deleted(transaction_id: str, month: str, found: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            month=month,
            description=f"Transaction removed from {month}",
            details={"found": found},
        )

    @staticmethod
    def transaction_moved(transaction_id: str, old_month: str, new_month: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_MOVED,
            entity_type="transaction",
            entity_id=transaction_id,
            month=new_month,
            description=f"Transaction moved from {old_month} to {new_month}",
            details={"old_month": old_month, "new_month": new_month},
        )

    @staticmethod
    def transactions_cleared(partition_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="partition",
            description=f"Cleared {partition_count} month partitions",
            details={"partition_count": partition_count},
        )

    @staticmethod
    def all_data_cleared(key_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALL_DATA_CLEARED,
            severity=AuditSeverity.WARNING,
            description=f"Cleared all {key_count} stored keys",
            details={"key_count": key_count},
        )

    @staticmethod
    def rule_created(rule_id: str, month: str, day_of_month: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RULE_CREATED,
            entity_type="rule",
            entity_id=rule_id,
            month=month,
            description=f"Recurring rule created on day {day_of_month}",
            details={"day_of_month": day_of_month},
        )

    @staticmethod
    def rule_deleted(rule_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RULE_DELETED,
            entity_type="rule",
            entity_id=rule_id,
            description="Recurring rule deleted",
        )

    @staticmethod
    def month_materialized(month: str, rule_ids: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_MATERIALIZED,
            entity_type="partition",
            month=month,
            description=f"Generated {len(rule_ids)} recurring instances for {month}",
            details={"rule_ids": rule_ids},
        )

    @staticmethod
    def future_instances_purged(
        rule_id: str,
        from_date: str,
        removed_by_month: dict[str, int],
    ) -> AuditEvent:
        total = sum(removed_by_month.values())
        return AuditEvent(
            event_type=AuditEventType.FUTURE_INSTANCES_PURGED,
            entity_type="rule",
            entity_id=rule_id,
            description=f"Removed {total} future instances after {from_date}",
            details={"from_date": from_date, "removed_by_month": removed_by_month},
        )

    @staticmethod
    def budget_updated(month: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="budget",
            month=month,
            description=f"Budget for {month} set to {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def storage_error(
        operation: str,
        key: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            entity_id=key,
            description=f"Storage {operation} failed",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.WARNING,
            entity_type="external_service",
            description=f"External service error: {service}",
            details={"service": service, **(details or {})},
            error_message=error_message,
        )
