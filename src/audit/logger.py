"""
Audit Logger

DESIGN DECISION: Every mutation of the ledger is logged.
This provides:
1. Traceability of partition rewrites and rule lifecycle changes
2. Debugging capability for the best-effort materialization steps
3. A record of storage and market-data failures

The audit logger:
- Is async so callers can await it inline with storage calls
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

import logging
from typing import Optional

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Turns ledger actions into AuditEvents and writes them to the
    structured local log at a level matching their severity.
    """

    def __init__(self, logger_name: str = "ledger.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the log write itself failed.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Never let logging break a ledger write
            return False
        return True

    async def log_transaction_saved(self, transaction_id: str, month: str, created: bool) -> None:
        await self.log(AuditEventBuilder.transaction_saved(transaction_id, month, created))

    async def log_transaction_deleted(self, transaction_id: str, month: str, found: bool) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(transaction_id, month, found))

    async def log_transaction_moved(self, transaction_id: str, old_month: str, new_month: str) -> None:
        await self.log(AuditEventBuilder.transaction_moved(transaction_id, old_month, new_month))

    async def log_transactions_cleared(self, partition_count: int) -> None:
        await self.log(AuditEventBuilder.transactions_cleared(partition_count))

    async def log_all_data_cleared(self, key_count: int) -> None:
        await self.log(AuditEventBuilder.all_data_cleared(key_count))

    async def log_rule_created(self, rule_id: str, month: str, day_of_month: int) -> None:
        await self.log(AuditEventBuilder.rule_created(rule_id, month, day_of_month))

    async def log_rule_deleted(self, rule_id: str) -> None:
        await self.log(AuditEventBuilder.rule_deleted(rule_id))

    async def log_month_materialized(self, month: str, rule_ids: list[str]) -> None:
        await self.log(AuditEventBuilder.month_materialized(month, rule_ids))

    async def log_future_instances_purged(
        self,
        rule_id: str,
        from_date: str,
        removed_by_month: dict[str, int],
    ) -> None:
        await self.log(
            AuditEventBuilder.future_instances_purged(rule_id, from_date, removed_by_month)
        )

    async def log_budget_updated(self, month: str, amount: str) -> None:
        await self.log(AuditEventBuilder.budget_updated(month, amount))

    async def log_storage_error(self, operation: str, key: str, error_message: str) -> None:
        """Log a failed storage call."""
        await self.log(AuditEventBuilder.storage_error(operation, key, error_message))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log external service error."""
        await self.log(
            AuditEventBuilder.external_service_error(service, error_message, details)
        )
