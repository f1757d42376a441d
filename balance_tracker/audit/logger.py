"""
Audit Logger

Every mutation the app sends to the data service is logged.
This provides:
1. Traceability of two-step writes (which half landed)
2. Debugging capability when the service rejects a request
3. A record of compensating deletes

The audit logger:
- Is async so flows can await it uniformly
- Never raises; a logging failure must not break a mutation
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from balance_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


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
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))


_SEVERITY_METHODS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "critical",
}


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured local log only; the data service has no
    audit table. Every event is also kept in `history` for the current
    process so the UI and tests can inspect what happened.
    """

    def __init__(self, max_history: int = 500):
        self._logger = structlog.get_logger("balance_tracker.audit")
        self._max_history = max_history
        self.history: list[AuditEvent] = []

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        self.history.append(event)
        del self.history[:-self._max_history]

        try:
            method = getattr(self._logger, _SEVERITY_METHODS[event.severity])
            method("audit_event", **event.to_log_dict())
        except Exception as e:
            logging.getLogger(__name__).warning(
                "Failed to write audit event %s: %s", event.event_id, e
            )
            return False

        return True

    async def log_snapshot_refreshed(
        self,
        transaction_count: int,
        failed_projections: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.snapshot_refreshed(
            transaction_count=transaction_count,
            failed_projections=failed_projections,
            correlation_id=correlation_id,
        ))

    async def log_projection_failed(
        self,
        projection: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.projection_fetch_failed(
            projection=projection,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_mutation_rejected(
        self,
        action: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a mutation stopped by validation before any write."""
        await self.log(AuditEventBuilder.mutation_rejected(
            action=action,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_transaction_saved(
        self,
        transaction_id: str,
        tx_type: str,
        total: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_saved(
            transaction_id=transaction_id,
            tx_type=tx_type,
            total=total,
            correlation_id=correlation_id,
        ))

    async def log_ledger_entry_saved(
        self,
        transaction_id: Optional[str],
        account: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.ledger_entry_saved(
            transaction_id=transaction_id,
            account=account,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_transfer_saved(
        self,
        from_account: str,
        to_account: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transfer_saved(
            from_account=from_account,
            to_account=to_account,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_transaction_updated(
        self,
        transaction_id: str,
        price: str,
        quantity: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            price=price,
            quantity=quantity,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: str,
        ledger_entries_removed: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            ledger_entries_removed=ledger_entries_removed,
            correlation_id=correlation_id,
        ))

    async def log_save_failed(
        self,
        action: str,
        error_message: str,
        correlation_id: UUID,
        entity_id: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.save_failed(
            action=action,
            error_message=error_message,
            correlation_id=correlation_id,
            entity_id=entity_id,
        ))

    async def log_compensation_applied(
        self,
        transaction_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.compensation_applied(
            transaction_id=transaction_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_compensation_failed(
        self,
        transaction_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.compensation_failed(
            transaction_id=transaction_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., submitting a form).
    Pass it through all subsequent operations.
    """
    return uuid4()
