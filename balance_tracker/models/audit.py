"""
Audit Models for Balance

Every mutation sent to the data service is logged as a typed event.
This provides:
1. Traceability of what the app wrote and in which order
2. Debugging information when a write fails half-way
3. A record of compensating actions and rejected intents

Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Reads
    SNAPSHOT_REFRESHED = "snapshot_refreshed"
    PROJECTION_FETCH_FAILED = "projection_fetch_failed"

    # Validation
    MUTATION_REJECTED = "mutation_rejected"

    # Writes
    TRANSACTION_SAVED = "transaction_saved"
    LEDGER_ENTRY_SAVED = "ledger_entry_saved"
    TRANSFER_SAVED = "transfer_saved"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    SAVE_FAILED = "save_failed"

    # Partial-failure handling
    COMPENSATION_APPLIED = "compensation_applied"
    COMPENSATION_FAILED = "compensation_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every write (and every write we decided not to make) creates one.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'ledger_entry', 'transfer')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Store identifier of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one user action"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_saved(tx_id, "expense", "50000", cid)
    """

    @staticmethod
    def snapshot_refreshed(
        transaction_count: int,
        failed_projections: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_REFRESHED,
            severity=(
                AuditSeverity.WARNING if failed_projections else AuditSeverity.DEBUG
            ),
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=f"Snapshot refreshed with {transaction_count} transactions",
            details={
                "transaction_count": transaction_count,
                "failed_projections": failed_projections,
            },
        )

    @staticmethod
    def projection_fetch_failed(
        projection: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROJECTION_FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="projection",
            correlation_id=correlation_id,
            description=f"Failed to fetch {projection}",
            error_message=error_message,
            details={"projection": projection},
        )

    @staticmethod
    def mutation_rejected(
        action: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type=action,
            correlation_id=correlation_id,
            description=f"{action} rejected before write with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def transaction_saved(
        transaction_id: str,
        tx_type: str,
        total: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction saved: {tx_type} {total}",
            details={"type": tx_type, "total": total},
            is_user_action=True,
        )

    @staticmethod
    def ledger_entry_saved(
        transaction_id: Optional[str],
        account: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_ENTRY_SAVED,
            entity_type="ledger_entry",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Ledger entry posted: {amount} on {account}",
            details={"account": account, "amount": amount},
        )

    @staticmethod
    def transfer_saved(
        from_account: str,
        to_account: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_SAVED,
            entity_type="transfer",
            correlation_id=correlation_id,
            description=f"Transfer saved: {amount} from {from_account} to {to_account}",
            details={
                "from_account": from_account,
                "to_account": to_account,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        price: str,
        quantity: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction updated: price {price} x {quantity}",
            details={"price": price, "quantity": quantity},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        ledger_entries_removed: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
            details={"ledger_entries_removed": ledger_entries_removed},
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        action: str,
        error_message: str,
        correlation_id: UUID,
        entity_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=action,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{action} failed",
            error_message=error_message,
        )

    @staticmethod
    def compensation_applied(
        transaction_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMPENSATION_APPLIED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Half-finished write rolled back",
            details={"reason": reason},
        )

    @staticmethod
    def compensation_failed(
        transaction_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMPENSATION_FAILED,
            severity=AuditSeverity.CRITICAL,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Rollback of a half-finished write failed; manual cleanup needed",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
