"""
Data Models Package

This package contains all Pydantic models used by Balance.
Everything read from or written to the data service conforms to these schemas.
"""

from balance_tracker.models.ledger import (
    INCOME_ACCOUNT,
    AccountBalance,
    AccountLedgerEntry,
    AccountType,
    BalanceView,
    ExpenseCategory,
    IncomeCategory,
    LedgerSnapshot,
    NewTransaction,
    Transaction,
    TransactionType,
    TransactionWithBalance,
    TransferRequest,
    ValidationIssue,
    ValidationResult,
)
from balance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "INCOME_ACCOUNT",
    "AccountBalance",
    "AccountLedgerEntry",
    "AccountType",
    "BalanceView",
    "ExpenseCategory",
    "IncomeCategory",
    "LedgerSnapshot",
    "NewTransaction",
    "Transaction",
    "TransactionType",
    "TransactionWithBalance",
    "TransferRequest",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
