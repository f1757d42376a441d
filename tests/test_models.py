"""
Tests for Balance

Test strategy:
1. Unit tests for individual components (models, validators, queries)
2. Flow tests against the in-memory storage
3. No real API calls in tests (use mocks)
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from balance_tracker.models.ledger import (
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


NOW = datetime(2026, 10, 19, 7, 30, tzinfo=timezone.utc)


class TestTransactionModels:
    """Tests for transaction rows as read from the store."""

    def test_total_derived_when_missing(self):
        """Test that a row without total gets price * quantity."""
        tx = Transaction(
            id="1",
            type=TransactionType.EXPENSE,
            expense_category=ExpenseCategory.FOODS,
            price=Decimal("25000"),
            quantity=2,
            created_at=NOW,
        )
        assert tx.total == Decimal("50000")

    def test_store_total_kept(self):
        """Test that a total supplied by the store is not overwritten."""
        tx = Transaction(
            id="1",
            type=TransactionType.INCOME,
            income_category=IncomeCategory.SALARY,
            price=Decimal("100"),
            quantity=3,
            total=Decimal("300"),
            created_at=NOW,
        )
        assert tx.total == Decimal("300")

    def test_integer_ids_coerced(self):
        """Test that bigint ids from the store become strings."""
        tx = Transaction(
            id=42,
            type=TransactionType.INCOME,
            income_category=IncomeCategory.ETC,
            price=Decimal("1000"),
            created_at=NOW,
        )
        assert tx.id == "42"

    def test_category_must_match_type(self):
        """Test that an expense cannot carry an income category."""
        with pytest.raises(ValidationError):
            Transaction(
                id="1",
                type=TransactionType.EXPENSE,
                income_category=IncomeCategory.SALARY,
                price=Decimal("1000"),
                created_at=NOW,
            )

    def test_both_categories_rejected(self):
        """Test that exactly one category field may be set."""
        with pytest.raises(ValidationError):
            Transaction(
                id="1",
                type=TransactionType.INCOME,
                income_category=IncomeCategory.SALARY,
                expense_category=ExpenseCategory.FOODS,
                price=Decimal("1000"),
                created_at=NOW,
            )

    def test_stored_row_without_category_uses_type_label(self):
        """Test that legacy rows with NULL categories still load."""
        income = Transaction(
            id="1",
            type=TransactionType.INCOME,
            price=Decimal("1000"),
            created_at=NOW,
        )
        expense = Transaction(
            id="2",
            type=TransactionType.EXPENSE,
            price=Decimal("1000"),
            created_at=NOW,
        )
        assert income.category == "Income"
        assert expense.category == "Expense"

    def test_category_and_signed_total(self):
        """Test the convenience properties."""
        expense = Transaction(
            id="1",
            type=TransactionType.EXPENSE,
            expense_category=ExpenseCategory.TRANSPORTATION,
            price=Decimal("15000"),
            created_at=NOW,
        )
        assert expense.category == "Transportation"
        assert expense.signed_total == Decimal("-15000")

    def test_running_balance_defaults_to_zero(self):
        tx = TransactionWithBalance(
            id="1",
            type=TransactionType.INCOME,
            income_category=IncomeCategory.SALARY,
            price=Decimal("1000"),
            created_at=NOW,
        )
        assert tx.running_balance == Decimal("0")


class TestNewTransaction:
    """Tests for the add-transaction form intent."""

    def test_price_must_be_positive(self):
        with pytest.raises(ValidationError):
            NewTransaction(
                type=TransactionType.EXPENSE,
                expense_category=ExpenseCategory.FOODS,
                price=Decimal("0"),
            )

    def test_quantity_must_be_at_least_one(self):
        with pytest.raises(ValidationError):
            NewTransaction(
                type=TransactionType.EXPENSE,
                expense_category=ExpenseCategory.FOODS,
                price=Decimal("1000"),
                quantity=0,
            )

    def test_blank_notes_become_none(self):
        """Test that whitespace-only notes are stored as NULL."""
        intent = NewTransaction(
            type=TransactionType.INCOME,
            income_category=IncomeCategory.SALARY,
            notes="   ",
            price=Decimal("1000"),
        )
        assert intent.notes is None

    def test_new_transaction_still_needs_category(self):
        """Test that writes keep the exactly-one-category rule."""
        with pytest.raises(ValidationError):
            NewTransaction(type=TransactionType.INCOME, price=Decimal("1000"))

    def test_long_notes_accepted(self):
        """Test that notes are free text without a length cap."""
        intent = NewTransaction(
            type=TransactionType.EXPENSE,
            expense_category=ExpenseCategory.FOODS,
            notes="x" * 600,
            price=Decimal("1000"),
        )
        assert len(intent.notes) == 600

    def test_income_always_posts_to_rekening(self):
        """Test that the payment account is ignored for income."""
        intent = NewTransaction(
            type=TransactionType.INCOME,
            income_category=IncomeCategory.SALARY,
            price=Decimal("5000000"),
            payment_account=AccountType.POCKET,
        )
        assert intent.ledger_account == AccountType.REKENING

    def test_insert_row(self):
        intent = NewTransaction(
            type=TransactionType.EXPENSE,
            expense_category=ExpenseCategory.EQUIPMENT,
            notes="Kabel",
            price=Decimal("35000"),
            quantity=2,
            payment_account=AccountType.DANA,
        )
        assert intent.to_insert_row() == {
            "type": "expense",
            "expense_category": "Equipment",
            "income_category": None,
            "notes": "Kabel",
            "price": "35000",
            "quantity": 2,
        }
        assert intent.total == Decimal("70000")


class TestLedgerEntries:
    """Tests for ledger entry construction."""

    def test_income_entry_is_positive_on_rekening(self):
        intent = NewTransaction(
            type=TransactionType.INCOME,
            income_category=IncomeCategory.SALARY,
            price=Decimal("5000000"),
        )
        entry = AccountLedgerEntry.for_transaction("tx-1", intent)
        assert entry.account_type == AccountType.REKENING
        assert entry.amount == Decimal("5000000")
        assert entry.transaction_id == "tx-1"
        assert entry.notes == "Income masuk ke rekening"

    def test_expense_entry_is_negative_on_payment_account(self):
        intent = NewTransaction(
            type=TransactionType.EXPENSE,
            expense_category=ExpenseCategory.FOODS,
            price=Decimal("25000"),
            quantity=2,
            payment_account=AccountType.DANA,
        )
        entry = AccountLedgerEntry.for_transaction("tx-2", intent)
        assert entry.account_type == AccountType.DANA
        assert entry.amount == Decimal("-50000")
        assert entry.notes == "Bayar dari dana"

    def test_zero_amount_rejected(self):
        with pytest.raises(ValidationError):
            AccountLedgerEntry(account_type=AccountType.POCKET, amount=Decimal("0"))

    def test_unlinked_entry_omits_transaction_id(self):
        entry = AccountLedgerEntry(account_type=AccountType.POCKET, amount=Decimal("10"))
        assert "transaction_id" not in entry.to_insert_row()

    def test_transfer_halves_cancel_out(self):
        """Test that a transfer produces a debit and a matching credit."""
        request = TransferRequest(
            from_account=AccountType.REKENING,
            to_account=AccountType.POCKET,
            amount=Decimal("200000"),
        )
        debit, credit = request.ledger_entries()
        assert debit.account_type == AccountType.REKENING
        assert credit.account_type == AccountType.POCKET
        assert debit.amount + credit.amount == 0
        assert debit.transaction_id is None and credit.transaction_id is None
        assert debit.notes == "Transfer ke pocket"
        assert credit.notes == "Transfer dari rekening"

    def test_transfer_accepts_long_notes(self):
        request = TransferRequest(
            from_account=AccountType.REKENING,
            to_account=AccountType.DANA,
            amount=Decimal("1000"),
            notes="x" * 600,
        )
        assert all(e.notes == "x" * 600 for e in request.ledger_entries())

    def test_transfer_notes_override_defaults(self):
        request = TransferRequest(
            from_account=AccountType.DANA,
            to_account=AccountType.POCKET,
            amount=Decimal("1000"),
            notes="Tabungan",
        )
        assert [e.notes for e in request.ledger_entries()] == ["Tabungan", "Tabungan"]


class TestLedgerSnapshot:
    """Tests for the immutable snapshot."""

    def test_empty_snapshot(self):
        snapshot = LedgerSnapshot.empty()
        assert snapshot.transactions == ()
        assert snapshot.balance == BalanceView.empty()
        assert snapshot.account_balance(AccountType.DANA) == Decimal("0")

    def test_snapshot_is_frozen(self):
        snapshot = LedgerSnapshot.empty()
        with pytest.raises(ValidationError):
            snapshot.balance = BalanceView(balance=Decimal("1"))

    def test_balances_by_account_fills_missing(self):
        """Test that accounts without a view row show zero."""
        snapshot = LedgerSnapshot(
            account_balances=(
                AccountBalance(account_type=AccountType.DANA, balance=Decimal("75000")),
            )
        )
        assert snapshot.balances_by_account() == {
            AccountType.REKENING: Decimal("0"),
            AccountType.DANA: Decimal("75000"),
            AccountType.POCKET: Decimal("0"),
        }


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            severity=AuditSeverity.INFO,
            entity_type="transaction",
            entity_id="tx-1",
            description="Test event",
        )
        assert event.event_type == AuditEventType.TRANSACTION_SAVED
        assert event.event_id is not None
        assert event.timestamp is not None

    def test_builder_transaction_saved(self):
        """Test AuditEventBuilder.transaction_saved."""
        correlation_id = uuid4()
        event = AuditEventBuilder.transaction_saved(
            transaction_id="tx-1",
            tx_type="expense",
            total="50000",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.TRANSACTION_SAVED
        assert event.entity_id == "tx-1"
        assert event.correlation_id == correlation_id

    def test_builder_compensation_failed_is_critical(self):
        event = AuditEventBuilder.compensation_failed(
            transaction_id="tx-1",
            error_message="timeout",
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.CRITICAL

    def test_to_log_dict_is_flat(self):
        event = AuditEventBuilder.mutation_rejected(
            action="transfer",
            issues=[{"field": "amount", "type": "insufficient_balance", "message": "x"}],
            correlation_id=uuid4(),
        )
        data = event.to_log_dict()
        assert data["event_type"] == "mutation_rejected"
        assert isinstance(data["correlation_id"], str)


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_valid_result(self):
        """Test a result with no issues."""
        result = ValidationResult()
        assert result.is_valid
        assert not result.has_errors
        assert result.error_count == 0

    def test_result_with_errors(self):
        """Test a result with error issues."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="to_account",
                    issue_type="same_account",
                    message="Akun asal dan tujuan tidak boleh sama",
                    severity="error",
                ),
                ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message="Jumlah sangat besar",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1
        assert result.warnings == ["Jumlah sangat besar"]

    def test_severity_is_constrained(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
