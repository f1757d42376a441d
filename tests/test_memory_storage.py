"""
Tests for the in-memory storage views and the audit logger.
"""

import asyncio

import pytest
from decimal import Decimal

from balance_tracker.audit import AuditLogger, create_correlation_id
from balance_tracker.models.audit import AuditEventBuilder
from balance_tracker.models.ledger import (
    AccountLedgerEntry,
    AccountType,
    ExpenseCategory,
    IncomeCategory,
    NewTransaction,
    TransactionType,
)
from balance_tracker.services.storage import NotFoundError


def add(storage, tx_type, amount, quantity=1):
    if tx_type == TransactionType.INCOME:
        intent = NewTransaction(
            type=tx_type,
            income_category=IncomeCategory.SALARY,
            price=Decimal(amount),
            quantity=quantity,
        )
    else:
        intent = NewTransaction(
            type=tx_type,
            expense_category=ExpenseCategory.FOODS,
            price=Decimal(amount),
            quantity=quantity,
        )
    return asyncio.run(storage.insert_transaction(intent))


class TestViews:

    def test_running_balance_newest_first(self, storage):
        add(storage, TransactionType.INCOME, "100000")
        add(storage, TransactionType.EXPENSE, "30000")
        add(storage, TransactionType.EXPENSE, "5000", quantity=2)

        rows = asyncio.run(storage.list_transactions())

        assert [r.running_balance for r in rows] == [
            Decimal("60000"), Decimal("70000"), Decimal("100000"),
        ]

    def test_aggregate_balance(self, storage):
        add(storage, TransactionType.INCOME, "100000")
        add(storage, TransactionType.EXPENSE, "30000")

        balance = asyncio.run(storage.get_balance())
        assert balance.total_income == Decimal("100000")
        assert balance.total_expense == Decimal("30000")
        assert balance.balance == balance.total_income - balance.total_expense

    def test_account_balances_sum_entries(self, storage):
        asyncio.run(storage.insert_ledger_entries([
            AccountLedgerEntry(account_type=AccountType.DANA, amount=Decimal("500")),
            AccountLedgerEntry(account_type=AccountType.DANA, amount=Decimal("-200")),
            AccountLedgerEntry(account_type=AccountType.POCKET, amount=Decimal("50")),
        ]))
        rows = {r.account_type: r.balance for r in asyncio.run(storage.list_account_balances())}
        assert rows == {AccountType.DANA: Decimal("300"), AccountType.POCKET: Decimal("50")}


class TestWrites:

    def test_linked_entry_requires_transaction(self, storage):
        entry = AccountLedgerEntry(
            account_type=AccountType.DANA, amount=Decimal("1"), transaction_id="nope",
        )
        with pytest.raises(NotFoundError):
            asyncio.run(storage.insert_ledger_entries([entry]))
        assert storage.ledger_entries == []

    def test_update_missing_transaction(self, storage):
        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_transaction("nope", Decimal("1"), 1))

    def test_update_recomputes_total(self, storage):
        tx = add(storage, TransactionType.EXPENSE, "1000")
        updated = asyncio.run(storage.update_transaction(tx.id, Decimal("2500"), 4))
        assert updated.total == Decimal("10000")
        assert updated.created_at == tx.created_at

    def test_delete_missing_returns_false(self, storage):
        assert asyncio.run(storage.delete_transaction("nope")) is False


class TestAuditLogger:

    def test_history_is_bounded(self):
        audit_logger = AuditLogger(max_history=3)
        for i in range(5):
            asyncio.run(audit_logger.log(AuditEventBuilder.transaction_deleted(
                transaction_id=str(i),
                ledger_entries_removed=1,
                correlation_id=create_correlation_id(),
            )))
        assert [e.entity_id for e in audit_logger.history] == ["2", "3", "4"]

    def test_log_reports_success(self):
        event = AuditEventBuilder.system_error(error_type="Test", error_message="x")
        assert asyncio.run(AuditLogger().log(event)) is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
