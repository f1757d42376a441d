"""
In-Memory Storage Implementation

Holds the two tables in process and computes the three views the same way
the hosted project does:

- running balance: cumulative signed total in creation order
- aggregate balance: income total, expense total and their difference
- per-account balance: sum of ledger entries per account

Used by the test suite and for demo runs without a backend
(STORAGE_BACKEND=memory). Nothing survives a restart.
"""

from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional
from uuid import uuid4

from balance_tracker.models.ledger import (
    AccountBalance,
    AccountLedgerEntry,
    AccountType,
    BalanceView,
    NewTransaction,
    Transaction,
    TransactionType,
    TransactionWithBalance,
)
from balance_tracker.services.storage.interface import (
    LedgerStorageInterface,
    NotFoundError,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    Dict-backed ledger storage.

    Args:
        clock: Supplies created_at for new rows
        cascade_deletes: Whether deleting a transaction also removes its
            linked ledger entries, like an ON DELETE CASCADE foreign key
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        cascade_deletes: bool = True,
    ):
        self._clock = clock
        self._cascade_deletes = cascade_deletes
        self._transactions: dict[str, Transaction] = {}
        self._ledger: dict[str, AccountLedgerEntry] = {}

    # -------------------------------------------------------------------------
    # Inspection helpers (not part of the interface)
    # -------------------------------------------------------------------------

    @property
    def ledger_entries(self) -> list[AccountLedgerEntry]:
        return list(self._ledger.values())

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions.values())

    # -------------------------------------------------------------------------
    # Read projections
    # -------------------------------------------------------------------------

    async def list_transactions(self) -> list[TransactionWithBalance]:
        ordered = sorted(self._transactions.values(), key=lambda t: t.created_at)

        rows = []
        running = Decimal("0")
        for tx in ordered:
            running += tx.signed_total
            rows.append(
                TransactionWithBalance(
                    **tx.model_dump(),
                    running_balance=running,
                )
            )

        rows.reverse()
        return rows

    async def get_balance(self) -> BalanceView:
        if not self._transactions:
            return BalanceView.empty()

        income = sum(
            (t.total for t in self._transactions.values()
             if t.type == TransactionType.INCOME),
            Decimal("0"),
        )
        expense = sum(
            (t.total for t in self._transactions.values()
             if t.type == TransactionType.EXPENSE),
            Decimal("0"),
        )
        return BalanceView(
            total_income=income,
            total_expense=expense,
            balance=income - expense,
        )

    async def list_account_balances(self) -> list[AccountBalance]:
        totals: dict[AccountType, Decimal] = defaultdict(lambda: Decimal("0"))
        for entry in self._ledger.values():
            totals[entry.account_type] += entry.amount

        return [
            AccountBalance(account_type=account, balance=balance)
            for account, balance in totals.items()
        ]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def insert_transaction(self, intent: NewTransaction) -> Transaction:
        tx = Transaction(
            id=str(uuid4()),
            created_at=self._clock(),
            **intent.to_insert_row(),
        )
        self._transactions[tx.id] = tx
        return tx

    async def insert_ledger_entries(
        self,
        entries: list[AccountLedgerEntry],
    ) -> list[AccountLedgerEntry]:
        for entry in entries:
            if entry.transaction_id and entry.transaction_id not in self._transactions:
                raise NotFoundError(
                    f"Transaction not found: {entry.transaction_id}"
                )

        stored = [
            entry.model_copy(update={"id": str(uuid4()), "created_at": self._clock()})
            for entry in entries
        ]
        for entry in stored:
            self._ledger[entry.id] = entry
        return stored

    async def update_transaction(
        self,
        transaction_id: str,
        price: Decimal,
        quantity: int,
    ) -> Transaction:
        existing = self._transactions.get(transaction_id)
        if existing is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        updated = Transaction(
            **existing.model_dump(exclude={"price", "quantity", "total"}),
            price=price,
            quantity=quantity,
        )
        self._transactions[transaction_id] = updated
        return updated

    async def delete_transaction(self, transaction_id: str) -> bool:
        if self._transactions.pop(transaction_id, None) is None:
            return False
        if self._cascade_deletes:
            self._remove_linked(transaction_id)
        return True

    async def delete_ledger_entries(
        self,
        transaction_id: str,
    ) -> list[AccountLedgerEntry]:
        return self._remove_linked(transaction_id)

    def _remove_linked(self, transaction_id: str) -> list[AccountLedgerEntry]:
        removed = [
            entry for entry in self._ledger.values()
            if entry.transaction_id == transaction_id
        ]
        for entry in removed:
            del self._ledger[entry.id]
        return removed
