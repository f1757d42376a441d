"""
Abstract Storage Interface

We define an abstract interface for everything the app asks of the
data service. This allows us to:
1. Talk to the hosted Supabase project in production
2. Use in-memory storage for tests and offline demos
3. Keep the mutation flow decoupled from the query client

The interface mirrors what the service actually exposes: three read-only
computed views and two writable tables. Balances are never computed
on this side of the boundary.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from balance_tracker.models.ledger import (
    AccountBalance,
    AccountLedgerEntry,
    BalanceView,
    NewTransaction,
    Transaction,
    TransactionWithBalance,
)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for the ledger data service.

    Any storage implementation (Supabase, in-memory, ...)
    must implement these methods.
    """

    # -------------------------------------------------------------------------
    # Read projections
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_transactions(self) -> list[TransactionWithBalance]:
        """
        Read the transaction list view, newest first.

        Returns:
            Every transaction with its running balance

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def get_balance(self) -> BalanceView:
        """
        Read the single aggregate balance row.

        Returns:
            Totals over all transactions; a zero view when the store has no row

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def list_account_balances(self) -> list[AccountBalance]:
        """
        Read the per-account balance view.

        Accounts without ledger entries may be absent.
        """
        pass

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @abstractmethod
    async def insert_transaction(self, intent: NewTransaction) -> Transaction:
        """
        Insert one transaction row.

        Args:
            intent: The validated form data

        Returns:
            The stored row, with id, total and created_at populated

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def insert_ledger_entries(
        self,
        entries: list[AccountLedgerEntry],
    ) -> list[AccountLedgerEntry]:
        """
        Insert ledger entries in a single batched call.

        Args:
            entries: Entries to post

        Returns:
            The stored entries

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: str,
        price: Decimal,
        quantity: int,
    ) -> Transaction:
        """
        Overwrite price and quantity of a transaction.

        The store recomputes total.

        Raises:
            StorageError: If the update fails
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete a transaction row.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def delete_ledger_entries(
        self,
        transaction_id: str,
    ) -> list[AccountLedgerEntry]:
        """
        Delete every ledger entry linked to a transaction.

        Returns:
            The removed entries (empty if none were linked)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
