"""
Supabase Storage Implementation

The hosted Postgres project owns the data:
- `transactions` and `account_balances` tables
- `transactions_with_balance`, `balance_view` and `balance_per_account`
  computed views

TRADEOFFS:
- PostgREST offers no multi-statement transactions to the client, so the
  mutation flow sequences writes itself and compensates on failure
- A batched insert is one statement, so both halves of a transfer land or
  neither does

The implementation follows the abstract interface, so the flow and the
UI never touch the query builder directly.
"""

from decimal import Decimal
from typing import Optional

import structlog
from postgrest.exceptions import APIError
from supabase import Client, create_client

from balance_tracker.config import SupabaseSettings, get_settings
from balance_tracker.models.ledger import (
    AccountBalance,
    AccountLedgerEntry,
    BalanceView,
    NewTransaction,
    Transaction,
    TransactionWithBalance,
)
from balance_tracker.services.storage.interface import (
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


# PostgREST: "JSON object requested, multiple (or no) rows returned"
NO_ROWS_CODE = "PGRST116"

logger = structlog.get_logger(__name__)


class SupabaseClient:
    """
    Low-level Supabase client wrapper.

    Handles connection setup and hands out query builders per table/view.
    """

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        client: Optional[Client] = None,
    ):
        self._settings = settings or get_settings().supabase
        self._client: Optional[Client] = client

    @property
    def settings(self) -> SupabaseSettings:
        return self._settings

    def connect(self) -> Client:
        """Create the underlying client on first use."""
        if self._client is None:
            try:
                self._client = create_client(
                    self._settings.url,
                    self._settings.anon_key,
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Supabase: {e}")
        return self._client

    def table(self, name: str):
        """Query builder for a table or view."""
        return self.connect().table(name)


class SupabaseLedgerStorage(LedgerStorageInterface):
    """
    Supabase implementation of the ledger storage.

    Every method is one PostgREST request. Row payloads go through the
    pydantic models in both directions.
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()
        self._names = self._client.settings

    async def list_transactions(self) -> list[TransactionWithBalance]:
        """Read the transaction list view, newest first."""
        try:
            response = (
                self._client.table(self._names.transactions_view)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
        except APIError as e:
            raise StorageError(f"Failed to list transactions: {e.message}")
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

        return [TransactionWithBalance(**_without_nulls(row)) for row in response.data or []]

    async def get_balance(self) -> BalanceView:
        """Read the aggregate balance row; no row means nothing recorded yet."""
        try:
            response = (
                self._client.table(self._names.balance_view)
                .select("*")
                .single()
                .execute()
            )
        except APIError as e:
            if e.code == NO_ROWS_CODE:
                logger.debug("balance_view_empty")
                return BalanceView.empty()
            raise StorageError(f"Failed to read balance: {e.message}")
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read balance: {e}")

        if not response.data:
            return BalanceView.empty()
        return BalanceView(**_without_nulls(response.data))

    async def list_account_balances(self) -> list[AccountBalance]:
        """Read the per-account balance view."""
        try:
            response = (
                self._client.table(self._names.account_balance_view)
                .select("*")
                .execute()
            )
        except APIError as e:
            raise StorageError(f"Failed to read account balances: {e.message}")
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read account balances: {e}")

        return [AccountBalance(**_without_nulls(row)) for row in response.data or []]

    async def insert_transaction(self, intent: NewTransaction) -> Transaction:
        """Insert one transaction row and return it as stored."""
        try:
            response = (
                self._client.table(self._names.transactions_table)
                .insert(intent.to_insert_row())
                .execute()
            )
        except APIError as e:
            raise StorageError(f"Failed to save transaction: {e.message}")
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

        if not response.data:
            raise StorageError("Failed to save transaction: no row returned")
        return Transaction(**_without_nulls(response.data[0]))

    async def insert_ledger_entries(
        self,
        entries: list[AccountLedgerEntry],
    ) -> list[AccountLedgerEntry]:
        """Insert all entries in a single request."""
        if not entries:
            return []
        try:
            response = (
                self._client.table(self._names.ledger_table)
                .insert([entry.to_insert_row() for entry in entries])
                .execute()
            )
        except APIError as e:
            raise StorageError(f"Failed to save ledger entries: {e.message}")
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save ledger entries: {e}")

        return [AccountLedgerEntry(**_without_nulls(row)) for row in response.data or []]

    async def update_transaction(
        self,
        transaction_id: str,
        price: Decimal,
        quantity: int,
    ) -> Transaction:
        """Overwrite price and quantity; the store recomputes total."""
        try:
            response = (
                self._client.table(self._names.transactions_table)
                .update({"price": str(price), "quantity": quantity})
                .eq("id", transaction_id)
                .execute()
            )
        except APIError as e:
            raise StorageError(f"Failed to update transaction: {e.message}")
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

        if not response.data:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return Transaction(**_without_nulls(response.data[0]))

    async def delete_transaction(self, transaction_id: str) -> bool:
        """Delete a transaction row."""
        try:
            response = (
                self._client.table(self._names.transactions_table)
                .delete()
                .eq("id", transaction_id)
                .execute()
            )
        except APIError as e:
            raise StorageError(f"Failed to delete transaction: {e.message}")
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

        return bool(response.data)

    async def delete_ledger_entries(
        self,
        transaction_id: str,
    ) -> list[AccountLedgerEntry]:
        """Delete the ledger entries linked to a transaction."""
        try:
            response = (
                self._client.table(self._names.ledger_table)
                .delete()
                .eq("transaction_id", transaction_id)
                .execute()
            )
        except APIError as e:
            raise StorageError(f"Failed to delete ledger entries: {e.message}")
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete ledger entries: {e}")

        return [AccountLedgerEntry(**_without_nulls(row)) for row in response.data or []]


def _without_nulls(row: dict) -> dict:
    """Drop NULL columns so the model defaults apply."""
    return {key: value for key, value in row.items() if value is not None}
