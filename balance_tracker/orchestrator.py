"""
Main Orchestrator for Balance

Ties storage, validation and audit together and defines the flows the UI
calls:
1. Refresh (three projections → one immutable LedgerSnapshot)
2. Add transaction (transaction row → linked ledger entry)
3. Transfer (two unlinked ledger entries in one batched insert)
4. Edit (price and quantity only)
5. Delete (linked ledger entries, then the transaction row)

The orchestrator enforces the boundaries:
- Nothing is written if validation reports an error
- Every successful mutation is followed by a full refresh, never a local patch
- The data service cannot run the two writes of an add atomically, so a
  failed second write is compensated by deleting the first
- Every step is audited
"""

import asyncio
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from balance_tracker.audit import AuditLogger, create_correlation_id
from balance_tracker.config import Settings, get_settings
from balance_tracker.models.ledger import (
    AccountLedgerEntry,
    LedgerSnapshot,
    NewTransaction,
    TransferRequest,
    ValidationResult,
)
from balance_tracker.services.storage import (
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    StorageError,
    SupabaseClient,
    SupabaseLedgerStorage,
)
from balance_tracker.validation import MutationValidator


logger = structlog.get_logger(__name__)

MutationOutcome = tuple[LedgerSnapshot, bool, str]


class LedgerFlow:
    """
    Orchestrates reads and mutations against the ledger storage.

    Every mutation takes the snapshot the user was looking at (used for
    validation) and returns (snapshot, ok, message). On success the snapshot
    is freshly fetched; on a validation rejection it is the one passed in.
    Storage failures are audited and re-raised for the UI to report.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[MutationValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or MutationValidator()
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def storage(self) -> LedgerStorageInterface:
        return self._storage

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def refresh(
        self,
        previous: Optional[LedgerSnapshot] = None,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerSnapshot:
        """
        Fetch all three projections into a new snapshot.

        The projections are gathered so each failure is collected on its own;
        with the synchronous Supabase client the reads still run one after
        another.

        A projection that fails to load is logged and carried over from
        `previous` (or left empty); refresh itself never raises.
        """
        previous = previous or LedgerSnapshot.empty()

        transactions, balance, account_balances = await asyncio.gather(
            self._storage.list_transactions(),
            self._storage.get_balance(),
            self._storage.list_account_balances(),
            return_exceptions=True,
        )

        failed = []
        if isinstance(transactions, Exception):
            failed.append(("transactions", transactions))
            transactions = previous.transactions
        if isinstance(balance, Exception):
            failed.append(("balance", balance))
            balance = previous.balance
        if isinstance(account_balances, Exception):
            failed.append(("account_balances", account_balances))
            account_balances = previous.account_balances

        for projection, error in failed:
            logger.error(
                "projection_fetch_failed",
                projection=projection,
                error=str(error),
            )
            if isinstance(error, StorageError):
                await self._audit_logger.log_projection_failed(
                    projection=projection,
                    error_message=str(error),
                    correlation_id=correlation_id,
                )
            else:
                await self._audit_logger.log_error(
                    error_type=type(error).__name__,
                    error_message=str(error),
                    details={"projection": projection},
                    correlation_id=correlation_id,
                )

        snapshot = LedgerSnapshot(
            transactions=tuple(transactions),
            balance=balance,
            account_balances=tuple(account_balances),
        )

        await self._audit_logger.log_snapshot_refreshed(
            transaction_count=len(snapshot.transactions),
            failed_projections=[name for name, _ in failed],
            correlation_id=correlation_id,
        )
        return snapshot

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add_transaction(
        self,
        intent: NewTransaction,
        snapshot: LedgerSnapshot,
        correlation_id: Optional[UUID] = None,
    ) -> MutationOutcome:
        """
        Record an income or expense and its ledger entry.

        Income is posted positive against the income account; an expense
        is posted negative against the chosen payment account.
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_transaction(intent, snapshot)
        if result.has_errors:
            return await self._reject("add_transaction", result, snapshot, correlation_id)

        try:
            tx = await self._storage.insert_transaction(intent)
        except StorageError as e:
            await self._audit_logger.log_save_failed(
                action="add_transaction",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_transaction_saved(
            transaction_id=tx.id,
            tx_type=tx.type.value,
            total=str(tx.total),
            correlation_id=correlation_id,
        )

        entry = AccountLedgerEntry.for_transaction(tx.id, intent)
        try:
            await self._storage.insert_ledger_entries([entry])
        except StorageError as e:
            await self._audit_logger.log_save_failed(
                action="add_ledger_entry",
                error_message=str(e),
                correlation_id=correlation_id,
                entity_id=tx.id,
            )
            await self._remove_orphan(tx.id, str(e), correlation_id)
            raise

        await self._audit_logger.log_ledger_entry_saved(
            transaction_id=tx.id,
            account=entry.account_type.value,
            amount=str(entry.amount),
            correlation_id=correlation_id,
        )

        fresh = await self.refresh(snapshot, correlation_id)
        return fresh, True, self._success_message("Transaksi tersimpan", result)

    async def transfer(
        self,
        request: TransferRequest,
        snapshot: LedgerSnapshot,
        correlation_id: Optional[UUID] = None,
    ) -> MutationOutcome:
        """Move money between two accounts with one batched insert."""
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_transfer(request, snapshot)
        if result.has_errors:
            return await self._reject("transfer", result, snapshot, correlation_id)

        try:
            await self._storage.insert_ledger_entries(list(request.ledger_entries()))
        except StorageError as e:
            await self._audit_logger.log_save_failed(
                action="transfer",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_transfer_saved(
            from_account=request.from_account.value,
            to_account=request.to_account.value,
            amount=str(request.amount),
            correlation_id=correlation_id,
        )

        fresh = await self.refresh(snapshot, correlation_id)
        return fresh, True, self._success_message("Transfer berhasil", result)

    async def edit_transaction(
        self,
        transaction_id: str,
        price: Decimal,
        quantity: int,
        snapshot: LedgerSnapshot,
        correlation_id: Optional[UUID] = None,
    ) -> MutationOutcome:
        """
        Overwrite price and quantity of a transaction.

        Total is recomputed by the store. The linked ledger entry is left
        as it was posted.
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_edit(transaction_id, price, quantity, snapshot)
        if result.has_errors:
            return await self._reject("edit_transaction", result, snapshot, correlation_id)

        try:
            await self._storage.update_transaction(transaction_id, price, quantity)
        except StorageError as e:
            await self._audit_logger.log_save_failed(
                action="edit_transaction",
                error_message=str(e),
                correlation_id=correlation_id,
                entity_id=transaction_id,
            )
            raise

        await self._audit_logger.log_transaction_updated(
            transaction_id=transaction_id,
            price=str(price),
            quantity=quantity,
            correlation_id=correlation_id,
        )

        fresh = await self.refresh(snapshot, correlation_id)
        return fresh, True, self._success_message("Transaksi diperbarui", result)

    async def delete_transaction(
        self,
        transaction_id: str,
        snapshot: LedgerSnapshot,
        correlation_id: Optional[UUID] = None,
    ) -> MutationOutcome:
        """
        Delete a transaction together with its linked ledger entries.

        Entries go first so the delete also works against a foreign key
        without ON DELETE CASCADE. If the row delete then fails, the removed
        entries are put back.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            removed = await self._storage.delete_ledger_entries(transaction_id)
        except StorageError as e:
            await self._audit_logger.log_save_failed(
                action="delete_ledger_entries",
                error_message=str(e),
                correlation_id=correlation_id,
                entity_id=transaction_id,
            )
            raise

        try:
            deleted = await self._storage.delete_transaction(transaction_id)
        except StorageError as e:
            await self._audit_logger.log_save_failed(
                action="delete_transaction",
                error_message=str(e),
                correlation_id=correlation_id,
                entity_id=transaction_id,
            )
            await self._restore_entries(transaction_id, removed, str(e), correlation_id)
            raise

        if not deleted:
            logger.warning("transaction_already_gone", transaction_id=transaction_id)

        await self._audit_logger.log_transaction_deleted(
            transaction_id=transaction_id,
            ledger_entries_removed=len(removed),
            correlation_id=correlation_id,
        )

        fresh = await self.refresh(snapshot, correlation_id)
        return fresh, True, "Transaksi dihapus"

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _reject(
        self,
        action: str,
        result: ValidationResult,
        snapshot: LedgerSnapshot,
        correlation_id: UUID,
    ) -> MutationOutcome:
        issues = [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in result.issues
        ]
        await self._audit_logger.log_mutation_rejected(
            action=action,
            issues=issues,
            correlation_id=correlation_id,
        )
        return snapshot, False, self._validator.get_user_friendly_summary(result)

    async def _remove_orphan(
        self,
        transaction_id: str,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Compensate a half-finished add by deleting its transaction row."""
        try:
            await self._storage.delete_transaction(transaction_id)
        except StorageError as e:
            logger.critical(
                "orphaned_transaction",
                transaction_id=transaction_id,
                error=str(e),
            )
            await self._audit_logger.log_compensation_failed(
                transaction_id=transaction_id,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return

        await self._audit_logger.log_compensation_applied(
            transaction_id=transaction_id,
            reason=reason,
            correlation_id=correlation_id,
        )

    async def _restore_entries(
        self,
        transaction_id: str,
        entries: list[AccountLedgerEntry],
        reason: str,
        correlation_id: UUID,
    ) -> None:
        """Compensate a half-finished delete by re-posting its ledger entries."""
        if not entries:
            return
        try:
            await self._storage.insert_ledger_entries(
                [entry.model_copy(update={"id": None, "created_at": None}) for entry in entries]
            )
        except StorageError as e:
            logger.critical(
                "ledger_entries_lost",
                transaction_id=transaction_id,
                error=str(e),
            )
            await self._audit_logger.log_compensation_failed(
                transaction_id=transaction_id,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return

        await self._audit_logger.log_compensation_applied(
            transaction_id=transaction_id,
            reason=reason,
            correlation_id=correlation_id,
        )

    def _success_message(self, headline: str, result: ValidationResult) -> str:
        if not result.warnings:
            return headline
        return "\n".join([headline] + [f"⚠️ {w}" for w in result.warnings])


def create_storage(settings: Optional[Settings] = None) -> LedgerStorageInterface:
    """
    Build the storage backend named by STORAGE_BACKEND.

    Falls back to in-memory storage (with a warning) when the Supabase
    settings are missing, so the UI can still start and show the problem.
    """
    settings = settings or get_settings()

    if settings.app.storage_backend == "memory":
        return InMemoryLedgerStorage()

    try:
        return SupabaseLedgerStorage(SupabaseClient(settings.supabase))
    except Exception as e:
        logger.warning("storage_not_configured", error=str(e))
        return InMemoryLedgerStorage()


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[LedgerFlow, LedgerStorageInterface]:
    """
    Factory function to create all application components.

    Returns:
        (ledger_flow, storage)
    """
    settings = settings or get_settings()

    storage = create_storage(settings)
    flow = LedgerFlow(
        storage=storage,
        validator=MutationValidator(settings.app),
        audit_logger=AuditLogger(),
    )
    return flow, storage
