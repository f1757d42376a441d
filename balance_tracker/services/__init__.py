"""Services package."""

from balance_tracker.services.storage import (
    ConnectionError,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    SupabaseClient,
    SupabaseLedgerStorage,
)

__all__ = [
    "ConnectionError",
    "InMemoryLedgerStorage",
    "LedgerStorageInterface",
    "NotFoundError",
    "StorageError",
    "SupabaseClient",
    "SupabaseLedgerStorage",
]
