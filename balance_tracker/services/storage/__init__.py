"""
Storage Services Package

Provides the abstract ledger storage interface and its implementations.
Supabase is the production backend; the in-memory store backs tests and demos.
"""

from balance_tracker.services.storage.interface import (
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from balance_tracker.services.storage.memory import InMemoryLedgerStorage
from balance_tracker.services.storage.supabase_store import (
    SupabaseClient,
    SupabaseLedgerStorage,
)

__all__ = [
    # Interface
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStorage",
    "SupabaseClient",
    "SupabaseLedgerStorage",
]
