"""
Shared fixtures.

No test talks to a real Supabase project: flows run against the
in-memory storage, and the Supabase adapter is tested with a mocked
query builder.
"""

from datetime import datetime, timedelta, timezone

import pytest

from balance_tracker.audit import AuditLogger
from balance_tracker.config import AppSettings
from balance_tracker.orchestrator import LedgerFlow
from balance_tracker.services.storage import InMemoryLedgerStorage
from balance_tracker.validation import MutationValidator


class TickingClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start: datetime, step: timedelta = timedelta(minutes=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def app_settings(monkeypatch):
    monkeypatch.delenv("DISPLAY_TIMEZONE", raising=False)
    monkeypatch.delenv("MAX_TRANSACTION_AMOUNT_IDR", raising=False)
    return AppSettings(_env_file=None)


@pytest.fixture
def clock():
    return TickingClock(datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc))


@pytest.fixture
def storage(clock):
    return InMemoryLedgerStorage(clock=clock)


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def flow(storage, app_settings, audit_logger):
    return LedgerFlow(
        storage=storage,
        validator=MutationValidator(app_settings),
        audit_logger=audit_logger,
    )
