"""
Daily Expense Bucketing

Feeds the expense trend chart. The window is pre-seeded with one zero
bucket per calendar day, earliest first, so days without transactions
still show up and the order comes from construction, not from sorting.

A transaction belongs to the calendar day of its created_at timestamp in
the display timezone. Income and transactions outside the window are
ignored.
"""

from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from balance_tracker.formatting import long_date_label, short_date_label, to_local
from balance_tracker.models.ledger import Transaction, TransactionType

DEFAULT_WINDOW_DAYS = 14


class DailyExpense(BaseModel):
    """One chart point: a calendar day and the expenses recorded on it."""
    model_config = ConfigDict(frozen=True)

    day: date
    day_key: str
    label: str
    full_label: str
    expense: Decimal = Decimal("0")


class ExpenseTrend(BaseModel):
    """Chart data plus the two headline numbers shown next to it."""
    model_config = ConfigDict(frozen=True)

    buckets: tuple[DailyExpense, ...]
    today_total: Decimal
    window_total: Decimal


def day_key(moment: datetime, tz: Optional[tzinfo] = None) -> str:
    """ISO calendar date of a timestamp in the display timezone."""
    return to_local(moment, tz).date().isoformat()


def build_daily_expenses(
    transactions: Iterable[Transaction],
    today: date,
    tz: Optional[tzinfo] = None,
    days: int = DEFAULT_WINDOW_DAYS,
) -> list[DailyExpense]:
    """
    Bucket expense totals per day over [today - (days - 1), today].

    Always returns exactly `days` buckets in ascending date order.
    """
    totals: dict[str, Decimal] = {}
    for offset in range(days - 1, -1, -1):
        totals[(today - timedelta(days=offset)).isoformat()] = Decimal("0")

    for tx in transactions:
        if tx.type != TransactionType.EXPENSE:
            continue
        key = day_key(tx.created_at, tz)
        if key in totals:
            totals[key] += tx.total

    buckets = []
    for key, expense in totals.items():
        day = date.fromisoformat(key)
        buckets.append(DailyExpense(
            day=day,
            day_key=key,
            label=short_date_label(day),
            full_label=long_date_label(day),
            expense=expense,
        ))
    return buckets


def expense_on(
    transactions: Iterable[Transaction],
    day: date,
    tz: Optional[tzinfo] = None,
) -> Decimal:
    """Sum of expense totals whose day key equals `day`."""
    key = day.isoformat()
    return sum(
        (tx.total for tx in transactions
         if tx.type == TransactionType.EXPENSE and day_key(tx.created_at, tz) == key),
        Decimal("0"),
    )


def summarize_expenses(
    transactions: Iterable[Transaction],
    today: date,
    tz: Optional[tzinfo] = None,
    days: int = DEFAULT_WINDOW_DAYS,
) -> ExpenseTrend:
    """Buckets plus today's expense total and the window total."""
    transactions = list(transactions)
    buckets = build_daily_expenses(transactions, today, tz=tz, days=days)
    return ExpenseTrend(
        buckets=tuple(buckets),
        today_total=expense_on(transactions, today, tz=tz),
        window_total=sum((b.expense for b in buckets), Decimal("0")),
    )
