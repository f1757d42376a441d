"""
Transaction List Filtering

Client-side search over the already-fetched transaction list. Two
predicates must both hold:

- text: case-insensitive substring of the notes, the populated category,
  or the formatted rupiah total (any one is enough; empty query passes)
- category: "all", a transaction type, or one exact category name

Order is preserved; nothing is re-sorted.
"""

from typing import Iterable, Sequence, TypeVar

from balance_tracker.formatting import format_currency
from balance_tracker.models.ledger import (
    ExpenseCategory,
    IncomeCategory,
    Transaction,
    TransactionType,
)

ALL = "all"

T = TypeVar("T", bound=Transaction)


def category_filter_options() -> list[str]:
    """Selector values in display order."""
    return (
        [ALL]
        + [t.value for t in TransactionType]
        + [c.value for c in ExpenseCategory]
        + [c.value for c in IncomeCategory]
    )


def _matches_text(tx: Transaction, needle: str) -> bool:
    haystacks = [tx.notes or "", tx.category, format_currency(tx.total)]
    return any(needle in h.lower() for h in haystacks)


def _matches_category(tx: Transaction, selector: str) -> bool:
    if selector == ALL:
        return True
    if selector in (TransactionType.INCOME.value, TransactionType.EXPENSE.value):
        return tx.type.value == selector
    return tx.category == selector


def filter_transactions(
    transactions: Iterable[T],
    query: str = "",
    category: str = ALL,
) -> list[T]:
    """
    Apply the search box and category selector to a transaction list.

    Args:
        transactions: Rows in display order
        query: Free-text search; blank matches everything
        category: One of category_filter_options()

    Raises:
        ValueError: If `category` is not a known selector
    """
    if category not in category_filter_options():
        raise ValueError(f"Unknown category filter: {category}")

    needle = query.strip().lower()
    return [
        tx for tx in transactions
        if _matches_category(tx, category)
        and (not needle or _matches_text(tx, needle))
    ]


def count_by_type(transactions: Sequence[Transaction]) -> dict[str, int]:
    """Row counts per transaction type, for the list header."""
    counts = {t.value: 0 for t in TransactionType}
    for tx in transactions:
        counts[tx.type.value] += 1
    return counts
