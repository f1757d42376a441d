"""Read-side computations over fetched snapshots."""

from balance_tracker.queries.daily_expense import (
    DEFAULT_WINDOW_DAYS,
    DailyExpense,
    ExpenseTrend,
    build_daily_expenses,
    day_key,
    expense_on,
    summarize_expenses,
)
from balance_tracker.queries.transaction_filter import (
    ALL,
    category_filter_options,
    count_by_type,
    filter_transactions,
)

__all__ = [
    "ALL",
    "DEFAULT_WINDOW_DAYS",
    "DailyExpense",
    "ExpenseTrend",
    "build_daily_expenses",
    "category_filter_options",
    "count_by_type",
    "day_key",
    "expense_on",
    "filter_transactions",
    "summarize_expenses",
]
