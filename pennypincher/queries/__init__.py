"""
Queries package.

Read-only views over the ledger: summaries, trends, filters and export.
"""

from pennypincher.queries.export import CSV_HEADERS, to_csv
from pennypincher.queries.summary import (
    CategoryTotal,
    MonthlySummary,
    TrendPeriod,
    TrendPoint,
    expenses_by_category,
    filter_transactions,
    month_bounds,
    monthly_summary,
    spending_trend,
    transactions_in_month,
)

__all__ = [
    # Summaries
    "CategoryTotal",
    "MonthlySummary",
    "TrendPeriod",
    "TrendPoint",
    "expenses_by_category",
    "filter_transactions",
    "month_bounds",
    "monthly_summary",
    "spending_trend",
    "transactions_in_month",
    # Export
    "CSV_HEADERS",
    "to_csv",
]
