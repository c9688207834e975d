"""
Ledger Summaries

DESIGN DECISION: Every summary is recomputed from the full transaction
list on each call. Nothing is cached or maintained incrementally, so a
summary can never disagree with the ledger it was computed from.

Days and months are taken from the transaction timestamp in UTC.
"""

import calendar
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from pennypincher.ledger.people import category_name_map
from pennypincher.ledger.settlement import UNCATEGORIZED
from pennypincher.models.ledger import Category, Transaction


ZERO = Decimal("0.00")


class TrendPeriod(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class MonthlySummary(BaseModel):
    """Totals for one calendar month."""

    month: str = Field(..., description="YYYY-MM")
    total_expenses: Decimal = ZERO
    total_income: Decimal = ZERO
    expense_count: int = 0
    average_expense: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.total_income - self.total_expenses


class CategoryTotal(BaseModel):
    category_name: str
    total: Decimal


class TrendPoint(BaseModel):
    """One bucket of the spending trend; label is a weekday, day or month."""

    label: str
    start: date
    total: Decimal = ZERO


def _day(transaction: Transaction) -> date:
    return transaction.timestamp.date()


def month_bounds(month: str) -> tuple[date, date]:
    """First and last day of a YYYY-MM month."""
    year, month_number = (int(part) for part in month.split("-"))
    last_day = calendar.monthrange(year, month_number)[1]
    return date(year, month_number, 1), date(year, month_number, last_day)


def transactions_in_month(transactions: list[Transaction], month: str) -> list[Transaction]:
    first, last = month_bounds(month)
    return [t for t in transactions if first <= _day(t) <= last]


def monthly_summary(transactions: list[Transaction], month: str) -> MonthlySummary:
    """Expense and income totals for the month, plus count and average expense."""
    in_month = transactions_in_month(transactions, month)
    expenses = [t.amount for t in in_month if t.is_expense]
    total_expenses = sum(expenses, ZERO)
    total_income = sum((t.amount for t in in_month if t.is_income), ZERO)

    average = ZERO
    if expenses:
        average = (total_expenses / len(expenses)).quantize(Decimal("0.01"))

    return MonthlySummary(
        month=month,
        total_expenses=total_expenses,
        total_income=total_income,
        expense_count=len(expenses),
        average_expense=average,
    )


def expenses_by_category(
    transactions: list[Transaction],
    categories: list[Category],
    month: Optional[str] = None,
) -> list[CategoryTotal]:
    """
    Expense totals per category name, largest first.

    Expenses whose category no longer exists are grouped as 'Uncategorized'.
    """
    names = category_name_map(categories)
    selected = transactions_in_month(transactions, month) if month else transactions

    totals: dict[str, Decimal] = {}
    for transaction in selected:
        if not transaction.is_expense:
            continue
        name = names.get(transaction.category_id, UNCATEGORIZED)
        totals[name] = totals.get(name, ZERO) + transaction.amount

    return sorted(
        (CategoryTotal(category_name=name, total=total) for name, total in totals.items()),
        key=lambda item: item.total,
        reverse=True,
    )


def spending_trend(
    transactions: list[Transaction],
    period: TrendPeriod,
    today: date,
) -> list[TrendPoint]:
    """
    Expense totals bucketed for a chart.

    WEEK: Monday to Sunday of the current week, one point per day
    MONTH: every day of the current month
    YEAR: January up to the current month, one point per month
    """
    period = TrendPeriod(period)
    expenses = [t for t in transactions if t.is_expense]

    if period == TrendPeriod.YEAR:
        points = []
        for month_number in range(1, today.month + 1):
            first, last = month_bounds(f"{today.year:04d}-{month_number:02d}")
            total = sum((t.amount for t in expenses if first <= _day(t) <= last), ZERO)
            points.append(TrendPoint(label=first.strftime("%b"), start=first, total=total))
        return points

    if period == TrendPeriod.WEEK:
        first = today - timedelta(days=today.weekday())
        days = [first + timedelta(days=offset) for offset in range(7)]
        label_format = "%a"
    else:
        first, last = month_bounds(f"{today.year:04d}-{today.month:02d}")
        days = [first + timedelta(days=offset) for offset in range(last.day)]
        label_format = None

    daily: dict[date, Decimal] = {}
    for transaction in expenses:
        day = _day(transaction)
        daily[day] = daily.get(day, ZERO) + transaction.amount

    return [
        TrendPoint(
            label=day.strftime(label_format) if label_format else str(day.day),
            start=day,
            total=daily.get(day, ZERO),
        )
        for day in days
    ]


def filter_transactions(
    transactions: list[Transaction],
    categories: list[Category],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: str = "",
) -> list[Transaction]:
    """
    Transactions matching a date range and a search term, newest first.

    The range is inclusive of whole days; a missing end means the start day only.
    The term matches the note or the category name, case-insensitively.
    """
    names = category_name_map(categories)
    term = search.strip().lower()
    end = date_to or date_from

    def matches(transaction: Transaction) -> bool:
        if date_from is not None and not (date_from <= _day(transaction) <= end):
            return False
        if not term:
            return True
        return (
            term in transaction.note.lower()
            or term in names.get(transaction.category_id, "").lower()
        )

    return sorted(
        (t for t in transactions if matches(t)),
        key=lambda t: t.timestamp,
        reverse=True,
    )
