"""
Monthly savings goals.

One goal per calendar month. Progress is what was actually saved that
month: income minus expenses recorded in it.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel

from pennypincher.ledger.errors import GoalNotFoundError
from pennypincher.ledger.transactions import new_transaction_id
from pennypincher.models.ledger import SavingsGoal, Transaction, to_money, utcnow


class GoalProgress(BaseModel):
    """How far the month's savings are towards the goal."""

    goal: SavingsGoal
    saved: Decimal
    remaining: Decimal
    percent: float
    achieved: bool


def month_key(day: date) -> str:
    return day.strftime("%Y-%m")


def goal_for_month(goals: Iterable[SavingsGoal], month: str) -> Optional[SavingsGoal]:
    return next((goal for goal in goals if goal.month == month), None)


def set_goal(
    goals: list[SavingsGoal],
    name: str,
    amount,
    month: str,
    now: Optional[datetime] = None,
) -> list[SavingsGoal]:
    """Create the month's goal, or update it in place if one exists."""
    existing = goal_for_month(goals, month)
    if existing is not None:
        updated = SavingsGoal(id=existing.id, name=name, amount=to_money(amount), month=month)
        return [updated if goal.id == existing.id else goal for goal in goals]

    goal = SavingsGoal(
        id=new_transaction_id("goal", now or utcnow()),
        name=name,
        amount=to_money(amount),
        month=month,
    )
    return [*goals, goal]


def delete_goal(goals: list[SavingsGoal], month: str) -> list[SavingsGoal]:
    if goal_for_month(goals, month) is None:
        raise GoalNotFoundError(f"No savings goal for {month}")
    return [goal for goal in goals if goal.month != month]


def goal_progress(
    goals: Iterable[SavingsGoal],
    transactions: Iterable[Transaction],
    month: str,
) -> Optional[GoalProgress]:
    """Progress for the month, or None when no goal is set."""
    goal = goal_for_month(goals, month)
    if goal is None:
        return None

    saved = Decimal("0")
    for tx in transactions:
        if month_key(tx.timestamp) != month:
            continue
        saved += tx.amount if tx.is_income else -tx.amount

    remaining = max(goal.amount - saved, Decimal("0"))
    percent = min(max(float(saved / goal.amount) * 100, 0.0), 100.0)

    return GoalProgress(
        goal=goal,
        saved=saved,
        remaining=remaining,
        percent=percent,
        achieved=saved >= goal.amount,
    )
