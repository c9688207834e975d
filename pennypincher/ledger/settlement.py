"""
Settlement Engine

Derives who owes the ledger owner money and records settlements.

DESIGN DECISION: Balances are never stored.
compute_outstanding_balances() is a pure function of the full ledger and is
simply re-run after every command. The two settle operations return a new
list with the settlement income prepended and the split flags flipped, so the
caller either gets a fully consistent ledger or the old one.

Settlement state has exactly two writers:
- this module sets Split.settled to True
- ledger.reversal resets it to False
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

from pennypincher.ledger.people import category_name_map, person_name_map
from pennypincher.ledger.transactions import (
    INCOME_PREFIX,
    SETTLE_ALL_PREFIX,
    find_transaction,
    unique_transaction_id,
)
from pennypincher.models.ledger import (
    Category,
    Person,
    PersonBalance,
    Transaction,
    TransactionKind,
    UnsettledSplit,
    to_money,
    utcnow,
)


SETTLEMENT_TOLERANCE = Decimal("0.01")
MIN_OUTSTANDING_BALANCE = Decimal("0.009")
SETTLEMENT_CATEGORY_ID = "cat-12"

UNKNOWN_PERSON = "Unknown Person"
UNCATEGORIZED = "Uncategorized"


def _name_maps(
    people: Optional[Iterable[Person]],
    categories: Optional[Iterable[Category]],
) -> tuple[dict[str, str], dict[str, str]]:
    return person_name_map(people or []), category_name_map(categories or [])


def describe_expense(expense: Transaction, category_names: dict[str, str]) -> str:
    """Note of the expense, falling back to its category name."""
    return expense.note or category_names.get(expense.category_id) or UNCATEGORIZED


def compute_outstanding_balances(
    transactions: Iterable[Transaction],
    people: Optional[Iterable[Person]] = None,
    categories: Optional[Iterable[Category]] = None,
    min_balance: Decimal = MIN_OUTSTANDING_BALANCE,
) -> list[PersonBalance]:
    """
    Aggregate every unsettled split by person.

    Args:
        transactions: The full ledger, in any order
        people: Used for display names only
        categories: Used to describe expenses without a note
        min_balance: Totals at or below this are rounding noise and dropped

    Returns:
        One PersonBalance per person still owing money, largest debt first.
        Ties keep the order in which the people were first encountered.
    """
    person_names, category_names = _name_maps(people, categories)

    totals: dict[str, Decimal] = {}
    outstanding: dict[str, list[UnsettledSplit]] = {}

    for tx in transactions:
        if tx.kind != TransactionKind.EXPENSE or not tx.splits:
            continue
        for split in tx.splits:
            if split.settled:
                continue
            totals[split.person_id] = totals.get(split.person_id, Decimal("0")) + split.share
            outstanding.setdefault(split.person_id, []).append(UnsettledSplit(
                expense_id=tx.id,
                expense_note=describe_expense(tx, category_names),
                amount=split.share,
                date=tx.timestamp,
            ))

    balances = [
        PersonBalance(
            person_id=person_id,
            person_name=person_names.get(person_id, UNKNOWN_PERSON),
            total_owed=total,
            unsettled_splits=outstanding[person_id],
        )
        for person_id, total in totals.items()
        if total > min_balance
    ]
    # list.sort is stable, also with reverse=True
    balances.sort(key=lambda balance: balance.total_owed, reverse=True)
    return balances


def _exact(amount) -> Decimal:
    """Decimal of `amount` without rounding; floats go through str()."""
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float):
        return Decimal(str(amount))
    return Decimal(amount)


def settle_split(
    transactions: list[Transaction],
    expense_id: str,
    person_id: str,
    amount,
    people: Optional[Iterable[Person]] = None,
    categories: Optional[Iterable[Category]] = None,
    now: Optional[datetime] = None,
    tolerance: Decimal = SETTLEMENT_TOLERANCE,
) -> list[Transaction]:
    """
    Record that one person paid their share of one expense.

    Prepends an income linked back to the expense and person, and marks
    the matching splits settled. A split matches when it is unsettled,
    belongs to person_id, and its share is within `tolerance` of the
    unrounded `amount`. Every matching split of the expense is settled by
    the one income, so deleting that income unsettles them all again.
    The income itself stores `amount` rounded to cents.

    If no split matches the input list itself is returned unchanged.
    Callers detect the no-op with `result is transactions`; the service
    layer logs it as a warning rather than raising.
    """
    paid = _exact(amount)
    expense = find_transaction(transactions, expense_id)
    if expense is None or not expense.is_expense or not expense.splits:
        return transactions

    def matches(split) -> bool:
        return (
            split.person_id == person_id
            and not split.settled
            and abs(split.share - paid) < tolerance
        )

    if not any(matches(split) for split in expense.splits):
        return transactions

    person_names, category_names = _name_maps(people, categories)
    now = now or utcnow()

    income = Transaction(
        id=unique_transaction_id(transactions, INCOME_PREFIX, now),
        kind=TransactionKind.INCOME,
        amount=to_money(paid),
        category_id=expense.category_id,
        note=(
            f"Settlement from {person_names.get(person_id, 'Someone')} "
            f"for \"{describe_expense(expense, category_names)}\""
        ),
        timestamp=now,
        related_expense_id=expense_id,
        related_person_id=person_id,
    )

    settled_splits = [
        split.model_copy(update={"settled": True}) if matches(split) else split
        for split in expense.splits
    ]
    updated_expense = expense.model_copy(update={"splits": settled_splits})

    return [income, *(updated_expense if tx.id == expense_id else tx for tx in transactions)]


def _expense_ids(splits_to_settle: Iterable[Union[UnsettledSplit, str]]) -> list[str]:
    ids = []
    for item in splits_to_settle:
        expense_id = item if isinstance(item, str) else item.expense_id
        if expense_id not in ids:
            ids.append(expense_id)
    return ids


def settle_all_for_person(
    transactions: list[Transaction],
    person_id: str,
    total_amount,
    splits_to_settle: Iterable[Union[UnsettledSplit, str]],
    person_name: Optional[str] = None,
    now: Optional[datetime] = None,
    category_id: str = SETTLEMENT_CATEGORY_ID,
) -> list[Transaction]:
    """
    Clear everything a person owes with a single income.

    Every split of `person_id` in every expense referenced by
    `splits_to_settle` (UnsettledSplit records or expense ids) is marked
    settled. Only one income is created for all of them and it carries no
    back-reference to any expense, so deleting it later does not unsettle
    the splits.

    A non-positive total is a no-op and returns the input list itself.
    """
    total_amount = to_money(total_amount)
    if total_amount <= 0:
        return transactions

    now = now or utcnow()
    expense_ids = set(_expense_ids(splits_to_settle))

    income = Transaction(
        id=unique_transaction_id(transactions, SETTLE_ALL_PREFIX, now),
        kind=TransactionKind.INCOME,
        amount=total_amount,
        category_id=category_id,
        note=f"Full settlement from {person_name or 'Someone'}",
        timestamp=now,
    )

    updated = []
    for tx in transactions:
        if tx.id in expense_ids and tx.is_expense and tx.splits:
            tx = tx.model_copy(update={
                "splits": [
                    split.model_copy(update={"settled": True}) if split.person_id == person_id else split
                    for split in tx.splits
                ],
            })
        updated.append(tx)

    return [income, *updated]
