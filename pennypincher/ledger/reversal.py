"""
Reversal and Cascade Logic

Keeps split settlement state and settlement incomes consistent on deletion.

Three cases, decided by what is being deleted:
A. A settlement income: the splits it settled go back to unsettled and
   the income is removed, in the same returned list.
B. An expense: the expense and every income settling it are removed.
C. Anything else: plain removal.

Untouched transactions keep their relative order.
"""

from typing import Iterable

from pennypincher.ledger.transactions import find_transaction
from pennypincher.models.ledger import Transaction


def related_settlements(
    transactions: Iterable[Transaction],
    expense_id: str,
) -> list[Transaction]:
    """Settlement incomes pointing at the given expense."""
    return [
        tx for tx in transactions
        if tx.is_income and tx.related_expense_id == expense_id
    ]


def _unsettle(expense: Transaction, person_id) -> Transaction:
    return expense.model_copy(update={
        "splits": [
            split.model_copy(update={"settled": False}) if split.person_id == person_id else split
            for split in expense.splits
        ],
    })


def delete_transaction(
    transactions: list[Transaction],
    transaction_id: str,
) -> list[Transaction]:
    """
    Delete a transaction, reversing or cascading as needed.

    An unknown id returns the input list itself.
    """
    target = find_transaction(transactions, transaction_id)
    if target is None:
        return transactions

    # Case A: settlement income
    if target.is_settlement:
        updated = []
        for tx in transactions:
            if tx.id == target.id:
                continue
            if tx.id == target.related_expense_id and tx.splits:
                tx = _unsettle(tx, target.related_person_id)
            updated.append(tx)
        return updated

    # Case B: expense, cascade to its settlements
    if target.is_expense:
        removed_ids = {target.id}
        removed_ids.update(tx.id for tx in related_settlements(transactions, target.id))
        return [tx for tx in transactions if tx.id not in removed_ids]

    # Case C: plain income
    return [tx for tx in transactions if tx.id != target.id]
