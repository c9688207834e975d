"""
Transaction creation and split editing.

Every function here returns new objects/lists and leaves its inputs alone.
Identifiers are "{prefix}-{epoch millis}". Records added to an existing
ledger take theirs from unique_transaction_id(), which moves past ids
already in use; batch imports append "-{index}".
"""

from datetime import datetime
from decimal import ROUND_HALF_UP
from typing import Iterable, Mapping, Optional
from uuid import uuid4

from pennypincher.ledger.errors import SplitsLockedError, TransactionNotFoundError
from pennypincher.models.ledger import (
    CENT,
    Split,
    Transaction,
    TransactionKind,
    to_money,
    utcnow,
)


EXPENSE_PREFIX = "exp"
INCOME_PREFIX = "inc"
SETTLE_ALL_PREFIX = "inc-settle-all"


def new_transaction_id(prefix: str, now: Optional[datetime] = None) -> str:
    """Build an id like 'exp-1718000000000'."""
    now = now or utcnow()
    return f"{prefix}-{int(now.timestamp() * 1000)}"


def unique_transaction_id(
    transactions: Iterable[Transaction],
    prefix: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Build a "{prefix}-{millis}" id that no transaction in the ledger uses.

    The millisecond part is bumped until the id is free, so two records
    created in the same millisecond still get distinct ids.
    """
    now = now or utcnow()
    taken = {tx.id for tx in transactions}
    millis = int(now.timestamp() * 1000)
    while f"{prefix}-{millis}" in taken:
        millis += 1
    return f"{prefix}-{millis}"


def create_expense(
    amount,
    category_id: str,
    note: str = "",
    splits: Optional[list[Split]] = None,
    attachment_ref: Optional[str] = None,
    now: Optional[datetime] = None,
    transaction_id: Optional[str] = None,
) -> Transaction:
    """Create an expense record. Empty split lists are stored as None."""
    now = now or utcnow()
    return Transaction(
        id=transaction_id or new_transaction_id(EXPENSE_PREFIX, now),
        kind=TransactionKind.EXPENSE,
        amount=to_money(amount),
        category_id=category_id,
        note=note,
        timestamp=now,
        attachment_ref=attachment_ref,
        splits=splits or None,
    )


def create_income(
    amount,
    category_id: str,
    note: str = "",
    now: Optional[datetime] = None,
    transaction_id: Optional[str] = None,
) -> Transaction:
    """Create a plain income record (not a settlement)."""
    now = now or utcnow()
    return Transaction(
        id=transaction_id or new_transaction_id(INCOME_PREFIX, now),
        kind=TransactionKind.INCOME,
        amount=to_money(amount),
        category_id=category_id,
        note=note,
        timestamp=now,
    )


def add_transaction(
    transactions: list[Transaction],
    transaction: Transaction,
) -> list[Transaction]:
    """Prepend a transaction; the newest entry is always first."""
    return [transaction, *transactions]


def add_transactions(
    transactions: list[Transaction],
    new_transactions: Iterable[Transaction],
) -> list[Transaction]:
    """Prepend a batch, keeping the batch's own order."""
    return [*new_transactions, *transactions]


def equal_splits(amount, person_ids: Iterable[str]) -> list[Split]:
    """
    Split an amount equally between the owner and everyone in person_ids.

    The owner keeps one share, so 90 split with two people gives 30 each.
    Shares are rounded half-up to cents.
    """
    person_ids = list(person_ids)
    if not person_ids:
        return []

    share = (to_money(amount) / (len(person_ids) + 1)).quantize(CENT, rounding=ROUND_HALF_UP)
    return [Split(person_id=person_id, share=share) for person_id in person_ids]


def custom_splits(shares: Mapping[str, object]) -> list[Split]:
    """Build splits from {person_id: share}; zero and blank shares are dropped."""
    splits = []
    for person_id, raw in shares.items():
        if raw in (None, ""):
            continue
        share = to_money(raw)
        if share > 0:
            splits.append(Split(person_id=person_id, share=share))
    return splits


def find_transaction(
    transactions: Iterable[Transaction],
    transaction_id: str,
) -> Optional[Transaction]:
    return next((tx for tx in transactions if tx.id == transaction_id), None)


def update_splits(
    transactions: list[Transaction],
    expense_id: str,
    splits: list[Split],
) -> list[Transaction]:
    """
    Replace the splits of an expense.

    Raises:
        TransactionNotFoundError: No expense with that id
        SplitsLockedError: One of the current splits is already settled
    """
    expense = find_transaction(transactions, expense_id)
    if expense is None or not expense.is_expense:
        raise TransactionNotFoundError(f"No expense with id '{expense_id}'")

    if expense.has_settled_splits:
        raise SplitsLockedError(
            "Splits cannot be edited after someone has settled their share"
        )

    updated = expense.model_copy(update={"splits": list(splits) or None})
    return [updated if tx.id == expense_id else tx for tx in transactions]


def create_payment_request(
    amount,
    person_id: str,
    note: str,
    category_id: str,
    now: Optional[datetime] = None,
    transaction_id: Optional[str] = None,
) -> Transaction:
    """
    Create a payment request: an expense owed in full by one person.

    The note is prefixed with a short invoice reference, e.g. "[inv_1a2b3c4d5e6f] Concert tickets".
    """
    invoice_id = f"inv_{uuid4().hex[:12]}"
    amount = to_money(amount)
    return create_expense(
        amount=amount,
        category_id=category_id,
        note=f"[{invoice_id}] {note}".strip(),
        splits=[Split(person_id=person_id, share=amount)],
        now=now,
        transaction_id=transaction_id,
    )
