"""
Ledger Package

Pure functions from "current full ledger" to "new full ledger".
Nothing in this package touches storage or the network.
"""

from pennypincher.ledger.errors import (
    DuplicatePersonError,
    GoalNotFoundError,
    LedgerError,
    SplitValidationError,
    SplitsLockedError,
    TransactionNotFoundError,
)
from pennypincher.ledger.goals import (
    GoalProgress,
    delete_goal,
    goal_for_month,
    goal_progress,
    month_key,
    set_goal,
)
from pennypincher.ledger.people import (
    add_category,
    add_person,
    category_name_map,
    person_name_map,
    remove_person,
)
from pennypincher.ledger.reversal import delete_transaction, related_settlements
from pennypincher.ledger.settlement import (
    compute_outstanding_balances,
    settle_all_for_person,
    settle_split,
)
from pennypincher.ledger.transactions import (
    add_transaction,
    add_transactions,
    create_expense,
    create_income,
    create_payment_request,
    custom_splits,
    equal_splits,
    find_transaction,
    new_transaction_id,
    unique_transaction_id,
    update_splits,
)

__all__ = [
    # Errors
    "DuplicatePersonError",
    "GoalNotFoundError",
    "LedgerError",
    "SplitValidationError",
    "SplitsLockedError",
    "TransactionNotFoundError",
    # Settlement engine
    "compute_outstanding_balances",
    "settle_all_for_person",
    "settle_split",
    # Reversal
    "delete_transaction",
    "related_settlements",
    # Transactions
    "add_transaction",
    "add_transactions",
    "create_expense",
    "create_income",
    "create_payment_request",
    "custom_splits",
    "equal_splits",
    "find_transaction",
    "new_transaction_id",
    "unique_transaction_id",
    "update_splits",
    # People and categories
    "add_category",
    "add_person",
    "category_name_map",
    "person_name_map",
    "remove_person",
    # Goals
    "GoalProgress",
    "delete_goal",
    "goal_for_month",
    "goal_progress",
    "month_key",
    "set_goal",
]
