"""Exceptions raised by ledger operations."""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class SplitValidationError(LedgerError):
    """Split shares are inconsistent with the expense they belong to."""

    def __init__(self, message: str, issues: Optional[list] = None):
        self.issues = issues or []
        super().__init__(message)


class SplitsLockedError(LedgerError):
    """Splits cannot be edited once any of them has been settled."""
    pass


class TransactionNotFoundError(LedgerError):
    """No transaction with the requested id (or of the requested kind)."""
    pass


class DuplicatePersonError(LedgerError):
    """A person with the same name already exists."""
    pass


class GoalNotFoundError(LedgerError):
    """No savings goal for the requested month."""
    pass
