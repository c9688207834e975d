"""
Data Models Package

This package contains all Pydantic models used in PennyPincher.
All data flowing through the system must conform to these schemas.
"""

from pennypincher.models.ledger import (
    DEFAULT_CATEGORIES,
    OTHER_CATEGORY_ID,
    Category,
    CategoryGroup,
    CategoryIcon,
    LedgerSnapshot,
    Person,
    PersonBalance,
    SavingsGoal,
    Split,
    Transaction,
    TransactionDraft,
    TransactionKind,
    UnsettledSplit,
    ValidationIssue,
    ValidationResult,
    VaultNote,
    to_money,
    utcnow,
)
from pennypincher.models.events import (
    EventSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORIES",
    "OTHER_CATEGORY_ID",
    "Category",
    "CategoryGroup",
    "CategoryIcon",
    "LedgerSnapshot",
    "Person",
    "PersonBalance",
    "SavingsGoal",
    "Split",
    "Transaction",
    "TransactionDraft",
    "TransactionKind",
    "UnsettledSplit",
    "ValidationIssue",
    "ValidationResult",
    "VaultNote",
    "to_money",
    "utcnow",
    # Event models
    "EventSeverity",
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
]
