"""
Core Data Models for PennyPincher

These models define the schemas for everything stored in the ledger.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Round-trip through the key-value store as plain JSON
4. Read backups written by earlier releases (camelCase field names)

DESIGN DECISION: Transactions and splits are frozen.
Ledger operations build new lists with model_copy() instead of
mutating records, so a failed command can never leave a half-updated ledger.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


CENT = Decimal("0.01")


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_money(value) -> Decimal:
    """Convert an int/float/str/Decimal amount to a Decimal rounded to cents."""
    if isinstance(value, Decimal):
        return value.quantize(CENT)
    if isinstance(value, float):
        # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
        return Decimal(str(value)).quantize(CENT)
    return Decimal(value).quantize(CENT)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """Direction of a transaction. Immutable after creation."""
    EXPENSE = "expense"
    INCOME = "income"


class CategoryGroup(str, Enum):
    """Grouping used when presenting categories."""
    ESSENTIALS = "Essentials"
    PERSONAL_GROWTH = "Personal Growth"
    DISCRETIONARY = "Discretionary"
    MISCELLANEOUS = "Miscellaneous"


class CategoryIcon(str, Enum):
    """
    Icons a category can carry.

    DESIGN DECISION: A closed set instead of free-form icon names,
    so an unknown icon is a validation error rather than a blank glyph.
    """
    COFFEE = "Coffee"
    HOME = "Home"
    BUS = "Bus"
    SHOPPING_CART = "ShoppingCart"
    ZAP = "Zap"
    BOOK_OPEN = "BookOpen"
    HEART_PULSE = "HeartPulse"
    FILM = "Film"
    SHOPPING_BAG = "ShoppingBag"
    PLANE = "Plane"
    PACKAGE = "Package"
    HAND_COINS = "HandCoins"


# =============================================================================
# CORE LEDGER MODELS
# =============================================================================

class Split(BaseModel):
    """
    A share of an expense attributed to another person.

    Embedded in an expense, never stored on its own.
    `settled` is only ever set to True by the settlement engine
    and only ever reset to False by the reversal logic.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    person_id: str = Field(
        ...,
        min_length=1,
        alias="personId",
        description="Person who owes this share"
    )
    share: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        alias="amount",
        description="Portion of the parent expense owed by this person"
    )
    settled: bool = Field(
        default=False,
        description="Has this person paid their share?"
    )

    @field_validator("share", mode="before")
    @classmethod
    def coerce_share(cls, v):
        """Accept float shares from older exports, rounded to cents."""
        if isinstance(v, float):
            return to_money(v)
        return v


class Transaction(BaseModel):
    """
    The atomic ledger entry.

    Expenses may carry splits. Incomes created by the settlement engine
    carry a back-reference to the expense (and person) they settle.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier, e.g. 'exp-1718000000000'"
    )
    kind: TransactionKind = Field(
        ...,
        alias="type",
        description="expense or income"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Positive amount in the installation's currency"
    )
    category_id: str = Field(
        ...,
        alias="categoryId",
        description="Category reference (not validated at write time)"
    )
    note: str = Field(
        default="",
        description="Free-text description"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        alias="date",
        description="When the transaction was recorded"
    )
    attachment_ref: Optional[str] = Field(
        default=None,
        alias="receipt",
        description="Reference to a receipt image owned by this transaction"
    )
    splits: Optional[list[Split]] = Field(
        default=None,
        alias="splitWith",
        description="Per-person shares (expenses only)"
    )
    related_expense_id: Optional[str] = Field(
        default=None,
        alias="relatedExpenseId",
        description="Expense settled by this income"
    )
    related_person_id: Optional[str] = Field(
        default=None,
        alias="relatedPersonId",
        description="Person whose share this income settles"
    )

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        """Accept float amounts from older exports, rounded to cents."""
        if isinstance(v, float):
            return to_money(v)
        return v

    @field_validator("note", mode="before")
    @classmethod
    def none_note_to_empty(cls, v):
        return "" if v is None else v

    @model_validator(mode="after")
    def validate_kind_fields(self) -> "Transaction":
        """Splits belong to expenses, settlement references to incomes."""
        if self.kind == TransactionKind.INCOME and self.splits:
            raise ValueError("Income transactions cannot have splits")

        if self.kind == TransactionKind.EXPENSE and (
            self.related_expense_id or self.related_person_id
        ):
            raise ValueError("Only income transactions can reference a settled expense")

        if self.related_person_id and not self.related_expense_id:
            raise ValueError("related_person_id requires related_expense_id")

        return self

    @property
    def is_expense(self) -> bool:
        return self.kind == TransactionKind.EXPENSE

    @property
    def is_income(self) -> bool:
        return self.kind == TransactionKind.INCOME

    @property
    def is_settlement(self) -> bool:
        """Income recorded by settling a single split."""
        return self.is_income and self.related_expense_id is not None

    @property
    def has_settled_splits(self) -> bool:
        return any(split.settled for split in self.splits or [])

    def to_storage_dict(self) -> dict:
        """JSON-ready dict using the persisted (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# SUPPORTING RECORDS
# =============================================================================

class Category(BaseModel):
    """A spending/income category. Referenced by id from transactions."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=50)
    group: CategoryGroup = CategoryGroup.MISCELLANEOUS
    icon: CategoryIcon = CategoryIcon.PACKAGE


class Person(BaseModel):
    """Someone expenses can be split with. Not owned by the ledger."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    tags: list[str] = Field(default_factory=list)


class SavingsGoal(BaseModel):
    """Amount the user wants to save in a given month."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    month: str = Field(
        ...,
        pattern=r"^\d{4}-(0[1-9]|1[0-2])$",
        description="Month the goal applies to, YYYY-MM"
    )

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        if isinstance(v, float):
            return to_money(v)
        return v


class VaultNote(BaseModel):
    """A note whose content is only stored encrypted."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    hint: str = Field(default="", max_length=100)
    encrypted_content: str = Field(..., alias="encryptedContent")
    created_at: datetime = Field(default_factory=utcnow, alias="date")


DEFAULT_CATEGORIES: list[Category] = [
    Category(id="cat-1", name="Food & Drinks", group=CategoryGroup.ESSENTIALS, icon=CategoryIcon.COFFEE),
    Category(id="cat-2", name="Rent/Mortgage", group=CategoryGroup.ESSENTIALS, icon=CategoryIcon.HOME),
    Category(id="cat-3", name="Transportation", group=CategoryGroup.ESSENTIALS, icon=CategoryIcon.BUS),
    Category(id="cat-4", name="Groceries", group=CategoryGroup.ESSENTIALS, icon=CategoryIcon.SHOPPING_CART),
    Category(id="cat-5", name="Utilities", group=CategoryGroup.ESSENTIALS, icon=CategoryIcon.ZAP),
    Category(id="cat-6", name="Education", group=CategoryGroup.PERSONAL_GROWTH, icon=CategoryIcon.BOOK_OPEN),
    Category(id="cat-7", name="Health", group=CategoryGroup.PERSONAL_GROWTH, icon=CategoryIcon.HEART_PULSE),
    Category(id="cat-8", name="Entertainment", group=CategoryGroup.DISCRETIONARY, icon=CategoryIcon.FILM),
    Category(id="cat-9", name="Shopping", group=CategoryGroup.DISCRETIONARY, icon=CategoryIcon.SHOPPING_BAG),
    Category(id="cat-10", name="Travel", group=CategoryGroup.DISCRETIONARY, icon=CategoryIcon.PLANE),
    Category(id="cat-11", name="Other", group=CategoryGroup.MISCELLANEOUS, icon=CategoryIcon.PACKAGE),
    Category(id="cat-12", name="Payment Request", group=CategoryGroup.MISCELLANEOUS, icon=CategoryIcon.HAND_COINS),
]

OTHER_CATEGORY_ID = "cat-11"


# =============================================================================
# SETTLEMENT VIEW MODELS
# =============================================================================

class UnsettledSplit(BaseModel):
    """One outstanding share, as shown under a person's balance."""

    expense_id: str
    expense_note: str
    amount: Decimal
    date: datetime


class PersonBalance(BaseModel):
    """Everything one person currently owes the ledger owner."""

    person_id: str
    person_name: str
    total_owed: Decimal
    unsettled_splits: list[UnsettledSplit] = Field(default_factory=list)


# =============================================================================
# BACKUP MODEL
# =============================================================================

class LedgerSnapshot(BaseModel):
    """
    The whole-ledger export format.

    Unversioned: {"expenses": [...], "categories": [...], "people": [...]}.
    """

    expenses: list[Transaction]
    categories: list[Category]
    people: list[Person]

    def to_storage_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'exceeds_total')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating a draft transaction before it touches the ledger."""

    validated_at: datetime = Field(default_factory=utcnow)
    is_valid: bool = Field(
        ...,
        description="True when no error-level issues were found"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]


class TransactionDraft(BaseModel):
    """
    User input for a new transaction before it is checked.

    Deliberately loose: amount and category may be missing or out of range
    so the validator can report every problem at once instead of pydantic
    stopping at the first.
    """

    kind: TransactionKind = TransactionKind.EXPENSE
    amount: Optional[Decimal] = None
    category_id: Optional[str] = None
    note: str = ""
    splits: list[Split] = Field(default_factory=list)
