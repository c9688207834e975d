"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Positive amount
- Note length

STAGE 2 - SEMANTIC VALIDATION:
- Split shares never exceed the expense amount
- Each person appears at most once in a split
- Splits only on expenses
- Split people exist (warning only, people can be removed later)

Stage 2 only runs when stage 1 passed, since split checks need an amount.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them, and raise_for_errors() turns errors into an exception
before anything is written to the ledger.
"""

from decimal import Decimal
from typing import Iterable, Optional

from pennypincher.config import get_settings
from pennypincher.ledger.errors import SplitValidationError
from pennypincher.models.ledger import (
    Category,
    Person,
    TransactionDraft,
    TransactionKind,
    ValidationIssue,
    ValidationResult,
)


class TransactionValidator:
    """
    Validates a draft transaction before the ledger creates it.

    Known people and categories are optional; without them the
    existence checks are skipped.
    """

    def __init__(
        self,
        people: Optional[Iterable[Person]] = None,
        categories: Optional[Iterable[Category]] = None,
        max_note_length: Optional[int] = None,
    ):
        self._person_ids = None if people is None else {p.id for p in people}
        self._category_ids = None if categories is None else {c.id for c in categories}
        self._max_note_length = max_note_length or get_settings().ledger.max_note_length

    def _validate_schema(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if draft.amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
                suggested_fix="Enter the amount you spent or received",
            ))
        elif draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter a positive amount",
            ))

        if not draft.category_id:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="Category is required",
                severity="error",
                suggested_fix="Pick a category",
            ))
        elif self._category_ids is not None and draft.category_id not in self._category_ids:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="unknown_reference",
                message=f"Category '{draft.category_id}' does not exist",
                severity="warning",
                suggested_fix="It will be shown as 'Uncategorized'",
            ))

        if len(draft.note) > self._max_note_length:
            issues.append(ValidationIssue(
                field="note",
                issue_type="too_long",
                message=f"Note is longer than {self._max_note_length} characters",
                severity="error",
                suggested_fix="Shorten the note",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation of splits.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if draft.splits and draft.kind == TransactionKind.INCOME:
            issues.append(ValidationIssue(
                field="splits",
                issue_type="invalid_value",
                message="Income cannot be split with other people",
                severity="error",
                suggested_fix="Remove the split or record an expense instead",
            ))

        total_shares = sum((split.share for split in draft.splits), Decimal("0"))
        if draft.amount is not None and total_shares > draft.amount:
            issues.append(ValidationIssue(
                field="splits",
                issue_type="exceeds_total",
                message=(
                    f"Split shares ({total_shares}) exceed the expense amount "
                    f"({draft.amount})"
                ),
                severity="error",
                suggested_fix="Lower the shares so they fit within the amount",
            ))

        seen = set()
        for split in draft.splits:
            if split.person_id in seen:
                issues.append(ValidationIssue(
                    field="splits",
                    issue_type="duplicate_person",
                    message=f"Person '{split.person_id}' appears more than once in the split",
                    severity="error",
                    suggested_fix="Combine their shares into one",
                ))
            seen.add(split.person_id)

            if self._person_ids is not None and split.person_id not in self._person_ids:
                issues.append(ValidationIssue(
                    field="splits",
                    issue_type="unknown_reference",
                    message=f"Person '{split.person_id}' is not in your people list",
                    severity="warning",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, draft: TransactionDraft) -> ValidationResult:
        """
        Run the full two-stage validation pipeline.

        Args:
            draft: The user's input

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(draft)
            all_issues.extend(semantic_issues)

        return ValidationResult(
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
        )

    def raise_for_errors(self, draft: TransactionDraft) -> ValidationResult:
        """
        Validate and raise if any error-level issue was found.

        Raises:
            SplitValidationError: With every error message joined
        """
        result = self.validate(draft)
        if result.has_errors:
            errors = [issue for issue in result.issues if issue.severity == "error"]
            raise SplitValidationError(
                "; ".join(issue.message for issue in errors),
                issues=errors,
            )
        return result

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Short text shown next to the entry form."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        errors = [issue for issue in result.issues if issue.severity == "error"]
        if errors:
            lines.append("Please fix the following:")
            for issue in errors:
                lines.append(f"  - {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"    {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"  - {warning}")

        return "\n".join(lines)
