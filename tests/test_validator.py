"""
Tests for the two-stage transaction validator.
"""

import pytest
from decimal import Decimal

from pennypincher.ledger import SplitValidationError
from pennypincher.models import (
    DEFAULT_CATEGORIES,
    Person,
    Split,
    TransactionDraft,
    TransactionKind,
)
from pennypincher.validation import TransactionValidator


PEOPLE = [Person(id="p1", name="Asha"), Person(id="p2", name="Ben")]


def _validator():
    return TransactionValidator(people=PEOPLE, categories=DEFAULT_CATEGORIES, max_note_length=20)


def _issue_types(result):
    return [issue.issue_type for issue in result.issues]


class TestSchemaStage:
    """Stage 1 checks."""

    def test_valid_expense(self):
        result = _validator().validate(TransactionDraft(amount=Decimal("10"), category_id="cat-1"))
        assert result.is_valid
        assert result.issues == []

    def test_missing_amount_and_category(self):
        result = _validator().validate(TransactionDraft())

        assert not result.is_valid
        assert _issue_types(result) == ["missing", "missing"]

    def test_non_positive_amount(self):
        result = _validator().validate(TransactionDraft(amount=Decimal("0"), category_id="cat-1"))
        assert _issue_types(result) == ["invalid_value"]

    def test_note_too_long(self):
        result = _validator().validate(
            TransactionDraft(amount=Decimal("10"), category_id="cat-1", note="x" * 21),
        )
        assert _issue_types(result) == ["too_long"]

    def test_unknown_category_is_warning(self):
        result = _validator().validate(TransactionDraft(amount=Decimal("10"), category_id="cat-99"))
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_semantic_stage_skipped_on_schema_errors(self):
        draft = TransactionDraft(
            amount=Decimal("0"),
            category_id="cat-1",
            splits=[Split(person_id="p1", share=Decimal("5"))],
        )
        assert _issue_types(_validator().validate(draft)) == ["invalid_value"]


class TestSemanticStage:
    """Stage 2 checks on splits."""

    def test_shares_may_equal_amount(self):
        draft = TransactionDraft(
            amount=Decimal("10"),
            category_id="cat-1",
            splits=[Split(person_id="p1", share=Decimal("6")), Split(person_id="p2", share=Decimal("4"))],
        )
        assert _validator().validate(draft).is_valid

    def test_shares_exceeding_amount(self):
        draft = TransactionDraft(
            amount=Decimal("10"),
            category_id="cat-1",
            splits=[Split(person_id="p1", share=Decimal("6")), Split(person_id="p2", share=Decimal("5"))],
        )
        assert _issue_types(_validator().validate(draft)) == ["exceeds_total"]

    def test_duplicate_person(self):
        draft = TransactionDraft(
            amount=Decimal("10"),
            category_id="cat-1",
            splits=[Split(person_id="p1", share=Decimal("1")), Split(person_id="p1", share=Decimal("2"))],
        )
        assert _issue_types(_validator().validate(draft)) == ["duplicate_person"]

    def test_unknown_person_is_warning(self):
        draft = TransactionDraft(
            amount=Decimal("10"),
            category_id="cat-1",
            splits=[Split(person_id="p9", share=Decimal("1"))],
        )
        result = _validator().validate(draft)
        assert result.is_valid
        assert _issue_types(result) == ["unknown_reference"]

    def test_income_with_splits(self):
        draft = TransactionDraft(
            kind=TransactionKind.INCOME,
            amount=Decimal("10"),
            category_id="cat-1",
            splits=[Split(person_id="p1", share=Decimal("1"))],
        )
        assert not _validator().validate(draft).is_valid

    def test_existence_checks_skipped_without_lists(self):
        draft = TransactionDraft(
            amount=Decimal("10"),
            category_id="anything",
            splits=[Split(person_id="anyone", share=Decimal("1"))],
        )
        result = TransactionValidator(max_note_length=100).validate(draft)
        assert result.issues == []


class TestRaiseForErrors:
    """Tests for converting errors into an exception."""

    def test_raises_with_issues(self):
        draft = TransactionDraft(
            amount=Decimal("10"),
            category_id="cat-1",
            splits=[Split(person_id="p1", share=Decimal("11"))],
        )
        with pytest.raises(SplitValidationError) as exc_info:
            _validator().raise_for_errors(draft)

        assert "exceed the expense amount" in str(exc_info.value)
        assert exc_info.value.issues[0].issue_type == "exceeds_total"

    def test_warnings_do_not_raise(self):
        draft = TransactionDraft(amount=Decimal("10"), category_id="cat-99")
        assert _validator().raise_for_errors(draft).is_valid

    def test_user_friendly_summary(self):
        validator = _validator()
        ok = validator.validate(TransactionDraft(amount=Decimal("10"), category_id="cat-1"))
        bad = validator.validate(TransactionDraft(category_id="cat-1"))

        assert validator.get_user_friendly_summary(ok) == "All checks passed."
        assert "Amount is required" in validator.get_user_friendly_summary(bad)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
