"""
Tests for transaction creation, split editing, people and savings goals.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from pennypincher.ledger import (
    DuplicatePersonError,
    GoalNotFoundError,
    SplitsLockedError,
    TransactionNotFoundError,
    add_category,
    add_person,
    add_transaction,
    add_transactions,
    category_name_map,
    create_expense,
    create_income,
    create_payment_request,
    custom_splits,
    delete_goal,
    equal_splits,
    goal_progress,
    new_transaction_id,
    remove_person,
    set_goal,
    settle_split,
    update_splits,
)
from pennypincher.models import (
    CategoryGroup,
    CategoryIcon,
    DEFAULT_CATEGORIES,
    Person,
    Split,
)


NOW = datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)


class TestTransactionCreation:
    """Tests for creating and adding transactions."""

    def test_transaction_id_uses_epoch_millis(self):
        assert new_transaction_id("exp", NOW) == f"exp-{int(NOW.timestamp() * 1000)}"

    def test_create_expense(self):
        expense = create_expense(12.5, "cat-1", note="Lunch", now=NOW)

        assert expense.is_expense
        assert expense.amount == Decimal("12.50")
        assert expense.id.startswith("exp-")
        assert expense.splits is None

    def test_empty_split_list_stored_as_none(self):
        assert create_expense(10, "cat-1", splits=[], now=NOW).splits is None

    def test_create_income(self):
        income = create_income("1500", "cat-11", note="Salary", now=NOW)
        assert income.is_income
        assert income.id.startswith("inc-")
        assert not income.is_settlement

    def test_add_transaction_prepends(self):
        first = create_expense(1, "cat-1", now=NOW, transaction_id="a")
        second = create_expense(2, "cat-1", now=NOW, transaction_id="b")

        assert [tx.id for tx in add_transaction([first], second)] == ["b", "a"]

    def test_add_transactions_keeps_batch_order(self):
        existing = create_expense(1, "cat-1", now=NOW, transaction_id="old")
        batch = [
            create_expense(2, "cat-1", now=NOW, transaction_id="n0"),
            create_expense(3, "cat-1", now=NOW, transaction_id="n1"),
        ]
        assert [tx.id for tx in add_transactions([existing], batch)] == ["n0", "n1", "old"]

    def test_payment_request(self):
        """A payment request is owed in full by one person."""
        request = create_payment_request(60, "p1", "Concert tickets", "cat-12", now=NOW)

        assert request.is_expense
        assert request.category_id == "cat-12"
        assert request.note.startswith("[inv_")
        assert request.note.endswith("] Concert tickets")
        assert request.splits == [Split(person_id="p1", share=Decimal("60.00"))]


class TestSplits:
    """Tests for split helpers and split editing."""

    def test_equal_split_includes_owner(self):
        """90 split with two people is 30 each; the owner keeps the third share."""
        splits = equal_splits(90, ["p1", "p2"])
        assert [(s.person_id, s.share) for s in splits] == [
            ("p1", Decimal("30.00")),
            ("p2", Decimal("30.00")),
        ]

    def test_equal_split_rounds_half_up(self):
        assert equal_splits(10, ["p1", "p2"])[0].share == Decimal("3.33")
        assert equal_splits(Decimal("0.05"), ["p1"])[0].share == Decimal("0.03")

    def test_equal_split_without_people(self):
        assert equal_splits(10, []) == []

    def test_custom_splits_drop_zero_and_blank(self):
        splits = custom_splits({"p1": "12.50", "p2": 0, "p3": "", "p4": None})
        assert [(s.person_id, s.share) for s in splits] == [("p1", Decimal("12.50"))]

    def test_update_splits_before_settlement(self):
        expense = create_expense(100, "cat-1", splits=equal_splits(100, ["p1"]), now=NOW, transaction_id="e1")

        updated = update_splits([expense], "e1", [Split(person_id="p1", share=Decimal("70"))])

        assert updated[0].splits[0].share == Decimal("70")

    def test_update_splits_locked_after_settlement(self):
        expense = create_expense(
            100, "cat-1", splits=[Split(person_id="p1", share=Decimal("50"))], now=NOW, transaction_id="e1",
        )
        settled = settle_split([expense], "e1", "p1", Decimal("50"), now=NOW)

        with pytest.raises(SplitsLockedError):
            update_splits(settled, "e1", [])

    def test_update_splits_unknown_expense(self):
        with pytest.raises(TransactionNotFoundError):
            update_splits([], "missing", [])


class TestPeopleAndCategories:
    """Tests for people and category bookkeeping."""

    def test_add_person(self):
        people, person = add_person([], "  Asha ", now=NOW)
        assert person.name == "Asha"
        assert person.id.startswith("person-")
        assert people == [person]

    def test_duplicate_names_rejected_case_insensitively(self):
        people, _ = add_person([], "Asha", now=NOW)
        with pytest.raises(DuplicatePersonError):
            add_person(people, "asha", now=NOW)

    def test_remove_person(self):
        people = [Person(id="p1", name="Asha"), Person(id="p2", name="Ben")]
        assert [p.id for p in remove_person(people, "p1")] == ["p2"]

    def test_add_category(self):
        categories, category = add_category(
            list(DEFAULT_CATEGORIES), "Pets", CategoryGroup.DISCRETIONARY, CategoryIcon.HEART_PULSE, now=NOW,
        )
        assert category.id.startswith("cat-")
        assert category_name_map(categories)[category.id] == "Pets"
        assert len(categories) == len(DEFAULT_CATEGORIES) + 1


class TestSavingsGoals:
    """Tests for monthly savings goals."""

    def test_set_goal_creates_then_updates(self):
        goals = set_goal([], "Holiday", 500, "2024-06", now=NOW)
        goals = set_goal(goals, "Bigger holiday", 800, "2024-06", now=NOW)

        assert len(goals) == 1
        assert goals[0].name == "Bigger holiday"
        assert goals[0].amount == Decimal("800.00")

    def test_invalid_month_rejected(self):
        with pytest.raises(ValueError):
            set_goal([], "Holiday", 500, "2024-13", now=NOW)

    def test_delete_goal(self):
        goals = set_goal([], "Holiday", 500, "2024-06", now=NOW)
        assert delete_goal(goals, "2024-06") == []
        with pytest.raises(GoalNotFoundError):
            delete_goal([], "2024-06")

    def test_goal_progress(self):
        """Savings are the month's income minus its expenses."""
        goals = set_goal([], "Holiday", 500, "2024-06", now=NOW)
        transactions = [
            create_income(1000, "cat-11", now=NOW),
            create_expense(800, "cat-2", now=NOW),
            create_expense(999, "cat-2", now=datetime(2024, 5, 31, tzinfo=timezone.utc)),
        ]

        progress = goal_progress(goals, transactions, "2024-06")

        assert progress.saved == Decimal("200.00")
        assert progress.remaining == Decimal("300.00")
        assert progress.percent == pytest.approx(40.0)
        assert not progress.achieved

    def test_goal_progress_is_clamped(self):
        goals = set_goal([], "Holiday", 100, "2024-06", now=NOW)

        over = goal_progress(goals, [create_income(500, "cat-11", now=NOW)], "2024-06")
        under = goal_progress(goals, [create_expense(500, "cat-1", now=NOW)], "2024-06")

        assert over.percent == 100.0 and over.achieved
        assert under.percent == 0.0 and under.remaining == Decimal("600.00")

    def test_no_goal_no_progress(self):
        assert goal_progress([], [], "2024-06") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
