"""
Tests for the settlement engine and reversal logic.

All functions under test are pure, so every test builds a small ledger
by hand and checks the returned list.
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from pennypincher.ledger import (
    compute_outstanding_balances,
    create_expense,
    create_income,
    delete_transaction,
    find_transaction,
    related_settlements,
    settle_all_for_person,
    settle_split,
)
from pennypincher.models import Person, Split, TransactionKind


NOW = datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)
PEOPLE = [Person(id="p1", name="Asha"), Person(id="p2", name="Ben")]


def _split(person_id, share, settled=False):
    return Split(person_id=person_id, share=Decimal(share), settled=settled)


def _e1():
    """Expense e1: 100 split with p1 (40) and p2 (30); my share is 30."""
    return create_expense(
        Decimal("100"),
        "cat-1",
        note="Dinner",
        splits=[_split("p1", "40"), _split("p2", "30")],
        now=NOW,
        transaction_id="e1",
    )


def _totals(balances):
    return [(b.person_id, b.total_owed) for b in balances]


class TestOutstandingBalances:
    """Tests for compute_outstanding_balances."""

    def test_scenario_e1_balances(self):
        """Both people owe their unsettled share, largest first."""
        balances = compute_outstanding_balances([_e1()], people=PEOPLE)

        assert _totals(balances) == [("p1", Decimal("40.00")), ("p2", Decimal("30.00"))]
        assert balances[0].person_name == "Asha"
        assert balances[0].unsettled_splits[0].expense_id == "e1"
        assert balances[0].unsettled_splits[0].expense_note == "Dinner"

    def test_excludes_rounding_noise(self):
        """Totals at or below 0.009 are not reported."""
        expense = create_expense(
            Decimal("10"), "cat-1", splits=[_split("p1", "0.00")], now=NOW,
        )
        assert compute_outstanding_balances([expense]) == []

    def test_one_cent_is_reported(self):
        """A total of exactly 0.01 is above the noise threshold."""
        expense = create_expense(
            Decimal("10"), "cat-1", splits=[_split("p1", "0.01")], now=NOW,
        )
        assert _totals(compute_outstanding_balances([expense])) == [("p1", Decimal("0.01"))]

    def test_ignores_settled_splits_and_incomes(self):
        """Settled splits and income records do not count."""
        expense = create_expense(
            Decimal("50"), "cat-1",
            splits=[_split("p1", "20", settled=True), _split("p2", "10")],
            now=NOW,
        )
        income = create_income(Decimal("5"), "cat-12", now=NOW)

        assert _totals(compute_outstanding_balances([income, expense])) == [
            ("p2", Decimal("10.00")),
        ]

    def test_aggregates_across_expenses(self):
        """A person's shares across expenses are summed."""
        first = create_expense(Decimal("60"), "cat-1", splits=[_split("p1", "20")], now=NOW, transaction_id="a")
        second = create_expense(Decimal("30"), "cat-3", splits=[_split("p1", "15")], now=NOW, transaction_id="b")

        balances = compute_outstanding_balances([first, second])

        assert _totals(balances) == [("p1", Decimal("35.00"))]
        assert [s.expense_id for s in balances[0].unsettled_splits] == ["a", "b"]

    def test_unknown_person_and_category_names(self):
        """Missing people and categories fall back to placeholder names."""
        expense = create_expense(Decimal("20"), "cat-missing", splits=[_split("ghost", "10")], now=NOW)

        balance = compute_outstanding_balances([expense])[0]

        assert balance.person_name == "Unknown Person"
        assert balance.unsettled_splits[0].expense_note == "Uncategorized"


class TestSettleSplit:
    """Tests for settle_split."""

    def test_scenario_settle_p1(self):
        """Settling p1 creates a linked income and leaves only p2 owing."""
        ledger = [_e1()]
        settled_at = NOW + timedelta(hours=1)

        updated = settle_split(ledger, "e1", "p1", Decimal("40"), people=PEOPLE, now=settled_at)

        income = updated[0]
        assert income.kind == TransactionKind.INCOME
        assert income.amount == Decimal("40.00")
        assert income.related_expense_id == "e1"
        assert income.related_person_id == "p1"
        assert income.category_id == "cat-1"
        assert income.note == 'Settlement from Asha for "Dinner"'
        assert income.id.startswith("inc-")
        assert _totals(compute_outstanding_balances(updated)) == [("p2", Decimal("30.00"))]

    def test_input_list_is_not_modified(self):
        """The original ledger keeps the split unsettled."""
        ledger = [_e1()]
        settle_split(ledger, "e1", "p1", Decimal("40"), now=NOW)

        assert len(ledger) == 1
        assert not ledger[0].splits[0].settled

    def test_amount_within_tolerance_matches(self):
        """An amount less than a cent away still matches, unrounded."""
        for paid in (Decimal("40.006"), Decimal("40.009"), Decimal("39.991"), 40.006):
            updated = settle_split([_e1()], "e1", "p1", paid, now=NOW)
            assert len(updated) == 2, paid
            assert updated[1].splits[0].settled

    def test_amount_a_cent_away_does_not_match(self):
        """The tolerance is exclusive: a full cent off is a no-op."""
        ledger = [_e1()]
        assert settle_split(ledger, "e1", "p1", Decimal("40.01"), now=NOW) is ledger
        assert settle_split(ledger, "e1", "p1", Decimal("39.99"), now=NOW) is ledger

    def test_income_amount_rounded_to_cents(self):
        updated = settle_split([_e1()], "e1", "p1", Decimal("40.006"), now=NOW)
        assert updated[0].amount == Decimal("40.01")

    def test_every_matching_split_is_settled(self):
        """Duplicate splits of the same person and share are closed together."""
        expense = create_expense(
            Decimal("100"), "cat-1",
            splits=[_split("p1", "40"), _split("p2", "20"), _split("p1", "40")],
            now=NOW, transaction_id="dup",
        )

        updated = settle_split([expense], "dup", "p1", Decimal("40"), now=NOW)

        assert len(updated) == 2
        assert [s.settled for s in updated[1].splits] == [True, False, True]
        restored = delete_transaction(updated, updated[0].id)
        assert restored == [expense]

    def test_same_millisecond_settlements_get_distinct_ids(self):
        """Two settlements created at the same instant do not share an id."""
        ledger = settle_split([_e1()], "e1", "p1", Decimal("40"), now=NOW)
        ledger = settle_split(ledger, "e1", "p2", Decimal("30"), now=NOW)

        first, second = ledger[1], ledger[0]
        assert first.id == f"inc-{int(NOW.timestamp() * 1000)}"
        assert second.id == f"inc-{int(NOW.timestamp() * 1000) + 1}"

    def test_no_match_returns_input_unchanged(self):
        """A wrong amount, person or expense is a no-op, not an error."""
        ledger = [_e1()]

        assert settle_split(ledger, "e1", "p1", Decimal("39"), now=NOW) is ledger
        assert settle_split(ledger, "e1", "p9", Decimal("40"), now=NOW) is ledger
        assert settle_split(ledger, "missing", "p1", Decimal("40"), now=NOW) is ledger

    def test_already_settled_split_is_not_settled_twice(self):
        """A second settlement of the same share is a no-op."""
        once = settle_split([_e1()], "e1", "p1", Decimal("40"), now=NOW)
        twice = settle_split(once, "e1", "p1", Decimal("40"), now=NOW + timedelta(seconds=1))
        assert twice is once

    def test_unknown_person_named_someone(self):
        """The note falls back to 'Someone' for people not in the list."""
        updated = settle_split([_e1()], "e1", "p2", Decimal("30"), now=NOW)
        assert updated[0].note.startswith("Settlement from Someone")


class TestSettleAll:
    """Tests for settle_all_for_person."""

    def _ledger(self):
        e2 = create_expense(
            Decimal("75"), "cat-1",
            splits=[_split("p1", "25"), _split("p2", "25")],
            now=NOW, transaction_id="e2",
        )
        e3 = create_expense(
            Decimal("45"), "cat-3",
            splits=[_split("p1", "15")],
            now=NOW, transaction_id="e3",
        )
        return [e2, e3]

    def test_scenario_one_income_for_two_expenses(self):
        """p1 owing on e2 and e3 is cleared with one income of 40."""
        ledger = self._ledger()
        balance = compute_outstanding_balances(ledger, people=PEOPLE)[0]
        assert balance.person_id == "p1"
        assert balance.total_owed == Decimal("40.00")

        updated = settle_all_for_person(
            ledger, "p1", balance.total_owed, balance.unsettled_splits,
            person_name="Asha", now=NOW,
        )

        assert len(updated) == len(ledger) + 1
        income = updated[0]
        assert income.amount == Decimal("40.00")
        assert income.category_id == "cat-12"
        assert income.note == "Full settlement from Asha"
        assert income.id.startswith("inc-settle-all-")
        assert income.related_expense_id is None

        e2 = find_transaction(updated, "e2")
        e3 = find_transaction(updated, "e3")
        assert [s.settled for s in e2.splits] == [True, False]
        assert [s.settled for s in e3.splits] == [True]

    def test_accepts_expense_ids(self):
        """Expense ids work as well as UnsettledSplit records."""
        updated = settle_all_for_person(self._ledger(), "p1", Decimal("40"), ["e2", "e3"], now=NOW)
        assert compute_outstanding_balances(updated)[0].person_id == "p2"

    def test_non_positive_total_is_noop(self):
        ledger = self._ledger()
        assert settle_all_for_person(ledger, "p1", Decimal("0"), ["e2"], now=NOW) is ledger


class TestReversal:
    """Tests for delete_transaction cascade and reversal."""

    def test_delete_settlement_restores_original(self):
        """Settle then delete the settlement gives back the original ledger."""
        original = [_e1()]
        settled = settle_split(original, "e1", "p1", Decimal("40"), people=PEOPLE, now=NOW)

        restored = delete_transaction(settled, settled[0].id)

        assert restored == original
        assert _totals(compute_outstanding_balances(restored)) == [
            ("p1", Decimal("40.00")),
            ("p2", Decimal("30.00")),
        ]

    def test_delete_expense_cascades_settlements(self):
        """Deleting an expense with N settlements removes N + 1 records."""
        other = create_income(Decimal("500"), "cat-11", now=NOW, transaction_id="salary")
        ledger = [other, _e1()]
        ledger = settle_split(ledger, "e1", "p1", Decimal("40"), now=NOW + timedelta(seconds=1))
        ledger = settle_split(ledger, "e1", "p2", Decimal("30"), now=NOW + timedelta(seconds=2))
        assert len(related_settlements(ledger, "e1")) == 2

        remaining = delete_transaction(ledger, "e1")

        assert len(ledger) - len(remaining) == 3
        assert [tx.id for tx in remaining] == ["salary"]

    def test_delete_one_of_two_simultaneous_settlements(self):
        """Only the deleted settlement is reversed; the other stays intact."""
        ledger = settle_split([_e1()], "e1", "p1", Decimal("40"), now=NOW)
        ledger = settle_split(ledger, "e1", "p2", Decimal("30"), now=NOW)
        p1_income = ledger[1]

        remaining = delete_transaction(ledger, p1_income.id)

        expense = find_transaction(remaining, "e1")
        assert [(s.person_id, s.settled) for s in expense.splits] == [("p1", False), ("p2", True)]
        assert [tx.related_person_id for tx in remaining if tx.is_income] == ["p2"]
        assert _totals(compute_outstanding_balances(remaining)) == [("p1", Decimal("40.00"))]

    def test_settle_all_ids_are_unique(self):
        ledger = settle_all_for_person([_e1()], "p1", Decimal("40"), ["e1"], now=NOW)
        ledger = settle_all_for_person(ledger, "p2", Decimal("30"), ["e1"], now=NOW)
        assert ledger[0].id != ledger[1].id

    def test_delete_settle_all_income_keeps_splits_settled(self):
        """A settle-all income has no back-reference; removing it unsettles nothing."""
        ledger = settle_all_for_person([_e1()], "p1", Decimal("40"), ["e1"], now=NOW)

        remaining = delete_transaction(ledger, ledger[0].id)

        assert remaining[0].splits[0].settled is True

    def test_delete_plain_transaction(self):
        income = create_income(Decimal("10"), "cat-11", now=NOW, transaction_id="gift")
        ledger = [income, _e1()]
        assert [tx.id for tx in delete_transaction(ledger, "gift")] == ["e1"]

    def test_delete_unknown_id_returns_input(self):
        ledger = [_e1()]
        assert delete_transaction(ledger, "nope") is ledger


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
