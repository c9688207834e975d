"""CSV export of the (optionally filtered) transaction list."""

import csv
import io

from pennypincher.ledger.people import category_name_map, person_name_map
from pennypincher.ledger.settlement import UNCATEGORIZED
from pennypincher.models.ledger import Category, Person, Transaction


CSV_HEADERS = ["Date", "Type", "Amount", "Category", "Note", "Split With"]
UNKNOWN_SPLIT_PERSON = "Unknown"


def to_csv(
    transactions: list[Transaction],
    categories: list[Category],
    people: list[Person],
) -> str:
    """
    Render transactions as CSV, one row each, in the order given.

    Split With lists the names of everyone the expense was split with,
    comma separated inside one quoted cell.
    """
    category_names = category_name_map(categories)
    person_names = person_name_map(people)

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for transaction in transactions:
        split_names = ", ".join(
            person_names.get(split.person_id, UNKNOWN_SPLIT_PERSON)
            for split in transaction.splits or []
        )
        writer.writerow([
            transaction.timestamp.strftime("%Y-%m-%d"),
            transaction.kind.value,
            f"{transaction.amount:.2f}",
            category_names.get(transaction.category_id, UNCATEGORIZED),
            transaction.note,
            split_names,
        ])

    return buffer.getvalue()
