"""People and category bookkeeping."""

from datetime import datetime
from typing import Iterable, Optional

from pennypincher.ledger.errors import DuplicatePersonError
from pennypincher.ledger.transactions import new_transaction_id
from pennypincher.models.ledger import (
    Category,
    CategoryGroup,
    CategoryIcon,
    Person,
    utcnow,
)


def add_person(
    people: list[Person],
    name: str,
    tags: Optional[list[str]] = None,
    now: Optional[datetime] = None,
) -> tuple[list[Person], Person]:
    """
    Append a new person, rejecting names already in use (case-insensitive).

    Returns:
        (new_people_list, created_person)
    """
    name = name.strip()
    if any(person.name.lower() == name.lower() for person in people):
        raise DuplicatePersonError(f"Person '{name}' already exists")

    person = Person(id=new_transaction_id("person", now or utcnow()), name=name, tags=tags or [])
    return [*people, person], person


def remove_person(people: list[Person], person_id: str) -> list[Person]:
    """Remove a person. Splits that reference them are left as they are."""
    return [person for person in people if person.id != person_id]


def add_category(
    categories: list[Category],
    name: str,
    group: CategoryGroup = CategoryGroup.MISCELLANEOUS,
    icon: CategoryIcon = CategoryIcon.PACKAGE,
    now: Optional[datetime] = None,
) -> tuple[list[Category], Category]:
    category = Category(
        id=new_transaction_id("cat", now or utcnow()),
        name=name,
        group=group,
        icon=icon,
    )
    return [*categories, category], category


def category_name_map(categories: Iterable[Category]) -> dict[str, str]:
    return {category.id: category.name for category in categories}


def person_name_map(people: Iterable[Person]) -> dict[str, str]:
    return {person.id: person.name for person in people}
