"""
Typed Collection Stores

Wraps a KeyValueStorageInterface with load/save of pydantic model lists.

Reading never fails: a missing key, a backend error or a blob whose shape
doesn't match the model all produce the defaults, and the problem is logged.
Writing does fail loudly with StorageError, because a lost write would
silently drop user data.
"""

from typing import Callable, Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from pennypincher.events import LedgerEventLogger
from pennypincher.models.ledger import (
    DEFAULT_CATEGORIES,
    Category,
    Person,
    SavingsGoal,
    Transaction,
    VaultNote,
)
from pennypincher.services.storage.interface import (
    KeyValueStorageInterface,
    StorageError,
)


ModelT = TypeVar("ModelT", bound=BaseModel)


class CollectionStore(Generic[ModelT]):
    """Load and save a list of `model` instances under a namespace key."""

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        model: type[ModelT],
        default_factory: Callable[[], list[ModelT]] = list,
        event_logger: Optional[LedgerEventLogger] = None,
    ):
        self._storage = storage
        self._model = model
        self._default_factory = default_factory
        self._events = event_logger or LedgerEventLogger()

    def load(self, namespace: str) -> list[ModelT]:
        """Read the collection, substituting defaults on any problem."""
        try:
            raw = self._storage.get(namespace)
        except StorageError as e:
            self._events.log_storage_error(namespace, str(e), operation="read")
            return self._default_factory()

        if raw is None:
            return self._default_factory()

        if not isinstance(raw, list):
            self._events.log_storage_error(
                namespace,
                f"Expected a list, found {type(raw).__name__}",
                operation="read",
            )
            return self._default_factory()

        try:
            return [self._model.model_validate(item) for item in raw]
        except ValidationError as e:
            self._events.log_storage_error(namespace, str(e), operation="read")
            return self._default_factory()

    def save(self, namespace: str, items: list[ModelT]) -> None:
        """
        Replace the whole collection.

        Raises:
            StorageError: If the backend write fails
        """
        payload = [
            item.model_dump(mode="json", by_alias=True, exclude_none=True)
            for item in items
        ]
        try:
            self._storage.set(namespace, payload)
        except StorageError as e:
            self._events.log_storage_error(namespace, str(e), operation="write")
            raise


class TransactionStore(CollectionStore[Transaction]):
    """The ledger itself: an ordered list of transactions, newest first."""

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        event_logger: Optional[LedgerEventLogger] = None,
    ):
        super().__init__(storage, Transaction, event_logger=event_logger)


def category_store(
    storage: KeyValueStorageInterface,
    event_logger: Optional[LedgerEventLogger] = None,
) -> CollectionStore[Category]:
    """Categories fall back to the built-in defaults."""
    return CollectionStore(
        storage,
        Category,
        default_factory=lambda: list(DEFAULT_CATEGORIES),
        event_logger=event_logger,
    )


def people_store(
    storage: KeyValueStorageInterface,
    event_logger: Optional[LedgerEventLogger] = None,
) -> CollectionStore[Person]:
    return CollectionStore(storage, Person, event_logger=event_logger)


def goals_store(
    storage: KeyValueStorageInterface,
    event_logger: Optional[LedgerEventLogger] = None,
) -> CollectionStore[SavingsGoal]:
    return CollectionStore(storage, SavingsGoal, event_logger=event_logger)


def vault_store(
    storage: KeyValueStorageInterface,
    event_logger: Optional[LedgerEventLogger] = None,
) -> CollectionStore[VaultNote]:
    return CollectionStore(storage, VaultNote, event_logger=event_logger)
