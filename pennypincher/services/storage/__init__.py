"""
Storage Services Package

Provides the key-value storage interface, its backends and the typed
collection stores built on top of it.
"""

from pennypincher.services.storage.interface import (
    KeyValueStorageInterface,
    StorageError,
    StorageUnavailableError,
)
from pennypincher.services.storage.backends import (
    InMemoryStorage,
    JsonFileStorage,
)
from pennypincher.services.storage.store import (
    CollectionStore,
    TransactionStore,
    category_store,
    goals_store,
    people_store,
    vault_store,
)

__all__ = [
    # Interface
    "KeyValueStorageInterface",
    # Exceptions
    "StorageError",
    "StorageUnavailableError",
    # Backends
    "InMemoryStorage",
    "JsonFileStorage",
    # Typed stores
    "CollectionStore",
    "TransactionStore",
    "category_store",
    "goals_store",
    "people_store",
    "vault_store",
]
