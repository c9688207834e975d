"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger on local disk today and swap the backend later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally tiny: a key-value store of JSON blobs.
There are no transactions and no schema versions; last write wins.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


JSONValue = Any


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for JSON blob storage.

    Any storage implementation (local files, browser storage, a database
    table of blobs, etc.) must implement these methods.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[JSONValue]:
        """
        Read the JSON value stored under a key.

        Returns:
            The decoded value, or None if the key was never written

        Raises:
            StorageError: If the backend could not be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: JSONValue) -> None:
        """
        Replace the JSON value stored under a key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageUnavailableError(StorageError):
    """The storage backend could not be reached or opened."""
    pass
