"""Services package."""

from pennypincher.services.storage import (
    CollectionStore,
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
    StorageError,
    StorageUnavailableError,
    TransactionStore,
    category_store,
    goals_store,
    people_store,
    vault_store,
)
from pennypincher.services.vault import (
    DecryptionError,
    InvalidBackupError,
    VaultError,
    VaultLockedError,
    VaultService,
    decrypt_text,
    encrypt_text,
    export_backup,
    import_backup,
)

__all__ = [
    # Storage services
    "CollectionStore",
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorageInterface",
    "StorageError",
    "StorageUnavailableError",
    "TransactionStore",
    "category_store",
    "goals_store",
    "people_store",
    "vault_store",
    # Vault and backups
    "DecryptionError",
    "InvalidBackupError",
    "VaultError",
    "VaultLockedError",
    "VaultService",
    "decrypt_text",
    "encrypt_text",
    "export_backup",
    "import_backup",
]
