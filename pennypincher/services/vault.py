"""
Encrypted Vault and Backups

DESIGN DECISION: Everything encrypted here is protected by a password the
user types, never by a stored key. A random salt is kept next to each
ciphertext and the Fernet key is derived with PBKDF2-HMAC-SHA256.

Blob format: "<urlsafe-b64 salt>.<fernet token>"

Two users of the same primitive:
1. Backups - the whole ledger (expenses, categories, people) as one blob
2. Vault notes - free text stored encrypted, shown with a plain hint
"""

import base64
import json
import os
from datetime import datetime
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from pydantic import ValidationError

from pennypincher.ledger.transactions import new_transaction_id
from pennypincher.models.ledger import (
    Category,
    LedgerSnapshot,
    Person,
    Transaction,
    VaultNote,
    utcnow,
)
from pennypincher.services.storage import CollectionStore


SALT_BYTES = 16
KDF_ITERATIONS = 390_000


class VaultError(Exception):
    """Base exception for vault and backup operations."""
    pass


class DecryptionError(VaultError):
    """Wrong password or corrupted ciphertext."""
    pass


class InvalidBackupError(VaultError):
    """Backup decrypted fine but is not a ledger snapshot."""
    pass


class VaultLockedError(VaultError):
    """The vault must be unlocked with a password first."""
    pass


def _derive_key(password: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8")))


def encrypt_text(plaintext: str, password: str) -> str:
    """Encrypt text with a password. Empty passwords are refused."""
    if not password:
        raise VaultError("A password is required to encrypt data")

    salt = os.urandom(SALT_BYTES)
    token = Fernet(_derive_key(password, salt)).encrypt(plaintext.encode("utf-8"))
    return f"{base64.urlsafe_b64encode(salt).decode('ascii')}.{token.decode('ascii')}"


def decrypt_text(blob: str, password: str) -> str:
    """
    Reverse encrypt_text().

    Raises:
        DecryptionError: Wrong password, or the blob is not ours
    """
    try:
        salt_part, token = blob.strip().split(".", 1)
        salt = base64.urlsafe_b64decode(salt_part.encode("ascii"))
        plaintext = Fernet(_derive_key(password, salt)).decrypt(token.encode("ascii"))
    except (ValueError, InvalidToken) as e:
        raise DecryptionError("Decryption failed. Check your password.") from e
    return plaintext.decode("utf-8")


# =============================================================================
# BACKUPS
# =============================================================================

def export_backup(
    transactions: list[Transaction],
    categories: list[Category],
    people: list[Person],
    password: str,
) -> str:
    """Serialize the ledger snapshot as JSON and encrypt it."""
    snapshot = LedgerSnapshot(
        expenses=transactions,
        categories=categories,
        people=people,
    )
    return encrypt_text(json.dumps(snapshot.to_storage_dict(), indent=2), password)


def import_backup(blob: str, password: str) -> LedgerSnapshot:
    """
    Decrypt and validate a backup.

    All three arrays must be present; nothing is partially restored.

    Raises:
        DecryptionError: Wrong password or corrupted file
        InvalidBackupError: Decrypted content is not a valid snapshot
    """
    decrypted = decrypt_text(blob, password)
    try:
        data = json.loads(decrypted)
    except ValueError as e:
        raise InvalidBackupError("Invalid file format after decryption.") from e

    if not isinstance(data, dict) or not all(
        isinstance(data.get(key), list) for key in ("expenses", "categories", "people")
    ):
        raise InvalidBackupError("Invalid file format after decryption.")

    try:
        return LedgerSnapshot.model_validate(data)
    except ValidationError as e:
        raise InvalidBackupError(f"Backup contains invalid records: {e.error_count()} error(s)") from e


# =============================================================================
# VAULT NOTES
# =============================================================================

class VaultService:
    """
    Password-protected notes.

    The password lives only in memory between unlock() and lock().
    Notes are encrypted individually with it.
    """

    def __init__(self, store: CollectionStore[VaultNote], namespace: str):
        self._store = store
        self._namespace = namespace
        self._password: Optional[str] = None

    @property
    def is_unlocked(self) -> bool:
        return self._password is not None

    def unlock(self, password: str) -> None:
        if not password:
            raise VaultError("Password required")
        self._password = password

    def lock(self) -> None:
        self._password = None

    def _require_password(self) -> str:
        if self._password is None:
            raise VaultLockedError("Unlock the vault first")
        return self._password

    def list_notes(self) -> list[VaultNote]:
        """Notes with their hints; content stays encrypted."""
        return self._store.load(self._namespace)

    def add_note(self, hint: str, content: str, now: Optional[datetime] = None) -> VaultNote:
        password = self._require_password()
        if not hint.strip() or not content:
            raise VaultError("All fields are required.")

        now = now or utcnow()
        note = VaultNote(
            id=new_transaction_id("note", now),
            hint=hint.strip(),
            encrypted_content=encrypt_text(content, password),
            created_at=now,
        )
        self._store.save(self._namespace, [*self.list_notes(), note])
        return note

    def read_note(self, note_id: str) -> str:
        password = self._require_password()
        note = next((n for n in self.list_notes() if n.id == note_id), None)
        if note is None:
            raise VaultError(f"No note with id '{note_id}'")
        return decrypt_text(note.encrypted_content, password)

    def delete_note(self, note_id: str) -> None:
        self._store.save(
            self._namespace,
            [note for note in self.list_notes() if note.id != note_id],
        )
