"""
Tests for password encryption, encrypted backups and the notes vault.
"""

import pytest
from datetime import datetime, timezone

from pennypincher.ledger import create_expense
from pennypincher.models import DEFAULT_CATEGORIES, Person
from pennypincher.services import (
    DecryptionError,
    InMemoryStorage,
    InvalidBackupError,
    VaultError,
    VaultLockedError,
    VaultService,
    decrypt_text,
    encrypt_text,
    export_backup,
    import_backup,
    vault_store,
)


NOW = datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)


class TestEncryption:
    """Tests for encrypt_text / decrypt_text."""

    def test_round_trip(self):
        blob = encrypt_text("secret", "pw")
        assert "secret" not in blob
        assert decrypt_text(blob, "pw") == "secret"

    def test_same_text_encrypts_differently(self):
        """A fresh salt is used every time."""
        assert encrypt_text("secret", "pw") != encrypt_text("secret", "pw")

    def test_wrong_password(self):
        blob = encrypt_text("secret", "pw")
        with pytest.raises(DecryptionError, match="Check your password"):
            decrypt_text(blob, "other")

    def test_garbage_blob(self):
        with pytest.raises(DecryptionError):
            decrypt_text("not-a-blob", "pw")

    def test_empty_password_refused(self):
        with pytest.raises(VaultError):
            encrypt_text("secret", "")


class TestBackups:
    """Tests for export_backup / import_backup."""

    def test_round_trip(self):
        expense = create_expense(25, "cat-1", note="Lunch", now=NOW)
        people = [Person(id="p1", name="Asha")]

        blob = export_backup([expense], list(DEFAULT_CATEGORIES), people, "pw")
        snapshot = import_backup(blob, "pw")

        assert snapshot.expenses == [expense]
        assert snapshot.categories == DEFAULT_CATEGORIES
        assert snapshot.people == people

    def test_wrong_password(self):
        blob = export_backup([], list(DEFAULT_CATEGORIES), [], "pw")
        with pytest.raises(DecryptionError):
            import_backup(blob, "nope")

    def test_missing_arrays_rejected(self):
        blob = encrypt_text('{"expenses": []}', "pw")
        with pytest.raises(InvalidBackupError, match="Invalid file format after decryption."):
            import_backup(blob, "pw")

    def test_not_json_rejected(self):
        blob = encrypt_text("hello", "pw")
        with pytest.raises(InvalidBackupError):
            import_backup(blob, "pw")

    def test_invalid_records_rejected(self):
        blob = encrypt_text('{"expenses": [{"id": "x"}], "categories": [], "people": []}', "pw")
        with pytest.raises(InvalidBackupError):
            import_backup(blob, "pw")


class TestVaultService:
    """Tests for password-protected notes."""

    def _vault(self):
        return VaultService(vault_store(InMemoryStorage()), "vault-notes")

    def test_locked_by_default(self):
        vault = self._vault()
        assert not vault.is_unlocked
        with pytest.raises(VaultLockedError):
            vault.add_note("wifi", "hunter2")

    def test_add_and_read_note(self):
        vault = self._vault()
        vault.unlock("pw")

        note = vault.add_note("wifi", "hunter2", now=NOW)

        assert note.id == f"note-{int(NOW.timestamp() * 1000)}"
        assert note.hint == "wifi"
        assert "hunter2" not in note.encrypted_content
        assert vault.read_note(note.id) == "hunter2"
        assert [n.id for n in vault.list_notes()] == [note.id]

    def test_read_with_other_password_fails(self):
        vault = self._vault()
        vault.unlock("pw")
        note = vault.add_note("wifi", "hunter2", now=NOW)

        vault.lock()
        vault.unlock("wrong")

        with pytest.raises(DecryptionError):
            vault.read_note(note.id)

    def test_fields_required(self):
        vault = self._vault()
        vault.unlock("pw")
        with pytest.raises(VaultError, match="All fields are required."):
            vault.add_note("  ", "content")

    def test_unlock_requires_password(self):
        with pytest.raises(VaultError):
            self._vault().unlock("")

    def test_delete_note(self):
        vault = self._vault()
        vault.unlock("pw")
        note = vault.add_note("wifi", "hunter2", now=NOW)

        vault.delete_note(note.id)

        assert vault.list_notes() == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
