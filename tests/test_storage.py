"""
Tests for account persistence backends and the CSV record format
"""

import base64
import pytest
from decimal import Decimal

from cli_banking.accounts import Account
from cli_banking.encryption import CredentialVault
from cli_banking.errors import PersistenceError
from cli_banking.storage import (
    CsvAccountStore, InMemoryAccountStore, encode_account, decode_account, HEADER
)


@pytest.fixture
def vault():
    return CredentialVault()


@pytest.fixture
def accounts(vault):
    return [
        Account.create("admin", "admin", vault=vault),
        Account.create("alice", "alicepw", Decimal("100.00"), vault=vault),
        Account.create("bob", "bobpw", Decimal("0.5"), vault=vault),
    ]


class TestRecordCodec:
    """Encoding of a single account row"""

    def test_encode_account(self, accounts):
        record = encode_account(accounts[1])

        assert record["id"] == "alice"
        assert base64.b64decode(record["encrypted"]) == accounts[1].encrypted_password
        assert base64.b64decode(record["key"]) == accounts[1].key
        assert record["balance"] == "100.00"

    def test_decode_rejects_bad_base64(self, vault):
        record = {"id": "x", "encrypted": "not base64!", "key": "AAAA", "balance": "1.00"}
        with pytest.raises(PersistenceError, match="Malformed account record"):
            decode_account(record, vault)

    def test_decode_rejects_bad_balance(self, accounts, vault):
        record = encode_account(accounts[1])
        record["balance"] = "lots"
        with pytest.raises(PersistenceError):
            decode_account(record, vault)

    def test_decode_rejects_negative_balance(self, accounts, vault):
        record = encode_account(accounts[1])
        record["balance"] = "-1.00"
        with pytest.raises(PersistenceError, match="Invalid stored balance"):
            decode_account(record, vault)


class TestCsvAccountStore:
    """File-backed store"""

    def test_save_writes_header_and_rows(self, tmp_path, accounts, vault):
        path = tmp_path / "accounts.csv"
        CsvAccountStore(path, vault).save(accounts)

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == ",".join(HEADER)
        assert len(lines) == 1 + len(accounts)
        assert lines[2].startswith("alice,")
        assert lines[2].endswith(",100.00")
        assert all(len(line.split(",")) == 4 for line in lines)

    def test_roundtrip_preserves_accounts(self, tmp_path, accounts, vault):
        """Saving N accounts then loading reproduces ids, balances and passwords"""
        store = CsvAccountStore(tmp_path / "accounts.csv", vault)
        store.save(accounts)

        loaded = store.load()

        assert [a.id for a in loaded] == ["admin", "alice", "bob"]
        assert [a.balance for a in loaded] == [Decimal("0.00"), Decimal("100.00"), Decimal("0.50")]
        assert [a.decrypted_password() for a in loaded] == ["admin", "alicepw", "bobpw"]

    def test_save_overwrites_previous_content(self, tmp_path, accounts, vault):
        store = CsvAccountStore(tmp_path / "accounts.csv", vault)
        store.save(accounts)
        store.save(accounts[:1])

        assert [a.id for a in store.load()] == ["admin"]

    def test_header_is_skipped_unconditionally(self, tmp_path, accounts, vault):
        path = tmp_path / "accounts.csv"
        CsvAccountStore(path, vault).save(accounts)
        lines = path.read_text(encoding="utf-8").splitlines()
        path.write_text("whatever\n" + "\n".join(lines[1:]) + "\n", encoding="utf-8")

        assert len(CsvAccountStore(path, vault).load()) == 3

    def test_blank_lines_are_ignored(self, tmp_path, accounts, vault):
        path = tmp_path / "accounts.csv"
        CsvAccountStore(path, vault).save(accounts)
        path.write_text(path.read_text(encoding="utf-8") + "\n\n", encoding="utf-8")

        assert len(CsvAccountStore(path, vault).load()) == 3

    def test_missing_file_is_fatal(self, tmp_path, vault):
        with pytest.raises(PersistenceError) as exc_info:
            CsvAccountStore(tmp_path / "missing.csv", vault).load()

        assert exc_info.value.exit_message == "Failed to load data."

    def test_empty_file_is_fatal(self, tmp_path, vault):
        path = tmp_path / "accounts.csv"
        path.write_text("", encoding="utf-8")

        with pytest.raises(PersistenceError, match="no header row"):
            CsvAccountStore(path, vault).load()

    def test_wrong_field_count_is_fatal(self, tmp_path, vault):
        path = tmp_path / "accounts.csv"
        path.write_text("id,encrypted,key,balance\nalice,AAAA,AAAA\n", encoding="utf-8")

        with pytest.raises(PersistenceError, match="expected 4 fields, got 3"):
            CsvAccountStore(path, vault).load()

    def test_unwritable_file_is_fatal(self, tmp_path, accounts, vault):
        store = CsvAccountStore(tmp_path / "no" / "such" / "dir.csv", vault)

        with pytest.raises(PersistenceError) as exc_info:
            store.save(accounts)

        assert exc_info.value.operation == "save"
        assert exc_info.value.exit_message == "Failed to save account data."

    def test_initialize_creates_header_only_file(self, tmp_path, vault):
        store = CsvAccountStore(tmp_path / "accounts.csv", vault)

        assert store.initialize() is True
        assert store.initialize() is False
        assert store.load() == []


class TestInMemoryAccountStore:
    """In-memory store used by tests"""

    def test_starts_empty(self, vault):
        assert InMemoryAccountStore(vault).load() == []

    def test_roundtrip_returns_fresh_objects(self, accounts, vault):
        store = InMemoryAccountStore(vault)
        store.save(accounts)

        loaded = store.load()

        assert [a.id for a in loaded] == [a.id for a in accounts]
        assert loaded[1] is not accounts[1]
        assert loaded[1].decrypted_password() == "alicepw"
        assert store.save_count == 1
        assert store.records[2]["balance"] == "0.50"
