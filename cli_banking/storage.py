"""
Storage Backend Module

Provides the abstract account store interface and implementations for
in-memory (testing) and CSV file (persistence). Ciphertexts and keys are
Base64 text in storage; balances are stored as fixed-notation Decimal
strings. Any structural failure is a fatal PersistenceError.
"""

import base64
import binascii
import csv
import io
import logging
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .accounts import Account
from .encryption import CredentialVault
from .errors import PersistenceError
from .money import format_balance

logger = logging.getLogger("cli_banking.storage")

HEADER = ["id", "encrypted", "key", "balance"]


def encode_account(account: Account) -> Dict[str, str]:
    """Convert an account to its text record"""
    return {
        "id": account.id,
        "encrypted": base64.b64encode(account.encrypted_password).decode("ascii"),
        "key": base64.b64encode(account.key).decode("ascii"),
        "balance": format_balance(account.balance),
    }


def decode_account(record: Dict[str, str], vault: Optional[CredentialVault] = None) -> Account:
    """Rebuild an account from its text record; raises PersistenceError on bad data"""
    try:
        encrypted = base64.b64decode(record["encrypted"], validate=True)
        key = base64.b64decode(record["key"], validate=True)
        balance = Decimal(record["balance"])
    except (KeyError, binascii.Error, ValueError, InvalidOperation) as e:
        raise PersistenceError(f"Malformed account record: {e}") from e

    if not balance.is_finite() or balance < 0:
        raise PersistenceError(f"Invalid stored balance for account {record['id']!r}")
    if not record["id"]:
        raise PersistenceError("Account record with empty id")

    return Account.from_stored(record["id"], encrypted, key, balance, vault=vault)


class AccountStore(ABC):
    """Abstract interface for account persistence"""

    @abstractmethod
    def load(self) -> List[Account]:
        """Load every stored account, in stored order"""
        pass

    @abstractmethod
    def save(self, accounts: Iterable[Account]) -> None:
        """Replace the stored account set"""
        pass


class InMemoryAccountStore(AccountStore):
    """In-memory store for testing; keeps encoded records, not live objects"""

    def __init__(self, vault: Optional[CredentialVault] = None):
        self.vault = vault
        self._records: List[Dict[str, str]] = []
        self.save_count = 0

    def load(self) -> List[Account]:
        return [decode_account(dict(record), self.vault) for record in self._records]

    def save(self, accounts: Iterable[Account]) -> None:
        self._records = [encode_account(account) for account in accounts]
        self.save_count += 1

    @property
    def records(self) -> List[Dict[str, str]]:
        return [dict(record) for record in self._records]


class CsvAccountStore(AccountStore):
    """
    Flat CSV file store

    Layout: header row `id,encrypted,key,balance` then one row per account.
    The header is skipped unconditionally on load and every save rewrites
    the whole file.
    """

    def __init__(self, path: Union[str, Path], vault: Optional[CredentialVault] = None):
        self.path = Path(path)
        self.vault = vault

    def initialize(self) -> bool:
        """Create a header-only file if none exists; returns True if created"""
        if self.path.exists():
            return False
        self._write_rows([])
        logger.info(f"Created empty account file {self.path}")
        return True

    def load(self) -> List[Account]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e

        rows = list(csv.reader(io.StringIO(text)))
        if not rows:
            raise PersistenceError(f"{self.path} has no header row")

        accounts = []
        for line_number, row in enumerate(rows[1:], start=2):
            if not row:
                continue
            if len(row) != len(HEADER):
                raise PersistenceError(
                    f"{self.path}:{line_number}: expected {len(HEADER)} fields, got {len(row)}"
                )
            accounts.append(decode_account(dict(zip(HEADER, row)), self.vault))

        logger.info(f"Loaded {len(accounts)} accounts from {self.path}")
        return accounts

    def save(self, accounts: Iterable[Account]) -> None:
        records = [encode_account(account) for account in accounts]
        self._write_rows(records)
        logger.info(f"Saved {len(records)} accounts to {self.path}")

    def _write_rows(self, records: List[Dict[str, str]]) -> None:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(HEADER)
        for record in records:
            writer.writerow([record[column] for column in HEADER])
        try:
            self.path.write_text(buffer.getvalue(), encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.path}: {e}", operation="save") from e
