"""
Account Module

An account combines an immutable id, the encrypted password with the key
that decrypts it, and a balance. Encryption is delegated to a
CredentialVault. The account itself enforces no business rules on its
balance: non-negativity and authorization are the ledger's job.
"""

from decimal import Decimal
from dataclasses import dataclass, field
from typing import Optional, Union

from .encryption import CredentialVault, get_default_vault
from .money import as_money, ZERO


@dataclass(eq=False)
class Account:
    """
    Bank account record

    encrypted_password and key are always a matched pair produced by the
    same encrypt() call; they are only ever replaced together.
    """
    id: str
    encrypted_password: bytes = field(repr=False)
    key: bytes = field(repr=False)
    balance: Decimal = ZERO
    vault: CredentialVault = field(default_factory=get_default_vault, repr=False)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Account id must not be empty")
        self.balance = as_money(self.balance)

    @classmethod
    def create(
        cls,
        account_id: str,
        password: str,
        initial_balance: Union[Decimal, int, str] = ZERO,
        vault: Optional[CredentialVault] = None
    ) -> 'Account':
        """Create a new account, encrypting the password immediately"""
        vault = vault or get_default_vault()
        encrypted_password, key = vault.encrypt(password)
        return cls(
            id=account_id,
            encrypted_password=encrypted_password,
            key=key,
            balance=as_money(initial_balance),
            vault=vault
        )

    @classmethod
    def from_stored(
        cls,
        account_id: str,
        encrypted_password: bytes,
        key: bytes,
        balance: Union[Decimal, int, str],
        vault: Optional[CredentialVault] = None
    ) -> 'Account':
        """Rebuild an account from persisted material without re-encrypting"""
        return cls(
            id=account_id,
            encrypted_password=bytes(encrypted_password),
            key=bytes(key),
            balance=as_money(balance),
            vault=vault or get_default_vault()
        )

    def decrypted_password(self) -> str:
        """Plaintext password, for authentication checks only"""
        return self.vault.decrypt(self.encrypted_password, self.key)

    def check_password(self, candidate: str) -> bool:
        return self.decrypted_password() == candidate

    def set_password(self, password: str) -> None:
        """Re-encrypt under a new key, replacing ciphertext and key together"""
        encrypted_password, key = self.vault.encrypt(password)
        self.encrypted_password, self.key = encrypted_password, key

    def set_balance(self, amount: Union[Decimal, int, str]) -> None:
        self.balance = as_money(amount)
