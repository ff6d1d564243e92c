"""
Credential Encryption Module

Encrypts a single account's password under a freshly generated symmetric
key. Every call to encrypt() produces a new random key, so changing a
password invalidates the previous key entirely. Passwords are stored
reversibly (not hashed) because the ledger recomputes them for
re-confirmation prompts.

Uses the cryptography library (AES-GCM or Fernet). Any cryptographic
failure surfaces as CredentialIntegrityError, which is fatal.
"""

import os
import base64
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple, Type

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import CredentialIntegrityError

logger = logging.getLogger("cli_banking.encryption")

# AES-GCM nonce length in bytes
NONCE_SIZE = 12


class CredentialCipher(ABC):
    """Abstract base class for per-credential ciphers"""

    name = ""

    @abstractmethod
    def encrypt(self, plaintext: bytes) -> Tuple[bytes, bytes]:
        """Encrypt plaintext under a new random key, return (ciphertext, key)"""
        pass

    @abstractmethod
    def decrypt(self, ciphertext: bytes, key: bytes) -> bytes:
        """Decrypt ciphertext with the key produced alongside it"""
        pass


class AESGCMCredentialCipher(CredentialCipher):
    """AES-128-GCM with a random nonce prefixed to the ciphertext"""

    name = "aesgcm"

    def __init__(self, key_bits: int = 128):
        if key_bits not in (128, 192, 256):
            raise ValueError(f"Unsupported AES key size: {key_bits}")
        self.key_bits = key_bits

    def encrypt(self, plaintext: bytes) -> Tuple[bytes, bytes]:
        key = AESGCM.generate_key(bit_length=self.key_bits)
        nonce = os.urandom(NONCE_SIZE)
        encrypted = AESGCM(key).encrypt(nonce, plaintext, None)
        return nonce + encrypted, key

    def decrypt(self, ciphertext: bytes, key: bytes) -> bytes:
        if len(ciphertext) <= NONCE_SIZE:
            raise ValueError("Ciphertext too short")
        nonce, encrypted = ciphertext[:NONCE_SIZE], ciphertext[NONCE_SIZE:]
        return AESGCM(key).decrypt(nonce, encrypted, None)


class FernetCredentialCipher(CredentialCipher):
    """Fernet (AES-128-CBC + HMAC-SHA256); the raw 32 key bytes are returned"""

    name = "fernet"

    def encrypt(self, plaintext: bytes) -> Tuple[bytes, bytes]:
        fernet_key = Fernet.generate_key()
        token = Fernet(fernet_key).encrypt(plaintext)
        return token, base64.urlsafe_b64decode(fernet_key)

    def decrypt(self, ciphertext: bytes, key: bytes) -> bytes:
        return Fernet(base64.urlsafe_b64encode(key)).decrypt(ciphertext)


CIPHERS: Dict[str, Type[CredentialCipher]] = {
    AESGCMCredentialCipher.name: AESGCMCredentialCipher,
    FernetCredentialCipher.name: FernetCredentialCipher,
}


class CredentialVault:
    """
    Encrypts and decrypts one password at a time.

    Owns no state besides the cipher; the (ciphertext, key) pair lives on
    the Account.
    """

    def __init__(self, cipher: Optional[CredentialCipher] = None):
        self.cipher = cipher or AESGCMCredentialCipher()

    def encrypt(self, plaintext: str) -> Tuple[bytes, bytes]:
        """Encrypt a password under a new random key"""
        try:
            return self.cipher.encrypt(plaintext.encode("utf-8"))
        except (UnsupportedAlgorithm, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Credential encryption failed: {type(e).__name__}")
            raise CredentialIntegrityError(
                f"Failed to encrypt credential: {e}", operation="encrypt"
            ) from e

    def decrypt(self, ciphertext: bytes, key: bytes) -> str:
        """Recover the password; a mismatched key or corrupt data is fatal"""
        try:
            return self.cipher.decrypt(ciphertext, key).decode("utf-8")
        except (InvalidTag, InvalidToken, UnsupportedAlgorithm, ValueError, TypeError) as e:
            logger.error(f"Credential decryption failed: {type(e).__name__}")
            raise CredentialIntegrityError(
                f"Failed to decrypt credential: {type(e).__name__}", operation="decrypt"
            ) from e


def create_credential_vault(cipher_name: str = "aesgcm") -> CredentialVault:
    """Factory function to create a vault for the configured cipher"""
    cipher_cls = CIPHERS.get(cipher_name.lower())
    if cipher_cls is None:
        raise CredentialIntegrityError(
            f"Unknown cipher '{cipher_name}'", operation="encrypt"
        )
    logger.debug(f"Credential vault using {cipher_cls.__name__}")
    return CredentialVault(cipher_cls())


_default_vault: Optional[CredentialVault] = None


def get_default_vault() -> CredentialVault:
    """Shared vault used when an Account is built without an explicit one"""
    global _default_vault
    if _default_vault is None:
        _default_vault = CredentialVault()
    return _default_vault
