"""
Cryptographic operations for the records vault.

LEGAL NOTICE:
This module handles encryption/decryption of sensitive data. It must only be used
for legitimate personal record keeping on devices you own or administer.
"""

import os
import logging
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.exceptions import InvalidTag
from argon2.low_level import hash_secret_raw, Type

from . import config
from .errors import AuthenticationFailure

logger = logging.getLogger(__name__)


class CryptoManager:
    """Handles all cryptographic operations for the records vault."""

    SALT_SIZE = config.SALT_SIZE
    KEY_SIZE = config.KEY_SIZE
    NONCE_SIZE = config.NONCE_SIZE

    def generate_salt(self) -> bytes:
        """Generate a cryptographically secure random salt."""
        return os.urandom(self.SALT_SIZE)

    def generate_nonce(self) -> bytes:
        """Generate a fresh nonce. Never reuse one under the same key."""
        return os.urandom(self.NONCE_SIZE)

    def derive_key(self, password: str, salt: bytes,
                   kdf_version: int = config.DEFAULT_KDF_VERSION) -> bytes:
        """
        Derive an encryption key from a password.

        Args:
            password: The user's password (may be empty)
            salt: Random salt stored alongside the vault
            kdf_version: Key of config.KDF_PROFILES naming the parameter set

        Returns:
            32-byte encryption key

        Raises:
            KeyError: If kdf_version is not a known profile
        """
        profile = config.KDF_PROFILES[kdf_version]
        secret = password.encode('utf-8')

        if profile["algorithm"] == config.KDF_ARGON2ID:
            return hash_secret_raw(
                secret=secret,
                salt=salt,
                time_cost=profile["time_cost"],
                memory_cost=profile["memory_cost"],
                parallelism=profile["parallelism"],
                hash_len=self.KEY_SIZE,
                type=Type.ID
            )

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=self.KEY_SIZE,
            salt=salt,
            iterations=profile["iterations"],
        )
        return kdf.derive(secret)

    def encrypt(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        """
        Encrypt data using AES-256-GCM.

        Args:
            key: 32-byte encryption key
            nonce: 12-byte nonce, fresh for this call
            plaintext: Data to encrypt

        Returns:
            Ciphertext with the 16-byte authentication tag appended
        """
        self._check_sizes(key, nonce)
        return AESGCM(bytes(key)).encrypt(nonce, plaintext, None)

    def decrypt(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        """
        Decrypt data using AES-256-GCM.

        Raises:
            AuthenticationFailure: If the tag does not verify (wrong key,
                wrong nonce or tampered ciphertext)
        """
        self._check_sizes(key, nonce)
        try:
            return AESGCM(bytes(key)).decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            logger.debug("Decrypt: authentication tag mismatch")
            raise AuthenticationFailure("authentication tag did not verify") from e

    def _check_sizes(self, key: bytes, nonce: bytes) -> None:
        if len(key) != self.KEY_SIZE:
            raise ValueError(f"Key must be {self.KEY_SIZE} bytes, got {len(key)}")
        if len(nonce) != self.NONCE_SIZE:
            raise ValueError(f"Nonce must be {self.NONCE_SIZE} bytes, got {len(nonce)}")

    def clear_bytes(self, data: bytearray) -> None:
        """Overwrite sensitive bytes in place."""
        if isinstance(data, bytearray):
            for i in range(len(data)):
                data[i] = 0
