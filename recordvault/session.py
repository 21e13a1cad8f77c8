"""
In-memory state of an unlocked vault.

The caller owns the Session and passes it to VaultService; nothing here is
module-level state.
"""

import enum
from typing import Optional

from .models import AppData


class SessionState(enum.Enum):
    LOGGED_OUT = "LOGGED_OUT"
    LOGGED_IN = "LOGGED_IN"


class Session:
    """Holds the username, password, cached key and plaintext data of one login."""

    def __init__(self):
        self.state = SessionState.LOGGED_OUT
        self.username: Optional[str] = None
        self.data: Optional[AppData] = None
        self._password: Optional[str] = None
        self._key: Optional[bytearray] = None
        self._key_salt: Optional[bytes] = None
        self._key_kdf_version: Optional[int] = None

    def is_logged_in(self) -> bool:
        return self.state is SessionState.LOGGED_IN

    def start(self, username: str, password: str, key: bytes, salt: bytes,
              kdf_version: int, data: AppData) -> None:
        self.username = username.strip()
        self._password = password
        self.data = data
        self.cache_key(key, salt, kdf_version)
        self.state = SessionState.LOGGED_IN

    def cache_key(self, key: bytes, salt: bytes, kdf_version: int) -> None:
        self._key = bytearray(key)
        self._key_salt = salt
        self._key_kdf_version = kdf_version

    @property
    def password(self) -> Optional[str]:
        return self._password

    def cached_key_for(self, salt: bytes, kdf_version: int) -> Optional[bytearray]:
        """The cached key, if it was derived from this salt and KDF profile."""
        if self._key is None:
            return None
        if self._key_salt != salt or self._key_kdf_version != kdf_version:
            return None
        return self._key

    def clear(self, crypto=None) -> None:
        """Drop everything, zeroing the cached key buffer when a CryptoManager is given."""
        if crypto is not None and self._key is not None:
            crypto.clear_bytes(self._key)
        self.state = SessionState.LOGGED_OUT
        self.username = None
        self.data = None
        self._password = None
        self._key = None
        self._key_salt = None
        self._key_kdf_version = None

    def __repr__(self) -> str:
        return f"Session(state={self.state.value}, username={self.username!r})"
