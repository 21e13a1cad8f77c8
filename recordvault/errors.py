"""
Error types raised by the RecordVault core.

Every VaultError carries a user_message that is safe to show as-is. The
data-integrity errors share one generic message on purpose: callers must not
be able to tell a wrong password from a damaged vault.
"""

from . import config


class VaultError(Exception):
    """Base class for all domain-level vault errors."""

    user_message = config.MSG_INVALID_CREDENTIALS


class UserAlreadyExists(VaultError):
    """A vault is already stored under this username."""

    user_message = config.MSG_USER_EXISTS


class NotFound(VaultError):
    """No vault is stored under this username."""

    user_message = config.MSG_USER_NOT_FOUND


class InvalidCredentialsOrCorruptData(VaultError):
    """Decryption failed: wrong password or tampered ciphertext."""


class CorruptContainer(VaultError):
    """The stored record is not a valid {salt, nonce, ciphertext} container."""


class MalformedPayload(VaultError):
    """Decrypted bytes do not decode to valid application data."""


class PersistenceFailure(VaultError):
    """The underlying key-value store could not be read or written."""

    user_message = config.MSG_PERSISTENCE_FAILURE


class SessionError(VaultError):
    """The operation needs an unlocked session."""

    user_message = config.MSG_NOT_LOGGED_IN


class AuthenticationFailure(Exception):
    """The AEAD tag did not verify."""
