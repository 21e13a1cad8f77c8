"""
Vault orchestration: create, unlock, re-seal and close a user's vault.

VaultService is the only entry point into the core. It ties together the
container store, key derivation, the cipher and the codec, and turns their
low-level failures into the domain errors in recordvault.errors.
"""

import copy
import logging
from typing import Optional

from . import codec
from . import config
from .crypto import CryptoManager
from .errors import (
    AuthenticationFailure,
    InvalidCredentialsOrCorruptData,
    SessionError,
    UserAlreadyExists,
)
from .models import AppData
from .session import Session
from .storage import KeyValueStore, VaultContainer, VaultContainerStore, storage_key_for

logger = logging.getLogger(__name__)


class VaultService:
    """
    Encrypted persistence for each user's AppData.

    The service itself is stateless between calls: everything belonging to a
    login lives in the caller's Session. Calls on one session must not run
    concurrently; persist is last-writer-wins.
    """

    def __init__(self, store: KeyValueStore, crypto: Optional[CryptoManager] = None,
                 kdf_version: int = config.DEFAULT_KDF_VERSION):
        """
        Args:
            store: Persistent key-value store holding the containers
            crypto: Crypto implementation; a default CryptoManager if omitted
            kdf_version: KDF profile for vaults created by this service.
                Existing vaults always use the profile stored with them.
        """
        if kdf_version not in config.KDF_PROFILES:
            raise ValueError(f"Unknown KDF version: {kdf_version}")
        self.containers = VaultContainerStore(store)
        self.crypto = crypto or CryptoManager()
        self.kdf_version = kdf_version

    def exists(self, username: str) -> bool:
        """True if a vault is stored for this username. Performs no crypto."""
        return self.containers.exists(username)

    def register(self, session: Session, username: str, password: str) -> AppData:
        """
        Create a vault seeded with the default categories and log in.

        Raises:
            UserAlreadyExists: If a vault already exists for the username
            PersistenceFailure: If the new vault could not be written; the
                session stays logged out
        """
        self._end_previous(session)
        if self.containers.exists(username):
            logger.warning(f"Register: vault already exists for {storage_key_for(username)}")
            raise UserAlreadyExists(f"A vault already exists for {username.strip()!r}")

        data = AppData.default()
        salt = self.crypto.generate_salt()
        key = self.crypto.derive_key(password, salt, self.kdf_version)
        self._seal(username, key, salt, self.kdf_version, data)

        session.start(username, password, key, salt, self.kdf_version, copy.deepcopy(data))
        logger.info(f"Registered new vault {storage_key_for(username)}")
        return data

    def unlock(self, session: Session, username: str, password: str) -> AppData:
        """
        Open an existing vault and log in.

        Raises:
            NotFound: If no vault exists for the username
            CorruptContainer: If the stored record is malformed
            InvalidCredentialsOrCorruptData: If the password is wrong or the
                ciphertext was altered; the two are indistinguishable
            MalformedPayload: If the decrypted data cannot be decoded
        """
        self._end_previous(session)
        container = self.containers.read(username)
        key = self.crypto.derive_key(password, container.salt, container.kdf_version)

        try:
            plaintext = self.crypto.decrypt(key, container.nonce, container.ciphertext)
        except AuthenticationFailure as e:
            logger.warning(f"Unlock: could not decrypt {storage_key_for(username)}")
            raise InvalidCredentialsOrCorruptData("Invalid password or corrupted data") from e

        data = codec.decode(plaintext)
        session.start(username, password, key, container.salt, container.kdf_version,
                      copy.deepcopy(data))
        logger.info(f"Unlocked vault {storage_key_for(username)}")
        return data

    def persist(self, session: Session, data: AppData) -> None:
        """
        Re-encrypt and overwrite the session's vault with a fresh nonce.

        The stored salt and KDF profile are re-read on every call. On failure
        the session and its last saved data are left as they were.

        Raises:
            SessionError: If the session is not logged in
            PersistenceFailure: If the store rejects the write
        """
        if not session.is_logged_in():
            raise SessionError("persist requires an unlocked session")

        container = self.containers.read(session.username)
        key = session.cached_key_for(container.salt, container.kdf_version)
        if key is None:
            key = self.crypto.derive_key(session.password, container.salt, container.kdf_version)
            session.cache_key(key, container.salt, container.kdf_version)

        self._seal(session.username, key, container.salt, container.kdf_version, data)
        session.data = copy.deepcopy(data)
        logger.info(f"Persisted vault {storage_key_for(session.username)}")

    def logout(self, session: Session) -> None:
        """Forget the password, key and data held by the session."""
        username = session.username
        session.clear(self.crypto)
        if username is not None:
            logger.info(f"Logged out of vault {storage_key_for(username)}")

    def _end_previous(self, session: Session) -> None:
        if session.is_logged_in():
            self.logout(session)

    def _seal(self, username: str, key: bytes, salt: bytes, kdf_version: int,
              data: AppData) -> None:
        nonce = self.crypto.generate_nonce()
        ciphertext = self.crypto.encrypt(key, nonce, codec.encode(data))
        container = VaultContainer(salt=salt, nonce=nonce, ciphertext=ciphertext,
                                   kdf_version=kdf_version)
        self.containers.write(username, container)
