"""
Storage management for the records vault.

LEGAL NOTICE:
This module handles secure storage of personal records. All data is encrypted
locally and never transmitted. Use only on devices you own or administer.
"""

import os
import json
import base64
import binascii
import threading
import shutil
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import quote

from . import config
from .errors import NotFound, CorruptContainer, PersistenceFailure
from .utils import set_owner_only_permissions

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """A persistent string-to-string store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """The stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""

    def exists(self, key: str) -> bool:
        return self.get(key) is not None


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, mainly for tests and embedding."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def exists(self, key: str) -> bool:
        return key in self._items


class FileKeyValueStore(KeyValueStore):
    """
    Stores each key as its own file inside a directory.

    Writes go to a temporary file that is then moved over the target, so a
    reader never sees a half-written value.
    """

    def __init__(self, directory: str):
        """
        Args:
            directory: Folder holding the store's files; created if missing
        """
        self.directory = directory
        self._lock = threading.Lock()
        os.makedirs(directory, exist_ok=True)

    def _path_for(self, key: str) -> str:
        return os.path.join(self.directory, quote(key, safe='') + config.STORE_FILE_SUFFIX)

    def get(self, key: str) -> Optional[str]:
        try:
            with open(self._path_for(key), 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp_path = path + config.TEMP_FILE_SUFFIX
        with self._lock:
            try:
                with open(tmp_path, 'w', encoding='utf-8') as f:
                    f.write(value)
                    f.flush()
                    os.fsync(f.fileno())
                if not set_owner_only_permissions(tmp_path):
                    logger.warning(f"Failed to set secure file permissions for {path}.")
                shutil.move(tmp_path, path)
            except OSError as e:
                logger.error(f"Error writing store file {path}: {e}", exc_info=True)
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise

    def delete(self, key: str) -> None:
        with self._lock:
            try:
                os.remove(self._path_for(key))
            except FileNotFoundError:
                pass

    def exists(self, key: str) -> bool:
        return os.path.exists(self._path_for(key))


def storage_key_for(username: str) -> str:
    """Store key for a user's vault. Lookup ignores case and surrounding whitespace."""
    return f"{config.STORAGE_KEY_PREFIX}{config.STORAGE_DATA_KEY}{username.strip().lower()}"


@dataclass
class VaultContainer:
    """The encrypted record persisted for one user."""
    salt: bytes
    nonce: bytes
    ciphertext: bytes
    kdf_version: int = 1

    def to_json(self) -> str:
        return json.dumps({
            'version': config.CONTAINER_FORMAT_VERSION,
            'kdf': self.kdf_version,
            'salt': base64.b64encode(self.salt).decode('ascii'),
            'iv': base64.b64encode(self.nonce).decode('ascii'),
            'data': base64.b64encode(self.ciphertext).decode('ascii'),
        })

    @classmethod
    def from_json(cls, text: str) -> 'VaultContainer':
        """
        Parse a stored container record.

        Records without 'version' or 'kdf' are read as the first format
        and the first KDF profile.

        Raises:
            CorruptContainer: If the record is not a well-formed container
        """
        try:
            record = json.loads(text)
        except ValueError as e:
            raise CorruptContainer(f"Container is not valid JSON: {e}") from e
        if not isinstance(record, dict):
            raise CorruptContainer("Container must be a JSON object")

        version = record.get('version', config.CONTAINER_FORMAT_VERSION)
        if not _is_int(version) or version != config.CONTAINER_FORMAT_VERSION:
            raise CorruptContainer(f"Unsupported container version: {version!r}")

        kdf_version = record.get('kdf', 1)
        if not _is_int(kdf_version) or kdf_version not in config.KDF_PROFILES:
            raise CorruptContainer(f"Unknown key derivation version: {kdf_version!r}")

        salt = _decode_field(record, 'salt')
        nonce = _decode_field(record, 'iv')
        ciphertext = _decode_field(record, 'data')

        if len(salt) != config.SALT_SIZE:
            raise CorruptContainer(f"Salt must be {config.SALT_SIZE} bytes, got {len(salt)}")
        if len(nonce) != config.NONCE_SIZE:
            raise CorruptContainer(f"Nonce must be {config.NONCE_SIZE} bytes, got {len(nonce)}")
        if len(ciphertext) < config.TAG_SIZE:
            raise CorruptContainer("Ciphertext is shorter than the authentication tag")

        return cls(salt=salt, nonce=nonce, ciphertext=ciphertext, kdf_version=kdf_version)


def _is_int(value) -> bool:
    # JSON true/false load as bool, which is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)


def _decode_field(record: dict, name: str) -> bytes:
    value = record.get(name)
    if not isinstance(value, str):
        raise CorruptContainer(f"Container field '{name}' is missing or not text")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CorruptContainer(f"Container field '{name}' is not valid base64") from e


class VaultContainerStore:
    """Reads and writes vault containers in a key-value store."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def exists(self, username: str) -> bool:
        return self.store.exists(storage_key_for(username))

    def read(self, username: str) -> VaultContainer:
        """
        Raises:
            NotFound: If no container is stored for the user
            CorruptContainer: If the stored record is malformed
            PersistenceFailure: If the store cannot be read
        """
        key = storage_key_for(username)
        try:
            text = self.store.get(key)
        except UnicodeDecodeError as e:
            raise CorruptContainer(f"Container {key} is not valid text") from e
        except OSError as e:
            logger.error(f"Error reading container {key}: {e}")
            raise PersistenceFailure(f"Could not read {key}") from e

        if text is None:
            raise NotFound(f"No vault stored under {key}")
        return VaultContainer.from_json(text)

    def write(self, username: str, container: VaultContainer) -> None:
        """
        Overwrite the user's container.

        Raises:
            PersistenceFailure: If the store rejects the write
        """
        key = storage_key_for(username)
        try:
            self.store.set(key, container.to_json())
        except OSError as e:
            logger.error(f"Error writing container {key}: {e}")
            raise PersistenceFailure(f"Could not write {key}") from e
