"""
Shared pytest fixtures for the RecordVault test suite.

Every fixture works against an in-memory store or a store under tmp_path,
so no test touches the real ~/.recordvault directory.
"""

import pytest

from recordvault.crypto import CryptoManager
from recordvault.session import Session
from recordvault.storage import InMemoryKeyValueStore, FileKeyValueStore
from recordvault.vault_service import VaultService


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store whose writes can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    def set(self, key, value):
        if self.fail_writes:
            raise OSError("disk full")
        super().set(key, value)


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def file_store(tmp_path):
    return FileKeyValueStore(str(tmp_path / "store"))


@pytest.fixture
def crypto():
    return CryptoManager()


@pytest.fixture
def service(store):
    return VaultService(store)


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def registered(service, session):
    """A service holding Alice's freshly registered vault, still logged in."""
    service.register(session, "Alice", "correct-horse")
    return session
