"""
RecordVault
Copyright (c) 2025

LEGAL NOTICE AND THREAT MODEL:
This tool is for personal use only. Records are encrypted on the device where
it is installed and are never transmitted. The protection offered is that data
at rest cannot be read without the password; it does not defend against
software already running on the device with the user's privileges.
"""

from .errors import (
    VaultError,
    UserAlreadyExists,
    NotFound,
    InvalidCredentialsOrCorruptData,
    CorruptContainer,
    MalformedPayload,
    PersistenceFailure,
    SessionError,
)
from .models import AppData, Category, RecordItem
from .session import Session, SessionState
from .storage import KeyValueStore, InMemoryKeyValueStore, FileKeyValueStore
from .vault_service import VaultService

__all__ = [
    "VaultError",
    "UserAlreadyExists",
    "NotFound",
    "InvalidCredentialsOrCorruptData",
    "CorruptContainer",
    "MalformedPayload",
    "PersistenceFailure",
    "SessionError",
    "AppData",
    "Category",
    "RecordItem",
    "Session",
    "SessionState",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "FileKeyValueStore",
    "VaultService",
]
