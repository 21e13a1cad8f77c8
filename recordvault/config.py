"""
Configuration constants for the RecordVault application.
"""

# Application Metadata
APP_VERSION = "1.0"  # Use: Current version of the application. Type: str. Range: Semantic versioning string (e.g., "1.0.0")
APP_NAME = "RecordVault"  # Use: Full name of the application. Type: str. Range: Any valid string.

# Security Settings
SALT_SIZE = 16  # Use: Size of the cryptographic salt in bytes for key derivation. Type: int. Range: Recommended to be at least 16 bytes (128 bits) for security.
KEY_SIZE = 32  # Use: Size of the encryption key in bytes. Corresponds to AES-256. Type: int. Range: 32 bytes only; the cipher rejects other sizes.
NONCE_SIZE = 12  # Use: Size of the Nonce (Number used once) in bytes for AES-GCM. Type: int. Range: 12 bytes (96 bits), the only size the cipher accepts.
TAG_SIZE = 16  # Use: Size of the authentication tag in bytes appended to AES-GCM ciphertext. Type: int. Range: 16 bytes (128 bits).

KDF_PBKDF2_SHA256 = "pbkdf2-sha256"  # Use: Identifier of the PBKDF2-HMAC-SHA256 key derivation algorithm. Type: str.
KDF_ARGON2ID = "argon2id"  # Use: Identifier of the Argon2id key derivation algorithm. Type: str.
KDF_PROFILES = {  # Use: Frozen key derivation parameter sets keyed by the version stored in each container. Type: dict[int, dict]. Range: Entries may be added but never changed once vaults exist.
    1: {
        "algorithm": KDF_PBKDF2_SHA256,
        "iterations": 100000,
    },
    2: {
        "algorithm": KDF_ARGON2ID,
        "time_cost": 2,
        "memory_cost": 65536,  # 64 MB
        "parallelism": 4,
    },
}
DEFAULT_KDF_VERSION = 1  # Use: KDF profile used when creating new vaults. Type: int. Range: Any key of KDF_PROFILES.

# Storage Settings
STORAGE_KEY_PREFIX = "recordvault-"  # Use: Namespace prefix for every key this application writes to the key-value store. Type: str. Range: Any string.
STORAGE_DATA_KEY = "data-"  # Use: Segment between the namespace prefix and the normalized username in vault storage keys. Type: str. Range: Any string.
CONTAINER_FORMAT_VERSION = 1  # Use: Version of the JSON container record layout. Type: int. Range: Positive integer.
STORE_FILE_SUFFIX = ".json"  # Use: File extension for entries of the file-backed key-value store. Type: str. Range: Any valid file extension.
TEMP_FILE_SUFFIX = ".tmp"  # Use: Suffix for the temporary file written before an atomic replace. Type: str. Range: Any valid file extension.

# Default Data
DEFAULT_CATEGORY_NAMES = [  # Use: Category names seeded into every newly registered vault, in display order. Type: list[str]. Range: Non-empty names.
    "Personal IDs",
    "Bank Accounts",
    "Brokerage Accounts",
    "Retirement/Pension Accounts",
    "Loans",
    "Insurance Policies",
    "Properties",
    "Valuables",
]

# User Messages
MSG_INVALID_CREDENTIALS = "Invalid password or corrupted data."  # Use: Generic message for any failure to open a vault's contents. Type: str. Range: Must not reveal which check failed.
MSG_USER_EXISTS = "A user with this name already exists."  # Use: Message shown when registering a name that is taken. Type: str.
MSG_USER_NOT_FOUND = "User data not found."  # Use: Message shown when unlocking a name with no vault. Type: str.
MSG_PERSISTENCE_FAILURE = "Your data could not be saved."  # Use: Message shown when the store rejects a write. Type: str.
MSG_NOT_LOGGED_IN = "No vault is unlocked."  # Use: Message shown when saving without an unlocked session. Type: str.

# File and Directory Names
CONFIG_DIR_NAME = ".recordvault"  # Use: Name of the hidden directory within the user's home directory where RecordVault stores its data files. Type: str. Range: Any valid directory name.
DATA_DIR_ENV_VAR = "RECORDVAULT_DATA_DIR"  # Use: Environment variable that overrides the data directory location. Type: str. Range: Any environment variable name.

# Logging
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'  # Use: Format string passed to logging.basicConfig. Type: str. Range: Any valid logging format.
