"""
Shadow Drive SDK

Python client for Shadow Drive decentralized storage on Solana:
- Versioned storage-account decoding
- Instruction building and partial transaction signing
- Submission to the storage coordinator
- GenesysGo portal authentication
"""

from shadow_drive.client import ShadowDriveClient
from shadow_drive.core.accounts import (
    StorageAccount,
    StorageAccountV1,
    StorageAccountV2,
    StorageAccountVersion,
)
from shadow_drive.core.config import ShadowDriveConfig, load_config
from shadow_drive.core.errors import (
    AccountNotFound,
    InvalidProviderUrl,
    InvalidStorage,
    ResponseDecodeError,
    ShadowDriveError,
    ShadowDriveServerError,
    StorageAccountIsImmutable,
    StorageAccountIsNotImmutable,
    TransactionSerializationFailed,
    TransportError,
    UnknownAccountVersion,
    UserInfoNotCreated,
)

__version__ = "0.1.0"
__all__ = [
    "ShadowDriveClient",
    "StorageAccount",
    "StorageAccountV1",
    "StorageAccountV2",
    "StorageAccountVersion",
    "ShadowDriveConfig",
    "load_config",
    "AccountNotFound",
    "InvalidProviderUrl",
    "InvalidStorage",
    "ResponseDecodeError",
    "ShadowDriveError",
    "ShadowDriveServerError",
    "StorageAccountIsImmutable",
    "StorageAccountIsNotImmutable",
    "TransactionSerializationFailed",
    "TransportError",
    "UnknownAccountVersion",
    "UserInfoNotCreated",
]
