"""Versioned storage accounts and their resolution"""
from shadow_drive.core.accounts.storage_account import (
    StorageAccount,
    StorageAccountV1,
    StorageAccountV2,
    StorageAccountVersion,
    UserInfo,
    decode_storage_account,
    decode_user_info,
)
from shadow_drive.core.accounts.resolver import (
    AccountResolver,
    ExistenceCheck,
    ExistenceStatus,
)

__all__ = [
    "StorageAccount",
    "StorageAccountV1",
    "StorageAccountV2",
    "StorageAccountVersion",
    "UserInfo",
    "decode_storage_account",
    "decode_user_info",
    "AccountResolver",
    "ExistenceCheck",
    "ExistenceStatus",
]
