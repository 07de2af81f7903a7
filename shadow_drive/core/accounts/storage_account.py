"""
StorageAccount - Versioned on-chain storage allocation.

Conceptual Background:
---------------------
A storage account reserves a number of bytes on Shadow Drive for an
owner. The program has shipped two account layouts:

1. StorageAccount (V1): up to two owners, tracks available bytes on-chain
2. StorageAccountV2: single owner, usage tracked by the coordinator

The version is never stored as a field. It is inferred from the Anchor
discriminator at the front of the account data, and any other prefix is
rejected instead of being parsed on a best-effort basis.

The per-owner UserInfo account counts how many storage accounts the owner
has created; the counter seeds the address of the next storage account.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Optional, Tuple, Union

from construct import ConstructError
from solders.pubkey import Pubkey

from shadow_drive.core.accounts.layouts import (
    DISCRIMINATOR_SIZE,
    STORAGE_ACCOUNT_V1_DISCRIMINATOR,
    STORAGE_ACCOUNT_V1_LAYOUT,
    STORAGE_ACCOUNT_V2_DISCRIMINATOR,
    STORAGE_ACCOUNT_V2_LAYOUT,
    USER_INFO_DISCRIMINATOR,
    USER_INFO_LAYOUT,
)
from shadow_drive.core.errors import UnknownAccountVersion


class StorageAccountVersion(Enum):
    V1 = "v1"
    V2 = "v2"


def _to_layout_values(account) -> dict:
    values = {}
    for f in fields(account):
        value = getattr(account, f.name)
        values[f.name] = bytes(value) if isinstance(value, Pubkey) else value
    return values


def _from_layout_values(cls, parsed) -> dict:
    values = {}
    for f in fields(cls):
        value = parsed[f.name]
        values[f.name] = Pubkey(bytes(value)) if isinstance(value, (bytes, bytearray)) else value
    return values


# =============================================================================
# Storage Account Versions
# =============================================================================


@dataclass(frozen=True)
class StorageAccountV1:
    """
    First-generation storage account.

    Attributes:
        storage: Total reserved bytes
        storage_available: Reserved bytes not yet used by files
        owner_1: Designated owner, authorizes every instruction
        owner_2: Optional second owner (default pubkey when unset)
        account_counter_seed: Per-owner counter used to derive the address
        identifier: Human-readable account name
    """
    is_static: bool
    init_counter: int
    del_counter: int
    immutable: bool
    to_be_deleted: bool
    delete_request_epoch: int
    storage: int
    storage_available: int
    owner_1: Pubkey
    owner_2: Pubkey
    shdw_payer: Pubkey
    account_counter_seed: int
    total_cost_of_current_storage: int
    total_fees_paid: int
    creation_time: int
    creation_epoch: int
    last_fee_epoch: int
    identifier: str

    version = StorageAccountVersion.V1

    @property
    def owners(self) -> Tuple[Pubkey, ...]:
        if self.owner_2 == Pubkey.default():
            return (self.owner_1,)
        return (self.owner_1, self.owner_2)

    @property
    def storage_used(self) -> Optional[int]:
        return self.storage - self.storage_available

    def to_bytes(self) -> bytes:
        """Serialize with discriminator, as stored on-chain."""
        return STORAGE_ACCOUNT_V1_DISCRIMINATOR + STORAGE_ACCOUNT_V1_LAYOUT.build(
            _to_layout_values(self)
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "StorageAccountV1":
        """Deserialize the bytes following the discriminator."""
        parsed = STORAGE_ACCOUNT_V1_LAYOUT.parse(data)
        return cls(**_from_layout_values(cls, parsed))


@dataclass(frozen=True)
class StorageAccountV2:
    """
    Second-generation storage account (single owner).

    Usage is not tracked on-chain, so storage_used is None.
    """
    immutable: bool
    to_be_deleted: bool
    delete_request_epoch: int
    storage: int
    owner_1: Pubkey
    account_counter_seed: int
    creation_time: int
    creation_epoch: int
    last_fee_epoch: int
    identifier: str

    version = StorageAccountVersion.V2

    @property
    def owners(self) -> Tuple[Pubkey, ...]:
        return (self.owner_1,)

    @property
    def storage_used(self) -> Optional[int]:
        return None

    def to_bytes(self) -> bytes:
        """Serialize with discriminator, as stored on-chain."""
        return STORAGE_ACCOUNT_V2_DISCRIMINATOR + STORAGE_ACCOUNT_V2_LAYOUT.build(
            _to_layout_values(self)
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "StorageAccountV2":
        """Deserialize the bytes following the discriminator."""
        parsed = STORAGE_ACCOUNT_V2_LAYOUT.parse(data)
        return cls(**_from_layout_values(cls, parsed))


StorageAccount = Union[StorageAccountV1, StorageAccountV2]

_VERSIONS = {
    STORAGE_ACCOUNT_V1_DISCRIMINATOR: StorageAccountV1,
    STORAGE_ACCOUNT_V2_DISCRIMINATOR: StorageAccountV2,
}


def decode_storage_account(data: bytes) -> StorageAccount:
    """
    Decode raw account data into the matching storage-account version.

    Raises:
        UnknownAccountVersion: Unknown discriminator, or a body that does not
            fit the layout the discriminator announces
    """
    if len(data) < DISCRIMINATOR_SIZE:
        raise UnknownAccountVersion(
            f"Account data too short for a discriminator: {len(data)} bytes"
        )

    discriminator = bytes(data[:DISCRIMINATOR_SIZE])
    account_cls = _VERSIONS.get(discriminator)
    if account_cls is None:
        raise UnknownAccountVersion(f"Unrecognized account discriminator {discriminator.hex()}")

    try:
        return account_cls.from_bytes(bytes(data[DISCRIMINATOR_SIZE:]))
    except (ConstructError, UnicodeDecodeError) as e:
        raise UnknownAccountVersion(
            f"Account data does not match the {account_cls.version.name} layout: {e}"
        ) from e


# =============================================================================
# User Info
# =============================================================================


@dataclass(frozen=True)
class UserInfo:
    """Per-owner bookkeeping account."""
    account_counter: int
    del_counter: int
    agreed_to_tos: bool
    lifetime_bad_csam: bool

    def to_bytes(self) -> bytes:
        return USER_INFO_DISCRIMINATOR + USER_INFO_LAYOUT.build(_to_layout_values(self))


def decode_user_info(data: bytes) -> UserInfo:
    if bytes(data[:DISCRIMINATOR_SIZE]) != USER_INFO_DISCRIMINATOR:
        raise UnknownAccountVersion("Account data is not a UserInfo account")
    try:
        parsed = USER_INFO_LAYOUT.parse(bytes(data[DISCRIMINATOR_SIZE:]))
    except ConstructError as e:
        raise UnknownAccountVersion(f"Malformed UserInfo account: {e}") from e
    return UserInfo(**_from_layout_values(UserInfo, parsed))
