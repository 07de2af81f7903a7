"""
Borsh layouts of the accounts owned by the Shadow Drive program.

Anchor prefixes every account with an 8-byte discriminator,
sha256("account:<StructName>")[:8]. The layouts below describe the bytes
that follow it.
"""

import hashlib

from borsh_construct import CStruct, String, U32, U64
from construct import Bytes, Flag


DISCRIMINATOR_SIZE = 8

PUBKEY = Bytes(32)


def account_discriminator(name: str) -> bytes:
    return hashlib.sha256(f"account:{name}".encode()).digest()[:DISCRIMINATOR_SIZE]


STORAGE_ACCOUNT_V1_DISCRIMINATOR = account_discriminator("StorageAccount")
STORAGE_ACCOUNT_V2_DISCRIMINATOR = account_discriminator("StorageAccountV2")
USER_INFO_DISCRIMINATOR = account_discriminator("UserInfo")


STORAGE_ACCOUNT_V1_LAYOUT = CStruct(
    "is_static" / Flag,
    "init_counter" / U32,
    "del_counter" / U32,
    "immutable" / Flag,
    "to_be_deleted" / Flag,
    "delete_request_epoch" / U32,
    "storage" / U64,
    "storage_available" / U64,
    "owner_1" / PUBKEY,
    "owner_2" / PUBKEY,
    "shdw_payer" / PUBKEY,
    "account_counter_seed" / U32,
    "total_cost_of_current_storage" / U64,
    "total_fees_paid" / U64,
    "creation_time" / U32,
    "creation_epoch" / U32,
    "last_fee_epoch" / U32,
    "identifier" / String,
)

STORAGE_ACCOUNT_V2_LAYOUT = CStruct(
    "immutable" / Flag,
    "to_be_deleted" / Flag,
    "delete_request_epoch" / U32,
    "storage" / U64,
    "owner_1" / PUBKEY,
    "account_counter_seed" / U32,
    "creation_time" / U32,
    "creation_epoch" / U32,
    "last_fee_epoch" / U32,
    "identifier" / String,
)

USER_INFO_LAYOUT = CStruct(
    "account_counter" / U32,
    "del_counter" / U32,
    "agreed_to_tos" / Flag,
    "lifetime_bad_csam" / Flag,
)
