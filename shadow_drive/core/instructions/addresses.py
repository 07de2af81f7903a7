"""
Program-derived addresses used by Shadow Drive instructions.

All derivations are pure functions of their inputs and the program id;
none of them touches the network.
"""

import struct
from typing import Tuple

from solders.pubkey import Pubkey

from shadow_drive.utils.validation import validate_u32


STORAGE_CONFIG_SEED = b"storage-config"
USER_INFO_SEED = b"user-info"
STORAGE_ACCOUNT_SEED = b"storage-account"
STAKE_ACCOUNT_SEED = b"stake-account"
UNSTAKE_INFO_SEED = b"unstake-info"
UNSTAKE_ACCOUNT_SEED = b"unstake-account"


def storage_config(program_id: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address([STORAGE_CONFIG_SEED], program_id)


def user_info(owner: Pubkey, program_id: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address([USER_INFO_SEED, bytes(owner)], program_id)


def storage_account(owner: Pubkey, account_seed: int, program_id: Pubkey) -> Tuple[Pubkey, int]:
    """Address of the owner's storage account number account_seed (u32 LE seed)."""
    validate_u32(account_seed, "account_seed")
    return Pubkey.find_program_address(
        [STORAGE_ACCOUNT_SEED, bytes(owner), struct.pack("<I", account_seed)],
        program_id,
    )


def stake_account(storage_account_key: Pubkey, program_id: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address([STAKE_ACCOUNT_SEED, bytes(storage_account_key)], program_id)


def unstake_info(storage_account_key: Pubkey, program_id: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address([UNSTAKE_INFO_SEED, bytes(storage_account_key)], program_id)


def unstake_account(storage_account_key: Pubkey, program_id: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [UNSTAKE_ACCOUNT_SEED, bytes(storage_account_key)], program_id
    )


def associated_token_address(
    owner: Pubkey,
    mint: Pubkey,
    token_program: Pubkey,
    associated_token_program: Pubkey,
) -> Pubkey:
    """SPL associated token account of owner for mint."""
    address, _ = Pubkey.find_program_address(
        [bytes(owner), bytes(token_program), bytes(mint)],
        associated_token_program,
    )
    return address
