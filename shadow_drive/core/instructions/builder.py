"""
Instruction Builder - Shadow Drive program instructions.

Conceptual Background:
---------------------
Every logical operation maps to a different Anchor instruction depending on
the storage-account version it targets (e.g. increase_storage for V1,
increase_storage2 for V2). Each builder method dispatches over the resolved
account's type and produces a complete instruction for that version.

Instruction data is the 8-byte Anchor sighash, sha256("global:<name>")[:8],
followed by the borsh-encoded arguments.

Authorization:
-------------
The account's owner_1 is the designated authority for every instruction.
The wallet building the transaction only pays fees; if it is not owner_1,
owner_1 must co-sign before the transaction can land.
"""

import hashlib
from typing import Callable, List, Optional, Tuple, TypeVar

from borsh_construct import CStruct, Option, String, U64
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.sysvar import RENT

from shadow_drive.core.accounts.layouts import PUBKEY
from shadow_drive.core.accounts.resolver import AccountResolver
from shadow_drive.core.accounts.storage_account import (
    StorageAccount,
    StorageAccountV1,
    StorageAccountV2,
    StorageAccountVersion,
)
from shadow_drive.core.config import ShadowDriveConfig
from shadow_drive.core.errors import (
    StorageAccountIsImmutable,
    StorageAccountIsNotImmutable,
    UnknownAccountVersion,
    UserInfoNotCreated,
)
from shadow_drive.core.instructions import addresses
from shadow_drive.utils.logger import get_logger


logger = get_logger("instructions")

T = TypeVar("T")


# =============================================================================
# Argument Layouts
# =============================================================================

INITIALIZE_ACCOUNT_V1_ARGS = CStruct(
    "identifier" / String,
    "storage" / U64,
    "owner_2" / Option(PUBKEY),
)
INITIALIZE_ACCOUNT_V2_ARGS = CStruct(
    "identifier" / String,
    "storage" / U64,
)
INCREASE_STORAGE_ARGS = CStruct("additional_storage" / U64)
DECREASE_STORAGE_ARGS = CStruct("remove_storage" / U64)


def sighash(name: str) -> bytes:
    """Anchor instruction discriminator."""
    return hashlib.sha256(f"global:{name}".encode()).digest()[:8]


def _writable(pubkey: Pubkey, signer: bool = False) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=signer, is_writable=True)


def _readonly(pubkey: Pubkey, signer: bool = False) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=signer, is_writable=False)


def by_version(
    account: StorageAccount,
    v1: Callable[[StorageAccountV1], T],
    v2: Callable[[StorageAccountV2], T],
) -> T:
    """Dispatch on the storage-account version. Unknown types are rejected."""
    if isinstance(account, StorageAccountV1):
        return v1(account)
    if isinstance(account, StorageAccountV2):
        return v2(account)
    raise UnknownAccountVersion(f"Unsupported storage account type {type(account).__name__}")


class InstructionBuilder:
    """
    Builds Shadow Drive instructions for a given deployment.

    Pure methods derive addresses and encode instructions; the async
    prerequisite checks read the ledger through the resolver.
    """

    def __init__(self, config: ShadowDriveConfig, resolver: AccountResolver):
        self.config = config
        self.resolver = resolver
        self.storage_config, _ = addresses.storage_config(config.program_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _instruction(self, name: str, accounts: List[AccountMeta], args: bytes = b"") -> Instruction:
        return Instruction(self.config.program_id, sighash(name) + args, accounts)

    def user_info_address(self, owner: Pubkey) -> Pubkey:
        address, _ = addresses.user_info(owner, self.config.program_id)
        return address

    def token_account(self, owner: Pubkey) -> Pubkey:
        return addresses.associated_token_address(
            owner,
            self.config.token_mint,
            self.config.token_program,
            self.config.associated_token_program,
        )

    @property
    def emissions_token_account(self) -> Pubkey:
        return self.token_account(self.config.emissions_wallet)

    def stake_account(self, storage_account_key: Pubkey) -> Pubkey:
        address, _ = addresses.stake_account(storage_account_key, self.config.program_id)
        return address

    # =========================================================================
    # Prerequisites
    # =========================================================================

    async def require_user_info(self, owner: Pubkey) -> Pubkey:
        """
        Ensure the owner's user-info account exists.

        Raises:
            UserInfoNotCreated: The account is confirmed absent
            TransportError: The lookup failed
        """
        user_info = self.user_info_address(owner)
        check = await self.resolver.check_exists(user_info)
        check.raise_for_failure()
        if not check.exists:
            raise UserInfoNotCreated(owner)
        return user_info

    async def next_account_seed(self, owner: Pubkey) -> int:
        """Counter seeding the owner's next storage account (0 before the first)."""
        info = await self.resolver.get_user_info(self.user_info_address(owner))
        return info.account_counter if info else 0

    # =========================================================================
    # Create
    # =========================================================================

    def create_storage_account(
        self,
        owner: Pubkey,
        identifier: str,
        size_as_bytes: int,
        account_seed: int,
        version: StorageAccountVersion = StorageAccountVersion.V2,
        owner_2: Optional[Pubkey] = None,
    ) -> Tuple[Instruction, Pubkey]:
        """
        Build the initialize instruction for a new storage account.

        Returns:
            (instruction, address of the storage account it creates)
        """
        program_id = self.config.program_id
        storage_account, _ = addresses.storage_account(owner, account_seed, program_id)
        accounts = [
            _writable(self.storage_config),
            _writable(self.user_info_address(owner)),
            _writable(storage_account),
            _writable(self.stake_account(storage_account)),
            _readonly(self.config.token_mint),
            _writable(owner, signer=True),
            _readonly(self.config.uploader, signer=True),
            _writable(self.token_account(owner)),
            _readonly(SYSTEM_PROGRAM_ID),
            _readonly(self.config.token_program),
            _readonly(RENT),
        ]

        if version is StorageAccountVersion.V1:
            args = INITIALIZE_ACCOUNT_V1_ARGS.build({
                "identifier": identifier,
                "storage": size_as_bytes,
                "owner_2": bytes(owner_2) if owner_2 else None,
            })
            instruction = self._instruction("initialize_account", accounts, args)
        elif version is StorageAccountVersion.V2:
            if owner_2 is not None:
                raise ValueError("V2 storage accounts have a single owner")
            args = INITIALIZE_ACCOUNT_V2_ARGS.build({
                "identifier": identifier,
                "storage": size_as_bytes,
            })
            instruction = self._instruction("initialize_account2", accounts, args)
        else:
            raise UnknownAccountVersion(f"Cannot create storage account version {version}")

        logger.debug(f"Built create for {storage_account} ({version.name}, seed {account_seed})")
        return instruction, storage_account

    # =========================================================================
    # Resize
    # =========================================================================

    def add_storage(
        self,
        storage_account_key: Pubkey,
        account: StorageAccount,
        size_as_bytes: int,
    ) -> Instruction:
        if account.immutable:
            raise StorageAccountIsImmutable(storage_account_key)

        def accounts(owner: Pubkey) -> List[AccountMeta]:
            return [
                _writable(self.storage_config),
                _writable(storage_account_key),
                _writable(owner, signer=True),
                _writable(self.token_account(owner)),
                _writable(self.stake_account(storage_account_key)),
                _readonly(self.config.token_mint),
                _readonly(self.config.uploader, signer=True),
                _readonly(SYSTEM_PROGRAM_ID),
                _readonly(self.config.token_program),
            ]

        args = INCREASE_STORAGE_ARGS.build({"additional_storage": size_as_bytes})
        return by_version(
            account,
            v1=lambda acct: self._instruction("increase_storage", accounts(acct.owner_1), args),
            v2=lambda acct: self._instruction("increase_storage2", accounts(acct.owner_1), args),
        )

    def add_immutable_storage(
        self,
        storage_account_key: Pubkey,
        account: StorageAccount,
        size_as_bytes: int,
    ) -> Instruction:
        """Increase capacity of an immutable account; fees go to the emissions wallet."""
        if not account.immutable:
            raise StorageAccountIsNotImmutable(storage_account_key)

        def accounts(owner: Pubkey) -> List[AccountMeta]:
            return [
                _writable(self.storage_config),
                _writable(storage_account_key),
                _writable(self.emissions_token_account),
                _writable(owner, signer=True),
                _writable(self.token_account(owner)),
                _readonly(self.config.uploader, signer=True),
                _readonly(self.config.token_mint),
                _readonly(SYSTEM_PROGRAM_ID),
                _readonly(self.config.token_program),
            ]

        args = INCREASE_STORAGE_ARGS.build({"additional_storage": size_as_bytes})
        return by_version(
            account,
            v1=lambda acct: self._instruction(
                "increase_immutable_storage", accounts(acct.owner_1), args
            ),
            v2=lambda acct: self._instruction(
                "increase_immutable_storage2", accounts(acct.owner_1), args
            ),
        )

    def reduce_storage(
        self,
        storage_account_key: Pubkey,
        account: StorageAccount,
        size_as_bytes: int,
    ) -> Instruction:
        if account.immutable:
            raise StorageAccountIsImmutable(storage_account_key)

        program_id = self.config.program_id
        unstake_info, _ = addresses.unstake_info(storage_account_key, program_id)
        unstake_account, _ = addresses.unstake_account(storage_account_key, program_id)

        def v1(acct: StorageAccountV1) -> Instruction:
            accounts = [
                _writable(self.storage_config),
                _writable(storage_account_key),
                _writable(unstake_info),
                _writable(unstake_account),
                _writable(acct.owner_1, signer=True),
                _writable(self.token_account(acct.owner_1)),
                _writable(self.stake_account(storage_account_key)),
                _readonly(self.config.token_mint),
                _readonly(self.config.uploader, signer=True),
                _readonly(SYSTEM_PROGRAM_ID),
                _readonly(self.config.token_program),
                _readonly(RENT),
            ]
            return self._instruction("decrease_storage", accounts, args)

        def v2(acct: StorageAccountV2) -> Instruction:
            # V2 settles the reduction fee with the emissions wallet
            accounts = [
                _writable(self.storage_config),
                _writable(storage_account_key),
                _writable(unstake_info),
                _writable(unstake_account),
                _writable(acct.owner_1, signer=True),
                _writable(self.token_account(acct.owner_1)),
                _writable(self.stake_account(storage_account_key)),
                _readonly(self.config.token_mint),
                _readonly(self.config.uploader, signer=True),
                _writable(self.emissions_token_account),
                _readonly(SYSTEM_PROGRAM_ID),
                _readonly(self.config.token_program),
                _readonly(RENT),
            ]
            return self._instruction("decrease_storage2", accounts, args)

        args = DECREASE_STORAGE_ARGS.build({"remove_storage": size_as_bytes})
        return by_version(account, v1=v1, v2=v2)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def delete_storage_account(self, storage_account_key: Pubkey, account: StorageAccount) -> Instruction:
        """Mark the account for deletion at the end of the current epoch."""

        def accounts(owner: Pubkey) -> List[AccountMeta]:
            return [
                _readonly(self.storage_config),
                _writable(storage_account_key),
                _writable(owner, signer=True),
                _readonly(self.config.token_mint),
                _readonly(SYSTEM_PROGRAM_ID),
            ]

        return by_version(
            account,
            v1=lambda acct: self._instruction("request_delete_account", accounts(acct.owner_1)),
            v2=lambda acct: self._instruction("request_delete_account2", accounts(acct.owner_1)),
        )

    def cancel_delete_storage_account(
        self, storage_account_key: Pubkey, account: StorageAccount
    ) -> Instruction:
        def accounts(owner: Pubkey) -> List[AccountMeta]:
            return [
                _readonly(self.storage_config),
                _writable(storage_account_key),
                _writable(self.stake_account(storage_account_key)),
                _writable(owner, signer=True),
                _readonly(self.config.token_mint),
                _readonly(SYSTEM_PROGRAM_ID),
            ]

        return by_version(
            account,
            v1=lambda acct: self._instruction("unmark_delete_account", accounts(acct.owner_1)),
            v2=lambda acct: self._instruction("unmark_delete_account2", accounts(acct.owner_1)),
        )

    def make_storage_immutable(self, storage_account_key: Pubkey, account: StorageAccount) -> Instruction:
        def accounts(owner: Pubkey) -> List[AccountMeta]:
            return [
                _writable(self.storage_config),
                _writable(storage_account_key),
                _writable(self.stake_account(storage_account_key)),
                _writable(self.emissions_token_account),
                _writable(owner, signer=True),
                _readonly(self.config.uploader, signer=True),
                _writable(self.token_account(owner)),
                _readonly(self.config.token_mint),
                _readonly(SYSTEM_PROGRAM_ID),
                _readonly(self.config.token_program),
                _readonly(self.config.associated_token_program),
                _readonly(RENT),
            ]

        return by_version(
            account,
            v1=lambda acct: self._instruction("make_account_immutable", accounts(acct.owner_1)),
            v2=lambda acct: self._instruction("make_account_immutable2", accounts(acct.owner_1)),
        )

    def claim_stake(self, storage_account_key: Pubkey, account: StorageAccount) -> Instruction:
        """Withdraw tokens unstaked by a previous reduce_storage."""
        program_id = self.config.program_id
        unstake_info, _ = addresses.unstake_info(storage_account_key, program_id)
        unstake_account, _ = addresses.unstake_account(storage_account_key, program_id)

        def accounts(owner: Pubkey) -> List[AccountMeta]:
            return [
                _readonly(self.storage_config),
                _readonly(storage_account_key),
                _writable(unstake_info),
                _writable(unstake_account),
                _writable(owner, signer=True),
                _writable(self.token_account(owner)),
                _readonly(self.config.token_mint),
                _readonly(SYSTEM_PROGRAM_ID),
                _readonly(self.config.token_program),
            ]

        return by_version(
            account,
            v1=lambda acct: self._instruction("claim_stake", accounts(acct.owner_1)),
            v2=lambda acct: self._instruction("claim_stake2", accounts(acct.owner_1)),
        )

    # =========================================================================
    # Files
    # =========================================================================

    def delete_file_v1(
        self,
        storage_account_key: Pubkey,
        account: StorageAccountV1,
        file_account: Pubkey,
    ) -> Instruction:
        """Request deletion of a V1 file account. V2 files use delete_file_message."""
        accounts = [
            _readonly(self.storage_config),
            _readonly(storage_account_key),
            _writable(file_account),
            _writable(account.owner_1, signer=True),
            _readonly(self.config.token_mint),
            _readonly(SYSTEM_PROGRAM_ID),
        ]
        return self._instruction("request_delete_file", accounts)


def delete_file_message(storage_account_key: Pubkey, url: str) -> str:
    """Message a V2 owner signs to delete a file off-chain."""
    return (
        "Shadow Drive Signed Message:\n"
        f"StorageAccount: {storage_account_key}\n"
        f"File to delete: {url}"
    )
