"""
Unit tests for instruction building.

Tests cover:
1. Anchor sighash and derived addresses
2. Per-version opcode dispatch
3. Mutability preconditions
4. Signer and writable flags
5. User-info prerequisites
"""

import asyncio
import hashlib
import struct

import pytest
from solders.pubkey import Pubkey

from shadow_drive.core.accounts import AccountResolver, StorageAccountVersion, UserInfo
from shadow_drive.core.errors import (
    StorageAccountIsImmutable,
    StorageAccountIsNotImmutable,
    TransportError,
    UnknownAccountVersion,
    UserInfoNotCreated,
)
from shadow_drive.core.instructions import InstructionBuilder, addresses, by_version, sighash
from shadow_drive.core.instructions.builder import delete_file_message


@pytest.fixture
def builder(config, ledger):
    return InstructionBuilder(config, AccountResolver(ledger))


def opcode(instruction) -> bytes:
    return bytes(instruction.data[:8])


# =============================================================================
# Encoding
# =============================================================================


class TestSighash:
    def test_matches_anchor_global_namespace(self):
        assert sighash("increase_storage2") == hashlib.sha256(b"global:increase_storage2").digest()[:8]

    def test_versions_have_distinct_opcodes(self):
        assert sighash("decrease_storage") != sighash("decrease_storage2")


class TestAddresses:
    """Derived addresses match a direct find_program_address."""

    def test_storage_account_seed_is_u32_le(self, config, wallet):
        address, bump = addresses.storage_account(wallet.pubkey(), 3, config.program_id)

        expected = Pubkey.find_program_address(
            [b"storage-account", bytes(wallet.pubkey()), (3).to_bytes(4, "little")],
            config.program_id,
        )
        assert (address, bump) == expected

    def test_distinct_seeds_give_distinct_accounts(self, config, wallet):
        first, _ = addresses.storage_account(wallet.pubkey(), 0, config.program_id)
        second, _ = addresses.storage_account(wallet.pubkey(), 1, config.program_id)
        assert first != second

    def test_seed_out_of_range(self, config, wallet):
        with pytest.raises(ValueError):
            addresses.storage_account(wallet.pubkey(), 2**32, config.program_id)

    def test_user_info(self, config, wallet):
        expected = Pubkey.find_program_address([b"user-info", bytes(wallet.pubkey())], config.program_id)
        assert addresses.user_info(wallet.pubkey(), config.program_id) == expected

    def test_associated_token_address(self, config, wallet):
        expected, _ = Pubkey.find_program_address(
            [bytes(wallet.pubkey()), bytes(config.token_program), bytes(config.token_mint)],
            config.associated_token_program,
        )
        assert addresses.associated_token_address(
            wallet.pubkey(), config.token_mint, config.token_program, config.associated_token_program
        ) == expected


# =============================================================================
# Resize
# =============================================================================


class TestAddImmutableStorage:
    def test_rejects_mutable_v1(self, builder, make_v1):
        key = Pubkey.new_unique()
        with pytest.raises(StorageAccountIsNotImmutable) as excinfo:
            builder.add_immutable_storage(key, make_v1(immutable=False), 1_000)
        assert excinfo.value.address == key

    def test_rejects_mutable_v2(self, builder, make_v2):
        with pytest.raises(StorageAccountIsNotImmutable):
            builder.add_immutable_storage(Pubkey.new_unique(), make_v2(immutable=False), 1_000)

    def test_opcode_per_version(self, builder, make_v1, make_v2):
        key = Pubkey.new_unique()

        v1 = builder.add_immutable_storage(key, make_v1(immutable=True), 1_000)
        v2 = builder.add_immutable_storage(key, make_v2(immutable=True), 1_000)

        assert opcode(v1) == sighash("increase_immutable_storage")
        assert opcode(v2) == sighash("increase_immutable_storage2")

    def test_size_argument_is_u64_le(self, builder, make_v2):
        instruction = builder.add_immutable_storage(Pubkey.new_unique(), make_v2(immutable=True), 1_000_000)
        assert bytes(instruction.data[8:]) == struct.pack("<Q", 1_000_000)

    def test_fees_go_to_emissions_account(self, builder, make_v2):
        instruction = builder.add_immutable_storage(Pubkey.new_unique(), make_v2(immutable=True), 1)
        keys = [meta.pubkey for meta in instruction.accounts]
        assert builder.emissions_token_account in keys


class TestAddStorage:
    def test_rejects_immutable(self, builder, make_v2):
        with pytest.raises(StorageAccountIsImmutable):
            builder.add_storage(Pubkey.new_unique(), make_v2(immutable=True), 1_000)

    def test_owner_signs_and_uploader_cosigns(self, builder, make_v1, wallet, config):
        instruction = builder.add_storage(Pubkey.new_unique(), make_v1(), 1_000)
        signers = {meta.pubkey: meta.is_writable for meta in instruction.accounts if meta.is_signer}

        assert signers == {wallet.pubkey(): True, config.uploader: False}
        assert opcode(instruction) == sighash("increase_storage")

    def test_owner_1_is_authority_of_shared_account(self, builder, make_v1, wallet):
        """The second owner of a V1 account never appears as a signer."""
        second = Pubkey.new_unique()
        instruction = builder.add_storage(Pubkey.new_unique(), make_v1(owner_2=second), 1_000)

        signers = [meta.pubkey for meta in instruction.accounts if meta.is_signer]
        assert wallet.pubkey() in signers
        assert second not in signers


class TestReduceStorage:
    def test_rejects_immutable(self, builder, make_v1):
        with pytest.raises(StorageAccountIsImmutable):
            builder.reduce_storage(Pubkey.new_unique(), make_v1(immutable=True), 1_000)

    def test_v2_includes_emissions_account(self, builder, make_v1, make_v2):
        key = Pubkey.new_unique()

        v1 = builder.reduce_storage(key, make_v1(), 1_000)
        v2 = builder.reduce_storage(key, make_v2(), 1_000)

        assert len(v1.accounts) == 12
        assert len(v2.accounts) == 13
        assert builder.emissions_token_account not in [m.pubkey for m in v1.accounts]
        assert builder.emissions_token_account in [m.pubkey for m in v2.accounts]
        assert opcode(v2) == sighash("decrease_storage2")

    def test_unstake_addresses_derived_from_storage_account(self, builder, config, make_v2):
        key = Pubkey.new_unique()
        instruction = builder.reduce_storage(key, make_v2(), 1_000)

        unstake_info, _ = addresses.unstake_info(key, config.program_id)
        assert instruction.accounts[2].pubkey == unstake_info


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    @pytest.mark.parametrize(
        "method,v1_name,v2_name",
        [
            ("delete_storage_account", "request_delete_account", "request_delete_account2"),
            ("cancel_delete_storage_account", "unmark_delete_account", "unmark_delete_account2"),
            ("make_storage_immutable", "make_account_immutable", "make_account_immutable2"),
            ("claim_stake", "claim_stake", "claim_stake2"),
        ],
    )
    def test_opcode_per_version(self, builder, make_v1, make_v2, method, v1_name, v2_name):
        key = Pubkey.new_unique()
        build = getattr(builder, method)

        assert opcode(build(key, make_v1())) == sighash(v1_name)
        assert opcode(build(key, make_v2())) == sighash(v2_name)

    def test_no_arguments(self, builder, make_v2):
        instruction = builder.delete_storage_account(Pubkey.new_unique(), make_v2())
        assert len(instruction.data) == 8


class TestDispatch:
    def test_unknown_account_type(self):
        with pytest.raises(UnknownAccountVersion):
            by_version(object(), v1=lambda a: 1, v2=lambda a: 2)

    def test_builder_rejects_unknown_type(self, builder):
        with pytest.raises(UnknownAccountVersion):
            builder.delete_storage_account(Pubkey.new_unique(), object())


# =============================================================================
# Create
# =============================================================================


class TestCreateStorageAccount:
    def test_v2_default(self, builder, config, wallet):
        instruction, storage_account = builder.create_storage_account(wallet.pubkey(), "photos", 1_000, 2)

        expected, _ = addresses.storage_account(wallet.pubkey(), 2, config.program_id)
        assert storage_account == expected
        assert opcode(instruction) == sighash("initialize_account2")
        assert storage_account in [m.pubkey for m in instruction.accounts]

    def test_v2_args(self, builder, wallet):
        instruction, _ = builder.create_storage_account(wallet.pubkey(), "ab", 7, 0)
        expected = struct.pack("<I", 2) + b"ab" + struct.pack("<Q", 7)
        assert bytes(instruction.data[8:]) == expected

    def test_v1_with_second_owner(self, builder, wallet):
        second = Pubkey.new_unique()
        instruction, _ = builder.create_storage_account(
            wallet.pubkey(), "ab", 7, 0, version=StorageAccountVersion.V1, owner_2=second
        )

        assert opcode(instruction) == sighash("initialize_account")
        assert bytes(instruction.data[-33:]) == b"\x01" + bytes(second)

    def test_v2_rejects_second_owner(self, builder, wallet):
        with pytest.raises(ValueError):
            builder.create_storage_account(wallet.pubkey(), "ab", 7, 0, owner_2=Pubkey.new_unique())


# =============================================================================
# Prerequisites
# =============================================================================


class TestUserInfoPrerequisite:
    def test_absent(self, builder, wallet):
        with pytest.raises(UserInfoNotCreated):
            asyncio.run(builder.require_user_info(wallet.pubkey()))

    def test_lookup_failure_is_transport_error(self, builder, ledger, wallet):
        ledger.failing.add(builder.user_info_address(wallet.pubkey()))

        with pytest.raises(TransportError):
            asyncio.run(builder.require_user_info(wallet.pubkey()))

    def test_present(self, builder, ledger, wallet):
        address = builder.user_info_address(wallet.pubkey())
        ledger.accounts[address] = UserInfo(4, 0, True, False).to_bytes()

        assert asyncio.run(builder.require_user_info(wallet.pubkey())) == address
        assert asyncio.run(builder.next_account_seed(wallet.pubkey())) == 4

    def test_first_account_seed(self, builder, wallet):
        assert asyncio.run(builder.next_account_seed(wallet.pubkey())) == 0


class TestDeleteFile:
    def test_message_format(self):
        key = Pubkey.new_unique()
        message = delete_file_message(key, "https://shdw-drive.genesysgo.net/abc/cat.png")

        assert message == (
            "Shadow Drive Signed Message:\n"
            f"StorageAccount: {key}\n"
            "File to delete: https://shdw-drive.genesysgo.net/abc/cat.png"
        )

    def test_v1_instruction(self, builder, make_v1):
        file_account = Pubkey.new_unique()
        instruction = builder.delete_file_v1(Pubkey.new_unique(), make_v1(), file_account)

        assert opcode(instruction) == sighash("request_delete_file")
        assert instruction.accounts[2].pubkey == file_account
        assert instruction.accounts[2].is_writable
