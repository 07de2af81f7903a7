"""
ShadowDriveClient - High-level entry point of the SDK.

Every mutating operation runs the same strict pipeline:

    resolve account -> build instruction -> fetch blockhash + sign -> submit

Each step needs the previous step's output, so none of them overlap.
Independent operations (e.g. on different storage accounts) may run
concurrently on the same client: the transports are the only shared state.
Nothing is retried; a retry must call the operation again so that a fresh
blockhash is signed.
"""

from typing import List, Optional, Sequence, Type, Union

import httpx
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from shadow_drive.auth.genesysgo import GenesysGoAuth
from shadow_drive.core.accounts import (
    AccountResolver,
    StorageAccount,
    StorageAccountV1,
    StorageAccountV2,
    StorageAccountVersion,
)
from shadow_drive.core.config import ShadowDriveConfig, config as default_config
from shadow_drive.core.errors import ResponseDecodeError, UnknownAccountVersion
from shadow_drive.core.instructions import InstructionBuilder, delete_file_message
from shadow_drive.core.models import (
    CreateStorageAccountResponse,
    DeleteFileRequest,
    DeleteFileResponse,
    FileDataResponse,
    ListObjectsRequest,
    ListObjectsResponse,
    LocationRequest,
    ShdwDriveResponse,
    StorageResponse,
)
from shadow_drive.core.transaction import TransactionSigner
from shadow_drive.network.coordinator import CoordinatorClient, ResponseT
from shadow_drive.network.rpc import LedgerRpc, SolanaRpcClient
from shadow_drive.utils.logger import get_logger
from shadow_drive.utils.validation import parse_storage_size


logger = get_logger("client")


class ShadowDriveClient:
    """
    Client that lets a wallet manage its Shadow Drive storage.

    Args:
        wallet: Keypair that pays for and signs every transaction
        rpc: Solana RPC URL, or any LedgerRpc implementation
        config: Deployment configuration (mainnet defaults)
        http_client: Optional shared httpx.AsyncClient for the coordinator
            and the auth portal

    Transports created by the client are closed by aclose() or when used
    as an async context manager; transports passed in are left open.
    """

    def __init__(
        self,
        wallet: Keypair,
        rpc: Union[str, LedgerRpc],
        config: Optional[ShadowDriveConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.wallet = wallet
        self.config = config or default_config

        self._owns_rpc = isinstance(rpc, str)
        self.rpc: LedgerRpc = (
            SolanaRpcClient(rpc, timeout=self.config.rpc_timeout) if isinstance(rpc, str) else rpc
        )
        self._owns_http = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=self.config.http_timeout)

        self.resolver = AccountResolver(self.rpc)
        self.builder = InstructionBuilder(self.config, self.resolver)
        self.signer = TransactionSigner(self.rpc)
        self.coordinator = CoordinatorClient(self.http, self.config)
        self.auth = GenesysGoAuth(self.http, self.config)

    async def aclose(self) -> None:
        try:
            if self._owns_rpc:
                await self.rpc.aclose()
        finally:
            if self._owns_http:
                await self.http.aclose()

    async def __aenter__(self) -> "ShadowDriveClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def wallet_pubkey(self) -> Pubkey:
        return self.wallet.pubkey()

    async def _sign_and_submit(
        self,
        path: str,
        instructions: Sequence[Instruction],
        response_model: Type[ResponseT],
    ) -> ResponseT:
        encoded = await self.signer.sign_and_encode(instructions, self.wallet)
        return await self.coordinator.submit(path, encoded, response_model)

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_storage_account(self, storage_account_key: Pubkey) -> StorageAccount:
        return await self.resolver.resolve(storage_account_key)

    async def get_object_data(self, location: str) -> FileDataResponse:
        return await self.coordinator.post(
            "get-object-data", LocationRequest(location=location), FileDataResponse
        )

    async def list_objects(self, storage_account_key: Pubkey) -> List[str]:
        response = await self.coordinator.post(
            "list-objects",
            ListObjectsRequest(storage_account=str(storage_account_key)),
            ListObjectsResponse,
        )
        return response.keys

    # =========================================================================
    # Storage Accounts
    # =========================================================================

    async def create_storage_account(
        self,
        name: str,
        size: str,
        version: StorageAccountVersion = StorageAccountVersion.V2,
        owner_2: Optional[Pubkey] = None,
    ) -> CreateStorageAccountResponse:
        """
        Create a storage account named name with size bytes reserved.

        The user-info account is created by the same instruction if missing.
        """
        size_as_bytes = parse_storage_size(size)
        owner = self.wallet_pubkey
        account_seed = await self.builder.next_account_seed(owner)
        instruction, storage_account = self.builder.create_storage_account(
            owner, name, size_as_bytes, account_seed, version, owner_2
        )
        logger.info(f"Creating {version.name} storage account {storage_account} ({size_as_bytes} bytes)")
        return await self._sign_and_submit("storage-account", [instruction], CreateStorageAccountResponse)

    async def add_storage(self, storage_account_key: Pubkey, size: str) -> StorageResponse:
        """Add size bytes to a mutable storage account."""
        size_as_bytes = parse_storage_size(size)
        await self.builder.require_user_info(self.wallet_pubkey)
        account = await self.resolver.resolve(storage_account_key)
        instruction = self.builder.add_storage(storage_account_key, account, size_as_bytes)
        return await self._sign_and_submit("add-storage", [instruction], StorageResponse)

    async def add_immutable_storage(self, storage_account_key: Pubkey, size: str) -> StorageResponse:
        """
        Add size bytes to an immutable storage account.

        size is the additional amount: an account holding 1MB that should
        hold 2MB needs size="1MB".
        """
        size_as_bytes = parse_storage_size(size)
        await self.builder.require_user_info(self.wallet_pubkey)
        account = await self.resolver.resolve(storage_account_key)
        instruction = self.builder.add_immutable_storage(storage_account_key, account, size_as_bytes)
        return await self._sign_and_submit("add-storage", [instruction], StorageResponse)

    async def reduce_storage(self, storage_account_key: Pubkey, size: str) -> StorageResponse:
        """Release size bytes; the unstaked tokens are withdrawn with claim_stake."""
        size_as_bytes = parse_storage_size(size)
        await self.builder.require_user_info(self.wallet_pubkey)
        account = await self.resolver.resolve(storage_account_key)
        instruction = self.builder.reduce_storage(storage_account_key, account, size_as_bytes)
        return await self._sign_and_submit("reduce-storage", [instruction], StorageResponse)

    async def delete_storage_account(self, storage_account_key: Pubkey) -> ShdwDriveResponse:
        account = await self.resolver.resolve(storage_account_key)
        instruction = self.builder.delete_storage_account(storage_account_key, account)
        return await self._sign_and_submit("delete-storage-account", [instruction], ShdwDriveResponse)

    async def cancel_delete_storage_account(self, storage_account_key: Pubkey) -> ShdwDriveResponse:
        account = await self.resolver.resolve(storage_account_key)
        instruction = self.builder.cancel_delete_storage_account(storage_account_key, account)
        return await self._sign_and_submit(
            "cancel-delete-storage-account", [instruction], ShdwDriveResponse
        )

    async def make_storage_immutable(self, storage_account_key: Pubkey) -> StorageResponse:
        account = await self.resolver.resolve(storage_account_key)
        instruction = self.builder.make_storage_immutable(storage_account_key, account)
        return await self._sign_and_submit("make-immutable", [instruction], StorageResponse)

    async def claim_stake(self, storage_account_key: Pubkey) -> str:
        """
        Withdraw unstaked tokens after a reduction.

        Needs no uploader signature, so it goes straight to the ledger.
        Returns the transaction signature.
        """
        account = await self.resolver.resolve(storage_account_key)
        instruction = self.builder.claim_stake(storage_account_key, account)
        txn = await self.signer.sign([instruction], self.wallet)
        signature = await self.rpc.send_transaction(bytes(txn))
        logger.info(f"Claimed stake of {storage_account_key}: {signature}")
        return signature

    # =========================================================================
    # Files
    # =========================================================================

    async def delete_file(self, storage_account_key: Pubkey, url: str) -> DeleteFileResponse:
        """
        Delete the file stored at url.

        V1 files are on-chain accounts removed by an instruction; V2 files are
        deleted off-chain with a message signed by the wallet.
        """
        account = await self.resolver.resolve(storage_account_key)

        if isinstance(account, StorageAccountV1):
            object_data = await self.get_object_data(url)
            file_account = object_data.file_data.file_account_pubkey
            if not file_account:
                raise ResponseDecodeError(f"No file account returned for {url}")
            try:
                file_account_key = Pubkey.from_string(file_account)
            except ValueError as e:
                raise ResponseDecodeError(f"Invalid file account {file_account!r} for {url}") from e
            instruction = self.builder.delete_file_v1(storage_account_key, account, file_account_key)
            return await self._sign_and_submit("delete-file", [instruction], DeleteFileResponse)

        if isinstance(account, StorageAccountV2):
            message = delete_file_message(storage_account_key, url)
            signature = self.wallet.sign_message(message.encode())
            request = DeleteFileRequest(
                signer=str(self.wallet_pubkey),
                message=str(signature),
                location=url,
            )
            return await self.coordinator.post("delete-file", request, DeleteFileResponse)

        raise UnknownAccountVersion(f"Unsupported storage account type {type(account).__name__}")

    # =========================================================================
    # Auth
    # =========================================================================

    async def authenticate(self, account_id: str) -> str:
        """RPC bearer token for account_id, signed in with the client wallet."""
        return await self.auth.authenticate(self.wallet, account_id)
