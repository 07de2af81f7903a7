"""
Account resolution against the ledger.

Existence checks are three-way: an account is found, confirmed absent, or
the query itself failed. Only a confirmed absence becomes a precondition
error; a failed query is always a transport error.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from solders.pubkey import Pubkey

from shadow_drive.core.accounts.storage_account import (
    StorageAccount,
    UserInfo,
    decode_storage_account,
    decode_user_info,
)
from shadow_drive.core.errors import AccountNotFound, TransportError
from shadow_drive.network.rpc import LedgerRpc
from shadow_drive.utils.logger import get_logger


logger = get_logger("accounts")


class ExistenceStatus(Enum):
    FOUND = "found"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass
class ExistenceCheck:
    """Outcome of an account lookup."""
    address: Pubkey
    status: ExistenceStatus
    data: Optional[bytes] = None
    error: Optional[Exception] = None

    @property
    def exists(self) -> bool:
        return self.status is ExistenceStatus.FOUND

    def raise_for_failure(self) -> None:
        """Re-raise a failed query as a transport error."""
        if self.status is ExistenceStatus.FAILED:
            if isinstance(self.error, TransportError):
                raise self.error
            raise TransportError(f"Lookup of {self.address} failed: {self.error}") from self.error


class AccountResolver:
    """Fetches and decodes Shadow Drive accounts."""

    def __init__(self, rpc: LedgerRpc):
        self.rpc = rpc

    async def check_exists(self, address: Pubkey) -> ExistenceCheck:
        try:
            data = await self.rpc.get_account_data(address)
        except Exception as e:
            logger.warning(f"Lookup of {address} failed: {e}")
            return ExistenceCheck(address, ExistenceStatus.FAILED, error=e)

        if data is None:
            return ExistenceCheck(address, ExistenceStatus.ABSENT)
        return ExistenceCheck(address, ExistenceStatus.FOUND, data=data)

    async def resolve(self, address: Pubkey) -> StorageAccount:
        """
        Fetch a storage account and decode its version.

        Raises:
            AccountNotFound: The account does not exist
            UnknownAccountVersion: The data matches no known layout
            TransportError: The RPC query failed
        """
        check = await self.check_exists(address)
        check.raise_for_failure()
        if not check.exists:
            raise AccountNotFound(address)

        account = decode_storage_account(check.data)
        logger.debug(f"Resolved {address} as {account.version.name}")
        return account

    async def get_user_info(self, user_info_address: Pubkey) -> Optional[UserInfo]:
        """Decoded user-info account, or None when confirmed absent."""
        check = await self.check_exists(user_info_address)
        check.raise_for_failure()
        if not check.exists:
            return None
        return decode_user_info(check.data)
