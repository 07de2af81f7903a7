"""
Shared fixtures: an in-memory ledger, a recording coordinator and
storage-account factories.
"""

import json
from typing import Callable, Dict, List, Optional

import httpx
import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from shadow_drive.core.accounts import StorageAccountV1, StorageAccountV2
from shadow_drive.core.config import ShadowDriveConfig
from shadow_drive.core.errors import TransportError


class FakeLedgerRpc:
    """In-memory LedgerRpc with call recording."""

    def __init__(self):
        self.accounts: Dict[Pubkey, bytes] = {}
        self.failing: set = set()
        self.blockhashes: List[Hash] = []
        self.sent: List[bytes] = []
        self.account_reads: List[Pubkey] = []
        self.blockhash_error: Optional[Exception] = None

    async def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        self.account_reads.append(address)
        if address in self.failing:
            raise TransportError(f"node unavailable while reading {address}")
        return self.accounts.get(address)

    async def get_latest_blockhash(self) -> Hash:
        if self.blockhash_error:
            raise self.blockhash_error
        blockhash = Hash.new_unique()
        self.blockhashes.append(blockhash)
        return blockhash

    async def send_transaction(self, transaction: bytes) -> str:
        self.sent.append(transaction)
        return "5ignature"


class RecordingCoordinator:
    """httpx handler answering from a path -> (status, body) table."""

    def __init__(self):
        self.routes: Dict[str, tuple] = {}
        self.requests: List[httpx.Request] = []

    def route(self, path: str, status: int, body) -> None:
        self.routes[path] = (status, body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get(request.url.path, (404, {"error": "no route"}))
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    def json_bodies(self) -> List[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def wallet() -> Keypair:
    """Deterministic test wallet."""
    return Keypair.from_seed(bytes(range(32)))


@pytest.fixture
def config() -> ShadowDriveConfig:
    return ShadowDriveConfig()


@pytest.fixture
def ledger() -> FakeLedgerRpc:
    return FakeLedgerRpc()


@pytest.fixture
def coordinator() -> RecordingCoordinator:
    return RecordingCoordinator()


@pytest.fixture
def http_client(coordinator):
    return httpx.AsyncClient(transport=httpx.MockTransport(coordinator))


@pytest.fixture
def make_v1(wallet) -> Callable[..., StorageAccountV1]:
    def factory(**overrides) -> StorageAccountV1:
        values = dict(
            is_static=False,
            init_counter=0,
            del_counter=0,
            immutable=False,
            to_be_deleted=False,
            delete_request_epoch=0,
            storage=10_000_000,
            storage_available=4_000_000,
            owner_1=wallet.pubkey(),
            owner_2=Pubkey.default(),
            shdw_payer=wallet.pubkey(),
            account_counter_seed=0,
            total_cost_of_current_storage=250,
            total_fees_paid=3,
            creation_time=1_650_000_000,
            creation_epoch=300,
            last_fee_epoch=310,
            identifier="legacy-bucket",
        )
        values.update(overrides)
        return StorageAccountV1(**values)

    return factory


@pytest.fixture
def make_v2(wallet) -> Callable[..., StorageAccountV2]:
    def factory(**overrides) -> StorageAccountV2:
        values = dict(
            immutable=False,
            to_be_deleted=False,
            delete_request_epoch=0,
            storage=1_000_000,
            owner_1=wallet.pubkey(),
            account_counter_seed=1,
            creation_time=1_680_000_000,
            creation_epoch=420,
            last_fee_epoch=420,
            identifier="photos",
        )
        values.update(overrides)
        return StorageAccountV2(**values)

    return factory
