"""
Ledger RPC - Narrow interface to the Solana JSON-RPC API.

The SDK needs three calls from the ledger: read an account, fetch a recent
blockhash, and send a fully signed transaction. LedgerRpc names that
contract so tests and applications can plug in their own transport;
SolanaRpcClient implements it over httpx.
"""

import base64
import itertools
from typing import Any, Optional, Protocol

import httpx
from solders.hash import Hash
from solders.pubkey import Pubkey

from shadow_drive.core.config import FINALIZED
from shadow_drive.core.errors import TransportError
from shadow_drive.utils.logger import get_logger


logger = get_logger("rpc")


class LedgerRpc(Protocol):
    """Ledger reads and writes used by the client."""

    async def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        """Raw account data, or None when the account does not exist."""
        ...

    async def get_latest_blockhash(self) -> Hash:
        ...

    async def send_transaction(self, transaction: bytes) -> str:
        """Submit a serialized transaction, returning its signature."""
        ...


class SolanaRpcClient:
    """
    JSON-RPC client for a Solana node.

    Every request is bounded by the client timeout. Failures raise
    TransportError with the underlying cause chained; nothing is retried.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 120.0,
        commitment: str = FINALIZED,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.commitment = commitment
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _call(self, method: str, params: list) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            response = await self._http.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise TransportError(f"RPC {method} failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"RPC {method} returned invalid JSON") from e

        if not isinstance(body, dict):
            raise TransportError(f"RPC {method} returned a non-object body: {body!r}")
        if "error" in body:
            error = body["error"]
            if isinstance(error, dict):
                raise TransportError(
                    f"RPC {method} error {error.get('code')}: {error.get('message')}"
                )
            raise TransportError(f"RPC {method} error: {error!r}")
        return body.get("result")

    async def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        result = await self._call(
            "getAccountInfo",
            [str(address), {"encoding": "base64", "commitment": self.commitment}],
        )
        try:
            value = (result or {}).get("value")
            if value is None:
                logger.debug(f"Account {address} not found")
                return None
            data, encoding = value["data"]
            if encoding != "base64":
                raise TransportError(f"Unexpected account encoding {encoding}")
            return base64.b64decode(data, validate=True)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise TransportError(f"Malformed getAccountInfo result for {address}: {e}") from e

    async def get_latest_blockhash(self) -> Hash:
        result = await self._call("getLatestBlockhash", [{"commitment": self.commitment}])
        try:
            return Hash.from_string(result["value"]["blockhash"])
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(f"Malformed getLatestBlockhash result: {result!r}") from e

    async def send_transaction(self, transaction: bytes) -> str:
        encoded = base64.b64encode(transaction).decode()
        signature = await self._call(
            "sendTransaction",
            [encoded, {"encoding": "base64", "preflightCommitment": self.commitment}],
        )
        if not isinstance(signature, str):
            raise TransportError(f"Malformed sendTransaction result: {signature!r}")
        return signature
