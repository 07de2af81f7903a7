"""
Shadow Drive network layer - ledger RPC and storage coordinator transports.
"""

from shadow_drive.network.rpc import LedgerRpc, SolanaRpcClient
from shadow_drive.network.coordinator import CoordinatorClient, decode_response

__all__ = [
    "LedgerRpc",
    "SolanaRpcClient",
    "CoordinatorClient",
    "decode_response",
]
