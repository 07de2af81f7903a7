"""
Transaction Signer & Encoder.

Builds a transaction around prepared instructions, partially signs it with
the caller's key and encodes it for the coordinator:

    base64(bincode(Transaction))

The blockhash expires quickly, so one is fetched on every call right before
signing. Retrying a failed submission therefore means calling
sign_and_encode again, never resending an old encoding. Signatures of other
required signers (the uploader, co-owners) are left empty for them to fill.
"""

import base64
import binascii
from typing import Sequence

from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.transaction import Transaction

from shadow_drive.core.errors import TransactionSerializationFailed
from shadow_drive.network.rpc import LedgerRpc
from shadow_drive.utils.logger import get_logger


logger = get_logger("transaction")


def sign_transaction(
    instructions: Sequence[Instruction],
    signer: Keypair,
    recent_blockhash: Hash,
) -> Transaction:
    """
    Build a transaction paid by signer and add signer's signature.

    Raises:
        TransactionSerializationFailed: The key cannot sign this transaction
    """
    try:
        txn = Transaction.new_with_payer(list(instructions), signer.pubkey())
        txn.partial_sign([signer], recent_blockhash)
    except Exception as e:
        raise TransactionSerializationFailed(f"signing failed: {e}", cause=e) from e
    return txn


def serialize_and_encode(txn: Transaction) -> str:
    """Canonical wire bytes, base64 encoded."""
    try:
        serialized = bytes(txn)
    except Exception as e:
        raise TransactionSerializationFailed(f"serialization failed: {e}", cause=e) from e
    return base64.b64encode(serialized).decode()


def decode_transaction(encoded: str) -> Transaction:
    """Inverse of serialize_and_encode."""
    try:
        raw = base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise TransactionSerializationFailed(f"invalid base64: {e}", cause=e) from e
    try:
        return Transaction.from_bytes(raw)
    except Exception as e:
        raise TransactionSerializationFailed(f"cannot decode transaction: {e}", cause=e) from e


class TransactionSigner:
    """Signs and encodes instruction lists against a live ledger."""

    def __init__(self, rpc: LedgerRpc):
        self.rpc = rpc

    async def sign(self, instructions: Sequence[Instruction], signer: Keypair) -> Transaction:
        # TransportError from the blockhash fetch propagates unchanged
        recent_blockhash = await self.rpc.get_latest_blockhash()
        logger.debug(f"Signing {len(instructions)} instruction(s) with blockhash {recent_blockhash}")
        return sign_transaction(instructions, signer, recent_blockhash)

    async def sign_and_encode(self, instructions: Sequence[Instruction], signer: Keypair) -> str:
        return serialize_and_encode(await self.sign(instructions, signer))
