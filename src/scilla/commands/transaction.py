"""Transaction lookup and raw submission."""

import base64
import binascii
from typing import Any

from solders.signature import Signature
from solders.transaction import VersionedTransaction

from ..context import Context
from ..errors import InvalidInputError
from ..logging import get_logger
from ..rpc import SignatureStatus

logger = get_logger("commands")

# Largest serialized transaction the cluster accepts
MAX_TRANSACTION_SIZE = 1232


async def check_confirmation(ctx: Context, signature: Signature) -> bool:
    return await ctx.rpc.confirm_transaction(signature)


async def signature_status(ctx: Context, signature: Signature) -> SignatureStatus | None:
    statuses = await ctx.rpc.get_signature_statuses([signature], search_history=True)
    return statuses[0]


async def fetch_transaction(ctx: Context, signature: Signature) -> dict[str, Any] | None:
    return await ctx.rpc.get_transaction(signature)


def decode_transaction(encoded: str) -> VersionedTransaction:
    """
    Decode a base64 wire transaction.

    Raises:
        InvalidInputError: If the text is not base64 or not a transaction
    """
    trimmed = encoded.strip()
    if not trimmed:
        raise InvalidInputError("Encoded transaction cannot be empty")
    try:
        raw = base64.b64decode(trimmed, validate=True)
    except binascii.Error as e:
        raise InvalidInputError(f"Invalid base64 transaction: {e}") from e
    if len(raw) > MAX_TRANSACTION_SIZE:
        raise InvalidInputError(
            f"Transaction is {len(raw)} bytes, larger than the {MAX_TRANSACTION_SIZE} byte limit"
        )
    try:
        return VersionedTransaction.from_bytes(raw)
    except ValueError as e:
        raise InvalidInputError(f"Invalid transaction: {e}") from e


async def send_encoded_transaction(ctx: Context, encoded: str) -> Signature:
    """Submit an already signed, base64-encoded transaction without waiting."""
    transaction = decode_transaction(encoded)
    signature = await ctx.rpc.send_transaction(transaction)
    logger.info("Sent transaction %s", signature)
    return signature
