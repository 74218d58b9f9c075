"""JSON-RPC access to a Solana cluster."""

from .client import RpcClient
from .types import (
    Account,
    EpochInfo,
    InflationRate,
    LatestBlockhash,
    SignatureStatus,
    Supply,
    VoteAccountInfo,
    VoteAccountStatus,
)

__all__ = [
    "RpcClient",
    "Account",
    "EpochInfo",
    "InflationRate",
    "LatestBlockhash",
    "SignatureStatus",
    "Supply",
    "VoteAccountInfo",
    "VoteAccountStatus",
]
