"""Stake history sysvar.

The payload is a bincode `Vec<(Epoch, StakeHistoryEntry)>`, newest first.
The remote node controls these bytes, so both the total size and the entry
count are capped before decoding.
"""

from dataclasses import dataclass

from solders.pubkey import Pubkey

from ..constants import MAX_STAKE_HISTORY_ENTRIES, SYSVAR_OWNER_ID, SYSVAR_STAKE_HISTORY_ID
from ..rpc.types import Account
from .reader import ByteReader, check_owner, decode_with

STAKE_HISTORY_ENTRY_SIZE = 32

# Length prefix plus a full history
MAX_STAKE_HISTORY_SIZE = 8 + MAX_STAKE_HISTORY_ENTRIES * STAKE_HISTORY_ENTRY_SIZE


@dataclass(frozen=True)
class StakeHistoryEntry:
    """Cluster-wide stake totals at the end of an epoch, in lamports."""

    epoch: int
    effective: int
    activating: int
    deactivating: int


def read_stake_history(reader: ByteReader) -> list[StakeHistoryEntry]:
    return reader.vec(
        lambda: StakeHistoryEntry(reader.u64(), reader.u64(), reader.u64(), reader.u64()),
        STAKE_HISTORY_ENTRY_SIZE,
        MAX_STAKE_HISTORY_ENTRIES,
    )


def decode_stake_history(account: Account, pubkey: Pubkey = SYSVAR_STAKE_HISTORY_ID) -> list[StakeHistoryEntry]:
    """Decode the stake history sysvar account."""
    check_owner(pubkey, account, SYSVAR_OWNER_ID)
    return decode_with(
        pubkey, account.data, "stake history", read_stake_history, limit=MAX_STAKE_HISTORY_SIZE
    )
