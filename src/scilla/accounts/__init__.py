"""Decoders for on-chain account state."""

from .history import StakeHistoryEntry, decode_stake_history
from .reader import ByteReader, DecodeFailure, check_owner
from .stake import (
    Authorized,
    Delegated,
    Delegation,
    Initialized,
    Lockup,
    Meta,
    RewardsPool,
    StakeState,
    Uninitialized,
    decode_stake_account,
    decode_stake_state,
    state_label,
)
from .vote import BlockTimestamp, EpochCredits, Lockout, VoteState, decode_vote_account, decode_vote_state

__all__ = [
    "ByteReader",
    "DecodeFailure",
    "check_owner",
    "Authorized",
    "Delegated",
    "Delegation",
    "Initialized",
    "Lockup",
    "Meta",
    "RewardsPool",
    "StakeState",
    "Uninitialized",
    "decode_stake_account",
    "decode_stake_state",
    "state_label",
    "BlockTimestamp",
    "EpochCredits",
    "Lockout",
    "VoteState",
    "decode_vote_account",
    "decode_vote_state",
    "StakeHistoryEntry",
    "decode_stake_history",
]
