"""Vote account state.

Vote accounts hold a `VoteStateVersions` enum behind a u32 tag. All four
layouts the cluster may still return are decoded into one `VoteState`:

    0  V0_23_5   single authorized voter + epoch, commission u8
    1  V1_14_11  authorized voter map, plain lockouts, commission u8
    2  Current   as V1_14_11 with latency-tagged (landed) votes
    3  V4        collectors + commissions in basis points, no prior voters
"""

from dataclasses import dataclass, field

from solders.pubkey import Pubkey

from ..constants import MAX_EPOCH_CREDITS_HISTORY, MAX_LOCKOUT_HISTORY, VOTE_PROGRAM_ID
from ..errors import MalformedAccountDataError
from ..rpc.types import Account
from .reader import PUBKEY_SIZE, ByteReader, DecodeFailure, check_owner, decode_with

# Sizes of fixed-width records inside the layouts
LOCKOUT_SIZE = 12
LANDED_VOTE_SIZE = 13
AUTHORIZED_VOTER_SIZE = 8 + PUBKEY_SIZE
EPOCH_CREDITS_SIZE = 24
PRIOR_VOTERS_LEN = 32
BLS_PUBKEY_COMPRESSED_SIZE = 48

# The program purges voters older than the previous epoch; anything past this is corrupt
MAX_AUTHORIZED_VOTERS = 64

VOTE_STATE_VERSIONS = {0: "0.23.5", 1: "1.14.11", 2: "current", 3: "v4"}


@dataclass(frozen=True)
class Lockout:
    slot: int
    confirmation_count: int


@dataclass(frozen=True)
class EpochCredits:
    epoch: int
    credits: int
    prev_credits: int


@dataclass(frozen=True)
class BlockTimestamp:
    slot: int
    timestamp: int


@dataclass(frozen=True)
class VoteState:
    """Decoded vote account, normalized across layout versions."""

    version: str
    node_pubkey: Pubkey
    authorized_withdrawer: Pubkey
    authorized_voters: dict[int, Pubkey]
    commission_bps: int
    votes: list[Lockout] = field(default_factory=list)
    root_slot: int | None = None
    epoch_credits: list[EpochCredits] = field(default_factory=list)
    last_timestamp: BlockTimestamp = BlockTimestamp(0, 0)
    inflation_rewards_collector: Pubkey | None = None
    block_revenue_collector: Pubkey | None = None
    block_revenue_commission_bps: int | None = None

    def authorized_voter_for(self, epoch: int) -> Pubkey | None:
        """
        Resolve the voter authorized for `epoch`.

        The map records the epoch each voter takes effect, so the answer is
        the entry with the greatest epoch not after `epoch`, not simply the
        newest entry (which may be scheduled for a future epoch).
        """
        eligible = [e for e in self.authorized_voters if e <= epoch]
        if not eligible:
            return None
        return self.authorized_voters[max(eligible)]

    @property
    def latest_authorized_voter(self) -> Pubkey | None:
        if not self.authorized_voters:
            return None
        return self.authorized_voters[max(self.authorized_voters)]

    @property
    def credits(self) -> int:
        return self.epoch_credits[-1].credits if self.epoch_credits else 0

    @property
    def commission(self) -> int:
        """Inflation rewards commission as a whole percentage."""
        return self.commission_bps // 100


def _read_lockout(reader: ByteReader) -> Lockout:
    return Lockout(slot=reader.u64(), confirmation_count=reader.u32())


def _read_landed_vote(reader: ByteReader) -> Lockout:
    reader.u8()  # latency
    return _read_lockout(reader)


def _read_epoch_credits(reader: ByteReader) -> list[EpochCredits]:
    return reader.vec(
        lambda: EpochCredits(reader.u64(), reader.u64(), reader.u64()),
        EPOCH_CREDITS_SIZE,
        MAX_EPOCH_CREDITS_HISTORY,
    )


def _read_authorized_voters(reader: ByteReader) -> dict[int, Pubkey]:
    voters: dict[int, Pubkey] = {}
    for _ in range(reader.vec_len(AUTHORIZED_VOTER_SIZE, MAX_AUTHORIZED_VOTERS)):
        epoch = reader.u64()
        voters[epoch] = reader.pubkey()
    return voters


def _read_timestamp(reader: ByteReader) -> BlockTimestamp:
    return BlockTimestamp(slot=reader.u64(), timestamp=reader.i64())


def _read_v0_23_5(reader: ByteReader) -> VoteState:
    node_pubkey = reader.pubkey()
    authorized_voter = reader.pubkey()
    authorized_voter_epoch = reader.u64()
    # prior voters: 32 x (pubkey, epoch start, epoch end, slot) + index
    reader.skip(PRIOR_VOTERS_LEN * (PUBKEY_SIZE + 24) + 8)
    authorized_withdrawer = reader.pubkey()
    commission = reader.u8()
    votes = reader.vec(lambda: _read_lockout(reader), LOCKOUT_SIZE, MAX_LOCKOUT_HISTORY)
    root_slot = reader.option(reader.u64)
    epoch_credits = _read_epoch_credits(reader)
    last_timestamp = _read_timestamp(reader)
    return VoteState(
        version=VOTE_STATE_VERSIONS[0],
        node_pubkey=node_pubkey,
        authorized_withdrawer=authorized_withdrawer,
        authorized_voters={authorized_voter_epoch: authorized_voter},
        commission_bps=commission * 100,
        votes=votes,
        root_slot=root_slot,
        epoch_credits=epoch_credits,
        last_timestamp=last_timestamp,
    )


def _read_v1_or_current(reader: ByteReader, landed_votes: bool) -> VoteState:
    node_pubkey = reader.pubkey()
    authorized_withdrawer = reader.pubkey()
    commission = reader.u8()
    if landed_votes:
        votes = reader.vec(lambda: _read_landed_vote(reader), LANDED_VOTE_SIZE, MAX_LOCKOUT_HISTORY)
    else:
        votes = reader.vec(lambda: _read_lockout(reader), LOCKOUT_SIZE, MAX_LOCKOUT_HISTORY)
    root_slot = reader.option(reader.u64)
    authorized_voters = _read_authorized_voters(reader)
    # prior voters: 32 x (pubkey, epoch start, epoch end) + index + is_empty
    reader.skip(PRIOR_VOTERS_LEN * (PUBKEY_SIZE + 16) + 8)
    reader.bool()
    epoch_credits = _read_epoch_credits(reader)
    last_timestamp = _read_timestamp(reader)
    return VoteState(
        version=VOTE_STATE_VERSIONS[2 if landed_votes else 1],
        node_pubkey=node_pubkey,
        authorized_withdrawer=authorized_withdrawer,
        authorized_voters=authorized_voters,
        commission_bps=commission * 100,
        votes=votes,
        root_slot=root_slot,
        epoch_credits=epoch_credits,
        last_timestamp=last_timestamp,
    )


def _read_v4(reader: ByteReader) -> VoteState:
    node_pubkey = reader.pubkey()
    authorized_withdrawer = reader.pubkey()
    inflation_rewards_collector = reader.pubkey()
    block_revenue_collector = reader.pubkey()
    inflation_rewards_commission_bps = reader.u16()
    block_revenue_commission_bps = reader.u16()
    reader.u64()  # pending delegator rewards
    reader.option(lambda: reader.raw(BLS_PUBKEY_COMPRESSED_SIZE))
    votes = reader.vec(lambda: _read_landed_vote(reader), LANDED_VOTE_SIZE, MAX_LOCKOUT_HISTORY)
    root_slot = reader.option(reader.u64)
    authorized_voters = _read_authorized_voters(reader)
    epoch_credits = _read_epoch_credits(reader)
    last_timestamp = _read_timestamp(reader)
    return VoteState(
        version=VOTE_STATE_VERSIONS[3],
        node_pubkey=node_pubkey,
        authorized_withdrawer=authorized_withdrawer,
        authorized_voters=authorized_voters,
        commission_bps=inflation_rewards_commission_bps,
        votes=votes,
        root_slot=root_slot,
        epoch_credits=epoch_credits,
        last_timestamp=last_timestamp,
        inflation_rewards_collector=inflation_rewards_collector,
        block_revenue_collector=block_revenue_collector,
        block_revenue_commission_bps=block_revenue_commission_bps,
    )


def read_vote_state(reader: ByteReader) -> VoteState:
    """Decode a VoteStateVersions value from the reader's current position."""
    tag = reader.u32()
    if tag == 0:
        return _read_v0_23_5(reader)
    if tag == 1:
        return _read_v1_or_current(reader, landed_votes=False)
    if tag == 2:
        return _read_v1_or_current(reader, landed_votes=True)
    if tag == 3:
        return _read_v4(reader)
    raise DecodeFailure(f"unknown vote state version {tag}")


def decode_vote_state(pubkey: Pubkey, data: bytes) -> VoteState:
    """Decode raw vote account bytes (no owner check)."""
    return decode_with(pubkey, data, "vote state", read_vote_state)


def decode_vote_account(pubkey: Pubkey, account: Account) -> VoteState:
    """
    Decode a fetched vote account.

    Raises:
        WrongOwnerError: If the account is not owned by the vote program
            (checked before any byte is decoded)
        MalformedAccountDataError: If the bytes are not a vote state
    """
    check_owner(pubkey, account, VOTE_PROGRAM_ID)
    if not account.data:
        raise MalformedAccountDataError(pubkey, "vote state", "account has no data")
    return decode_vote_state(pubkey, account.data)
