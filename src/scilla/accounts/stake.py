"""Stake account state (StakeStateV2).

Layout (bincode, little-endian):

    u32 tag: 0 Uninitialized | 1 Initialized(Meta) | 2 Stake(Meta, Stake, u8 flags) | 3 RewardsPool

    Meta       = rent_exempt_reserve u64, staker Pubkey, withdrawer Pubkey,
                 lockup (unix_timestamp i64, epoch u64, custodian Pubkey)
    Stake      = voter Pubkey, stake u64, activation_epoch u64,
                 deactivation_epoch u64, warmup_cooldown_rate f64,
                 credits_observed u64

Each variant is its own frozen dataclass; validators handle all four
explicitly.
"""

from dataclasses import dataclass

from solders.pubkey import Pubkey

from ..constants import DEACTIVATION_EPOCH_SENTINEL, STAKE_PROGRAM_ID, STAKE_STATE_SIZE
from ..errors import MalformedAccountDataError
from ..rpc.types import Account
from .reader import ByteReader, DecodeFailure, check_owner, decode_with


@dataclass(frozen=True)
class Lockup:
    """Withdrawal lockup; in force until both the epoch and time have passed."""

    unix_timestamp: int
    epoch: int
    custodian: Pubkey

    def is_in_force(self, current_epoch: int, now: int) -> bool:
        return self.unix_timestamp > now or self.epoch > current_epoch


@dataclass(frozen=True)
class Authorized:
    staker: Pubkey
    withdrawer: Pubkey


@dataclass(frozen=True)
class Meta:
    rent_exempt_reserve: int
    authorized: Authorized
    lockup: Lockup


@dataclass(frozen=True)
class Delegation:
    voter_pubkey: Pubkey
    stake: int
    activation_epoch: int
    deactivation_epoch: int
    warmup_cooldown_rate: float

    @property
    def is_deactivating(self) -> bool:
        """True once a deactivation epoch has been recorded."""
        return self.deactivation_epoch != DEACTIVATION_EPOCH_SENTINEL

    def is_fully_deactivated(self, current_epoch: int) -> bool:
        return self.is_deactivating and current_epoch > self.deactivation_epoch


@dataclass(frozen=True)
class Uninitialized:
    name = "uninitialized"


@dataclass(frozen=True)
class Initialized:
    meta: Meta
    name = "initialized"


@dataclass(frozen=True)
class Delegated:
    """The `Stake` variant: an account carrying a delegation."""

    meta: Meta
    delegation: Delegation
    credits_observed: int
    flags: int = 0
    name = "stake"


@dataclass(frozen=True)
class RewardsPool:
    name = "rewards_pool"


StakeState = Uninitialized | Initialized | Delegated | RewardsPool


def state_label(state: StakeState) -> str:
    """Describe a state for error messages, e.g. 'stake (deactivating)'."""
    if isinstance(state, Delegated) and state.delegation.is_deactivating:
        return f"stake (deactivating since epoch {state.delegation.deactivation_epoch})"
    return state.name


def _read_meta(reader: ByteReader) -> Meta:
    rent_exempt_reserve = reader.u64()
    authorized = Authorized(staker=reader.pubkey(), withdrawer=reader.pubkey())
    lockup = Lockup(
        unix_timestamp=reader.i64(),
        epoch=reader.u64(),
        custodian=reader.pubkey(),
    )
    return Meta(rent_exempt_reserve, authorized, lockup)


def _read_delegation(reader: ByteReader) -> Delegation:
    return Delegation(
        voter_pubkey=reader.pubkey(),
        stake=reader.u64(),
        activation_epoch=reader.u64(),
        deactivation_epoch=reader.u64(),
        warmup_cooldown_rate=reader.f64(),
    )


def read_stake_state(reader: ByteReader) -> StakeState:
    """Decode a StakeStateV2 from the reader's current position."""
    tag = reader.u32()
    if tag == 0:
        return Uninitialized()
    if tag == 1:
        return Initialized(meta=_read_meta(reader))
    if tag == 2:
        meta = _read_meta(reader)
        delegation = _read_delegation(reader)
        credits_observed = reader.u64()
        # Accounts written before stake flags existed end here
        flags = reader.u8() if reader.remaining else 0
        return Delegated(meta, delegation, credits_observed, flags)
    if tag == 3:
        return RewardsPool()
    raise DecodeFailure(f"unknown stake state tag {tag}")


def decode_stake_state(pubkey: Pubkey, data: bytes) -> StakeState:
    """Decode raw stake account bytes (no owner check)."""
    return decode_with(pubkey, data, "stake state", read_stake_state, limit=STAKE_STATE_SIZE)


def decode_stake_account(pubkey: Pubkey, account: Account) -> StakeState:
    """
    Decode a fetched stake account.

    Raises:
        WrongOwnerError: If the account is not owned by the stake program
            (checked before any byte is decoded)
        MalformedAccountDataError: If the bytes are not a stake state
    """
    check_owner(pubkey, account, STAKE_PROGRAM_ID)
    if not account.data:
        raise MalformedAccountDataError(pubkey, "stake state", "account has no data")
    return decode_stake_state(pubkey, account.data)
