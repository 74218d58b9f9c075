"""Typed snapshots of JSON-RPC responses.

Each type is an immutable view of what the cluster returned at fetch time;
nothing here is mutated locally.
"""

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any

from solders.hash import Hash
from solders.pubkey import Pubkey

from ..constants import COMMITMENT_LEVELS


@dataclass(frozen=True)
class Account:
    """Raw on-chain account."""

    lamports: int
    owner: Pubkey
    data: bytes
    executable: bool = False
    rent_epoch: int = 0

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> "Account":
        """Parse an account returned with `encoding: base64`."""
        raw = value["data"]
        if isinstance(raw, list):
            encoded, encoding = raw[0], raw[1]
            if encoding != "base64":
                raise ValueError(f"Unsupported account data encoding: {encoding}")
        else:
            encoded = raw
        try:
            data = base64.b64decode(encoded, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 account data: {e}") from e
        return cls(
            lamports=int(value["lamports"]),
            owner=Pubkey.from_string(value["owner"]),
            data=data,
            executable=bool(value.get("executable", False)),
            rent_epoch=int(value.get("rentEpoch", 0)),
        )


@dataclass(frozen=True)
class EpochInfo:
    """Current epoch and progress through it."""

    epoch: int
    slot_index: int
    slots_in_epoch: int
    absolute_slot: int = 0
    block_height: int = 0
    transaction_count: int | None = None

    @property
    def progress(self) -> float:
        if self.slots_in_epoch == 0:
            return 0.0
        return self.slot_index / self.slots_in_epoch

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> "EpochInfo":
        return cls(
            epoch=int(value["epoch"]),
            slot_index=int(value["slotIndex"]),
            slots_in_epoch=int(value["slotsInEpoch"]),
            absolute_slot=int(value.get("absoluteSlot", 0)),
            block_height=int(value.get("blockHeight", 0)),
            transaction_count=value.get("transactionCount"),
        )


@dataclass(frozen=True)
class LatestBlockhash:
    """A recent blockhash and the last block height it is valid for."""

    blockhash: Hash
    last_valid_block_height: int

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> "LatestBlockhash":
        return cls(
            blockhash=Hash.from_string(value["blockhash"]),
            last_valid_block_height=int(value["lastValidBlockHeight"]),
        )


@dataclass(frozen=True)
class VoteAccountInfo:
    """One entry of `getVoteAccounts`."""

    vote_pubkey: Pubkey
    node_pubkey: Pubkey
    activated_stake: int
    commission: int
    epoch_vote_account: bool
    last_vote: int
    root_slot: int

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> "VoteAccountInfo":
        return cls(
            vote_pubkey=Pubkey.from_string(value["votePubkey"]),
            node_pubkey=Pubkey.from_string(value["nodePubkey"]),
            activated_stake=int(value["activatedStake"]),
            commission=int(value["commission"]),
            epoch_vote_account=bool(value.get("epochVoteAccount", False)),
            last_vote=int(value.get("lastVote", 0)),
            root_slot=int(value.get("rootSlot", 0)),
        )


@dataclass(frozen=True)
class VoteAccountStatus:
    """Cluster view of current and delinquent vote accounts."""

    current: list[VoteAccountInfo] = field(default_factory=list)
    delinquent: list[VoteAccountInfo] = field(default_factory=list)

    def find(self, vote_pubkey: Pubkey) -> VoteAccountInfo | None:
        for info in [*self.current, *self.delinquent]:
            if info.vote_pubkey == vote_pubkey:
                return info
        return None

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> "VoteAccountStatus":
        return cls(
            current=[VoteAccountInfo.from_json(v) for v in value.get("current", [])],
            delinquent=[VoteAccountInfo.from_json(v) for v in value.get("delinquent", [])],
        )


@dataclass(frozen=True)
class SignatureStatus:
    """Status of a submitted transaction."""

    slot: int
    confirmations: int | None
    err: Any
    confirmation_status: str | None

    def satisfies(self, commitment: str) -> bool:
        """Check whether this status has reached `commitment`."""
        if self.confirmation_status is None:
            # Nodes report null confirmations once a slot is rooted
            reached = "finalized" if self.confirmations is None else "confirmed"
        else:
            reached = self.confirmation_status
        return COMMITMENT_LEVELS.index(reached) >= COMMITMENT_LEVELS.index(commitment)

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> "SignatureStatus":
        return cls(
            slot=int(value["slot"]),
            confirmations=value.get("confirmations"),
            err=value.get("err"),
            confirmation_status=value.get("confirmationStatus"),
        )


@dataclass(frozen=True)
class Supply:
    """Total and circulating supply in lamports."""

    total: int
    circulating: int
    non_circulating: int

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> "Supply":
        return cls(
            total=int(value["total"]),
            circulating=int(value["circulating"]),
            non_circulating=int(value["nonCirculating"]),
        )


@dataclass(frozen=True)
class InflationRate:
    """Inflation rates for the current epoch."""

    epoch: int
    total: float
    validator: float
    foundation: float

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> "InflationRate":
        return cls(
            epoch=int(value["epoch"]),
            total=float(value["total"]),
            validator=float(value["validator"]),
            foundation=float(value["foundation"]),
        )
