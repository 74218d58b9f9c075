"""Byte builders for on-chain layouts and an in-memory RPC stand-in."""

import json
import struct
from pathlib import Path

from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from scilla.constants import (
    DEACTIVATION_EPOCH_SENTINEL,
    STAKE_PROGRAM_ID,
    STAKE_STATE_SIZE,
    SYSVAR_OWNER_ID,
    VOTE_PROGRAM_ID,
    VOTE_STATE_SIZE,
)
from scilla.errors import TransportError
from scilla.rpc import (
    Account,
    EpochInfo,
    LatestBlockhash,
    SignatureStatus,
    VoteAccountInfo,
    VoteAccountStatus,
)

RENT_PER_BYTE = 6_960
MINIMUM_DELEGATION = 1_000_000_000


def rent_for(size: int) -> int:
    return (size + 128) * RENT_PER_BYTE


# ---------------------------------------------------------------------------
# Stake
# ---------------------------------------------------------------------------


def _meta(staker: Pubkey, withdrawer: Pubkey, reserve: int, lockup_epoch: int, lockup_ts: int, custodian: Pubkey) -> bytes:
    return (
        struct.pack("<Q", reserve)
        + bytes(staker)
        + bytes(withdrawer)
        + struct.pack("<qQ", lockup_ts, lockup_epoch)
        + bytes(custodian)
    )


def encode_uninitialized() -> bytes:
    return struct.pack("<I", 0).ljust(STAKE_STATE_SIZE, b"\0")


def encode_initialized(
    staker: Pubkey,
    withdrawer: Pubkey,
    reserve: int = rent_for(STAKE_STATE_SIZE),
    lockup_epoch: int = 0,
    lockup_ts: int = 0,
    custodian: Pubkey = Pubkey.default(),
) -> bytes:
    body = struct.pack("<I", 1) + _meta(staker, withdrawer, reserve, lockup_epoch, lockup_ts, custodian)
    return body.ljust(STAKE_STATE_SIZE, b"\0")


def encode_delegated(
    staker: Pubkey,
    withdrawer: Pubkey,
    voter: Pubkey,
    stake: int = 5 * MINIMUM_DELEGATION,
    activation_epoch: int = 10,
    deactivation_epoch: int = DEACTIVATION_EPOCH_SENTINEL,
    reserve: int = rent_for(STAKE_STATE_SIZE),
    lockup_epoch: int = 0,
    lockup_ts: int = 0,
    custodian: Pubkey = Pubkey.default(),
    credits_observed: int = 0,
) -> bytes:
    body = (
        struct.pack("<I", 2)
        + _meta(staker, withdrawer, reserve, lockup_epoch, lockup_ts, custodian)
        + bytes(voter)
        + struct.pack("<QQQd", stake, activation_epoch, deactivation_epoch, 0.25)
        + struct.pack("<QB", credits_observed, 0)
    )
    return body.ljust(STAKE_STATE_SIZE, b"\0")


def encode_rewards_pool() -> bytes:
    return struct.pack("<I", 3).ljust(STAKE_STATE_SIZE, b"\0")


def encode_stake_history(entries: list[tuple[int, int, int, int]]) -> bytes:
    data = struct.pack("<Q", len(entries))
    for entry in entries:
        data += struct.pack("<QQQQ", *entry)
    return data


# ---------------------------------------------------------------------------
# Vote
# ---------------------------------------------------------------------------


def _vec(items: list[bytes]) -> bytes:
    return struct.pack("<Q", len(items)) + b"".join(items)


def _option_u64(value: int | None) -> bytes:
    return b"\0" if value is None else b"\x01" + struct.pack("<Q", value)


def _voters(authorized_voters: dict[int, Pubkey]) -> bytes:
    return _vec([struct.pack("<Q", e) + bytes(p) for e, p in sorted(authorized_voters.items())])


def _credits(epoch_credits: list[tuple[int, int, int]]) -> bytes:
    return _vec([struct.pack("<QQQ", *c) for c in epoch_credits])


def encode_vote_state(
    node: Pubkey,
    withdrawer: Pubkey,
    authorized_voters: dict[int, Pubkey],
    version: int = 2,
    commission: int = 10,
    votes: list[tuple[int, int]] = (),
    root_slot: int | None = None,
    epoch_credits: list[tuple[int, int, int]] = (),
    timestamp: tuple[int, int] = (0, 0),
    collector: Pubkey = Pubkey.default(),
) -> bytes:
    """Encode a vote account in any of the four VoteStateVersions layouts."""
    lockouts = [struct.pack("<QI", slot, conf) for slot, conf in votes]
    landed = [b"\x00" + lockout for lockout in lockouts]
    tail = _credits(list(epoch_credits)) + struct.pack("<Qq", *timestamp)

    if version == 0:
        (epoch, voter), = authorized_voters.items()
        body = (
            bytes(node)
            + bytes(voter)
            + struct.pack("<Q", epoch)
            + b"\0" * (32 * 56 + 8)
            + bytes(withdrawer)
            + struct.pack("<B", commission)
            + _vec(lockouts)
            + _option_u64(root_slot)
            + tail
        )
    elif version in (1, 2):
        body = (
            bytes(node)
            + bytes(withdrawer)
            + struct.pack("<B", commission)
            + _vec(landed if version == 2 else lockouts)
            + _option_u64(root_slot)
            + _voters(authorized_voters)
            + b"\0" * (32 * 48 + 8)
            + b"\x01"
            + tail
        )
    elif version == 3:
        body = (
            bytes(node)
            + bytes(withdrawer)
            + bytes(collector)
            + bytes(node)
            + struct.pack("<HHQ", commission * 100, 10_000, 0)
            + b"\0"
            + _vec(landed)
            + _option_u64(root_slot)
            + _voters(authorized_voters)
            + tail
        )
    else:
        raise ValueError(version)

    return (struct.pack("<I", version) + body).ljust(VOTE_STATE_SIZE, b"\0")


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


def stake_account(data: bytes, lamports: int = 10 * MINIMUM_DELEGATION) -> Account:
    return Account(lamports=lamports, owner=STAKE_PROGRAM_ID, data=data)


def vote_account(data: bytes, lamports: int = rent_for(VOTE_STATE_SIZE) + 5 * MINIMUM_DELEGATION) -> Account:
    return Account(lamports=lamports, owner=VOTE_PROGRAM_ID, data=data)


def system_account(lamports: int = MINIMUM_DELEGATION) -> Account:
    return Account(lamports=lamports, owner=Pubkey.default(), data=b"")


def history_account(entries: list[tuple[int, int, int, int]]) -> Account:
    return Account(lamports=1, owner=SYSVAR_OWNER_ID, data=encode_stake_history(entries))


def write_keypair(keypair: Keypair, path: Path) -> Path:
    """Write a keypair file in the Solana CLI JSON format."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(list(bytes(keypair))), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# RPC
# ---------------------------------------------------------------------------


class FakeRpc:
    """
    In-memory cluster implementing the `RpcClient` methods commands use.

    Every call is recorded in `calls`; submitted transactions are kept in
    `sent` and confirmed immediately.
    """

    def __init__(self, epoch: int = 100, commitment: str = "confirmed"):
        self.commitment = commitment
        self.accounts: dict[Pubkey, Account] = {}
        self.epoch = epoch
        self.vote_accounts: list[VoteAccountInfo] = []
        self.minimum_delegation = MINIMUM_DELEGATION
        self.statuses: dict[Signature, SignatureStatus] = {}
        self.transactions: dict[Signature, dict] = {}
        self.fail_method: str | None = None
        self.calls: list[str] = []
        self.sent: list = []
        self.last_valid_block_height = 1_000

    async def __aenter__(self) -> "FakeRpc":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    def _record(self, method: str) -> None:
        self.calls.append(method)
        if method == self.fail_method:
            raise TransportError(method, "connection refused")

    def add_vote_info(self, vote_pubkey: Pubkey, node_pubkey: Pubkey, activated_stake: int) -> None:
        self.vote_accounts.append(
            VoteAccountInfo(
                vote_pubkey=vote_pubkey,
                node_pubkey=node_pubkey,
                activated_stake=activated_stake,
                commission=10,
                epoch_vote_account=True,
                last_vote=0,
                root_slot=0,
            )
        )

    async def get_account(self, pubkey: Pubkey) -> Account | None:
        self._record("getAccountInfo")
        return self.accounts.get(pubkey)

    async def get_multiple_accounts(self, pubkeys: list[Pubkey]) -> list[Account | None]:
        self._record("getMultipleAccounts")
        return [self.accounts.get(p) for p in pubkeys]

    async def get_epoch_info(self) -> EpochInfo:
        self._record("getEpochInfo")
        return EpochInfo(epoch=self.epoch, slot_index=100, slots_in_epoch=432_000, absolute_slot=self.epoch * 432_000 + 100)

    async def get_balance(self, pubkey: Pubkey) -> int:
        self._record("getBalance")
        account = self.accounts.get(pubkey)
        return account.lamports if account is not None else 0

    async def get_minimum_balance_for_rent_exemption(self, size: int) -> int:
        self._record("getMinimumBalanceForRentExemption")
        return rent_for(size)

    async def get_stake_minimum_delegation(self) -> int:
        self._record("getStakeMinimumDelegation")
        return self.minimum_delegation

    async def get_vote_accounts(self, vote_pubkey: Pubkey | None = None) -> VoteAccountStatus:
        self._record("getVoteAccounts")
        current = [v for v in self.vote_accounts if vote_pubkey is None or v.vote_pubkey == vote_pubkey]
        return VoteAccountStatus(current=current)

    async def get_latest_blockhash(self) -> LatestBlockhash:
        self._record("getLatestBlockhash")
        return LatestBlockhash(Hash.new_unique(), self.last_valid_block_height)

    async def send_and_confirm_transaction(self, transaction, last_valid_block_height: int) -> Signature:
        self._record("sendTransaction")
        self.sent.append(transaction)
        return transaction.signatures[0]

    async def send_transaction(self, transaction) -> Signature:
        self._record("sendTransaction")
        self.sent.append(transaction)
        return transaction.signatures[0]

    async def get_signature_statuses(self, signatures: list[Signature], search_history: bool = False):
        self._record("getSignatureStatuses")
        return [self.statuses.get(s) for s in signatures]

    async def confirm_transaction(self, signature: Signature) -> bool:
        status = (await self.get_signature_statuses([signature]))[0]
        return status is not None and status.err is None and status.satisfies(self.commitment)

    async def get_transaction(self, signature: Signature):
        self._record("getTransaction")
        return self.transactions.get(signature)

    async def request_airdrop(self, pubkey: Pubkey, lamports: int) -> Signature:
        self._record("requestAirdrop")
        return Signature.default()

    async def get_slot(self) -> int:
        self._record("getSlot")
        return self.epoch * 432_000 + 100

    async def get_block_height(self) -> int:
        self._record("getBlockHeight")
        return 900

    async def get_block_time(self, slot: int) -> int | None:
        self._record("getBlockTime")
        return 1_700_000_000
