"""Stake account commands.

Each command follows the same path: fetch the account(s) with the current
epoch, decode, validate, then hand the instructions to the assembler.
"""

import time
from dataclasses import dataclass

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from ..accounts import (
    Delegated,
    Initialized,
    RewardsPool,
    StakeHistoryEntry,
    StakeState,
    decode_stake_account,
    decode_stake_history,
    decode_vote_account,
)
from ..constants import STAKE_PROGRAM_ID, STAKE_STATE_SIZE, SYSVAR_STAKE_HISTORY_ID
from ..context import Context
from ..errors import AccountAlreadyExistsError, AccountNotFoundError, SameAccountError
from ..fetch import fetch_account_with_epoch, fetch_accounts_with_epoch
from ..lifecycle import reject
from ..lifecycle import stake as stake_lifecycle
from ..models import SolAmount
from ..rpc import EpochInfo
from ..transaction import build_and_send_tx


@dataclass(frozen=True)
class StakeAccountView:
    """A decoded stake account as of `epoch_info`."""

    pubkey: Pubkey
    lamports: int
    state: StakeState
    epoch_info: EpochInfo

    @property
    def status(self) -> str:
        state = self.state
        epoch = self.epoch_info.epoch
        if isinstance(state, Delegated):
            delegation = state.delegation
            if delegation.is_deactivating:
                return "inactive" if delegation.is_fully_deactivated(epoch) else "deactivating"
            return "activating" if epoch <= delegation.activation_epoch else "active"
        if isinstance(state, Initialized):
            return "initialized"
        if isinstance(state, RewardsPool):
            return "rewards pool"
        return "uninitialized"


async def create_stake_account(
    ctx: Context,
    stake_keypair: Keypair,
    amount: SolAmount,
    staker: Pubkey | None = None,
    withdrawer: Pubkey | None = None,
) -> Signature:
    """Create and initialize a stake account funded by the fee payer."""
    rpc = ctx.rpc
    stake_pubkey = stake_keypair.pubkey()
    existing = await rpc.get_account(stake_pubkey)
    reserve = await rpc.get_minimum_balance_for_rent_exemption(STAKE_STATE_SIZE)
    payer_lamports = await rpc.get_balance(ctx.pubkey)

    instructions = stake_lifecycle.validate_create(
        ctx.pubkey,
        stake_pubkey,
        staker or ctx.pubkey,
        withdrawer or ctx.pubkey,
        amount.to_lamports(),
        reserve,
        existing,
        payer_lamports,
    )
    return await build_and_send_tx(rpc, instructions, ctx.keypair, [stake_keypair])


async def delegate_stake(ctx: Context, stake_pubkey: Pubkey, vote_pubkey: Pubkey) -> Signature:
    """Delegate a stake account to a vote account."""
    account, epoch_info = await fetch_account_with_epoch(ctx.rpc, stake_pubkey)
    state = decode_stake_account(stake_pubkey, account)

    vote_account = await ctx.rpc.get_account(vote_pubkey)
    if vote_account is None:
        raise AccountNotFoundError(vote_pubkey)
    decode_vote_account(vote_pubkey, vote_account)

    instructions = stake_lifecycle.validate_delegate(
        stake_pubkey, state, vote_pubkey, ctx.pubkey, epoch_info.epoch
    )
    return await build_and_send_tx(ctx.rpc, instructions, ctx.keypair)


async def deactivate_stake(ctx: Context, stake_pubkey: Pubkey) -> Signature:
    """Begin cooling down a delegated stake."""
    account, _ = await fetch_account_with_epoch(ctx.rpc, stake_pubkey)
    state = decode_stake_account(stake_pubkey, account)
    instructions = stake_lifecycle.validate_deactivate(stake_pubkey, state, ctx.pubkey)
    return await build_and_send_tx(ctx.rpc, instructions, ctx.keypair)


async def withdraw_stake(
    ctx: Context,
    stake_pubkey: Pubkey,
    recipient: Pubkey,
    amount: SolAmount,
    custodian: Keypair | None = None,
) -> Signature:
    """Withdraw from an initialized or fully deactivated stake account."""
    account, epoch_info = await fetch_account_with_epoch(ctx.rpc, stake_pubkey)
    state = decode_stake_account(stake_pubkey, account)
    instructions = stake_lifecycle.validate_withdraw(
        stake_pubkey,
        state,
        ctx.pubkey,
        recipient,
        amount.to_lamports(),
        account.lamports,
        epoch_info.epoch,
        int(time.time()),
        custodian.pubkey() if custodian is not None else None,
    )
    signers = [custodian] if custodian is not None else []
    return await build_and_send_tx(ctx.rpc, instructions, ctx.keypair, signers)


async def merge_stake(ctx: Context, destination: Pubkey, source: Pubkey) -> Signature:
    """Merge `source` into `destination`; the source account is closed."""
    if destination == source:
        raise reject(SameAccountError(source, "Merge source", "the destination"))

    (destination_account, source_account), _ = await fetch_accounts_with_epoch(
        ctx.rpc, [destination, source]
    )
    destination_state = decode_stake_account(destination, destination_account)
    source_state = decode_stake_account(source, source_account)

    instructions = stake_lifecycle.validate_merge(
        destination, destination_state, source, source_state, ctx.pubkey
    )
    return await build_and_send_tx(ctx.rpc, instructions, ctx.keypair)


async def split_stake(
    ctx: Context,
    stake_pubkey: Pubkey,
    split_keypair: Keypair,
    amount: SolAmount,
) -> Signature:
    """Split `amount` off a stake account into a new account at `split_keypair`."""
    rpc = ctx.rpc
    split_pubkey = split_keypair.pubkey()
    if split_pubkey == stake_pubkey:
        raise reject(
            SameAccountError(split_pubkey, "Split destination", "the source stake account")
        )

    account, _ = await fetch_account_with_epoch(rpc, stake_pubkey)
    state = decode_stake_account(stake_pubkey, account)

    existing = await rpc.get_account(split_pubkey)
    if existing is not None:
        raise reject(
            AccountAlreadyExistsError(split_pubkey, "stake", existing.owner == STAKE_PROGRAM_ID)
        )

    minimum_delegation = await rpc.get_stake_minimum_delegation()
    reserve = await rpc.get_minimum_balance_for_rent_exemption(STAKE_STATE_SIZE)

    instructions = stake_lifecycle.validate_split(
        stake_pubkey,
        state,
        split_pubkey,
        ctx.pubkey,
        amount.to_lamports(),
        minimum_delegation,
        account.lamports,
        ctx.pubkey,
        reserve,
    )
    return await build_and_send_tx(rpc, instructions, ctx.keypair, [split_keypair])


async def show_stake(ctx: Context, stake_pubkey: Pubkey) -> StakeAccountView:
    """Fetch and decode a stake account."""
    account, epoch_info = await fetch_account_with_epoch(ctx.rpc, stake_pubkey)
    state = decode_stake_account(stake_pubkey, account)
    return StakeAccountView(stake_pubkey, account.lamports, state, epoch_info)


async def stake_history(ctx: Context, limit: int | None = None) -> list[StakeHistoryEntry]:
    """Read the stake history sysvar, newest epoch first."""
    account = await ctx.rpc.get_account(SYSVAR_STAKE_HISTORY_ID)
    if account is None:
        raise AccountNotFoundError(SYSVAR_STAKE_HISTORY_ID)
    entries = decode_stake_history(account)
    return entries[:limit] if limit is not None else entries
