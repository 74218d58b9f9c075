"""Vote account commands."""

from dataclasses import dataclass

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from ..accounts import VoteState, decode_vote_account
from ..constants import VOTE_STATE_SIZE
from ..context import Context
from ..fetch import fetch_account_with_epoch
from ..lifecycle import vote as vote_lifecycle
from ..models import Commission, SolAmount
from ..programs import VoteAuthorize
from ..rpc import EpochInfo
from ..transaction import build_and_send_tx


@dataclass(frozen=True)
class VoteAccountView:
    """A decoded vote account as of `epoch_info`."""

    pubkey: Pubkey
    lamports: int
    state: VoteState
    epoch_info: EpochInfo

    @property
    def authorized_voter(self) -> Pubkey | None:
        return self.state.authorized_voter_for(self.epoch_info.epoch)


async def create_vote_account(
    ctx: Context,
    vote_keypair: Keypair,
    identity_keypair: Keypair,
    authorized_withdrawer: Pubkey,
    commission: Commission,
) -> Signature:
    """Create a vote account for `identity_keypair`, paid for by the fee payer."""
    vote_pubkey = vote_keypair.pubkey()
    identity = identity_keypair.pubkey()

    existing = await ctx.rpc.get_account(vote_pubkey)
    rent_exempt_minimum = await ctx.rpc.get_minimum_balance_for_rent_exemption(VOTE_STATE_SIZE)

    instructions = vote_lifecycle.validate_create(
        ctx.pubkey,
        vote_pubkey,
        identity,
        authorized_withdrawer,
        commission,
        rent_exempt_minimum,
        existing,
    )
    return await build_and_send_tx(
        ctx.rpc, instructions, ctx.keypair, [vote_keypair, identity_keypair]
    )


async def _authorize(
    ctx: Context, vote_pubkey: Pubkey, new_authority: Pubkey, vote_authorize: VoteAuthorize
) -> Signature:
    account, epoch_info = await fetch_account_with_epoch(ctx.rpc, vote_pubkey)
    state = decode_vote_account(vote_pubkey, account)
    instructions = vote_lifecycle.validate_authorize(
        vote_pubkey, state, ctx.pubkey, new_authority, vote_authorize, epoch_info.epoch
    )
    return await build_and_send_tx(ctx.rpc, instructions, ctx.keypair)


async def authorize_voter(ctx: Context, vote_pubkey: Pubkey, new_voter: Pubkey) -> Signature:
    """Rotate the authorized voter; signed by the current voter or the withdrawer."""
    return await _authorize(ctx, vote_pubkey, new_voter, VoteAuthorize.VOTER)


async def authorize_withdrawer(
    ctx: Context, vote_pubkey: Pubkey, new_withdrawer: Pubkey
) -> Signature:
    """Rotate the authorized withdrawer; signed by the current withdrawer."""
    return await _authorize(ctx, vote_pubkey, new_withdrawer, VoteAuthorize.WITHDRAWER)


async def withdraw_from_vote_account(
    ctx: Context, vote_pubkey: Pubkey, recipient: Pubkey, amount: SolAmount
) -> Signature:
    account, _ = await fetch_account_with_epoch(ctx.rpc, vote_pubkey)
    state = decode_vote_account(vote_pubkey, account)
    rent_exempt_minimum = await ctx.rpc.get_minimum_balance_for_rent_exemption(len(account.data))
    instructions = vote_lifecycle.validate_withdraw(
        vote_pubkey,
        state,
        ctx.pubkey,
        recipient,
        amount.to_lamports(),
        account.lamports,
        rent_exempt_minimum,
    )
    return await build_and_send_tx(ctx.rpc, instructions, ctx.keypair)


async def close_vote_account(ctx: Context, vote_pubkey: Pubkey, recipient: Pubkey) -> Signature:
    """
    Close a vote account by withdrawing its entire balance to `recipient`.

    Activated stake comes from the cluster's vote-accounts view, since it is
    not recorded in the account itself.
    """
    account, _ = await fetch_account_with_epoch(ctx.rpc, vote_pubkey)
    state = decode_vote_account(vote_pubkey, account)
    status = await ctx.rpc.get_vote_accounts(vote_pubkey)

    instructions = vote_lifecycle.validate_close(
        vote_pubkey, state, ctx.pubkey, recipient, account.lamports, status.find(vote_pubkey)
    )
    return await build_and_send_tx(ctx.rpc, instructions, ctx.keypair)


async def show_vote_account(ctx: Context, vote_pubkey: Pubkey) -> VoteAccountView:
    account, epoch_info = await fetch_account_with_epoch(ctx.rpc, vote_pubkey)
    state = decode_vote_account(vote_pubkey, account)
    return VoteAccountView(vote_pubkey, account.lamports, state, epoch_info)
