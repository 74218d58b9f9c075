"""Wallet account commands."""

from solders import system_program
from solders.pubkey import Pubkey
from solders.signature import Signature

from ..context import Context
from ..errors import AccountNotFoundError, InsufficientBalanceError, SameAccountError
from ..lifecycle import reject
from ..models import SolAmount
from ..rpc import Account
from ..transaction import build_and_send_tx


async def fetch_account(ctx: Context, pubkey: Pubkey) -> Account:
    account = await ctx.rpc.get_account(pubkey)
    if account is None:
        raise AccountNotFoundError(pubkey)
    return account


async def get_balance(ctx: Context, pubkey: Pubkey | None = None) -> int:
    """Balance in lamports of `pubkey`, or of the fee payer."""
    return await ctx.rpc.get_balance(pubkey or ctx.pubkey)


async def request_airdrop(ctx: Context, amount: SolAmount, pubkey: Pubkey | None = None) -> Signature:
    """Ask the cluster's faucet for SOL; only devnet and testnet have one."""
    return await ctx.rpc.request_airdrop(pubkey or ctx.pubkey, amount.to_lamports())


async def transfer(ctx: Context, recipient: Pubkey, amount: SolAmount) -> Signature:
    """Send SOL from the fee payer to `recipient`."""
    if recipient == ctx.pubkey:
        raise reject(SameAccountError(recipient, "Recipient", "the sender"))

    lamports = amount.to_lamports()
    balance = await ctx.rpc.get_balance(ctx.pubkey)
    if lamports > balance:
        raise reject(InsufficientBalanceError(ctx.pubkey, lamports, balance))

    instruction = system_program.transfer(
        system_program.TransferParams(from_pubkey=ctx.pubkey, to_pubkey=recipient, lamports=lamports)
    )
    return await build_and_send_tx(ctx.rpc, [instruction], ctx.keypair)
