"""Epoch-aware account fetching.

Lifecycle checks compare account state against the current epoch, so the
account(s) and the epoch are read concurrently to keep the window between
the two snapshots small. If either read fails the whole fetch fails.
"""

import asyncio

from solders.pubkey import Pubkey

from .errors import AccountNotFoundError
from .rpc import Account, EpochInfo, RpcClient


async def fetch_account_with_epoch(rpc: RpcClient, pubkey: Pubkey) -> tuple[Account, EpochInfo]:
    """
    Fetch one account together with the current epoch.

    Raises:
        AccountNotFoundError: If the account does not exist
        TransportError: If either RPC call fails
    """
    account, epoch_info = await asyncio.gather(rpc.get_account(pubkey), rpc.get_epoch_info())
    if account is None:
        raise AccountNotFoundError(pubkey)
    return account, epoch_info


async def fetch_accounts_with_epoch(
    rpc: RpcClient, pubkeys: list[Pubkey]
) -> tuple[list[Account], EpochInfo]:
    """
    Fetch several accounts, positionally, together with the current epoch.

    Raises:
        AccountNotFoundError: Naming the first requested account that is missing
        TransportError: If either RPC call fails
    """
    accounts, epoch_info = await asyncio.gather(
        rpc.get_multiple_accounts(pubkeys), rpc.get_epoch_info()
    )
    found: list[Account] = []
    for pubkey, account in zip(pubkeys, accounts):
        if account is None:
            raise AccountNotFoundError(pubkey)
        found.append(account)
    return found, epoch_info
