"""Read-only cluster queries."""

from dataclasses import dataclass
from typing import Any

from ..context import Context
from ..rpc import EpochInfo, InflationRate, Supply, VoteAccountStatus


@dataclass(frozen=True)
class BlockTime:
    slot: int
    timestamp: int | None


async def epoch_info(ctx: Context) -> EpochInfo:
    return await ctx.rpc.get_epoch_info()


async def current_slot(ctx: Context) -> int:
    return await ctx.rpc.get_slot()


async def block_height(ctx: Context) -> int:
    return await ctx.rpc.get_block_height()


async def block_time(ctx: Context, slot: int | None = None) -> BlockTime:
    """Estimated production time of `slot`, defaulting to the current slot."""
    if slot is None:
        slot = await ctx.rpc.get_slot()
    return BlockTime(slot, await ctx.rpc.get_block_time(slot))


async def validators(ctx: Context) -> VoteAccountStatus:
    return await ctx.rpc.get_vote_accounts()


async def cluster_version(ctx: Context) -> dict[str, Any]:
    return await ctx.rpc.get_version()


async def supply(ctx: Context) -> Supply:
    return await ctx.rpc.get_supply()


async def inflation(ctx: Context) -> InflationRate:
    return await ctx.rpc.get_inflation_rate()
