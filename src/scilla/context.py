"""Per-process state shared by every command: RPC client and fee payer."""

from pathlib import Path

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .config import Config
from .keypair import read_keypair_from_path
from .rpc import RpcClient


class Context:
    """
    RPC client and signing keypair for one process.

    The keypair is read on first use, so read-only commands work without a
    keypair file. Both are read-only once created.
    """

    def __init__(self, rpc: RpcClient, keypair_path: Path, keypair: Keypair | None = None):
        self.rpc = rpc
        self.keypair_path = keypair_path
        self._keypair = keypair

    @classmethod
    def from_config(cls, config: Config) -> "Context":
        rpc = RpcClient(
            config.rpc.url,
            commitment=config.rpc.commitment,
            timeout=config.rpc.timeout,
            poll_interval=config.rpc.poll_interval,
        )
        return cls(rpc, config.keypair_path)

    @property
    def keypair(self) -> Keypair:
        if self._keypair is None:
            self._keypair = read_keypair_from_path(self.keypair_path)
        return self._keypair

    @property
    def pubkey(self) -> Pubkey:
        return self.keypair.pubkey()

    @property
    def commitment(self) -> str:
        return self.rpc.commitment

    async def __aenter__(self) -> "Context":
        await self.rpc.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.rpc.__aexit__(exc_type, exc, tb)
