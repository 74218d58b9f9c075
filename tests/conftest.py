"""Pytest configuration and fixtures for scilla tests."""

from pathlib import Path

import pytest
from helpers import FakeRpc, system_account, write_keypair
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from scilla.context import Context


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's SCILLA_* variables out of every test."""
    for name in ("SCILLA_RPC_URL", "SCILLA_COMMITMENT", "SCILLA_KEYPAIR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def payer() -> Keypair:
    """Fee payer and default authority."""
    return Keypair()


@pytest.fixture
def stranger() -> Keypair:
    """A keypair with no authority over anything."""
    return Keypair()


@pytest.fixture
def voter() -> Pubkey:
    return Keypair().pubkey()


@pytest.fixture
def fake_rpc(payer: Keypair) -> FakeRpc:
    rpc = FakeRpc()
    rpc.accounts[payer.pubkey()] = system_account(100 * 1_000_000_000)
    return rpc


@pytest.fixture
def ctx(fake_rpc: FakeRpc, payer: Keypair) -> Context:
    return Context(fake_rpc, Path("unused.json"), keypair=payer)


@pytest.fixture
def keypair_file(tmp_path: Path, payer: Keypair) -> Path:
    """The payer written as a Solana CLI keypair file."""
    return write_keypair(payer, tmp_path / "id.json")


@pytest.fixture
def config_file(tmp_path: Path, keypair_file: Path) -> Path:
    """A config file pointing at a local cluster and the payer keypair."""
    path = tmp_path / "config.yaml"
    path.write_text(
        f"rpc_url: localhost\ncommitment: confirmed\nkeypair_path: {keypair_file}\n",
        encoding="utf-8",
    )
    return path
