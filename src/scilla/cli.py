"""CLI for scilla.

Command groups:
- cluster: Epoch, slot, block height/time, validators, version, supply, inflation
- account: Fetch, balance, airdrop, transfer
- stake: Create, delegate, deactivate, withdraw, merge, split, show, history
- vote: Create, authorize voter/withdrawer, withdraw, close, show
- tx: Confirmation, status, fetch, send
- config: Show, generate, edit

Missing required values are prompted for; invalid values are re-prompted.
"""

import asyncio
import json
import logging
import sys
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import click
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from .accounts import Delegated, Initialized
from .commands import account as account_cmd
from .commands import cluster as cluster_cmd
from .commands import stake as stake_cmd
from .commands import transaction as tx_cmd
from .commands import vote as vote_cmd
from .config import (
    DEFAULT_CONFIG_PATH,
    Config,
    ConfigError,
    describe_config,
    load_config,
    save_config,
)
from .context import Context
from .errors import InvalidInputError, ScillaError
from .keypair import read_keypair_from_path
from .logging import setup_logging
from .models import Commission, SolAmount, lamports_to_sol, parse_pubkey, parse_signature

T = TypeVar("T")


class PubkeyType(click.ParamType):
    name = "pubkey"

    def convert(self, value: Any, param, ctx) -> Pubkey:
        if isinstance(value, Pubkey):
            return value
        field_name = param.human_readable_name if param is not None else "address"
        try:
            return parse_pubkey(str(value), field_name)
        except InvalidInputError as e:
            self.fail(str(e), param, ctx)


class SolAmountType(click.ParamType):
    name = "sol"

    def convert(self, value: Any, param, ctx) -> SolAmount:
        if isinstance(value, SolAmount):
            return value
        try:
            return SolAmount.parse(str(value))
        except InvalidInputError as e:
            self.fail(str(e), param, ctx)


class CommissionType(click.ParamType):
    name = "percent"

    def convert(self, value: Any, param, ctx) -> Commission:
        if isinstance(value, Commission):
            return value
        try:
            return Commission.parse(str(value))
        except InvalidInputError as e:
            self.fail(str(e), param, ctx)


class SignatureType(click.ParamType):
    name = "signature"

    def convert(self, value: Any, param, ctx) -> Signature:
        if isinstance(value, Signature):
            return value
        try:
            return parse_signature(str(value))
        except InvalidInputError as e:
            self.fail(str(e), param, ctx)


PUBKEY = PubkeyType()
SOL = SolAmountType()
COMMISSION = CommissionType()
SIGNATURE = SignatureType()
KEYPAIR_PATH = click.Path(dir_okay=False, path_type=Path)


def _fail(error: Exception) -> NoReturn:
    click.echo(click.style(f"Error: {error}", fg="red"), err=True)
    sys.exit(1)


def _config(ctx: click.Context) -> Config:
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = load_config(ctx.obj["config_path"])
        except ConfigError as e:
            _fail(e)
    return ctx.obj["config"]


def _run(ctx: click.Context, operation: Callable[[Context], Awaitable[T]]) -> T:
    """Run one async operation against a fresh Context; errors end the command."""
    config = _config(ctx)

    async def runner() -> T:
        async with Context.from_config(config) as scilla_ctx:
            return await operation(scilla_ctx)

    try:
        return asyncio.run(runner())
    except ScillaError as e:
        _fail(e)


def _sol(lamports: int) -> str:
    return f"{lamports_to_sol(lamports).normalize():f} SOL"


def _echo_field(label: str, value: Any) -> None:
    click.echo(f"  {label + ':':<22}{value}")


def _echo_signature(signature: Signature) -> None:
    click.echo(f"{click.style('✓', fg='green')} Signature: {signature}")


def _load_or_generate(path: Path | None, label: str) -> Keypair:
    """Read a keypair from `path`, or generate a fresh one."""
    if path is not None:
        return read_keypair_from_path(path)
    keypair = Keypair()
    click.echo(f"Generated new {label} keypair: {keypair.pubkey()}")
    return keypair


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    help="Config file (default: ~/.config/scilla/config.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log RPC traffic")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON")
@click.pass_context
def main(ctx, config_path: Path, verbose: bool, json_logs: bool):
    """Scilla - Solana cluster, stake and vote account management."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    setup_logging(level=logging.DEBUG if verbose else logging.WARNING, json_format=json_logs)


# ---------------------------------------------------------------------------
# cluster
# ---------------------------------------------------------------------------


@main.group()
def cluster():
    """Query cluster state."""


@cluster.command("epoch-info")
@click.pass_context
def epoch_info(ctx):
    """Show the current epoch and progress through it."""
    info = _run(ctx, cluster_cmd.epoch_info)
    click.echo("Epoch info:")
    _echo_field("Epoch", info.epoch)
    _echo_field("Slot index", f"{info.slot_index}/{info.slots_in_epoch}")
    _echo_field("Progress", f"{info.progress:.2%}")
    _echo_field("Absolute slot", info.absolute_slot)
    _echo_field("Block height", info.block_height)
    if info.transaction_count is not None:
        _echo_field("Transaction count", info.transaction_count)


@cluster.command()
@click.pass_context
def slot(ctx):
    """Show the current slot."""
    click.echo(_run(ctx, cluster_cmd.current_slot))


@cluster.command("block-height")
@click.pass_context
def block_height(ctx):
    """Show the current block height."""
    click.echo(_run(ctx, cluster_cmd.block_height))


@cluster.command("block-time")
@click.option("--slot", "slot_number", type=int, help="Slot (default: current)")
@click.pass_context
def block_time(ctx, slot_number: int | None):
    """Show the estimated production time of a slot."""
    result = _run(ctx, lambda c: cluster_cmd.block_time(c, slot_number))
    timestamp = result.timestamp if result.timestamp is not None else "unavailable"
    click.echo(f"Slot {result.slot}: {timestamp}")


@cluster.command()
@click.pass_context
def validators(ctx):
    """List current and delinquent validators."""
    status = _run(ctx, cluster_cmd.validators)
    for label, entries in (("Current", status.current), ("Delinquent", status.delinquent)):
        click.echo(f"{label} validators ({len(entries)}):")
        for info in sorted(entries, key=lambda i: i.activated_stake, reverse=True):
            click.echo(
                f"  {info.vote_pubkey}  node {info.node_pubkey}  "
                f"{_sol(info.activated_stake)}  {info.commission}%"
            )


@cluster.command()
@click.pass_context
def version(ctx):
    """Show the cluster's software version."""
    result = _run(ctx, cluster_cmd.cluster_version)
    _echo_field("Solana core", result.get("solana-core", "unknown"))
    if "feature-set" in result:
        _echo_field("Feature set", result["feature-set"])


@cluster.command()
@click.pass_context
def supply(ctx):
    """Show total and circulating supply."""
    result = _run(ctx, cluster_cmd.supply)
    _echo_field("Total", _sol(result.total))
    _echo_field("Circulating", _sol(result.circulating))
    _echo_field("Non-circulating", _sol(result.non_circulating))


@cluster.command()
@click.pass_context
def inflation(ctx):
    """Show inflation rates for the current epoch."""
    result = _run(ctx, cluster_cmd.inflation)
    _echo_field("Epoch", result.epoch)
    _echo_field("Total", f"{result.total:.4%}")
    _echo_field("Validator", f"{result.validator:.4%}")
    _echo_field("Foundation", f"{result.foundation:.4%}")


# ---------------------------------------------------------------------------
# account
# ---------------------------------------------------------------------------


@main.group()
def account():
    """Inspect and fund wallet accounts."""


@account.command("fetch")
@click.argument("address", type=PUBKEY)
@click.pass_context
def account_fetch(ctx, address: Pubkey):
    """Show an account's owner, balance and data size."""
    result = _run(ctx, lambda c: account_cmd.fetch_account(c, address))
    click.echo(f"Account {address}:")
    _echo_field("Balance", _sol(result.lamports))
    _echo_field("Owner", result.owner)
    _echo_field("Executable", result.executable)
    _echo_field("Data length", f"{len(result.data)} bytes")
    _echo_field("Rent epoch", result.rent_epoch)


@account.command()
@click.argument("address", type=PUBKEY, required=False)
@click.pass_context
def balance(ctx, address: Pubkey | None):
    """Show the balance of ADDRESS (default: the configured keypair)."""
    lamports = _run(ctx, lambda c: account_cmd.get_balance(c, address))
    click.echo(_sol(lamports))


@account.command()
@click.option("--amount", type=SOL, prompt="Amount (SOL)")
@click.option("--to", "recipient", type=PUBKEY, help="Recipient (default: the configured keypair)")
@click.pass_context
def airdrop(ctx, amount: SolAmount, recipient: Pubkey | None):
    """Request SOL from the cluster faucet."""
    _echo_signature(_run(ctx, lambda c: account_cmd.request_airdrop(c, amount, recipient)))


@account.command()
@click.option("--to", "recipient", type=PUBKEY, prompt="Recipient address")
@click.option("--amount", type=SOL, prompt="Amount (SOL)")
@click.pass_context
def transfer(ctx, recipient: Pubkey, amount: SolAmount):
    """Send SOL from the configured keypair."""
    _echo_signature(_run(ctx, lambda c: account_cmd.transfer(c, recipient, amount)))


# ---------------------------------------------------------------------------
# stake
# ---------------------------------------------------------------------------


@main.group()
def stake():
    """Manage stake accounts."""


@stake.command("create")
@click.option("--amount", type=SOL, prompt="Amount to stake (SOL)")
@click.option("--stake-keypair", type=KEYPAIR_PATH, help="Keypair for the new account (default: generate)")
@click.option("--staker", type=PUBKEY, help="Stake authority (default: the configured keypair)")
@click.option("--withdrawer", type=PUBKEY, help="Withdraw authority (default: the configured keypair)")
@click.pass_context
def stake_create(ctx, amount: SolAmount, stake_keypair: Path | None, staker, withdrawer):
    """Create and initialize a stake account."""

    async def operation(c: Context) -> Signature:
        keypair = _load_or_generate(stake_keypair, "stake account")
        return await stake_cmd.create_stake_account(c, keypair, amount, staker, withdrawer)

    _echo_signature(_run(ctx, operation))


@stake.command("delegate")
@click.option("--stake", "stake_pubkey", type=PUBKEY, prompt="Stake account address")
@click.option("--vote", "vote_pubkey", type=PUBKEY, prompt="Vote account address")
@click.pass_context
def stake_delegate(ctx, stake_pubkey: Pubkey, vote_pubkey: Pubkey):
    """Delegate a stake account to a validator."""
    _echo_signature(_run(ctx, lambda c: stake_cmd.delegate_stake(c, stake_pubkey, vote_pubkey)))


@stake.command("deactivate")
@click.option("--stake", "stake_pubkey", type=PUBKEY, prompt="Stake account address")
@click.pass_context
def stake_deactivate(ctx, stake_pubkey: Pubkey):
    """Deactivate a delegated stake."""
    _echo_signature(_run(ctx, lambda c: stake_cmd.deactivate_stake(c, stake_pubkey)))


@stake.command("withdraw")
@click.option("--stake", "stake_pubkey", type=PUBKEY, prompt="Stake account address")
@click.option("--to", "recipient", type=PUBKEY, prompt="Recipient address")
@click.option("--amount", type=SOL, prompt="Amount (SOL)")
@click.option("--custodian-keypair", type=KEYPAIR_PATH, help="Lockup custodian keypair")
@click.pass_context
def stake_withdraw(ctx, stake_pubkey: Pubkey, recipient: Pubkey, amount: SolAmount, custodian_keypair):
    """Withdraw from an inactive stake account."""

    async def operation(c: Context) -> Signature:
        custodian = read_keypair_from_path(custodian_keypair) if custodian_keypair else None
        return await stake_cmd.withdraw_stake(c, stake_pubkey, recipient, amount, custodian)

    _echo_signature(_run(ctx, operation))


@stake.command("merge")
@click.option("--destination", type=PUBKEY, prompt="Destination stake account")
@click.option("--source", type=PUBKEY, prompt="Source stake account (will be closed)")
@click.pass_context
def stake_merge(ctx, destination: Pubkey, source: Pubkey):
    """Merge one stake account into another."""
    _echo_signature(_run(ctx, lambda c: stake_cmd.merge_stake(c, destination, source)))


@stake.command("split")
@click.option("--stake", "stake_pubkey", type=PUBKEY, prompt="Stake account address")
@click.option("--amount", type=SOL, prompt="Amount to split off (SOL)")
@click.option("--split-keypair", type=KEYPAIR_PATH, help="Keypair for the new account (default: generate)")
@click.pass_context
def stake_split(ctx, stake_pubkey: Pubkey, amount: SolAmount, split_keypair: Path | None):
    """Split part of a stake account into a new account."""

    async def operation(c: Context) -> Signature:
        keypair = _load_or_generate(split_keypair, "split stake account")
        return await stake_cmd.split_stake(c, stake_pubkey, keypair, amount)

    _echo_signature(_run(ctx, operation))


@stake.command("show")
@click.argument("address", type=PUBKEY)
@click.pass_context
def stake_show(ctx, address: Pubkey):
    """Show a stake account."""
    view = _run(ctx, lambda c: stake_cmd.show_stake(c, address))
    state = view.state

    click.echo(f"Stake account {view.pubkey}:")
    _echo_field("Balance", _sol(view.lamports))
    _echo_field("Status", view.status)
    if isinstance(state, (Initialized, Delegated)):
        meta = state.meta
        _echo_field("Rent-exempt reserve", _sol(meta.rent_exempt_reserve))
        _echo_field("Stake authority", meta.authorized.staker)
        _echo_field("Withdraw authority", meta.authorized.withdrawer)
        if meta.lockup.is_in_force(view.epoch_info.epoch, int(time.time())):
            _echo_field("Lockup epoch", meta.lockup.epoch)
            _echo_field("Lockup unix time", meta.lockup.unix_timestamp)
            _echo_field("Lockup custodian", meta.lockup.custodian)
    if isinstance(state, Delegated):
        delegation = state.delegation
        _echo_field("Delegated to", delegation.voter_pubkey)
        _echo_field("Delegated stake", _sol(delegation.stake))
        _echo_field("Activation epoch", delegation.activation_epoch)
        if delegation.is_deactivating:
            _echo_field("Deactivation epoch", delegation.deactivation_epoch)
        _echo_field("Credits observed", state.credits_observed)
    _echo_field("Current epoch", view.epoch_info.epoch)


@stake.command("history")
@click.option("--limit", "-n", default=10, help="Number of epochs to show")
@click.pass_context
def stake_history(ctx, limit: int):
    """Show cluster-wide stake history."""
    entries = _run(ctx, lambda c: stake_cmd.stake_history(c, limit))
    click.echo(f"{'Epoch':>8}  {'Effective':>22}  {'Activating':>22}  {'Deactivating':>22}")
    for entry in entries:
        click.echo(
            f"{entry.epoch:>8}  {_sol(entry.effective):>22}  "
            f"{_sol(entry.activating):>22}  {_sol(entry.deactivating):>22}"
        )


# ---------------------------------------------------------------------------
# vote
# ---------------------------------------------------------------------------


@main.group()
def vote():
    """Manage validator vote accounts."""


@vote.command("create")
@click.option("--vote-keypair", type=KEYPAIR_PATH, prompt="Vote account keypair path")
@click.option("--identity-keypair", type=KEYPAIR_PATH, prompt="Validator identity keypair path")
@click.option("--withdrawer", type=PUBKEY, prompt="Withdraw authority address")
@click.option("--commission", type=COMMISSION, prompt="Commission (0-100)", default="0")
@click.pass_context
def vote_create(ctx, vote_keypair: Path, identity_keypair: Path, withdrawer: Pubkey, commission: Commission):
    """Create a vote account."""

    async def operation(c: Context) -> Signature:
        return await vote_cmd.create_vote_account(
            c,
            read_keypair_from_path(vote_keypair),
            read_keypair_from_path(identity_keypair),
            withdrawer,
            commission,
        )

    _echo_signature(_run(ctx, operation))


@vote.command("authorize-voter")
@click.option("--vote", "vote_pubkey", type=PUBKEY, prompt="Vote account address")
@click.option("--new-voter", type=PUBKEY, prompt="New authorized voter")
@click.pass_context
def vote_authorize_voter(ctx, vote_pubkey: Pubkey, new_voter: Pubkey):
    """Change the authorized voter."""
    _echo_signature(_run(ctx, lambda c: vote_cmd.authorize_voter(c, vote_pubkey, new_voter)))


@vote.command("authorize-withdrawer")
@click.option("--vote", "vote_pubkey", type=PUBKEY, prompt="Vote account address")
@click.option("--new-withdrawer", type=PUBKEY, prompt="New authorized withdrawer")
@click.pass_context
def vote_authorize_withdrawer(ctx, vote_pubkey: Pubkey, new_withdrawer: Pubkey):
    """Change the authorized withdrawer."""
    _echo_signature(
        _run(ctx, lambda c: vote_cmd.authorize_withdrawer(c, vote_pubkey, new_withdrawer))
    )


@vote.command("withdraw")
@click.option("--vote", "vote_pubkey", type=PUBKEY, prompt="Vote account address")
@click.option("--to", "recipient", type=PUBKEY, prompt="Recipient address")
@click.option("--amount", type=SOL, prompt="Amount (SOL)")
@click.pass_context
def vote_withdraw(ctx, vote_pubkey: Pubkey, recipient: Pubkey, amount: SolAmount):
    """Withdraw from a vote account."""
    _echo_signature(
        _run(ctx, lambda c: vote_cmd.withdraw_from_vote_account(c, vote_pubkey, recipient, amount))
    )


@vote.command("close")
@click.option("--vote", "vote_pubkey", type=PUBKEY, prompt="Vote account address")
@click.option("--to", "recipient", type=PUBKEY, prompt="Recipient address")
@click.confirmation_option(prompt="Withdraw the entire balance and close the vote account?")
@click.pass_context
def vote_close(ctx, vote_pubkey: Pubkey, recipient: Pubkey):
    """Close a vote account with no active stake."""
    _echo_signature(_run(ctx, lambda c: vote_cmd.close_vote_account(c, vote_pubkey, recipient)))


@vote.command("show")
@click.argument("address", type=PUBKEY)
@click.pass_context
def vote_show(ctx, address: Pubkey):
    """Show a vote account."""
    view = _run(ctx, lambda c: vote_cmd.show_vote_account(c, address))
    state = view.state

    click.echo(f"Vote account {view.pubkey}:")
    _echo_field("Balance", _sol(view.lamports))
    _echo_field("Layout version", state.version)
    _echo_field("Validator identity", state.node_pubkey)
    _echo_field("Vote authority", view.authorized_voter or state.latest_authorized_voter)
    _echo_field("Withdraw authority", state.authorized_withdrawer)
    _echo_field("Credits", state.credits)
    _echo_field("Commission", f"{state.commission}%")
    _echo_field("Root slot", state.root_slot if state.root_slot is not None else "~")
    _echo_field(
        "Last timestamp",
        f"slot {state.last_timestamp.slot}, unix {state.last_timestamp.timestamp}",
    )


# ---------------------------------------------------------------------------
# tx
# ---------------------------------------------------------------------------


@main.group()
def tx():
    """Look up and submit transactions."""


@tx.command("confirm")
@click.argument("signature", type=SIGNATURE)
@click.pass_context
def tx_confirm(ctx, signature: Signature):
    """Check whether a transaction reached the configured commitment."""
    confirmed = _run(ctx, lambda c: tx_cmd.check_confirmation(c, signature))
    if confirmed:
        click.echo(click.style("Confirmed", fg="green"))
    else:
        click.echo(click.style("Not confirmed", fg="yellow"))


@tx.command("status")
@click.argument("signature", type=SIGNATURE)
@click.pass_context
def tx_status(ctx, signature: Signature):
    """Show a transaction's status."""
    status = _run(ctx, lambda c: tx_cmd.signature_status(c, signature))
    if status is None:
        click.echo("Transaction not found")
        return
    _echo_field("Slot", status.slot)
    _echo_field("Confirmations", status.confirmations if status.confirmations is not None else "rooted")
    _echo_field("Status", status.confirmation_status or "unknown")
    _echo_field("Error", status.err if status.err is not None else "none")


@tx.command("fetch")
@click.argument("signature", type=SIGNATURE)
@click.pass_context
def tx_fetch(ctx, signature: Signature):
    """Print a transaction as parsed JSON."""
    result = _run(ctx, lambda c: tx_cmd.fetch_transaction(c, signature))
    if result is None:
        click.echo("Transaction not found")
        return
    click.echo(json.dumps(result, indent=2))


@tx.command("send")
@click.argument("encoded")
@click.pass_context
def tx_send(ctx, encoded: str):
    """Submit a signed base64-encoded transaction."""
    _echo_signature(_run(ctx, lambda c: tx_cmd.send_encoded_transaction(c, encoded)))


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@main.group("config")
def config_group():
    """Show or edit the configuration file."""


@config_group.command("show")
@click.pass_context
def config_show(ctx):
    """Show the effective configuration."""
    click.echo(f"Config file:  {ctx.obj['config_path']}")
    click.echo(describe_config(_config(ctx)))


@config_group.command("generate")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def config_generate(ctx, force: bool):
    """Write a config file with default values."""
    path: Path = ctx.obj["config_path"]
    if path.exists() and not force:
        _fail(ConfigError(f"{path} already exists; use --force to overwrite"))
    save_config(Config(), path)
    click.echo(f"Wrote {path}")


@config_group.command("edit")
@click.pass_context
def config_edit(ctx):
    """Open the config file in $EDITOR."""
    path: Path = ctx.obj["config_path"]
    if not path.exists():
        save_config(Config(), path)
    click.edit(filename=str(path))
    try:
        load_config(path)
    except ConfigError as e:
        _fail(e)
    click.echo(f"Saved {path}")


if __name__ == "__main__":
    main()
