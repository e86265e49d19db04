# staking_client/cli/main.py

#!/usr/bin/env python3

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from .. import __version__
from ..account import StakingWallet, parse_pubkey
from ..config.config_loader import ResolvedProgramConfig, load_deployments, resolve_program_config
from ..config.settings import Settings, configure_logging, logger
from ..core_client.program_client import STAKE_TERMS, UNSTAKE_TIERS, StakingProgramClient
from ..errors import StakingClientError, extract_program_logs
from ..interface import ProgramInterface, load_idl
from ..service.transaction_service import (
    TransactionResult,
    initialize_staking_account,
    stake_tokens,
    unstake_tokens,
)


@dataclass
class ClientContext:
    """Everything a command needs before it talks to the cluster"""

    settings: Settings
    program_config: ResolvedProgramConfig
    interface: ProgramInterface
    wallet: StakingWallet


def _settings_from_options(options: Dict[str, Any]) -> Settings:
    overrides = {
        "ANCHOR_PROVIDER_URL": options.get("url") or options.get("cluster"),
        "ANCHOR_WALLET": options.get("wallet"),
        "STAKING_CLUSTER": options.get("cluster"),
        "STAKING_IDL_PATH": options.get("idl"),
        "STAKING_PROGRAM_ID": options.get("program_id"),
        "STAKING_COMMITMENT": options.get("commitment"),
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def load_client_context(options: Dict[str, Any]) -> ClientContext:
    """Resolve settings, deployment addresses, IDL and payer wallet"""
    settings = _settings_from_options(options)
    program_config = resolve_program_config(
        settings,
        load_deployments(settings.STAKING_DEPLOYMENT_FILE),
        overrides={"owner": options.get("owner"), "token_mint": options.get("token_mint")},
    )
    interface = load_idl(settings.STAKING_IDL_PATH)
    wallet = StakingWallet.from_file(settings.ANCHOR_WALLET)
    return ClientContext(settings, program_config, interface, wallet)


def make_client(context: ClientContext) -> StakingProgramClient:
    return StakingProgramClient(
        rpc_url=context.settings.ANCHOR_PROVIDER_URL,
        wallet=context.wallet,
        interface=context.interface,
        program_id=context.program_config.program_id,
        commitment=context.settings.STAKING_COMMITMENT,
    )


COMMON_OPTIONS = [
    click.option("--url", help="RPC URL or cluster name (overrides ANCHOR_PROVIDER_URL)."),
    click.option("--wallet", type=click.Path(dir_okay=False), help="Payer keypair file (overrides ANCHOR_WALLET)."),
    click.option(
        "--cluster",
        type=click.Choice(["devnet", "testnet", "mainnet", "localnet"]),
        help="Deployment profile for program addresses (also the RPC URL unless --url is given).",
    ),
    click.option("--idl", type=click.Path(dir_okay=False), help="Program IDL JSON file."),
    click.option("--program-id", help="Staking program address."),
    click.option(
        "--commitment",
        type=click.Choice(["processed", "confirmed", "finalized"]),
        help="Commitment level for submit and fetch.",
    ),
]


def common_options(func):
    """Connection options shared by every on-chain command"""
    for option in reversed(COMMON_OPTIONS):
        func = option(func)
    return func


def _print_logs(console: Console, logs: List[str]):
    if not logs:
        console.print("[yellow]No log messages returned.[/yellow]")
        return
    for line in logs:
        console.print(line, markup=False, highlight=False, soft_wrap=True)


def _submitted_printer(console: Console):
    """Progress output for the moment a transaction is confirmed"""

    def on_submitted(signature):
        console.print(f"✅ Signature: [bold green]{signature}[/bold green]", soft_wrap=True)
        console.print("Fetching transaction logs...")

    return on_submitted


def _print_result(console: Console, result: TransactionResult):
    _print_logs(console, result.logs)
    console.print("[bold green]Success[/bold green]")


def _fail(console: Console, error: BaseException):
    """Single reporting point for any failure of a command"""
    console.print(f"[bold red]Transaction failed:[/bold red] {error}", highlight=False)
    signature = getattr(error, "signature", None)
    if signature:
        console.print(
            f"Transaction {signature} was submitted; its logs could not be fetched.",
            highlight=False,
            soft_wrap=True,
        )
    logs = extract_program_logs(error)
    if logs:
        console.print("[bold yellow]Program logs:[/bold yellow]")
        _print_logs(console, logs)
    logger.debug("Command failed", exc_info=error)
    raise SystemExit(1)


def _load_or_fail(console: Console, options: Dict[str, Any]) -> ClientContext:
    try:
        return load_client_context(options)
    except (StakingClientError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}", highlight=False)
        raise SystemExit(1)


# ------------------------------------------------------------------------------
# ROOT COMMAND GROUP
# ------------------------------------------------------------------------------
@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL for this run.")
def stakingctl(log_level):
    """
    🪙 Commands for the token staking program (initialize, stake, unstake, inspect).
    """
    if log_level:
        configure_logging(log_level)


# ------------------------------------------------------------------------------
# INITIALIZE COMMAND
# ------------------------------------------------------------------------------
@stakingctl.command("initialize")
@common_options
@click.option("--owner", help="Owner recorded on the staking account (defaults to deployment owner).")
@click.option("--token-mint", help="Mint of the staked token (defaults to deployment mint).")
@click.option(
    "--staking-keypair",
    type=click.Path(dir_okay=False),
    help="Use this keypair for the staking account instead of generating one.",
)
@click.option(
    "--save-keypair",
    type=click.Path(dir_okay=False),
    help="Write the staking account keypair to this file.",
)
def initialize_cmd(staking_keypair, save_keypair, **options):
    """
    🏗️ Create and initialize a new staking account.

    Examples:
    \b
    • Initialize on devnet with the default wallet:
      stakingctl initialize

    • Use a specific payer and owner:
      stakingctl initialize --wallet ./payer.json --owner 6JxL...
    """
    console = Console()
    console.print("Running client...")
    context = _load_or_fail(console, options)

    try:
        staking_account = (
            StakingWallet.from_file(staking_keypair)
            if staking_keypair
            else StakingWallet.generate()
        )
        console.print(
            f"Staking Account PublicKey: [bold blue]{staking_account.address}[/bold blue]"
        )
        if save_keypair:
            path = staking_account.save(save_keypair)
            console.print(f"💾 Staking account keypair saved to [green]{path}[/green]")

        result = asyncio.run(_run_initialize(context, staking_account, _submitted_printer(console)))
    except Exception as e:
        _fail(console, e)

    _print_result(console, result)


async def _run_initialize(context: ClientContext, staking_account: StakingWallet, on_submitted) -> TransactionResult:
    async with make_client(context) as client:
        return await initialize_staking_account(
            client, context.program_config, staking_account, on_submitted=on_submitted
        )


# ------------------------------------------------------------------------------
# STAKE / UNSTAKE COMMANDS
# ------------------------------------------------------------------------------
TRANSFER_OPTIONS = [
    click.option("--amount", required=True, type=click.IntRange(min=1), help="Amount in token base units."),
    click.option("--from", "from_account", required=True, help="Source token account."),
    click.option("--to", "to_account", required=True, help="Destination token account."),
    click.option("--staking-account", required=True, help="StakingAccount address created by initialize."),
    click.option("--yes", is_flag=True, help="Skip confirmation prompt."),
]


def transfer_options(func):
    for option in reversed(TRANSFER_OPTIONS):
        func = option(func)
    return func


def _confirm_transfer(console: Console, action: str, amount: int, from_account, to_account, staking_account, yes: bool):
    console.print(f"⛏️ Preparing {action} transaction...")
    console.print(f"  From: [blue]{from_account}[/blue]")
    console.print(f"  To: [green]{to_account}[/green]")
    console.print(f"  Staking account: [blue]{staking_account}[/blue]")
    console.print(f"  Amount: [yellow]{amount:,}[/yellow] base units")
    if not yes:
        click.confirm(f"Do you want to proceed with this {action} transaction?", abort=True)


@stakingctl.command("stake")
@common_options
@click.option(
    "--term",
    required=True,
    type=click.Choice(sorted(STAKE_TERMS)),
    help="Lock-up term.",
)
@transfer_options
def stake_cmd(term, amount, from_account, to_account, staking_account, yes, **options):
    """
    ⛏️ Stake tokens into a staking account.

    Examples:
    \b
      stakingctl stake --term 24m --amount 1000000 --from <src> --to <vault> --staking-account <addr>
    """
    console = Console()
    context = _load_or_fail(console, options)
    _confirm_transfer(console, f"stake {term}", amount, from_account, to_account, staking_account, yes)

    try:
        result = asyncio.run(
            _run_transfer(
                context,
                stake_tokens,
                term=term,
                amount=amount,
                from_account=parse_pubkey(from_account, "from"),
                to_account=parse_pubkey(to_account, "to"),
                staking_account=parse_pubkey(staking_account, "staking account"),
                on_submitted=_submitted_printer(console),
            )
        )
    except Exception as e:
        _fail(console, e)

    _print_result(console, result)


@stakingctl.command("unstake")
@common_options
@click.option(
    "--tier",
    required=True,
    type=click.Choice(sorted(UNSTAKE_TIERS)),
    help="Unstake tier.",
)
@transfer_options
def unstake_cmd(tier, amount, from_account, to_account, staking_account, yes, **options):
    """
    🔓 Unstake tokens from a staking account. The payer wallet must be its owner.
    """
    console = Console()
    context = _load_or_fail(console, options)
    _confirm_transfer(console, f"unstake {tier}", amount, from_account, to_account, staking_account, yes)

    try:
        result = asyncio.run(
            _run_transfer(
                context,
                unstake_tokens,
                tier=tier,
                amount=amount,
                from_account=parse_pubkey(from_account, "from"),
                to_account=parse_pubkey(to_account, "to"),
                staking_account=parse_pubkey(staking_account, "staking account"),
                on_submitted=_submitted_printer(console),
            )
        )
    except Exception as e:
        _fail(console, e)

    _print_result(console, result)


async def _run_transfer(context: ClientContext, operation, **kwargs) -> TransactionResult:
    async with make_client(context) as client:
        return await operation(client, context.program_config, **kwargs)


# ------------------------------------------------------------------------------
# QUERY COMMANDS
# ------------------------------------------------------------------------------
@stakingctl.command("account")
@common_options
@click.argument("address")
def account_cmd(address, **options):
    """🔍 Show the contents of a staking account."""
    console = Console()
    context = _load_or_fail(console, options)

    try:
        info = asyncio.run(_run_fetch_account(context, parse_pubkey(address, "staking account")))
    except Exception as e:
        _fail(console, e)

    table = Table(title="Staking Account", box=box.ROUNDED)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Address", info.address)
    table.add_row("Owner", info.owner)
    table.add_row("Token mint", info.token_mint)
    table.add_row("Token account", info.token_account)
    table.add_row("Initialized", "yes" if info.is_initialized else "no")
    console.print(table)


async def _run_fetch_account(context: ClientContext, address):
    async with make_client(context) as client:
        return await client.fetch_staking_account(address)


@stakingctl.command("logs")
@common_options
@click.argument("signature")
def logs_cmd(signature, **options):
    """📜 Print the log messages of a confirmed transaction."""
    console = Console()
    context = _load_or_fail(console, options)

    try:
        logs = asyncio.run(_run_fetch_logs(context, signature))
    except Exception as e:
        _fail(console, e)

    _print_logs(console, logs)


async def _run_fetch_logs(context: ClientContext, signature: str) -> List[str]:
    async with make_client(context) as client:
        return await client.get_transaction_logs(signature)


@stakingctl.command()
def version():
    """Show version information"""
    console = Console()
    console.print(
        Panel.fit(
            f"[bold bright_cyan]Token staking client[/]\n"
            f"[bright_green]Version:[/] [bold bright_yellow]{__version__}[/]",
            border_style="bright_magenta",
            padding=(1, 2),
        )
    )


def main(argv: Optional[List[str]] = None):
    stakingctl(args=argv)


if __name__ == "__main__":
    main()
