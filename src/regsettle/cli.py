"""
regsettle CLI - run the settlement scenario and inspect the node.

Options left unset fall back to REGSETTLE_* settings (environment or .env),
read when a command runs.
"""

from __future__ import annotations

import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from pydantic import ValidationError

from regsettle.amount import btc_to_sats, format_btc
from regsettle.config import NetworkType, NodeConfig, SettlementConfig, Settings, get_settings

app = typer.Typer(
    name="regsettle",
    help="Regtest settlement and ownership attribution",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def parse_btc(value: str) -> int:
    """Parse a BTC amount given on the command line into sats."""
    try:
        return btc_to_sats(Decimal(value))
    except (InvalidOperation, ValueError) as e:
        raise typer.BadParameter(f"Invalid BTC amount {value!r}: {e}") from e


def load_settings() -> Settings:
    """Read settings, exiting with code 1 if the environment holds invalid values."""
    try:
        return get_settings()
    except ValidationError as e:
        logger.error(f"Invalid REGSETTLE_* settings: {e}")
        raise typer.Exit(1)


def _or(value: Any, default: Any) -> Any:
    return default if value is None else value


def _node_config(
    settings: Settings,
    rpc_url: str | None,
    rpc_user: str | None,
    rpc_password: str | None,
    network: NetworkType | None,
) -> NodeConfig:
    return NodeConfig(
        rpc_url=_or(rpc_url, settings.rpc_url),
        rpc_user=_or(rpc_user, settings.rpc_user),
        rpc_password=_or(rpc_password, settings.rpc_password),
        network=_or(network, settings.network),
        timeout=settings.rpc_timeout,
    )


@app.command()
def run(
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="BITCOIN_RPC_URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user", envvar="BITCOIN_RPC_USER"),
    rpc_password: str | None = typer.Option(
        None, "--rpc-password", envvar="BITCOIN_RPC_PASSWORD"
    ),
    network: NetworkType | None = typer.Option(None, "--network", "-n"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Report file, overwritten [default: ../out.txt]"
    ),
    miner_wallet: str | None = typer.Option(None, "--miner-wallet"),
    trader_wallet: str | None = typer.Option(None, "--trader-wallet"),
    min_amount: str | None = typer.Option(
        None, "--min-amount", help="Selected input must exceed this many BTC [default: 20]"
    ),
    amount: str | None = typer.Option(
        None, "--amount", "-a", help="BTC sent to the Trader [default: 20]"
    ),
    maturity_blocks: int | None = typer.Option(None, "--maturity-blocks"),
    fee_tolerance: int | None = typer.Option(
        None, "--fee-tolerance", help="Allowed sats off in amount check [default: 0]"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Provision wallets, settle one payment and write the attribution report."""
    settings = load_settings()
    setup_logging(_or(log_level, settings.log_level))

    min_input_amount = settings.min_input_amount if min_amount is None else parse_btc(min_amount)
    transfer_amount = settings.transfer_amount if amount is None else parse_btc(amount)

    try:
        node_config = _node_config(settings, rpc_url, rpc_user, rpc_password, network)
        config = SettlementConfig(
            miner_wallet=_or(miner_wallet, settings.miner_wallet),
            trader_wallet=_or(trader_wallet, settings.trader_wallet),
            maturity_blocks=_or(maturity_blocks, settings.maturity_blocks),
            min_input_amount=min_input_amount,
            transfer_amount=transfer_amount,
            output_path=_or(output, settings.output_path),
            fee_tolerance=_or(fee_tolerance, settings.fee_tolerance),
        )
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(1)

    _run_settlement(node_config, config)


def _run_settlement(node_config: NodeConfig, config: SettlementConfig) -> None:
    """Run settlement implementation."""
    from regsettle.backends.bitcoin_core import BitcoinCoreGateway
    from regsettle.errors import SettlementError
    from regsettle.settlement.pipeline import SettlementPipeline

    gateway = BitcoinCoreGateway(node_config)
    try:
        record = SettlementPipeline(gateway, config, node_config.network).run()
    except SettlementError as e:
        logger.error(f"Settlement failed: {type(e).__name__}: {e}")
        raise typer.Exit(1)
    finally:
        gateway.close()

    typer.echo(f"\nTransaction:   {record.txid}")
    typer.echo(
        f"Miner input:   {record.miner_input_address} ({format_btc(record.miner_input_amount)} BTC)"
    )
    typer.echo(
        f"Trader output: {record.trader_output_address} "
        f"({format_btc(record.trader_output_amount)} BTC)"
    )
    typer.echo(
        f"Miner change:  {record.miner_change_address} "
        f"({format_btc(record.miner_change_amount)} BTC)"
    )
    typer.echo(f"Fee:           {format_btc(record.fee)} BTC")
    typer.echo(f"Block:         {record.block_height} {record.block_hash}")


@app.command()
def info(
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="BITCOIN_RPC_URL"),
    rpc_user: str | None = typer.Option(None, "--rpc-user", envvar="BITCOIN_RPC_USER"),
    rpc_password: str | None = typer.Option(
        None, "--rpc-password", envvar="BITCOIN_RPC_PASSWORD"
    ),
    network: NetworkType | None = typer.Option(None, "--network", "-n"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Display blockchain info and balances of loaded wallets."""
    from regsettle.backends.bitcoin_core import BitcoinCoreGateway
    from regsettle.errors import SettlementError

    settings = load_settings()
    setup_logging(_or(log_level, settings.log_level))

    try:
        node_config = _node_config(settings, rpc_url, rpc_user, rpc_password, network)
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(1)

    gateway = BitcoinCoreGateway(node_config)
    try:
        chain = gateway.get_blockchain_info()
        typer.echo(f"\nChain:  {chain.get('chain')}")
        typer.echo(f"Blocks: {chain.get('blocks')}")
        typer.echo(f"Best:   {chain.get('bestblockhash')}")

        wallets = gateway.list_wallets()
        if not wallets:
            typer.echo("\nNo wallets loaded.")
            return

        typer.echo("\nLoaded wallets:")
        for name in wallets:
            typer.echo(f"  {name:<20} {format_btc(gateway.get_balance(name)):>20} BTC")
    except SettlementError as e:
        logger.error(f"Failed to query node: {e}")
        raise typer.Exit(1)
    finally:
        gateway.close()


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
