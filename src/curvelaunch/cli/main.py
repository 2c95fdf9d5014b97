#!/usr/bin/env python3
"""
curvelaunch CLI - Bonding Curve Launchpad Interface

Commands:
- show-config: display the effective configuration for an environment
- simulate: launch a token on an in-memory market and run a buy sequence
"""

from __future__ import annotations

import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config_manager import ConfigManager
from ..core.constants import WAD
from ..core.curve_exceptions import CurveError, get_error_context
from ..core.defi.liquidity_sink import LiquidityVenue
from ..core.defi.price_oracle import MockPriceFeed
from ..core.defi.token_factory import TokenFactory
from ..core.execution import ExecutionContext
from ..core.logging_config import setup_logging

logger = logging.getLogger(__name__)
console = Console()


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, extra={"event": "cli.error", **get_error_context(exc)})
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _parse_settlement(amount: str) -> int:
    """Convert a decimal BERA amount ("1.5") to wei."""
    try:
        wei = Decimal(amount) * WAD
    except InvalidOperation as exc:
        raise click.BadParameter(f"Not a number: {amount}") from exc
    if wei <= 0 or wei != wei.to_integral_value():
        raise click.BadParameter(f"Amount must be positive with at most 18 decimals: {amount}")
    return int(wei)


def _format_settlement(wei: int) -> str:
    return f"{Decimal(wei) / WAD:.6f}"


def _format_usd(micro_usd: int) -> str:
    return f"${Decimal(micro_usd) / 10**6:.6f}"


def _create_config_manager(ctx: click.Context) -> ConfigManager:
    """Load configuration and reinstall logging from its ``logging`` section."""
    manager = ConfigManager(
        environment=ctx.obj["environment"],
        config_dir=ctx.obj["config_dir"],
    )
    setup_logging(
        manager.logging,
        environment=manager.environment.value,
        level=ctx.obj["log_level"],
    )
    return manager


@click.group()
@click.option(
    "--environment",
    default="development",
    show_default=True,
    help="Configuration environment (development/staging/production/testnet).",
)
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory containing environment config files.",
)
@click.option("--json-output", is_flag=True, help="Output raw JSON")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Override the configured log level.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    environment: str,
    config_dir: Optional[Path],
    json_output: bool,
    log_level: Optional[str],
):
    """curvelaunch - oracle-priced bonding curve launchpad."""
    ctx.ensure_object(dict)
    # Console logging until the configuration is loaded
    setup_logging(environment=environment, level=log_level)
    ctx.obj["log_level"] = log_level
    ctx.obj["environment"] = environment
    ctx.obj["config_dir"] = str(config_dir) if config_dir else None
    ctx.obj["json_output"] = json_output


@cli.command("show-config")
@click.option("--section", help="Return only a specific configuration section.")
@click.pass_context
def show_config(ctx: click.Context, section: Optional[str]):
    """Display the effective configuration."""
    try:
        manager = _create_config_manager(ctx)
    except CurveError as exc:
        _handle_cli_error(exc)
        return

    data = manager.to_dict()
    if section:
        if section not in data or section == "environment":
            raise click.ClickException(f"Configuration section '{section}' not found.")
        data = {section: data[section]}

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(data, indent=2, default=str))
        return

    for name, values in data.items():
        if not isinstance(values, dict):
            console.print(f"[bold cyan]{name}:[/] {values}")
            continue
        table = Table(show_header=False, box=box.ROUNDED)
        for key, value in values.items():
            table.add_row(f"[bold cyan]{key}", str(value))
        console.print(Panel(table, title=f"[bold green]{name}", border_style="green"))


@cli.command("simulate")
@click.option("--buys", default=7, type=click.IntRange(0, 1000), show_default=True,
              help="Number of purchases to run.")
@click.option("--amount", default="1", show_default=True, help="BERA spent per purchase.")
@click.option("--bera-price", default="3000", show_default=True, help="Oracle BERA/USD price.")
@click.option("--graduate", is_flag=True,
              help="Finish with a purchase sized to reach the sale threshold exactly.")
@click.pass_context
def simulate(ctx: click.Context, buys: int, amount: str, bera_price: str, graduate: bool):
    """
    Launch a token on an in-memory market and run a purchase sequence.

    Example:
        curvelaunch simulate --buys 7 --amount 1 --graduate
    """
    settlement = _parse_settlement(amount)
    try:
        manager = _create_config_manager(ctx)
        rows = _run_simulation(manager, buys, settlement, bera_price, graduate)
    except CurveError as exc:
        _handle_cli_error(exc)
        return

    if ctx.obj.get("json_output"):
        click.echo(json.dumps(rows, indent=2))
        return

    table = Table(box=box.SIMPLE)
    table.add_column("#", style="cyan")
    table.add_column("Spent (BERA)")
    table.add_column("Units")
    table.add_column("Price after")
    table.add_column("Sold")
    table.add_column("Deployed")
    for row in rows:
        table.add_row(
            str(row["step"]),
            _format_settlement(row["settlement_in"]),
            f"{row['units_out']:,}",
            _format_usd(row["price_after"]),
            f"{row['units_sold']:,}",
            "[green]yes[/]" if row["liquidity_deployed"] else "no",
        )
    console.print(Panel(table, title="[bold green]Curve Simulation", border_style="green"))


def _run_simulation(
    manager: ConfigManager,
    buys: int,
    settlement: int,
    bera_price: str,
    graduate: bool,
) -> List[Dict[str, Any]]:
    oracle_cfg = manager.oracle
    try:
        feed_price = int(Decimal(bera_price) * 10**oracle_cfg.feed_decimals)
    except InvalidOperation as exc:
        raise click.BadParameter(f"Not a number: {bera_price}") from exc

    ctx = ExecutionContext()
    feed = MockPriceFeed(price=feed_price, decimals=oracle_cfg.feed_decimals, updated_at=ctx.now())
    venue = LiquidityVenue(ctx)
    treasury = ctx.create_address("treasury")
    creator = ctx.create_address("creator")
    trader = ctx.create_address("trader")
    factory = TokenFactory(
        ctx,
        venue=venue,
        fee_collector=manager.factory.fee_collector or treasury,
        liquidity_collector=manager.factory.liquidity_collector,
        owner=treasury,
        price_feed=feed,
        curve_config=manager.to_curve_config(),
        creation_fee=manager.factory.creation_fee,
    )

    ctx.credit(creator, manager.factory.creation_fee)
    ctx.credit(trader, settlement * (buys + 1) + 10 * WAD)
    curve = factory.create_token(creator, "Simulated", "SIM", value=manager.factory.creation_fee).curve

    rows: List[Dict[str, Any]] = []

    def record(step: int, spent: int, units: int) -> None:
        state = curve.get_curve_state()
        rows.append({
            "step": step,
            "settlement_in": spent,
            "units_out": units,
            "price_after": state["unit_price"],
            "units_sold": state["units_sold"],
            "liquidity_deployed": state["liquidity_deployed"],
        })

    for step in range(1, buys + 1):
        receipt = curve.buy(trader, settlement)
        record(step, settlement, receipt.units_out)

    if graduate and not curve.state.liquidity_deployed:
        remaining = curve.config.sale_threshold - curve.units_sold
        if remaining > 0:
            needed = curve.quote_settlement_for(remaining)
            ctx.credit(trader, needed)
            receipt = curve.buy(trader, needed)
            record(buys + 1, needed, receipt.units_out)

    return rows


def main():
    """Main CLI entry point"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/]")
        sys.exit(130)


if __name__ == "__main__":
    main()
