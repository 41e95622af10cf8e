"""Ledger commands for P2P Profit CLI.

Handles config setup, CSV import and trade listing.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


def _get_trade_store(config: dict):
    """Get the trade store instance."""
    from p2pprofit.config import get_db_path
    from p2pprofit.db.store import TradeStore

    return TradeStore(get_db_path(config))


def _error(message: str) -> None:
    console.print(Panel(
        message,
        title="[bold red]Error[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


@click.command()
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing config file.")
def init(force: bool) -> None:
    """Create a config file with default settings.

    \b
    Examples:
      p2pprofit init
      p2pprofit init --force
    """
    from p2pprofit.config import create_template_config, get_config_path

    config_path = get_config_path()
    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists:[/yellow] {config_path}")
        console.print("[dim]Use --force to overwrite it.[/dim]")
        return

    path = create_template_config(config_path)
    console.print(Panel(
        f"[green]Config written to[/green] {path}\n\n"
        f"[dim]Edit it to change the ledger path and default currency, asset and method.[/dim]",
        title="[bold cyan]Init[/bold cyan]",
        border_style="cyan",
    ))


@click.command(name="import")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--overwrite", is_flag=True, default=False, help="Replace trades with the same order ID.")
@click.option("--preview", is_flag=True, default=False, help="Parse only; do not save.")
@click.pass_context
def import_trades(ctx: click.Context, csv_file: Path, overwrite: bool, preview: bool) -> None:
    """Import completed trades from a CSV file.

    Columns default to orderId, side, asset, fiatCurrency, price, amount,
    totalFiat, feeFiat, paymentMethod, counterparty, status, completedAt
    and notes. completedAt must be an ISO 8601 timestamp.

    \b
    Examples:
      p2pprofit import trades.csv
      p2pprofit import trades.csv --preview
      p2pprofit import trades.csv --overwrite
    """
    from p2pprofit.errors import ImportFormatError
    from p2pprofit.importer import import_csv, parse_csv

    try:
        if preview:
            result = parse_csv(csv_file)
        else:
            store = _get_trade_store(ctx.obj["config"])
            result = import_csv(store, csv_file, overwrite=overwrite)
    except ImportFormatError as e:
        _error(f"[red]Import failed:[/red]\n\n{e}")

    if not result.trades and not result.errors:
        _error("[red]No trades found in the file.[/red]")

    if preview:
        console.print(_trades_table(result.trades, title=f"Preview: {csv_file.name}"))
        summary = f"Parsed [bold]{len(result.trades)}[/bold] trades"
    else:
        summary = (
            f"Inserted [green]{result.inserted}[/green], "
            f"updated [cyan]{result.updated}[/cyan], "
            f"duplicates [yellow]{result.duplicates}[/yellow]"
        )

    if result.errors:
        summary += f", rejected [red]{len(result.errors)}[/red] rows"
    console.print(summary)

    for row_error in result.errors:
        console.print(f"  [red]line {row_error.line}:[/red] {row_error.message}")


def _trades_table(trades: list, title: str) -> Table:
    table = Table(
        title=title,
        show_header=True,
        header_style="bold cyan",
    )

    table.add_column("Completed", style="dim")
    table.add_column("Order ID")
    table.add_column("Side", justify="center")
    table.add_column("Asset")
    table.add_column("Amount", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Fee", justify="right")

    for trade in trades:
        side_color = "green" if trade.side == "BUY" else "red"
        table.add_row(
            trade.completed_at.strftime("%Y-%m-%d %H:%M"),
            trade.order_id or "-",
            f"[{side_color}]{trade.side}[/{side_color}]",
            trade.asset,
            f"{trade.amount:,.2f}",
            f"{trade.price:,.2f}",
            f"{trade.total_fiat:,.2f} {trade.fiat_currency}",
            f"{trade.fee_fiat:,.2f}",
        )

    return table


@click.command()
@click.option("--fiat", "fiat_currency", default=None, help="Fiat currency (default from config).")
@click.option("--asset", default=None, help="Asset symbol (default: any).")
@click.option("--from", "from_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="First day (YYYY-MM-DD).")
@click.option("--to", "to_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Last day (YYYY-MM-DD).")
@click.option("--limit", type=int, default=50, show_default=True, help="Show at most this many recent trades.")
@click.pass_context
def trades(
    ctx: click.Context,
    fiat_currency: Optional[str],
    asset: Optional[str],
    from_date: Optional[datetime],
    to_date: Optional[datetime],
    limit: int,
) -> None:
    """List completed trades in the ledger.

    \b
    Examples:
      p2pprofit trades
      p2pprofit trades --fiat USD --from 2024-01-01 --to 2024-03-31
    """
    config = ctx.obj["config"]
    store = _get_trade_store(config)

    records = store.get_trades(
        fiat_currency=fiat_currency or config["defaults"]["fiat_currency"],
        asset=asset,
        from_date=from_date.date() if from_date else None,
        to_date=to_date.date() if to_date else None,
    )

    if not records:
        console.print(Panel(
            "[dim]No trades found[/dim]",
            title="[bold]Trades[/bold]",
            border_style="dim",
        ))
        return

    shown = records[-limit:] if limit > 0 else records
    console.print(_trades_table(shown, title="Trades"))
    if len(shown) < len(records):
        console.print(f"[dim]Showing last {len(shown)} of {len(records)} trades[/dim]")
