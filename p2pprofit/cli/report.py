"""Profit report commands for P2P Profit CLI.

Handles realized profit summaries, monthly breakdowns and time series.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

PERIOD_TITLES = {"day": "Daily", "week": "Weekly", "month": "Monthly"}


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


def _signed(value: Decimal, symbol: str = "") -> str:
    """Format a profit value with sign and color."""
    color = "green" if value >= 0 else "red"
    sign = "+" if value >= 0 else ""
    return f"[{color}]{sign}{symbol}{value:,.2f}[/{color}]"


def _currency_symbol(fiat_currency: str) -> str:
    from p2pprofit.engine import FIAT_CURRENCIES

    return FIAT_CURRENCIES.get(fiat_currency.upper(), {}).get("symbol", "")


def _print_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _report_options(func):
    """Options shared by every report command."""
    func = click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON instead of tables.")(func)
    func = click.option("--method", "-m", default=None, help="FIFO or AVERAGE (default from config).")(func)
    func = click.option("--asset", default=None, help="Asset symbol (default from config).")(func)
    func = click.option("--fiat", "fiat_currency", default=None, help="Fiat currency (default from config).")(func)
    return func


def _window_options(func):
    func = click.option("--to", "to_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Last day (YYYY-MM-DD).")(func)
    func = click.option("--from", "from_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="First day (YYYY-MM-DD).")(func)
    return func


def _resolve_defaults(config: dict, fiat_currency: Optional[str], asset: Optional[str], method: Optional[str]):
    defaults = config["defaults"]
    return (
        (fiat_currency or defaults["fiat_currency"]).upper(),
        (asset or defaults["asset"]).upper(),
        method or defaults["method"],
    )


def _load_trades(
    config: dict,
    fiat_currency: str,
    asset: str,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
) -> list:
    store = _get_trade_store(config)
    return store.get_trades(
        fiat_currency=fiat_currency,
        asset=asset,
        from_date=from_date.date() if from_date else None,
        to_date=to_date.date() if to_date else None,
    )


def _print_skipped(skipped: list) -> None:
    if skipped:
        console.print(f"[yellow]Skipped {len(skipped)} trade(s):[/yellow]")
        for item in skipped:
            console.print(f"  [dim]#{item.index}[/dim] {item.order_id or '-'}: {item.reason}")


@click.command()
@_report_options
@_window_options
@click.pass_context
def summary(
    ctx: click.Context,
    fiat_currency: Optional[str],
    asset: Optional[str],
    method: Optional[str],
    as_json: bool,
    from_date: Optional[datetime],
    to_date: Optional[datetime],
) -> None:
    """Display realized profit for a trade window.

    \b
    Examples:
      p2pprofit summary
      p2pprofit summary --method AVERAGE --from 2024-01-01 --to 2024-06-30
      p2pprofit summary --fiat USD --json
    """
    from p2pprofit.engine import compute_realized_profit
    from p2pprofit.errors import InvalidMethodError

    config = ctx.obj["config"]
    fiat_currency, asset, method = _resolve_defaults(config, fiat_currency, asset, method)

    try:
        trades = _load_trades(config, fiat_currency, asset, from_date, to_date)
        result = compute_realized_profit(trades, method, fiat_currency, asset)
    except InvalidMethodError as e:
        _error(f"[red]{e}[/red]")

    if as_json:
        _print_json(result.model_dump(mode="json"))
        return

    sym = _currency_symbol(fiat_currency)
    window = "all time"
    if from_date or to_date:
        start = from_date.strftime("%Y-%m-%d") if from_date else "..."
        end = to_date.strftime("%Y-%m-%d") if to_date else "..."
        window = f"{start} to {end}"

    text = (
        f"[bold]{asset}/{fiat_currency}[/bold] ({result.method}, {window})\n\n"
        f"Realized Profit:  {_signed(result.realized_profit_fiat, sym)}\n"
        f"{'─' * 34}\n"
        f"Bought:    {result.total_buy_amount:,.2f} {asset} for {sym}{result.total_buy_fiat:,.2f}\n"
        f"Sold:      {result.total_sell_amount:,.2f} {asset} for {sym}{result.total_sell_fiat:,.2f}\n"
        f"Avg Buy:   {sym}{result.avg_buy_price:,.2f}\n"
        f"Avg Sell:  {sym}{result.avg_sell_price:,.2f}\n"
        f"Inventory: {result.inventory_remaining:,.2f} {asset}"
    )
    if result.inventory_remaining < 0:
        text += " [red](oversold)[/red]"
    if result.unmatched_sell_amount > 0:
        text += f"\n[yellow]Unmatched sells: {result.unmatched_sell_amount:,.2f} {asset}[/yellow]"

    console.print(Panel(
        text,
        title="[bold cyan]Realized Profit[/bold cyan]",
        border_style="cyan",
    ))
    _print_skipped(result.skipped)


@click.command()
@_report_options
@click.option("--year", type=int, default=None, help="Calendar year (default: current year).")
@click.pass_context
def monthly(
    ctx: click.Context,
    fiat_currency: Optional[str],
    asset: Optional[str],
    method: Optional[str],
    as_json: bool,
    year: Optional[int],
) -> None:
    """Display realized profit for each month of a year.

    Each month is computed from its own trades only.

    \b
    Examples:
      p2pprofit monthly
      p2pprofit monthly --year 2023 --method AVERAGE
    """
    from p2pprofit.engine import compute_monthly_breakdown
    from p2pprofit.errors import InvalidMethodError

    config = ctx.obj["config"]
    fiat_currency, asset, method = _resolve_defaults(config, fiat_currency, asset, method)
    year = year or date.today().year

    try:
        trades = _load_trades(
            config,
            fiat_currency,
            asset,
            datetime(year, 1, 1),
            datetime(year, 12, 31),
        )
        breakdown = compute_monthly_breakdown(trades, method, fiat_currency, year, asset)
    except InvalidMethodError as e:
        _error(f"[red]{e}[/red]")

    if as_json:
        _print_json(breakdown.model_dump(mode="json"))
        return

    sym = _currency_symbol(fiat_currency)
    table = Table(
        title=f"{asset}/{fiat_currency} {year} ({breakdown.yearly.method})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Month", style="bold")
    table.add_column("Profit", justify="right")
    table.add_column("Bought", justify="right")
    table.add_column("Sold", justify="right")
    table.add_column("Avg Buy", justify="right")
    table.add_column("Avg Sell", justify="right")

    for month_number, month_summary in enumerate(breakdown.monthly, start=1):
        table.add_row(
            date(year, month_number, 1).strftime("%B"),
            _signed(month_summary.realized_profit_fiat, sym),
            f"{month_summary.total_buy_amount:,.2f}",
            f"{month_summary.total_sell_amount:,.2f}",
            f"{sym}{month_summary.avg_buy_price:,.2f}",
            f"{sym}{month_summary.avg_sell_price:,.2f}",
        )

    console.print(table)
    console.print(f"\n[bold]Year:[/bold] {_signed(breakdown.yearly.realized_profit_fiat, sym)}")
    _print_skipped(breakdown.yearly.skipped)


@click.command()
@_report_options
@_window_options
@click.option(
    "--period",
    "-p",
    type=click.Choice(["day", "week", "month"], case_sensitive=False),
    default="day",
    show_default=True,
    help="Bucket size.",
)
@click.pass_context
def series(
    ctx: click.Context,
    fiat_currency: Optional[str],
    asset: Optional[str],
    method: Optional[str],
    as_json: bool,
    from_date: Optional[datetime],
    to_date: Optional[datetime],
    period: str,
) -> None:
    """Display realized profit over time.

    Profit is computed per day and summed into weeks (Monday start) or
    months. Cumulative profit, inventory and average cost show the last
    day of each bucket.

    \b
    Examples:
      p2pprofit series
      p2pprofit series --period week --from 2024-01-01 --to 2024-03-31
      p2pprofit series --period month --method AVERAGE --json
    """
    from p2pprofit.engine import compute_profit_series
    from p2pprofit.errors import InvalidMethodError, InvalidPeriodError

    config = ctx.obj["config"]
    fiat_currency, asset, method = _resolve_defaults(config, fiat_currency, asset, method)

    try:
        trades = _load_trades(config, fiat_currency, asset, from_date, to_date)
        result = compute_profit_series(trades, method, fiat_currency, period, asset)
    except (InvalidMethodError, InvalidPeriodError) as e:
        _error(f"[red]{e}[/red]")

    if as_json:
        _print_json(result.model_dump(mode="json"))
        return

    if not result.points:
        console.print(Panel(
            "[dim]No trades in this window[/dim]",
            title="[bold]Profit Series[/bold]",
            border_style="dim",
        ))
        return

    sym = _currency_symbol(fiat_currency)
    table = Table(
        title=f"{asset}/{fiat_currency} {PERIOD_TITLES[period]} Profit ({result.method})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Period", style="bold")
    table.add_column("Profit", justify="right")
    table.add_column("Cumulative", justify="right")
    table.add_column("Inventory", justify="right")
    table.add_column("Avg Cost", justify="right")

    for point in result.points:
        if period == "month":
            label = point.date.strftime("%B %Y")
        elif period == "week":
            label = f"{point.date.isoformat()} – {point.period_end.isoformat()}"
        else:
            label = point.date.isoformat()
        table.add_row(
            label,
            _signed(point.period_profit, sym),
            _signed(point.cumulative_profit, sym),
            f"{point.inventory:,.2f}",
            f"{sym}{point.avg_cost:,.2f}",
        )

    console.print(table)
    _print_skipped(result.skipped)


@click.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON instead of a table.")
def methods(as_json: bool) -> None:
    """List the available accounting methods."""
    from p2pprofit.engine import METHODS

    if as_json:
        _print_json([{"key": key.value, **info} for key, info in METHODS.items()])
        return

    table = Table(title="Accounting Methods", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Name")
    table.add_column("Description", style="dim")
    for key, info in METHODS.items():
        table.add_row(key.value, info["name"], info["description"])
    console.print(table)


@click.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON instead of a table.")
def currencies(as_json: bool) -> None:
    """List the supported fiat currencies."""
    from p2pprofit.engine import FIAT_CURRENCIES

    if as_json:
        _print_json([{"code": code, **info} for code, info in FIAT_CURRENCIES.items()])
        return

    table = Table(title="Fiat Currencies", show_header=True, header_style="bold cyan")
    table.add_column("Code", style="bold")
    table.add_column("Name")
    table.add_column("Symbol", justify="center")
    for code, info in FIAT_CURRENCIES.items():
        table.add_row(code, info["name"], info["symbol"])
    console.print(table)
