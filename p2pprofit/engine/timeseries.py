"""Profit time series by day, week or month."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from itertools import groupby
from typing import Optional, Union

from p2pprofit.engine.base import ZERO
from p2pprofit.engine.profit import (
    ProfitMethod,
    TradeInput,
    month_bounds,
    new_accumulator,
    prepare_trades,
    resolve_method,
    round_money,
    run_accumulator,
)
from p2pprofit.errors import InvalidPeriodError
from p2pprofit.models import ProfitSeries, SeriesPoint

logger = logging.getLogger(__name__)

PERIODS = ("day", "week", "month")


@dataclass
class _RawPoint:
    start: date
    end: date
    cumulative_profit: Decimal
    period_profit: Decimal
    inventory: Decimal
    avg_cost: Decimal


def resolve_period(period: str) -> str:
    """Validate a bucket size name.

    Raises:
        InvalidPeriodError: If the period is not day, week or month.
    """
    normalized = period.strip().lower() if isinstance(period, str) else period
    if normalized not in PERIODS:
        raise InvalidPeriodError(
            f"Invalid period: {period!r}. Must be one of {', '.join(PERIODS)}"
        )
    return normalized


def bucket_bounds(day: date, period: str) -> tuple[date, date]:
    """First and last calendar day of the bucket containing ``day``.

    Weeks start on Monday (ISO weeks); months on the first.
    """
    if period == "week":
        start = day - timedelta(days=day.weekday())
        return start, start + timedelta(days=6)
    if period == "month":
        return month_bounds(day.year, day.month)
    return day, day


def _daily_points(records, method: ProfitMethod) -> list[_RawPoint]:
    # Profit is computed per day in isolation; inventory and cost carry over.
    running = new_accumulator(method)
    cumulative = ZERO
    points = []

    for day, day_trades in groupby(records, key=lambda t: t.completed_at.date()):
        day_trades = list(day_trades)
        daily_profit = run_accumulator(day_trades, method).realized_profit
        cumulative += daily_profit
        running.feed(day_trades)

        points.append(
            _RawPoint(
                start=day,
                end=day,
                cumulative_profit=cumulative,
                period_profit=daily_profit,
                inventory=running.inventory,
                avg_cost=running.average_cost,
            )
        )

    return points


def roll_up(points: list[_RawPoint], period: str) -> list[_RawPoint]:
    """Merge daily points into week or month buckets.

    Period profit is summed. Cumulative profit, inventory and average cost
    take the last day's value in the bucket.
    """
    if period == "day":
        return points

    rolled = []
    for (start, end), bucket in groupby(points, key=lambda p: bucket_bounds(p.start, period)):
        bucket = list(bucket)
        last = bucket[-1]
        rolled.append(
            _RawPoint(
                start=start,
                end=end,
                cumulative_profit=last.cumulative_profit,
                period_profit=sum((p.period_profit for p in bucket), ZERO),
                inventory=last.inventory,
                avg_cost=last.avg_cost,
            )
        )
    return rolled


def compute_profit_series(
    trades: Iterable[TradeInput],
    method: Union[str, ProfitMethod],
    fiat_currency: str = "INR",
    period: str = "day",
    asset: Optional[str] = None,
) -> ProfitSeries:
    """Compute a profit time series.

    Args:
        trades: Trades for the window.
        method: Accounting method, FIFO or AVERAGE.
        fiat_currency: Fiat currency of the window.
        period: Bucket size: "day", "week" or "month".
        asset: Asset to restrict to, or None.

    Returns:
        ProfitSeries with one point per bucket that has trades.

    Raises:
        InvalidMethodError: If the method is unknown.
        InvalidPeriodError: If the period is unknown.
    """
    resolved = resolve_method(method)
    period = resolve_period(period)
    records, skipped = prepare_trades(trades, fiat_currency, asset)

    raw = roll_up(_daily_points(records, resolved), period)
    logger.debug("%s %s series: %d points from %d trades", resolved.value, period, len(raw), len(records))

    points = [
        SeriesPoint(
            date=p.start,
            period_end=p.end,
            cumulative_profit=round_money(p.cumulative_profit),
            period_profit=round_money(p.period_profit),
            inventory=round_money(p.inventory),
            avg_cost=round_money(p.avg_cost),
        )
        for p in raw
    ]
    return ProfitSeries(
        period=period,
        method=resolved.value,
        fiat_currency=fiat_currency.strip().upper(),
        points=points,
        skipped=skipped,
    )


def latest_point(series: ProfitSeries, default_date: Optional[date] = None) -> SeriesPoint:
    """Last point of a series, or a zero point if it is empty.

    Args:
        series: Series to read.
        default_date: Date for the zero point; today when omitted.
    """
    if series.points:
        return series.points[-1]
    day = default_date or date.today()
    zero = round_money(ZERO)
    return SeriesPoint(
        date=day,
        period_end=day,
        cumulative_profit=zero,
        period_profit=zero,
        inventory=zero,
        avg_cost=zero,
    )
