"""Realized profit computation.

Every function here is a pure function of its arguments. The accounting
method is passed on each call and a fresh accumulator is built for it,
so concurrent callers never share engine state.
"""

import calendar
import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
from typing import Any, Optional, Union

from pydantic import ValidationError

from p2pprofit.engine.average import AverageCostAccumulator
from p2pprofit.engine.base import BaseAccumulator
from p2pprofit.engine.fifo import FifoMatcher
from p2pprofit.errors import InvalidMethodError
from p2pprofit.models import MonthlyBreakdown, ProfitSummary, SkippedTrade, TradeRecord

logger = logging.getLogger(__name__)

TradeInput = Union[TradeRecord, Mapping[str, Any]]

CENT = Decimal("0.01")


class ProfitMethod(str, Enum):
    """Supported accounting methods."""

    FIFO = "FIFO"
    AVERAGE = "AVERAGE"


METHODS = {
    ProfitMethod.FIFO: {
        "name": "First In, First Out",
        "description": "Calculates profit by matching sells to the oldest buys first",
    },
    ProfitMethod.AVERAGE: {
        "name": "Average Cost",
        "description": "Calculates profit using weighted average cost of holdings",
    },
}

FIAT_CURRENCIES = {
    "INR": {"name": "Indian Rupee", "symbol": "₹"},
    "USD": {"name": "US Dollar", "symbol": "$"},
    "EUR": {"name": "Euro", "symbol": "€"},
    "GBP": {"name": "British Pound", "symbol": "£"},
    "JPY": {"name": "Japanese Yen", "symbol": "¥"},
}

_ACCUMULATORS: dict[ProfitMethod, type[BaseAccumulator]] = {
    ProfitMethod.FIFO: FifoMatcher,
    ProfitMethod.AVERAGE: AverageCostAccumulator,
}


def resolve_method(method: Union[str, ProfitMethod]) -> ProfitMethod:
    """Validate an accounting method name.

    Args:
        method: Method name (case-insensitive) or ProfitMethod.

    Returns:
        The matching ProfitMethod.

    Raises:
        InvalidMethodError: If the method is not FIFO or AVERAGE.
    """
    if isinstance(method, ProfitMethod):
        return method
    if isinstance(method, str):
        try:
            return ProfitMethod(method.strip().upper())
        except ValueError:
            pass
    valid = ", ".join(m.value for m in ProfitMethod)
    raise InvalidMethodError(f"Invalid method: {method!r}. Must be one of {valid}")


def new_accumulator(method: Union[str, ProfitMethod]) -> BaseAccumulator:
    """Create a fresh accumulator for a method."""
    return _ACCUMULATORS[resolve_method(method)]()


def round_money(value: Decimal) -> Decimal:
    """Round a value to two decimal places, half up."""
    with localcontext() as ctx:
        # quantize fails once the result needs more digits than the context holds.
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _completion_instant(trade: TradeRecord) -> datetime:
    # Naive timestamps are taken as UTC so they order against aware ones.
    if trade.completed_at.tzinfo is None:
        return trade.completed_at.replace(tzinfo=timezone.utc)
    return trade.completed_at


def _describe_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"]) or "record"
        parts.append(f"{field}: {error['msg']}")
    return "; ".join(parts)


def prepare_trades(
    trades: Iterable[TradeInput],
    fiat_currency: str,
    asset: Optional[str] = None,
) -> tuple[list[TradeRecord], list[SkippedTrade]]:
    """Validate, filter and order trades for one computation.

    Malformed records and records outside the requested currency, asset
    or COMPLETED status are excluded and reported instead of failing the
    whole batch. The caller's sequence is not modified.

    Args:
        trades: TradeRecord instances or mappings of trade fields.
        fiat_currency: Fiat currency the computation is priced in.
        asset: Asset to keep, or None to keep any.

    Returns:
        Tuple of (records sorted by completion time, skipped trades).
    """
    fiat_currency = fiat_currency.strip().upper()
    asset = asset.strip().upper() if asset else None

    records: list[TradeRecord] = []
    skipped: list[SkippedTrade] = []

    for index, item in enumerate(trades):
        order_id = None
        if isinstance(item, Mapping):
            order_id = item.get("order_id", item.get("orderId"))
            if order_id is not None:
                order_id = str(order_id)
        try:
            record = TradeRecord.model_validate(item)
        except ValidationError as e:
            reason = _describe_error(e)
            skipped.append(SkippedTrade(index=index, reason=reason, order_id=order_id))
            logger.warning("Skipping trade #%d: %s", index, reason)
            continue

        reason = None
        if record.status != "COMPLETED":
            reason = f"status is {record.status}"
        elif record.fiat_currency != fiat_currency:
            reason = f"fiat currency {record.fiat_currency} is not {fiat_currency}"
        elif asset and record.asset != asset:
            reason = f"asset {record.asset} is not {asset}"

        if reason:
            skipped.append(SkippedTrade(index=index, reason=reason, order_id=record.order_id))
            logger.warning("Skipping trade #%d: %s", index, reason)
            continue

        records.append(record)

    # sorted() is stable: trades completed at the same instant keep input order.
    records = sorted(records, key=_completion_instant)
    return records, skipped


def summarize(
    accumulator: BaseAccumulator,
    fiat_currency: str,
    asset: Optional[str] = None,
    skipped: Optional[list[SkippedTrade]] = None,
) -> ProfitSummary:
    """Turn an accumulator's raw state into a rounded summary."""
    return ProfitSummary(
        realized_profit_fiat=round_money(accumulator.realized_profit),
        total_buy_fiat=round_money(accumulator.total_buy_fiat),
        total_sell_fiat=round_money(accumulator.total_sell_fiat),
        total_buy_amount=round_money(accumulator.total_buy_amount),
        total_sell_amount=round_money(accumulator.total_sell_amount),
        avg_buy_price=round_money(accumulator.avg_buy_price),
        avg_sell_price=round_money(accumulator.avg_sell_price),
        inventory_remaining=round_money(accumulator.inventory),
        unmatched_sell_amount=round_money(accumulator.unmatched_sell_amount),
        method=accumulator.method,
        fiat_currency=fiat_currency.strip().upper(),
        asset=asset.strip().upper() if asset else None,
        skipped=list(skipped or []),
    )


def run_accumulator(
    records: Iterable[TradeRecord], method: Union[str, ProfitMethod]
) -> BaseAccumulator:
    """Feed already prepared records through a fresh accumulator."""
    accumulator = new_accumulator(method)
    accumulator.feed(records)
    return accumulator


def compute_realized_profit(
    trades: Iterable[TradeInput],
    method: Union[str, ProfitMethod],
    fiat_currency: str = "INR",
    asset: Optional[str] = None,
) -> ProfitSummary:
    """Compute realized profit over a trade window.

    Args:
        trades: Trades for the window, ideally sorted by completion time.
        method: Accounting method, FIFO or AVERAGE.
        fiat_currency: Fiat currency of the window.
        asset: Asset to restrict to, or None.

    Returns:
        Rounded realized profit summary.

    Raises:
        InvalidMethodError: If the method is unknown. Raised before any
            trade is examined.
    """
    resolved = resolve_method(method)
    records, skipped = prepare_trades(trades, fiat_currency, asset)
    accumulator = run_accumulator(records, resolved)

    logger.debug(
        "%s over %d trades (%d skipped): profit=%s inventory=%s",
        resolved.value,
        len(records),
        len(skipped),
        accumulator.realized_profit,
        accumulator.inventory,
    )
    return summarize(accumulator, fiat_currency, asset, skipped)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def compute_monthly_breakdown(
    trades: Iterable[TradeInput],
    method: Union[str, ProfitMethod],
    fiat_currency: str,
    year: int,
    asset: Optional[str] = None,
) -> MonthlyBreakdown:
    """Compute a yearly summary and one independent summary per month.

    Each month is computed over its own trades only, so lots bought in an
    earlier month are not available to a later month's sells.

    Args:
        trades: Trades, any dates; those outside ``year`` are ignored.
        method: Accounting method, FIFO or AVERAGE.
        fiat_currency: Fiat currency of the trades.
        year: Calendar year to break down.
        asset: Asset to restrict to, or None.

    Returns:
        MonthlyBreakdown with twelve monthly summaries.
    """
    resolved = resolve_method(method)
    records, skipped = prepare_trades(trades, fiat_currency, asset)
    in_year = [t for t in records if t.completed_at.year == year]

    yearly = summarize(run_accumulator(in_year, resolved), fiat_currency, asset, skipped)
    monthly = []
    for month in range(1, 13):
        in_month = [t for t in in_year if t.completed_at.month == month]
        monthly.append(summarize(run_accumulator(in_month, resolved), fiat_currency, asset))

    return MonthlyBreakdown(year=year, yearly=yearly, monthly=monthly)
