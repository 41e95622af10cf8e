"""Profit accounting engine for P2P Profit."""

from p2pprofit.engine.average import AverageCostAccumulator
from p2pprofit.engine.base import BaseAccumulator
from p2pprofit.engine.fifo import FifoMatcher, OpenLot
from p2pprofit.engine.profit import (
    FIAT_CURRENCIES,
    METHODS,
    ProfitMethod,
    compute_monthly_breakdown,
    compute_realized_profit,
    prepare_trades,
    resolve_method,
    round_money,
)
from p2pprofit.engine.timeseries import (
    PERIODS,
    compute_profit_series,
    latest_point,
    resolve_period,
)

__all__ = [
    "AverageCostAccumulator",
    "BaseAccumulator",
    "FIAT_CURRENCIES",
    "FifoMatcher",
    "METHODS",
    "OpenLot",
    "PERIODS",
    "ProfitMethod",
    "compute_monthly_breakdown",
    "compute_profit_series",
    "compute_realized_profit",
    "latest_point",
    "prepare_trades",
    "resolve_method",
    "resolve_period",
    "round_money",
]
