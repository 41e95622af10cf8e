"""Data models for P2P Profit."""

from p2pprofit.models.trade import TRADE_STATUSES, TradeRecord
from p2pprofit.models.summary import MonthlyBreakdown, ProfitSummary, SkippedTrade
from p2pprofit.models.series import ProfitSeries, SeriesPoint

__all__ = [
    "MonthlyBreakdown",
    "ProfitSeries",
    "ProfitSummary",
    "SeriesPoint",
    "SkippedTrade",
    "TRADE_STATUSES",
    "TradeRecord",
]
