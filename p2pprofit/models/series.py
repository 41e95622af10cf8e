"""Profit time-series data models."""

from datetime import date as date_type
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from p2pprofit.models.summary import SkippedTrade


class SeriesPoint(BaseModel):
    """One bucket of a profit time series."""

    date: date_type = Field(..., description="First calendar day of the bucket")
    period_end: date_type = Field(..., description="Last calendar day of the bucket")
    cumulative_profit: Decimal = Field(..., description="Profit realized up to this bucket")
    period_profit: Decimal = Field(..., description="Profit realized within this bucket")
    inventory: Decimal = Field(..., description="Running inventory at the end of the bucket")
    avg_cost: Decimal = Field(..., description="Running average cost at the end of the bucket")

    model_config = {"frozen": True}


class ProfitSeries(BaseModel):
    """A profit time series ordered by bucket."""

    period: Literal["day", "week", "month"] = Field(..., description="Bucket size")
    method: str = Field(..., description="Accounting method")
    fiat_currency: str = Field(..., description="Fiat currency code")
    points: list[SeriesPoint] = Field(default_factory=list, description="Points, ascending")
    skipped: list[SkippedTrade] = Field(default_factory=list, description="Excluded trades")

    model_config = {"frozen": True}
