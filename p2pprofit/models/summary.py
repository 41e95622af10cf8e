"""Realized profit summary data models."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class SkippedTrade(BaseModel):
    """A trade excluded from a computation, with the reason."""

    index: int = Field(..., ge=0, description="Position in the input sequence")
    reason: str = Field(..., description="Why the trade was excluded")
    order_id: Optional[str] = Field(default=None, description="Order ID if known")

    model_config = {"frozen": True}


class ProfitSummary(BaseModel):
    """Realized profit over a trade window.

    Numeric fields are rounded to two decimal places.
    """

    realized_profit_fiat: Decimal = Field(..., description="Net realized profit")
    total_buy_fiat: Decimal = Field(..., ge=0, description="Gross fiat spent on buys")
    total_sell_fiat: Decimal = Field(..., ge=0, description="Gross fiat received on sells")
    total_buy_amount: Decimal = Field(..., ge=0, description="Asset quantity bought")
    total_sell_amount: Decimal = Field(..., ge=0, description="Asset quantity sold")
    avg_buy_price: Decimal = Field(..., ge=0, description="Average buy price")
    avg_sell_price: Decimal = Field(..., ge=0, description="Average sell price")
    inventory_remaining: Decimal = Field(
        ..., description="Unsold quantity (negative when oversold under AVERAGE)"
    )
    unmatched_sell_amount: Decimal = Field(
        default=Decimal("0"), ge=0, description="Sell volume with no lot to match (FIFO)"
    )
    method: str = Field(..., description="Accounting method")
    fiat_currency: str = Field(..., description="Fiat currency code")
    asset: Optional[str] = Field(default=None, description="Asset symbol")
    skipped: list[SkippedTrade] = Field(default_factory=list, description="Excluded trades")

    model_config = {"frozen": True}

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class MonthlyBreakdown(BaseModel):
    """A year's summary with one summary per calendar month."""

    year: int = Field(..., description="Calendar year")
    yearly: ProfitSummary = Field(..., description="Summary for the whole year")
    monthly: list[ProfitSummary] = Field(..., description="Summaries for January to December")

    model_config = {"frozen": True}
