"""Trade record data model."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

TRADE_STATUSES = ("COMPLETED", "PENDING", "CANCELLED", "FAILED")


class TradeRecord(BaseModel):
    """Represents one completed peer-to-peer trade."""

    side: Literal["BUY", "SELL"] = Field(..., description="Trade side")
    amount: Decimal = Field(..., gt=0, description="Quantity of the traded asset")
    price: Decimal = Field(..., gt=0, description="Fiat price per unit")
    total_fiat: Decimal = Field(..., gt=0, description="Gross fiat value of the trade")
    fee_fiat: Decimal = Field(default=Decimal("0"), ge=0, description="Fiat fee charged")
    completed_at: datetime = Field(..., description="Completion timestamp")
    fiat_currency: str = Field(default="INR", min_length=1, description="Fiat currency code")
    asset: str = Field(default="USDT", min_length=1, description="Traded asset symbol")
    order_id: Optional[str] = Field(default=None, description="Exchange order ID")
    status: Literal["COMPLETED", "PENDING", "CANCELLED", "FAILED"] = Field(
        default="COMPLETED", description="Trade status"
    )
    payment_method: Optional[str] = Field(default=None, description="Payment method used")
    counterparty: Optional[str] = Field(default=None, description="Counterparty nickname")
    notes: Optional[str] = Field(default=None, description="Free-form notes")

    # camelCase keys (totalFiat, completedAt, ...) are accepted alongside field names.
    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    @field_validator("side", "status", "fiat_currency", "asset", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("order_id", mode="before")
    @classmethod
    def _order_id_text(cls, value: Any) -> Any:
        # Exchange payloads often carry numeric order IDs.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("amount", "price", "total_fiat", "fee_fiat", mode="before")
    @classmethod
    def _exact_decimal(cls, value: Any) -> Any:
        # Go through str so 0.1 becomes Decimal("0.1"), not its binary expansion.
        if isinstance(value, float):
            return str(value)
        return value

    @property
    def is_buy(self) -> bool:
        return self.side == "BUY"
