"""Base accumulator interface for profit accounting methods."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable

from p2pprofit.models import TradeRecord

ZERO = Decimal("0")


class BaseAccumulator(ABC):
    """Abstract base class for accounting methods.

    An accumulator is fed trades in completion order and keeps the running
    totals shared by every method. Subclasses decide how each sell is
    matched against inventory. An instance belongs to exactly one
    computation and is never shared between calls.
    """

    method: str = ""

    def __init__(self) -> None:
        self.realized_profit = ZERO
        self.total_buy_fiat = ZERO
        self.total_sell_fiat = ZERO
        self.total_buy_amount = ZERO
        self.total_sell_amount = ZERO
        self.unmatched_sell_amount = ZERO

    def feed(self, trades: Iterable[TradeRecord]) -> "BaseAccumulator":
        """Process a sequence of trades in order.

        Args:
            trades: Trades sorted by completion time.

        Returns:
            The accumulator itself, for chaining.
        """
        for trade in trades:
            self.process(trade)
        return self

    def process(self, trade: TradeRecord) -> Decimal:
        """Process a single trade.

        Args:
            trade: Trade to apply.

        Returns:
            Realized profit contributed by this trade (zero for buys).
        """
        if trade.is_buy:
            self.total_buy_fiat += trade.total_fiat
            self.total_buy_amount += trade.amount
            self._on_buy(trade)
            return ZERO

        self.total_sell_fiat += trade.total_fiat
        self.total_sell_amount += trade.amount
        profit = self._on_sell(trade)
        self.realized_profit += profit
        return profit

    @property
    def avg_buy_price(self) -> Decimal:
        if self.total_buy_amount > 0:
            return self.total_buy_fiat / self.total_buy_amount
        return ZERO

    @property
    def avg_sell_price(self) -> Decimal:
        if self.total_sell_amount > 0:
            return self.total_sell_fiat / self.total_sell_amount
        return ZERO

    @abstractmethod
    def _on_buy(self, trade: TradeRecord) -> None:
        """Add a buy to inventory."""
        pass

    @abstractmethod
    def _on_sell(self, trade: TradeRecord) -> Decimal:
        """Remove a sell from inventory.

        Returns:
            Net realized profit for the sell.
        """
        pass

    @property
    @abstractmethod
    def inventory(self) -> Decimal:
        """Asset quantity currently held."""
        pass

    @property
    @abstractmethod
    def average_cost(self) -> Decimal:
        """Per-unit cost basis of the current inventory."""
        pass
