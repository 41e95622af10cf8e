"""First-in, first-out lot matching."""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable

from p2pprofit.engine.base import ZERO, BaseAccumulator
from p2pprofit.models import TradeRecord

logger = logging.getLogger(__name__)


@dataclass
class OpenLot:
    """An unconsumed (or partly consumed) buy."""

    remaining_amount: Decimal
    unit_price: Decimal
    total_fee: Decimal
    original_amount: Decimal

    def fee_share(self, consumed: Decimal) -> Decimal:
        """Part of the buy fee that belongs to ``consumed`` units."""
        return consumed / self.original_amount * self.total_fee


class FifoMatcher(BaseAccumulator):
    """Matches each sell against the oldest open buy lots.

    Lots live in a list with a head index. Consumed lots are skipped by
    advancing the head, so the queue is never reordered and lots are
    always taken in arrival order.

    A sell larger than the open inventory is matched as far as the lots
    go. The rest is recorded in ``unmatched_sell_amount``: it still counts
    in the sell totals but realizes no profit.
    """

    method = "FIFO"

    def __init__(self) -> None:
        super().__init__()
        self._lots: list[OpenLot] = []
        self._head = 0
        self._open_amount = ZERO
        self._open_cost = ZERO

    def feed(self, trades: Iterable[TradeRecord]) -> "FifoMatcher":
        """Queue every buy of the batch, then match its sells.

        Both partitions keep their completion order.

        Args:
            trades: Trades sorted by completion time.

        Returns:
            The matcher itself, for chaining.
        """
        batch = list(trades)
        for trade in batch:
            if trade.is_buy:
                self.process(trade)
        for trade in batch:
            if not trade.is_buy:
                self.process(trade)
        return self

    def _on_buy(self, trade: TradeRecord) -> None:
        self._lots.append(
            OpenLot(
                remaining_amount=trade.amount,
                unit_price=trade.price,
                total_fee=trade.fee_fiat,
                original_amount=trade.amount,
            )
        )
        self._open_amount += trade.amount
        self._open_cost += trade.amount * trade.price

    def _on_sell(self, trade: TradeRecord) -> Decimal:
        remaining = trade.amount
        profit = ZERO

        while remaining > 0 and self._head < len(self._lots):
            lot = self._lots[self._head]
            consumed = min(remaining, lot.remaining_amount)

            gross = (trade.price - lot.unit_price) * consumed
            sell_fee_share = consumed / trade.amount * trade.fee_fiat
            profit += gross - lot.fee_share(consumed) - sell_fee_share

            lot.remaining_amount -= consumed
            remaining -= consumed
            self._open_amount -= consumed
            self._open_cost -= consumed * lot.unit_price

            if lot.remaining_amount == 0:
                self._head += 1

        if remaining > 0:
            self.unmatched_sell_amount += remaining
            logger.warning(
                "Sell %s at %s exceeds open inventory; %s left unmatched",
                trade.order_id or trade.completed_at.isoformat(),
                trade.price,
                remaining,
            )

        return profit

    @property
    def open_lots(self) -> list[OpenLot]:
        """Copies of the lots not yet fully consumed, oldest first."""
        return [replace(lot) for lot in self._lots[self._head:]]

    @property
    def inventory(self) -> Decimal:
        return self._open_amount

    @property
    def average_cost(self) -> Decimal:
        if self._open_amount > 0:
            return self._open_cost / self._open_amount
        return ZERO
