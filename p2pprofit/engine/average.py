"""Weighted-average cost accounting."""

import logging
from decimal import Decimal

from p2pprofit.engine.base import ZERO, BaseAccumulator
from p2pprofit.models import TradeRecord

logger = logging.getLogger(__name__)


class AverageCostAccumulator(BaseAccumulator):
    """Keeps one blended cost basis for the whole inventory.

    Every buy re-blends the weighted average cost with the buy included.
    Every sell realizes ``(price - average cost) * amount`` less its own
    fee and its share of the buy fees still held in inventory.

    Sells are never capped by inventory. Selling more than was bought
    leaves the running amount negative and ``inventory`` reports that
    short position as is.
    """

    method = "AVERAGE"

    def __init__(self) -> None:
        super().__init__()
        self.weighted_average_cost = ZERO
        self._amount = ZERO
        self._cost = ZERO
        self._fees = ZERO

    def _on_buy(self, trade: TradeRecord) -> None:
        blended_amount = self._amount + trade.amount
        if blended_amount > 0:
            self.weighted_average_cost = (self._cost + trade.total_fiat) / blended_amount
        else:
            # Still short after this buy: the buy alone sets the basis.
            self.weighted_average_cost = trade.total_fiat / trade.amount

        self._cost += trade.total_fiat
        self._amount = blended_amount
        self._fees += trade.fee_fiat

    def _on_sell(self, trade: TradeRecord) -> Decimal:
        wac = self.weighted_average_cost
        gross = (trade.price - wac) * trade.amount

        fee_share = ZERO
        if self._amount > 0:
            covered = min(trade.amount, self._amount)
            fee_share = covered / self._amount * self._fees

        was_long = self._amount >= 0
        self._fees -= fee_share
        self._cost -= wac * trade.amount
        self._amount -= trade.amount

        if was_long and self._amount < 0:
            logger.warning(
                "Sell %s oversells inventory; running amount is now %s",
                trade.order_id or trade.completed_at.isoformat(),
                self._amount,
            )

        return gross - trade.fee_fiat - fee_share

    @property
    def inventory(self) -> Decimal:
        return self._amount

    @property
    def average_cost(self) -> Decimal:
        if self._amount > 0:
            return self.weighted_average_cost
        return ZERO
