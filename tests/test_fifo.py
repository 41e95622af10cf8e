"""Tests for FIFO lot matching.

**Feature: p2p-profit**
"""

from datetime import datetime, timedelta
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from p2pprofit.engine.fifo import FifoMatcher
from p2pprofit.models import TradeRecord

BASE_TIME = datetime(2024, 1, 1, 9, 0)


def make_trade(side: str, amount, price, minutes: int = 0, fee="0", order_id=None) -> TradeRecord:
    """Create a trade whose total is amount * price."""
    amount = Decimal(str(amount))
    price = Decimal(str(price))
    return TradeRecord(
        side=side,
        amount=amount,
        price=price,
        total_fiat=amount * price,
        fee_fiat=Decimal(fee),
        completed_at=BASE_TIME + timedelta(minutes=minutes),
        order_id=order_id,
    )


class TestFifoLotOrder:
    """
    **Feature: p2p-profit, Property 2: FIFO Lot Order**

    Sells consume the oldest open lot first, regardless of price.
    """

    def test_oldest_lot_consumed_first(self):
        matcher = FifoMatcher().feed([
            make_trade("BUY", 5, 10, minutes=0),
            make_trade("BUY", 5, 20, minutes=1),
            make_trade("SELL", 5, 30, minutes=2),
        ])

        assert matcher.realized_profit == Decimal("100")
        lots = matcher.open_lots
        assert len(lots) == 1
        assert lots[0].unit_price == Decimal("20")

    def test_cheaper_later_lot_is_not_preferred(self):
        matcher = FifoMatcher().feed([
            make_trade("BUY", 5, 20, minutes=0),
            make_trade("BUY", 5, 10, minutes=1),
            make_trade("SELL", 5, 30, minutes=2),
        ])

        assert matcher.realized_profit == Decimal("50")
        assert matcher.open_lots[0].unit_price == Decimal("10")

    def test_sell_spanning_two_lots(self):
        matcher = FifoMatcher().feed([
            make_trade("BUY", 5, 10, minutes=0),
            make_trade("BUY", 5, 20, minutes=1),
            make_trade("SELL", 8, 30, minutes=2),
        ])

        # 5 * (30 - 10) + 3 * (30 - 20)
        assert matcher.realized_profit == Decimal("130")
        assert matcher.inventory == Decimal("2")


class TestPartialLotConsumption:
    """
    **Feature: p2p-profit, Property 3: Partial Lot Consumption**

    A lot shrinks as sells consume it and stays at the head of the queue
    until empty.
    """

    def test_two_sells_from_one_lot(self):
        matcher = FifoMatcher()
        matcher.process(make_trade("BUY", 10, 10, minutes=0))

        first = matcher.process(make_trade("SELL", 4, 15, minutes=1))
        assert first == Decimal("20")
        assert matcher.open_lots[0].remaining_amount == Decimal("6")

        second = matcher.process(make_trade("SELL", 4, 12, minutes=2))
        assert second == Decimal("8")
        assert matcher.inventory == Decimal("2")
        assert matcher.realized_profit == Decimal("28")

    def test_fully_consumed_lot_leaves_queue(self):
        matcher = FifoMatcher().feed([
            make_trade("BUY", 3, 10, minutes=0),
            make_trade("BUY", 3, 11, minutes=1),
            make_trade("SELL", 3, 12, minutes=2),
        ])

        assert [lot.unit_price for lot in matcher.open_lots] == [Decimal("11")]

    def test_open_lots_are_copies(self):
        matcher = FifoMatcher()
        matcher.process(make_trade("BUY", 10, 10))

        matcher.open_lots[0].remaining_amount = Decimal("0")

        assert matcher.inventory == Decimal("10")
        assert matcher.open_lots[0].remaining_amount == Decimal("10")


class TestFeeProration:
    """
    **Feature: p2p-profit, Property: Fee Proration**

    Each matched slice carries its share of the lot's buy fee and of the
    sell's own fee.
    """

    def test_buy_and_sell_fee_shares(self):
        matcher = FifoMatcher().feed([
            make_trade("BUY", 10, 10, minutes=0, fee="5"),
            make_trade("SELL", 4, 15, minutes=1, fee="2"),
        ])

        # 20 gross - 4/10 of 5 - 4/4 of 2
        assert matcher.realized_profit == Decimal("16")

    def test_fees_split_across_lots(self):
        matcher = FifoMatcher().feed([
            make_trade("BUY", 5, 10, minutes=0, fee="1"),
            make_trade("BUY", 5, 20, minutes=1, fee="2"),
            make_trade("SELL", 10, 30, minutes=2, fee="4"),
        ])

        # (100 - 1 - 2) + (50 - 2 - 2)
        assert matcher.realized_profit == Decimal("143")

    def test_remaining_lot_fee_is_not_charged(self):
        matcher = FifoMatcher().feed([
            make_trade("BUY", 10, 10, minutes=0, fee="10"),
            make_trade("SELL", 5, 10, minutes=1),
        ])

        assert matcher.realized_profit == Decimal("-5")


class TestInventoryExhaustion:
    """
    **Feature: p2p-profit, Property: Unmatched Sell Volume**

    Sell volume beyond open inventory is counted in the totals but
    realizes no profit.
    """

    def test_unmatched_remainder(self):
        matcher = FifoMatcher().feed([
            make_trade("BUY", 5, 10, minutes=0),
            make_trade("SELL", 8, 20, minutes=1),
        ])

        assert matcher.realized_profit == Decimal("50")
        assert matcher.unmatched_sell_amount == Decimal("3")
        assert matcher.total_sell_amount == Decimal("8")
        assert matcher.total_sell_fiat == Decimal("160")
        assert matcher.inventory == Decimal("0")

    def test_sell_with_no_inventory(self):
        matcher = FifoMatcher()
        profit = matcher.process(make_trade("SELL", 2, 20))

        assert profit == Decimal("0")
        assert matcher.unmatched_sell_amount == Decimal("2")
        assert matcher.average_cost == Decimal("0")

    def test_batch_buys_are_queued_before_sells(self):
        matcher = FifoMatcher().feed([
            make_trade("SELL", 5, 30, minutes=0),
            make_trade("BUY", 5, 10, minutes=1),
        ])

        assert matcher.realized_profit == Decimal("100")
        assert matcher.unmatched_sell_amount == Decimal("0")


class TestFifoInventoryConservation:
    """
    **Feature: p2p-profit, Property: FIFO Inventory Conservation**

    *For any* batch, bought = open inventory + matched sell volume.
    """

    @given(
        legs=st.lists(
            st.tuples(
                st.sampled_from(["BUY", "SELL"]),
                st.decimals(min_value=Decimal("0.01"), max_value=Decimal("1000"), places=2),
                st.decimals(min_value=Decimal("0.01"), max_value=Decimal("1000"), places=2),
            ),
            min_size=0,
            max_size=40,
        )
    )
    @settings(max_examples=100)
    def test_inventory_plus_matched_equals_bought(self, legs):
        trades = [
            make_trade(side, amount, price, minutes=i)
            for i, (side, amount, price) in enumerate(legs)
        ]
        matcher = FifoMatcher().feed(trades)

        matched = matcher.total_sell_amount - matcher.unmatched_sell_amount
        assert matcher.inventory + matched == matcher.total_buy_amount
        assert matcher.inventory >= 0
        assert sum((lot.remaining_amount for lot in matcher.open_lots), Decimal("0")) == matcher.inventory
