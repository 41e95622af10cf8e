"""Property-based tests for the trade ledger.

**Feature: p2p-profit**
"""

import tempfile
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from p2pprofit.db.store import TradeStore
from p2pprofit.models import TradeRecord


@pytest.fixture
def temp_store():
    """Create a temporary ledger for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        yield TradeStore(db_path)


def make_trade(order_id, side="BUY", amount="10", price="82.5", when=None, **kwargs) -> TradeRecord:
    amount = Decimal(amount)
    price = Decimal(price)
    return TradeRecord(
        order_id=order_id,
        side=side,
        amount=amount,
        price=price,
        total_fiat=amount * price,
        completed_at=when or datetime(2024, 1, 1, 9, 0),
        **kwargs,
    )


class TestDatabaseSchemaCompleteness:
    """
    **Feature: p2p-profit, Property: Database Schema Completeness**

    *For any* fresh database, the trades table exists.
    """

    def test_schema_completeness(self, temp_store: TradeStore):
        tables = temp_store.get_tables()

        for table in TradeStore.REQUIRED_TABLES:
            assert table in tables, f"Required table '{table}' is missing"

    def test_nested_db_directory_created(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = TradeStore(Path(tmpdir) / "a" / "b" / "ledger.db")
            assert store.count_trades() == 0


class TestTradeRoundTrip:
    """
    **Feature: p2p-profit, Property: Exact Trade Round Trip**

    *For any* saved trade, reading it back gives the same Decimal values.
    """

    @given(
        amount=st.decimals(min_value=Decimal("0.000001"), max_value=Decimal("1000000"), places=6),
        price=st.decimals(min_value=Decimal("0.01"), max_value=Decimal("100000"), places=4),
        fee=st.decimals(min_value=Decimal("0"), max_value=Decimal("100"), places=2),
    )
    @settings(max_examples=30)
    def test_decimals_survive_storage(self, amount, price, fee):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = TradeStore(Path(tmpdir) / "test.db")
            trade = TradeRecord(
                order_id="RT1",
                side="SELL",
                amount=amount,
                price=price,
                total_fiat=amount * price,
                fee_fiat=fee,
                completed_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone(timedelta(hours=5, minutes=30))),
                payment_method="UPI",
                counterparty="alice",
            )
            store.save_trade(trade)

            [loaded] = store.get_trades()
            assert loaded == trade


class TestTradeQueries:
    """
    **Feature: p2p-profit, Property: Trade Window Queries**

    Queries filter by currency, asset, status and an inclusive date window,
    oldest first.
    """

    def test_sorted_ascending(self, temp_store: TradeStore):
        temp_store.save_trades([
            make_trade("B", when=datetime(2024, 1, 2)),
            make_trade("A", when=datetime(2024, 1, 1)),
            make_trade("C", when=datetime(2024, 1, 3)),
        ])

        assert [t.order_id for t in temp_store.get_trades()] == ["A", "B", "C"]

    def test_inclusive_window(self, temp_store: TradeStore):
        temp_store.save_trades([
            make_trade(f"T{day}", when=datetime(2024, 1, day, 23, 59))
            for day in range(1, 6)
        ])

        trades = temp_store.get_trades(from_date=date(2024, 1, 2), to_date=date(2024, 1, 4))

        assert [t.order_id for t in trades] == ["T2", "T3", "T4"]

    def test_filters(self, temp_store: TradeStore):
        temp_store.save_trades([
            make_trade("INR1"),
            make_trade("USD1", fiat_currency="USD"),
            make_trade("BTC1", asset="BTC"),
            make_trade("PEND", status="PENDING"),
        ])

        assert [t.order_id for t in temp_store.get_trades(fiat_currency="inr", asset="usdt")] == ["INR1"]
        assert [t.order_id for t in temp_store.get_trades(fiat_currency="USD")] == ["USD1"]
        assert len(temp_store.get_trades(status=None)) == 4
        assert temp_store.get_fiat_currencies() == ["INR", "USD"]

    def test_trades_without_order_id_always_inserted(self, temp_store: TradeStore):
        counts = temp_store.save_trades([make_trade(None), make_trade(None)])

        assert counts["inserted"] == 2
        assert temp_store.count_trades() == 2


class TestDuplicateHandling:
    """
    **Feature: p2p-profit, Property: Duplicate Order IDs**

    *For any* order ID saved twice, the ledger keeps one trade.
    """

    @given(
        order_id=st.text(
            alphabet=st.characters(whitelist_categories=("Lu", "Nd")),
            min_size=1,
            max_size=20,
        )
    )
    @settings(max_examples=20)
    def test_duplicates_counted_not_inserted(self, order_id: str):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = TradeStore(Path(tmpdir) / "test.db")
            first = store.save_trades([make_trade(order_id)])
            second = store.save_trades([make_trade(order_id, price="90")])

            assert first == {"inserted": 1, "updated": 0, "duplicates": 0}
            assert second == {"inserted": 0, "updated": 0, "duplicates": 1}
            assert store.get_trades()[0].price == Decimal("82.5")

    def test_overwrite_updates(self, temp_store: TradeStore):
        temp_store.save_trades([make_trade("X")])
        counts = temp_store.save_trades([make_trade("X", price="90")], overwrite=True)

        assert counts == {"inserted": 0, "updated": 1, "duplicates": 0}
        assert temp_store.count_trades() == 1
        assert temp_store.get_trades()[0].price == Decimal("90")

    def test_delete_trade(self, temp_store: TradeStore):
        temp_store.save_trades([make_trade("X")])

        assert temp_store.delete_trade("X") is True
        assert temp_store.delete_trade("X") is False
        assert temp_store.count_trades() == 0
