"""SQLite trade ledger for P2P Profit."""

import sqlite3
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from p2pprofit.models import TradeRecord

_TRADE_COLUMNS = (
    "order_id",
    "side",
    "asset",
    "fiat_currency",
    "price",
    "amount",
    "total_fiat",
    "fee_fiat",
    "payment_method",
    "counterparty",
    "status",
    "completed_at",
    "notes",
)


class TradeStore:
    """SQLite-based trade ledger.

    Monetary columns are stored as TEXT so Decimal values come back
    exactly as they went in.
    """

    REQUIRED_TABLES = ["trades"]

    def __init__(self, db_path: Path):
        """Initialize the trade store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    order_id TEXT UNIQUE,
                    side TEXT NOT NULL,
                    asset TEXT NOT NULL DEFAULT 'USDT',
                    fiat_currency TEXT NOT NULL DEFAULT 'INR',
                    price TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    total_fiat TEXT NOT NULL,
                    fee_fiat TEXT NOT NULL DEFAULT '0',
                    payment_method TEXT,
                    counterparty TEXT,
                    status TEXT NOT NULL DEFAULT 'COMPLETED',
                    completed_at TEXT NOT NULL,
                    notes TEXT
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_trades_fiat_completed
                ON trades (fiat_currency, completed_at)
            """)
            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    @staticmethod
    def _to_row(trade: TradeRecord) -> tuple:
        return (
            trade.order_id,
            trade.side,
            trade.asset,
            trade.fiat_currency,
            str(trade.price),
            str(trade.amount),
            str(trade.total_fiat),
            str(trade.fee_fiat),
            trade.payment_method,
            trade.counterparty,
            trade.status,
            trade.completed_at.isoformat(),
            trade.notes,
        )

    @staticmethod
    def _from_row(row: sqlite3.Row) -> TradeRecord:
        return TradeRecord(
            order_id=row["order_id"],
            side=row["side"],
            asset=row["asset"],
            fiat_currency=row["fiat_currency"],
            price=Decimal(row["price"]),
            amount=Decimal(row["amount"]),
            total_fiat=Decimal(row["total_fiat"]),
            fee_fiat=Decimal(row["fee_fiat"]),
            payment_method=row["payment_method"],
            counterparty=row["counterparty"],
            status=row["status"],
            completed_at=datetime.fromisoformat(row["completed_at"]),
            notes=row["notes"],
        )

    def save_trade(self, trade: TradeRecord) -> None:
        """Insert a trade, replacing any trade with the same order ID.

        Args:
            trade: Trade to save.
        """
        self.save_trades([trade], overwrite=True)

    def save_trades(self, trades: list[TradeRecord], overwrite: bool = False) -> dict[str, int]:
        """Save trades in one transaction.

        Trades with an order ID already in the ledger are updated when
        ``overwrite`` is set and counted as duplicates otherwise.

        Args:
            trades: Trades to save.
            overwrite: Whether to replace existing trades.

        Returns:
            Counts keyed by "inserted", "updated" and "duplicates".
        """
        counts = {"inserted": 0, "updated": 0, "duplicates": 0}
        columns = ", ".join(_TRADE_COLUMNS)
        placeholders = ", ".join("?" for _ in _TRADE_COLUMNS)
        assignments = ", ".join(f"{c} = ?" for c in _TRADE_COLUMNS)

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            for trade in trades:
                existing = None
                if trade.order_id:
                    cursor.execute("SELECT id FROM trades WHERE order_id = ?", (trade.order_id,))
                    existing = cursor.fetchone()

                if existing is None:
                    cursor.execute(
                        f"INSERT INTO trades ({columns}) VALUES ({placeholders})",
                        self._to_row(trade),
                    )
                    counts["inserted"] += 1
                elif overwrite:
                    cursor.execute(
                        f"UPDATE trades SET {assignments} WHERE id = ?",
                        self._to_row(trade) + (existing["id"],),
                    )
                    counts["updated"] += 1
                else:
                    counts["duplicates"] += 1
            conn.commit()
        finally:
            conn.close()

        return counts

    def get_trades(
        self,
        fiat_currency: Optional[str] = None,
        asset: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        status: Optional[str] = "COMPLETED",
    ) -> list[TradeRecord]:
        """Get trades sorted by completion time, oldest first.

        Args:
            fiat_currency: Optional fiat currency filter.
            asset: Optional asset filter.
            from_date: Optional first day of the window (inclusive).
            to_date: Optional last day of the window (inclusive).
            status: Status filter; None returns every status.

        Returns:
            List of trades.
        """
        clauses = []
        params: list = []
        if fiat_currency:
            clauses.append("fiat_currency = ?")
            params.append(fiat_currency.upper())
        if asset:
            clauses.append("asset = ?")
            params.append(asset.upper())
        if status:
            clauses.append("status = ?")
            params.append(status.upper())
        # The date part of the stored ISO timestamp, in the trade's own offset.
        if from_date:
            clauses.append("substr(completed_at, 1, 10) >= ?")
            params.append(from_date.isoformat())
        if to_date:
            clauses.append("substr(completed_at, 1, 10) <= ?")
            params.append(to_date.isoformat())

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT * FROM trades {where} ORDER BY completed_at, id",
                params,
            )
            return [self._from_row(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def count_trades(self) -> int:
        """Number of trades in the ledger."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS n FROM trades")
            return cursor.fetchone()["n"]
        finally:
            conn.close()

    def get_fiat_currencies(self) -> list[str]:
        """Fiat currencies that appear in the ledger."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT DISTINCT fiat_currency FROM trades ORDER BY fiat_currency")
            return [row["fiat_currency"] for row in cursor.fetchall()]
        finally:
            conn.close()

    def delete_trade(self, order_id: str) -> bool:
        """Delete a trade by order ID.

        Args:
            order_id: Order ID to delete.

        Returns:
            True if a trade was deleted.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM trades WHERE order_id = ?", (order_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()
